"""Version-keyed reference bundle cache."""

import asyncio
import contextlib
import hashlib
import logging
import re
import shutil
import tarfile
import tempfile
from collections.abc import AsyncIterator
from pathlib import Path, PurePosixPath

import httpx

from ..constants import DEFAULT_ARCHIVE_URL, DOWNLOAD_TIMEOUT
from ..errors import BundleError
from ..models import Bundle, BundleLayout

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def cache_key(version: str) -> str:
    """File-system safe directory name for a version.

    Unsafe characters are replaced (``feature/x`` -> ``feature_x-<hash>``) and a
    short digest of the raw version keeps distinct versions apart.
    """
    version = version.strip()
    key = _UNSAFE_KEY_CHARS.sub("_", version)
    if not key or key in {".", ".."}:
        raise BundleError(f"Invalid version: {version!r}")
    digest = hashlib.sha1(version.encode("utf-8")).hexdigest()[:8]
    return f"{key}-{digest}"


def validate_bundle(bundle: Bundle) -> None:
    """Check that a bundle has the layout the renderer expects.

    Raises:
        BundleError: If the components directory or page template is missing
    """
    if not bundle.components_dir.is_dir():
        raise BundleError(
            f"Bundle for {bundle.version} has no components directory "
            f"({bundle.layout.components_dir})"
        )
    if not bundle.page_template_path.is_file():
        raise BundleError(
            f"Bundle for {bundle.version} has no page template ({bundle.layout.page_template})"
        )


def extract_archive(archive: Path, dest: Path) -> None:
    """Extract a repository tarball, dropping its single top-level directory.

    Only regular files and directories are extracted. Members that would land
    outside ``dest`` are rejected.

    Raises:
        BundleError: If the archive cannot be read or contains unsafe paths
    """
    try:
        with tarfile.open(archive, "r:*") as tar:
            members = tar.getmembers()
            all_parts = [PurePosixPath(m.name).parts for m in members]
            roots = {parts[0] for parts in all_parts if parts}
            strip = len(roots) == 1 and any(len(parts) > 1 for parts in all_parts)
            for member in members:
                member_path = PurePosixPath(member.name)
                parts = member_path.parts[1:] if strip else member_path.parts
                if not parts:
                    continue
                if member_path.is_absolute() or ".." in parts:
                    raise BundleError(f"Unsafe path in archive: {member.name}")

                target = dest.joinpath(*parts)
                if member.isdir():
                    target.mkdir(parents=True, exist_ok=True)
                elif member.isfile():
                    target.parent.mkdir(parents=True, exist_ok=True)
                    source = tar.extractfile(member)
                    if source is None:
                        continue
                    with source, open(target, "wb") as out:
                        shutil.copyfileobj(source, out)
                else:
                    logger.debug(f"Skipping non-regular archive member: {member.name}")
    except (tarfile.TarError, OSError) as e:
        raise BundleError(f"Failed to extract {archive.name}: {e}") from e


class BundleProvider:
    """Materialize reference bundles in a cache keyed by version.

    Args:
        cache_dir: Directory holding one sub-directory per version
        archive_url: URL template with a ``{version}`` placeholder
        layout: Where templates live inside the archive
        client: Optional HTTP client (injected in tests)
        timeout: Download timeout in seconds
    """

    def __init__(
        self,
        cache_dir: Path,
        archive_url: str = DEFAULT_ARCHIVE_URL,
        layout: BundleLayout | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = DOWNLOAD_TIMEOUT,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.archive_url = archive_url
        self.layout = layout or BundleLayout()
        self.client = client
        self.timeout = timeout

    def cache_path(self, version: str) -> Path:
        return self.cache_dir / cache_key(version)

    def cached(self, version: str) -> Bundle | None:
        """Return the cached bundle for a version, or None if not fetched yet."""
        path = self.cache_path(version)
        if not path.is_dir():
            return None
        return Bundle(version=version, root=path, layout=self.layout)

    async def ensure(self, version: str, force_refresh: bool = False) -> Bundle:
        """Guarantee a local copy of the bundle for ``version`` exists.

        A cached copy is reused unless ``force_refresh`` is set, in which case
        it is replaced only once the new copy has been fetched and validated.

        Raises:
            BundleError: If the version cannot be downloaded, extracted, or
                does not have the expected layout
        """
        bundle = None if force_refresh else self.cached(version)
        if bundle is not None:
            logger.info(f"Using cached reference bundle for {version}")
            try:
                validate_bundle(bundle)
            except BundleError as e:
                raise BundleError(f"{e}. Re-fetch it with --force-refresh") from None
            return bundle

        url = self.archive_url.format(version=version)
        logger.info(f"Fetching reference bundle for {version} from {url}")
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(dir=self.cache_dir, prefix=".download-") as tmp:
            archive = Path(tmp) / "bundle.tar.gz"
            await self._download(version, url, archive)
            return await asyncio.to_thread(self._install, version, archive)

    @contextlib.asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self.client is not None:
            yield self.client
            return
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            yield client

    async def _download(self, version: str, url: str, dest: Path) -> None:
        try:
            async with self._http() as client, client.stream("GET", url) as response:
                response.raise_for_status()
                with open(dest, "wb") as out:
                    async for chunk in response.aiter_bytes():
                        out.write(chunk)
        except httpx.HTTPStatusError as e:
            raise BundleError(
                f"Could not fetch {version}: HTTP {e.response.status_code} from {url}"
            ) from e
        except httpx.HTTPError as e:
            raise BundleError(f"Could not fetch {version}: {e}") from e
        except OSError as e:
            raise BundleError(f"Could not write archive for {version}: {e}") from e
        logger.debug(f"Downloaded {dest.stat().st_size} bytes for {version}")

    def _install(self, version: str, archive: Path) -> Bundle:
        """Extract into a staging directory, validate, then swap into place."""
        target = self.cache_path(version)
        staging = Path(tempfile.mkdtemp(dir=self.cache_dir, prefix=f".{target.name}."))
        try:
            extract_archive(archive, staging)
            validate_bundle(Bundle(version=version, root=staging, layout=self.layout))
            if target.exists():
                shutil.rmtree(target)
            staging.rename(target)
        except OSError as e:
            shutil.rmtree(staging, ignore_errors=True)
            raise BundleError(f"Could not install bundle for {version}: {e}") from e
        except Exception:
            shutil.rmtree(staging, ignore_errors=True)
            raise
        logger.info(f"Cached reference bundle for {version} at {target}")
        return Bundle(version=version, root=target, layout=self.layout)
