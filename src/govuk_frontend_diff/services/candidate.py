"""Candidate renderer adapters.

The diff engine only depends on :class:`CandidateRenderer`: something that
turns a :class:`RenderRequest` into markup. Two implementations are provided:
an external render script invoked once per request, and a wrapper for plain
Python callables.
"""

import asyncio
import contextlib
import inspect
import logging
import shlex
import shutil
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Protocol

from ..constants import GRACEFUL_SHUTDOWN_TIMEOUT, RENDER_TIMEOUT
from ..errors import CandidateError
from ..models import RenderRequest

logger = logging.getLogger(__name__)


class CandidateRenderer(Protocol):
    """Capability the diff engine renders candidate markup through."""

    async def render(self, request: RenderRequest) -> str: ...


async def terminate_process(proc: asyncio.subprocess.Process) -> None:
    """Send SIGTERM, then SIGKILL if the process does not exit in time."""
    if proc.returncode is not None:
        return
    with contextlib.suppress(ProcessLookupError):
        proc.terminate()
    try:
        await asyncio.wait_for(proc.wait(), timeout=GRACEFUL_SHUTDOWN_TIMEOUT)
    except TimeoutError:
        logger.warning(f"Render process {proc.pid} did not terminate, killing")
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()


class ProcessRenderer:
    """Render by running a script once per request.

    The script receives ``--component NAME --params JSON`` or
    ``--template --params JSON`` and must print the markup on stdout.

    Args:
        command: Script path, or a command line (parsed with shlex)
        timeout: Seconds allowed per render
        cwd: Working directory for the script
    """

    def __init__(
        self,
        command: Sequence[str] | str,
        timeout: float = RENDER_TIMEOUT,
        cwd: Path | None = None,
    ) -> None:
        if isinstance(command, str):
            try:
                command = shlex.split(command)
            except ValueError as e:
                raise CandidateError(f"Invalid command syntax: {e}") from e
        if not command:
            raise CandidateError("Empty render command")
        self.command = list(command)
        self.timeout = timeout
        self.cwd = cwd

    def check(self) -> None:
        """Fail early when the render command cannot be found.

        Raises:
            CandidateError: If the program is neither on PATH nor a file
        """
        program = self.command[0]
        if shutil.which(program) is None and not Path(program).is_file():
            raise CandidateError(f"Command not found: {program}")

    async def render(self, request: RenderRequest) -> str:
        """Run the render script for one request.

        Raises:
            CandidateError: If the script cannot be started, times out, exits
                non-zero, or prints output that is not UTF-8
        """
        cmd = [*self.command, *request.to_args()]
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=self.cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise CandidateError(f"Command not found: {self.command[0]}") from None
        except PermissionError:
            raise CandidateError(f"Command not executable: {self.command[0]}") from None

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except TimeoutError:
            await terminate_process(proc)
            raise CandidateError(f"Render timed out after {self.timeout} seconds") from None
        except asyncio.CancelledError:
            await terminate_process(proc)
            raise

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise CandidateError(f"Render script exited with code {proc.returncode}: {message}")

        try:
            return stdout.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CandidateError(f"Render output is not valid UTF-8: {e}") from e


class CallableRenderer:
    """Adapt a sync or async Python callable to :class:`CandidateRenderer`."""

    def __init__(self, func: Callable[[RenderRequest], str | Awaitable[str]]) -> None:
        self.func = func

    async def render(self, request: RenderRequest) -> str:
        try:
            result = self.func(request)
            if inspect.isawaitable(result):
                result = await result
        except CandidateError:
            raise
        except Exception as e:
            raise CandidateError(f"{type(e).__name__}: {e}") from e
        if not isinstance(result, str):
            raise CandidateError(f"Renderer returned {type(result).__name__}, expected markup")
        return result
