"""Differential test orchestration.

A run materializes the reference bundle, selects components, then fans out
one task per component and, within each, one task per example. Each example
is rendered by the reference and candidate renderers with the same params,
both outputs are normalized, and the structural diff decides the verdict.
Results are reassembled in catalog and example declaration order.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from ..constants import DEFAULT_CONCURRENCY, PAGE_TEMPLATE
from ..errors import CandidateError, ReferenceTemplateError, RunTimeoutError
from ..models import (
    ComparisonOutcome,
    ComponentOutcome,
    Example,
    OutcomeStatus,
    RenderRequest,
    RunReport,
)
from ..services.bundle import BundleProvider
from ..services.candidate import CandidateRenderer
from ..services.catalog import list_components, page_template_selected, select_components
from .differ import HtmlDiffer
from .normalizer import normalize
from .reference import PAGE_TEMPLATE_EXAMPLES, ReferenceRenderer

logger = logging.getLogger(__name__)


@dataclass
class RunOptions:
    """Options for a differential run.

    A component runs when it passes the ``include`` check (if given) and is
    not in ``exclude`` (if given). ``page-template`` is filtered the same way.
    """

    include: set[str] | None = None
    exclude: set[str] | None = None
    force_refresh: bool = False
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float | None = None  # whole run, seconds


class RunProgress(Protocol):
    """Receives progress while a run is in flight."""

    def start(self, total: int) -> None: ...

    def advance(self, component: str) -> None: ...


class ComponentRunner:
    """Compare every example of a component through both renderers."""

    def __init__(
        self,
        reference: ReferenceRenderer,
        candidate: CandidateRenderer,
        differ: HtmlDiffer,
        concurrency: int = DEFAULT_CONCURRENCY,
        progress: RunProgress | None = None,
    ) -> None:
        self.reference = reference
        self.candidate = candidate
        self.differ = differ
        self.progress = progress
        self._slots = asyncio.Semaphore(max(concurrency, 1))

    async def compare(
        self,
        example: Example,
        request: RenderRequest,
        render_reference: Callable[[dict[str, Any]], str],
    ) -> ComparisonOutcome:
        """Render one example on both sides and diff the normalized markup."""
        try:
            expected = normalize(render_reference(example.data))
        except ReferenceTemplateError as e:
            logger.warning(f"Reference render failed for {example.name!r}: {e}")
            return ComparisonOutcome(
                example=example.name, status=OutcomeStatus.REFERENCE_ERROR, error=str(e)
            )

        try:
            async with self._slots:
                raw = await self.candidate.render(request)
        except CandidateError as e:
            logger.debug(f"Candidate render failed for {example.name!r}: {e}")
            return ComparisonOutcome(
                example=example.name,
                status=OutcomeStatus.CANDIDATE_ERROR,
                error=str(e),
                reference=expected,
            )

        actual = normalize(raw)
        report = self.differ.diff(expected, actual)
        return ComparisonOutcome(
            example=example.name,
            status=OutcomeStatus.MISMATCH if report else OutcomeStatus.PASSED,
            diff=report,
            reference=expected,
            candidate=actual,
        )

    async def _compare_all(
        self,
        examples: list[Example],
        make_request: Callable[[Example], RenderRequest],
        render_reference: Callable[[dict[str, Any]], str],
    ) -> list[ComparisonOutcome]:
        async with asyncio.TaskGroup() as tg:
            tasks = [
                tg.create_task(self.compare(example, make_request(example), render_reference))
                for example in examples
            ]
        return [task.result() for task in tasks]

    async def run_component(self, component: str) -> ComponentOutcome:
        """Run all examples of a component from the bundle.

        A missing template or unreadable examples file fails this component
        only, recorded as its ``setup_error``.
        """
        try:
            self.reference.check_component(component)
            examples = self.reference.load_examples(component)
        except ReferenceTemplateError as e:
            logger.error(f"{component}: {e}")
            outcome = ComponentOutcome(component=component, setup_error=str(e))
        else:
            results = await self._compare_all(
                examples,
                lambda example: RenderRequest.for_component(component, example.data),
                lambda params: self.reference.render_component(component, params),
            )
            outcome = ComponentOutcome(component=component, results=results)
        self._advance(component)
        return outcome

    async def run_page_template(self) -> ComponentOutcome:
        """Run the fixed page template scenarios."""
        try:
            self.reference.check_page_template()
        except ReferenceTemplateError as e:
            logger.error(f"{PAGE_TEMPLATE}: {e}")
            outcome = ComponentOutcome(component=PAGE_TEMPLATE, setup_error=str(e))
        else:
            results = await self._compare_all(
                PAGE_TEMPLATE_EXAMPLES,
                lambda example: RenderRequest.for_template(example.data),
                self.reference.render_page,
            )
            outcome = ComponentOutcome(component=PAGE_TEMPLATE, results=results)
        self._advance(PAGE_TEMPLATE)
        return outcome

    def _advance(self, component: str) -> None:
        if self.progress is not None:
            self.progress.advance(component)


async def run(
    version: str,
    candidate: CandidateRenderer,
    options: RunOptions | None = None,
    *,
    provider: BundleProvider,
    differ: HtmlDiffer | None = None,
    progress: RunProgress | None = None,
) -> RunReport:
    """Differentially test a candidate renderer against a reference version.

    Args:
        version: Reference version (tag, branch or commit-ish)
        candidate: Renderer under test
        options: Component selection, refresh, concurrency and timeout
        provider: Supplies the reference bundle for ``version``
        differ: Structural differ (defaults to one where every attribute counts)
        progress: Optional progress receiver

    Returns:
        RunReport with one ComponentOutcome per selected component, in catalog
        order, followed by the page template scenarios when selected

    Raises:
        BundleError: If the reference bundle cannot be materialized
        CatalogError: If the components cannot be listed
        RunTimeoutError: If the run exceeds ``options.timeout``
    """
    options = options or RunOptions()

    # Fetch completes before any render task reads the bundle
    bundle = await provider.ensure(version, force_refresh=options.force_refresh)
    components = select_components(list_components(bundle), options.include, options.exclude)
    include_page = page_template_selected(options.include, options.exclude)
    logger.info(
        f"Comparing {len(components)} components"
        + (" and the page template" if include_page else "")
        + f" against {version}"
    )

    runner = ComponentRunner(
        ReferenceRenderer(bundle),
        candidate,
        differ or HtmlDiffer(),
        concurrency=options.concurrency,
        progress=progress,
    )
    if progress is not None:
        progress.start(len(components) + int(include_page))

    try:
        async with asyncio.timeout(options.timeout), asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(runner.run_component(c)) for c in components]
            if include_page:
                tasks.append(tg.create_task(runner.run_page_template()))
    except TimeoutError:
        raise RunTimeoutError(f"Run did not finish within {options.timeout} seconds") from None

    return RunReport(version=version, components=[task.result() for task in tasks])
