"""Pydantic data models for govuk-frontend-diff.

This package defines the data structures shared by the diff engine:
- Reference bundles (Bundle, BundleLayout)
- Reference examples (Example, ComponentExamples)
- The candidate render contract (RenderRequest)
- Structural differences (Change, ChangeKind, DiffReport)
- Verdicts and aggregation (ComparisonOutcome, ComponentOutcome, RunReport)

Example:
    >>> from govuk_frontend_diff.models import RenderRequest
    >>> RenderRequest.for_component("button", {"text": "Save"}).to_args()
    ['--component', 'button', '--params', '{"text": "Save"}']
"""

from .bundle import Bundle, BundleLayout
from .examples import ComponentExamples, Example
from .report import (
    Change,
    ChangeKind,
    ComparisonOutcome,
    ComponentOutcome,
    DiffReport,
    OutcomeStatus,
    RunReport,
)
from .request import RenderRequest

__all__ = [
    "Bundle",
    "BundleLayout",
    "Change",
    "ChangeKind",
    "ComparisonOutcome",
    "ComponentExamples",
    "ComponentOutcome",
    "DiffReport",
    "Example",
    "OutcomeStatus",
    "RenderRequest",
    "RunReport",
]
