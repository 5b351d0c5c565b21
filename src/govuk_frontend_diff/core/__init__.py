"""Core diff engine for govuk-frontend-diff.

This package contains the comparison logic:
- normalizer: Canonical markup for stable comparison
- differ: Structural diff of canonical markup
- nunjucks: Nunjucks semantics for the Jinja2 reference engine
- reference: Reference rendering from a bundle's templates
- orchestrator: Fan-out/join over components and examples
"""

from .differ import HtmlDiffer, diff, format_diff, is_equal
from .normalizer import normalize
from .nunjucks import NunjucksEnvironment
from .orchestrator import ComponentRunner, RunOptions, RunProgress, run
from .reference import PAGE_TEMPLATE_EXAMPLES, ReferenceRenderer

__all__ = [
    "PAGE_TEMPLATE_EXAMPLES",
    "ComponentRunner",
    "HtmlDiffer",
    "NunjucksEnvironment",
    "ReferenceRenderer",
    "RunOptions",
    "RunProgress",
    "diff",
    "format_diff",
    "is_equal",
    "normalize",
    "run",
]
