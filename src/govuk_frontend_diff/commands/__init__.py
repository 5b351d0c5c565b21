"""CLI command implementations for govuk-frontend-diff.

This package contains the implementation of each CLI command,
separated from the CLI framework setup in cli.py.
"""

from .components import components
from .diff import diff
from .init import init

__all__ = [
    "components",
    "diff",
    "init",
]
