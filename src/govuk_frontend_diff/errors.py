"""Exceptions raised by govuk-frontend-diff."""


class DiffToolError(Exception):
    """Base exception for govuk-frontend-diff errors."""


class ConfigError(DiffToolError):
    """Raised when the configuration file cannot be loaded."""


class BundleError(DiffToolError):
    """Raised when the reference bundle cannot be fetched or is unusable."""


class CatalogError(DiffToolError):
    """Raised when the component list cannot be enumerated."""


class ReferenceTemplateError(DiffToolError):
    """Base exception for reference-side template and example failures."""


class ExamplesError(ReferenceTemplateError):
    """Raised when a component's examples file is missing or malformed."""


class TemplateMissingError(ReferenceTemplateError):
    """Raised when a reference template does not exist in the bundle."""


class ReferenceRenderError(ReferenceTemplateError):
    """Raised when the reference template engine fails to render."""


class CandidateError(DiffToolError):
    """Raised when the candidate renderer fails to produce markup."""


class RunTimeoutError(DiffToolError):
    """Raised when a diff run exceeds its overall time limit."""
