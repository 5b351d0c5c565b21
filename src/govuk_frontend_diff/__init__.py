"""govuk-frontend-diff: differential testing of GOV.UK Frontend template ports."""

__version__ = "0.1.0"
