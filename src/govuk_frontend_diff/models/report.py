"""Comparison outcome and run report models."""

from enum import Enum

from pydantic import BaseModel, Field, computed_field


class ChangeKind(str, Enum):
    """Kinds of structural difference."""

    ADDED = "added"  # present in candidate only
    REMOVED = "removed"  # present in reference only
    ATTRIBUTE = "attribute"  # same element, attribute differs


class Change(BaseModel):
    """Single structural difference between reference and candidate markup."""

    kind: ChangeKind
    path: str
    line: int | None = None
    reference: str | None = None
    candidate: str | None = None
    attribute: str | None = None

    def describe(self) -> str:
        """Human-readable one-line description of the change."""
        where = f"{self.path} (line {self.line})" if self.line else self.path
        if self.kind == ChangeKind.ATTRIBUTE:
            if self.candidate is None:
                return f"{where}: missing attribute {self.attribute}={self.reference!r}"
            if self.reference is None:
                return f"{where}: unexpected attribute {self.attribute}={self.candidate!r}"
            return (
                f"{where}: attribute {self.attribute} is {self.candidate!r}, "
                f"expected {self.reference!r}"
            )
        if self.kind == ChangeKind.REMOVED:
            return f"{where}: missing {self.reference}"
        return f"{where}: unexpected {self.candidate}"


class DiffReport(BaseModel):
    """Ordered structural differences; empty when the markup is equivalent."""

    changes: list[Change] = Field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.changes)

    def __len__(self) -> int:
        return len(self.changes)


class OutcomeStatus(str, Enum):
    """Verdict for a single example."""

    PASSED = "passed"
    MISMATCH = "mismatch"
    CANDIDATE_ERROR = "candidate_error"
    REFERENCE_ERROR = "reference_error"


class ComparisonOutcome(BaseModel):
    """Per-example verdict.

    A mismatch carries its structural changes in ``diff``. A render that
    failed on either side has nothing to diff, so the raw error text is the
    payload and is kept in ``error`` while ``diff`` stays empty.
    """

    example: str
    status: OutcomeStatus
    diff: DiffReport = Field(default_factory=DiffReport)
    error: str | None = None
    reference: str = ""  # normalized reference markup
    candidate: str = ""  # normalized candidate markup

    @computed_field  # type: ignore[prop-decorator]
    @property
    def passed(self) -> bool:
        return self.status == OutcomeStatus.PASSED


class ComponentOutcome(BaseModel):
    """All example outcomes for one component, in declaration order."""

    component: str
    results: list[ComparisonOutcome] = Field(default_factory=list)
    setup_error: str | None = None

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return len(self.results) - self.passed


class RunReport(BaseModel):
    """Aggregate of a differential run.

    ``total`` counts compared examples, so ``total == passed + failed``
    always holds. Components whose examples could not be loaded are counted
    separately in ``errored_components`` and also fail the run.
    """

    version: str
    components: list[ComponentOutcome] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return sum(len(c.results) for c in self.components)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def passed(self) -> int:
        return sum(c.passed for c in self.components)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed(self) -> int:
        return sum(c.failed for c in self.components)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def errored_components(self) -> int:
        return sum(1 for c in self.components if c.setup_error is not None)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return self.failed == 0 and self.errored_components == 0
