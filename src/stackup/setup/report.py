"""Per-step results of a setup run."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


class StepStatus(Enum):
    """How a setup step ended."""

    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    """Result of a single setup step."""

    name: str
    status: StepStatus
    detail: str = ""

    @classmethod
    def succeeded(cls, name: str, detail: str = "") -> StepResult:
        return cls(name, StepStatus.SUCCEEDED, detail)

    @classmethod
    def skipped(cls, name: str, detail: str = "") -> StepResult:
        return cls(name, StepStatus.SKIPPED, detail)

    @classmethod
    def failed(cls, name: str, detail: str = "") -> StepResult:
        return cls(name, StepStatus.FAILED, detail)


@dataclass
class SetupReport:
    """Ordered collection of step results.

    Failures recorded here are non-fatal by construction: a fatal failure
    aborts the run before a report is returned.
    """

    results: list[StepResult] = field(default_factory=list)

    def add(self, result: StepResult) -> None:
        """Append a step result."""
        self.results.append(result)

    def __iter__(self) -> Iterator[StepResult]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def with_status(self, status: StepStatus) -> list[StepResult]:
        """Results with the given status, in run order."""
        return [r for r in self.results if r.status is status]

    @property
    def succeeded(self) -> list[StepResult]:
        return self.with_status(StepStatus.SUCCEEDED)

    @property
    def skipped(self) -> list[StepResult]:
        return self.with_status(StepStatus.SKIPPED)

    @property
    def failed(self) -> list[StepResult]:
        return self.with_status(StepStatus.FAILED)

    @property
    def ok(self) -> bool:
        """True when no step failed."""
        return not self.failed

    def get(self, name: str) -> StepResult | None:
        """Result for the step called ``name``, if it ran."""
        return next((r for r in self.results if r.name == name), None)
