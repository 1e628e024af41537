"""Run-scoped aggregation of transform outcomes and captured exceptions."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Literal

TransformOutcome = Literal["ENHANCED", "UNCHANGED", "SKIPPED", "FAILED"]
TRANSFORM_OUTCOME_VALUES: tuple[TransformOutcome, ...] = ("ENHANCED", "UNCHANGED", "SKIPPED", "FAILED")


@dataclass(frozen=True, slots=True)
class SummarySnapshot:
    """Read-only view of a finished run."""

    counts: dict[str, int]
    errors: dict[str, tuple[BaseException, ...]]
    rows: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def failed_count(self) -> int:
        return self.counts.get("FAILED", 0)

    @property
    def has_failures(self) -> bool:
        return bool(self.errors)

    def describe(self) -> str:
        """Return a human-readable one-line summary."""

        parts = [f"{outcome.lower()}={self.counts.get(outcome, 0)}" for outcome in TRANSFORM_OUTCOME_VALUES]
        return f"total={self.total} " + " ".join(parts)


class RunSummary:
    """Mutable run aggregate shared by transform workers.

    Errors are kept per class name in encounter order; a class may collect more
    than one error when it is attempted more than once.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[str, int] = {outcome: 0 for outcome in TRANSFORM_OUTCOME_VALUES}
        self._errors: dict[str, list[BaseException]] = {}
        self._rows: list[dict[str, Any]] = []

    def record(
        self,
        class_name: str,
        outcome: TransformOutcome,
        *,
        error: BaseException | None = None,
        relative_path: str | None = None,
    ) -> None:
        if outcome not in self._counts:
            raise ValueError(f"Unknown transform outcome: {outcome}")
        with self._lock:
            self._counts[outcome] += 1
            if outcome == "FAILED" and error is not None:
                self._errors.setdefault(class_name, []).append(error)
            self._rows.append(
                {
                    "class_name": class_name,
                    "relative_path": relative_path,
                    "outcome": outcome,
                    "error_type": type(error).__name__ if error is not None else None,
                    "error_message": str(error) if error is not None else None,
                }
            )

    def is_empty(self) -> bool:
        """Return True when no failures have been recorded."""

        with self._lock:
            return not self._errors

    def count(self, outcome: TransformOutcome) -> int:
        with self._lock:
            return self._counts[outcome]

    def snapshot(self) -> SummarySnapshot:
        with self._lock:
            return SummarySnapshot(
                counts=dict(self._counts),
                errors={name: tuple(errors) for name, errors in self._errors.items()},
                rows=tuple(dict(row) for row in self._rows),
            )
