"""Tests for the run summary and exception ledger."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from class_enhance.errors import EngineError
from class_enhance.summary import RunSummary


def test_new_summary_is_empty() -> None:
    summary = RunSummary()
    snapshot = summary.snapshot()

    assert summary.is_empty()
    assert snapshot.total == 0
    assert snapshot.counts == {"ENHANCED": 0, "UNCHANGED": 0, "SKIPPED": 0, "FAILED": 0}


def test_errors_accumulate_per_class_in_order() -> None:
    summary = RunSummary()
    first = EngineError("first")
    second = EngineError("second")

    summary.record("com.acme.A", "FAILED", error=first)
    summary.record("com.acme.B", "ENHANCED")
    summary.record("com.acme.A", "FAILED", error=second)

    snapshot = summary.snapshot()
    assert snapshot.errors == {"com.acme.A": (first, second)}
    assert snapshot.failed_count == 2
    assert snapshot.counts["ENHANCED"] == 1
    assert not summary.is_empty()


def test_snapshot_is_detached_from_later_records() -> None:
    summary = RunSummary()
    summary.record("a.A", "UNCHANGED")
    snapshot = summary.snapshot()

    summary.record("a.B", "UNCHANGED")

    assert snapshot.total == 1
    assert summary.snapshot().total == 2


def test_unknown_outcome_is_rejected() -> None:
    with pytest.raises(ValueError):
        RunSummary().record("a.A", "BOGUS")  # type: ignore[arg-type]


def test_concurrent_records_are_not_lost() -> None:
    summary = RunSummary()

    def _work(index: int) -> None:
        if index % 3 == 0:
            summary.record(f"pkg.C{index % 10}", "FAILED", error=EngineError(str(index)))
        else:
            summary.record(f"pkg.C{index}", "ENHANCED")

    with ThreadPoolExecutor(max_workers=8) as executor:
        list(executor.map(_work, range(3000)))

    snapshot = summary.snapshot()
    assert snapshot.total == 3000
    assert snapshot.failed_count == 1000
    assert sum(len(errors) for errors in snapshot.errors.values()) == 1000
    assert len(snapshot.rows) == 3000


def test_describe_lists_all_outcomes() -> None:
    summary = RunSummary()
    summary.record("a.A", "ENHANCED")

    assert summary.snapshot().describe() == "total=1 enhanced=1 unchanged=0 skipped=0 failed=0"
