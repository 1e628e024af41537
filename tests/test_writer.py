"""Tests for run artifact persistence."""

from __future__ import annotations

import json
from pathlib import Path

import polars as pl

from class_enhance.orchestrator import RunConfig, run_enhancement
from class_enhance.writer import class_results_frame, write_run_artifacts
from tests.conftest import FakeEngine, RecordingListener


def test_writes_summary_and_class_results(class_root: Path, tmp_path: Path, listener: RecordingListener) -> None:
    result = run_enhancement(
        RunConfig(source_root=class_root), FakeEngine(fail_on={"com.acme.Helper"}), listener=listener
    )

    paths = write_run_artifacts(result, tmp_path / "artifacts")

    payload = json.loads(paths.summary_path.read_text(encoding="utf-8"))
    assert payload["run_id"] == result.run_id
    assert payload["counts"]["FAILED"] == 1
    frame = pl.read_parquet(paths.class_results_path)
    assert frame.height == 4
    failed = frame.filter(pl.col("outcome") == "FAILED").to_dicts()
    assert failed[0]["class_name"] == "com.acme.Helper"
    assert failed[0]["error_type"] == "EngineError"
    assert list(paths.summary_path.parent.glob(".*.tmp")) == []


def test_empty_run_has_stable_schema(tmp_path: Path, listener: RecordingListener) -> None:
    result = run_enhancement(RunConfig(source_root=tmp_path / "absent"), FakeEngine(), listener=listener)

    frame = class_results_frame(result)

    assert frame.height == 0
    assert frame.columns == ["class_name", "relative_path", "outcome", "error_type", "error_message"]
