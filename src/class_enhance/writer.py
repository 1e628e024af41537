"""Persist run summaries and per-class results."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import polars as pl

from class_enhance.orchestrator import EnhanceRunResult
from class_enhance.utils.atomic import atomic_temp_path, write_json_atomically

LOGGER = logging.getLogger(__name__)

CLASS_RESULTS_SCHEMA: dict[str, pl.DataType] = {
    "class_name": pl.String,
    "relative_path": pl.String,
    "outcome": pl.String,
    "error_type": pl.String,
    "error_message": pl.String,
}


@dataclass(frozen=True, slots=True)
class RunArtifactPaths:
    """Locations of the artifacts written for one run."""

    summary_path: Path
    class_results_path: Path


def class_results_frame(result: EnhanceRunResult) -> pl.DataFrame:
    """Return per-class outcomes as a frame with a stable schema."""

    rows = list(result.summary.rows)
    if not rows:
        return pl.DataFrame(schema=CLASS_RESULTS_SCHEMA)
    return pl.DataFrame(rows, schema_overrides=CLASS_RESULTS_SCHEMA).sort("class_name")


def _write_parquet_atomically(df: pl.DataFrame, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = atomic_temp_path(output_path)
    try:
        df.write_parquet(temp_path)
        os.replace(temp_path, output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return output_path


def write_run_artifacts(
    result: EnhanceRunResult,
    artifacts_root: Path,
    logger: logging.Logger | None = None,
) -> RunArtifactPaths:
    """Write the JSON run summary and the class-results parquet for a run."""

    effective_logger = logger or LOGGER
    artifacts_dir = artifacts_root / "run_summaries"
    summary_path = artifacts_dir / f"{result.run_id}_enhance_summary.json"
    class_results_path = artifacts_dir / f"{result.run_id}_class_results.parquet"

    write_json_atomically(result.as_dict(), summary_path)
    _write_parquet_atomically(class_results_frame(result), class_results_path)

    effective_logger.info(
        "enhance_artifacts.written run_id=%s summary_path=%s class_results_path=%s",
        result.run_id,
        summary_path,
        class_results_path,
    )
    return RunArtifactPaths(summary_path=summary_path, class_results_path=class_results_path)
