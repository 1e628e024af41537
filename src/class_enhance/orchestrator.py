"""Offline enhancement run: classpath, candidate walk, transforms, outcome."""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal
from uuid import uuid4

from class_enhance.classpath import ClasspathContext, assemble_classpath, to_classpath_entry
from class_enhance.driver import TransformDriver
from class_enhance.engine import EnhancementEngine, engine_summary_lines
from class_enhance.errors import ConfigurationError, EnhancementFailedError
from class_enhance.listener import LoggingListener, TransformListener
from class_enhance.packages import PackageFilter
from class_enhance.summary import RunSummary, SummarySnapshot
from class_enhance.walker import EnhanceCandidate, enumerate_candidates

LOGGER = logging.getLogger(__name__)

RunState = Literal["IDLE", "RESOLVING", "WALKING", "DRAINING", "DONE", "ABORTED"]


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Immutable inputs for one source root → destination root run."""

    source_root: Path
    destination_root: Path | None = None
    packages: str | None = None
    transform_args: str = ""
    fail_on_exceptions: bool = False
    classpath: tuple[str, ...] = ()
    extra_classpath: str | None = None
    source_first: bool = True
    skip_if_missing: bool = True
    workers: int = 1
    progress_every: int = 100

    @property
    def effective_destination(self) -> Path:
        return self.destination_root if self.destination_root is not None else self.source_root

    def effective_workers(self) -> int:
        if self.workers <= 0:
            return os.cpu_count() or 1
        return self.workers


@dataclass(frozen=True, slots=True)
class EnhanceRunResult:
    """Return object for a finished enhancement run."""

    run_id: str
    config: RunConfig
    state: RunState
    summary: SummarySnapshot
    classpath: ClasspathContext | None
    started_ts: datetime
    finished_ts: datetime
    duration_sec: float
    engine_lines: tuple[str, ...] = field(default_factory=tuple)

    @property
    def source_missing(self) -> bool:
        return self.classpath is None

    @property
    def passed(self) -> bool:
        return not (self.config.fail_on_exceptions and self.summary.has_failures)

    def as_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "state": self.state,
            "started_ts": self.started_ts.isoformat(),
            "finished_ts": self.finished_ts.isoformat(),
            "duration_sec": round(self.duration_sec, 3),
            "source_root": str(self.config.source_root),
            "destination_root": str(self.config.effective_destination),
            "packages": self.config.packages or "",
            "transform_args": self.config.transform_args,
            "fail_on_exceptions": self.config.fail_on_exceptions,
            "source_missing": self.source_missing,
            "classpath": [str(entry) for entry in self.classpath or ()],
            "counts": dict(self.summary.counts),
            "total": self.summary.total,
            "failed_classes": {
                name: [str(error) for error in errors] for name, errors in sorted(self.summary.errors.items())
            },
            "engine_summary": list(self.engine_lines),
            "passed": self.passed,
        }


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class EnhanceOrchestrator:
    """Coordinate one offline enhancement run.

    The run moves IDLE → RESOLVING → WALKING → DRAINING → DONE. Only a
    classpath configuration problem ends in ABORTED (and is re-raised); failures
    of individual classes are recorded and the run still completes. A missing
    source root ends the run immediately with an empty summary.
    """

    def __init__(
        self,
        config: RunConfig,
        engine: EnhancementEngine,
        *,
        listener: TransformListener | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.engine = engine
        self.logger = logger or LOGGER
        self.listener = listener or LoggingListener(self.logger)
        self.state: RunState = "IDLE"
        self._progress_lock = threading.Lock()
        self._processed = 0

    def run(self) -> EnhanceRunResult:
        if self.state != "IDLE":
            raise RuntimeError(f"Orchestrator already used (state={self.state})")

        run_id = f"enhance-run-{uuid4().hex[:12]}"
        started_ts = _now_utc()
        started_mono = time.monotonic()
        summary = RunSummary()

        self.state = "RESOLVING"
        try:
            source_root = to_classpath_entry(self.config.source_root)
            destination_root = to_classpath_entry(self.config.effective_destination)
        except ConfigurationError:
            self.state = "ABORTED"
            raise

        if not source_root.is_dir():
            if self.config.skip_if_missing:
                self.logger.debug("enhance_run.source_root_missing source_root=%s", source_root)
            else:
                self.logger.warning("enhance_run.source_root_missing source_root=%s", source_root)
            self.state = "DONE"
            return self._result(run_id, summary, None, started_ts, started_mono, ())

        try:
            context = assemble_classpath(
                self.config.classpath,
                source_root,
                extra=self.config.extra_classpath,
                source_first=self.config.source_first,
                logger=self.logger,
            )
        except ConfigurationError:
            self.state = "ABORTED"
            self.logger.error("enhance_run.classpath_failed run_id=%s source_root=%s", run_id, source_root)
            raise

        package_filter = PackageFilter.parse(self.config.packages)
        driver = TransformDriver(
            self.engine,
            context,
            summary,
            transform_args=self.config.transform_args,
            listener=self.listener,
        )
        self.listener.on_info(
            f"classSource={source_root}  transformArgs={self.config.transform_args}  "
            f"packages={self.config.packages or ''}"
        )
        self.listener.on_info(package_filter.describe())
        self.logger.info(
            "enhance_run.start run_id=%s source_root=%s destination_root=%s classpath_entries=%s workers=%s",
            run_id,
            source_root,
            destination_root,
            len(context),
            self.config.effective_workers(),
        )

        candidates = enumerate_candidates(source_root, package_filter, destination_root, logger=self.logger)
        workers = self.config.effective_workers()
        if workers == 1:
            self.state = "WALKING"
            for candidate in candidates:
                self._process(driver, candidate, started_mono)
            self.state = "DRAINING"
        else:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="enhance") as executor:
                self.state = "WALKING"
                futures: list[Future[None]] = [
                    executor.submit(self._process, driver, candidate, started_mono) for candidate in candidates
                ]
                self.state = "DRAINING"
                for future in futures:
                    future.result()

        engine_lines = tuple(engine_summary_lines(self.engine))
        for line in engine_lines:
            self.listener.on_info(line)

        self.state = "DONE"
        result = self._result(run_id, summary, context, started_ts, started_mono, engine_lines)
        self.logger.info(
            "enhance_run.complete run_id=%s %s duration_sec=%.2f",
            run_id,
            result.summary.describe(),
            result.duration_sec,
        )
        return result

    def _process(self, driver: TransformDriver, candidate: EnhanceCandidate, started_mono: float) -> None:
        driver.transform(candidate)
        progress_every = max(1, self.config.progress_every)
        with self._progress_lock:
            self._processed += 1
            processed = self._processed
        if processed % progress_every == 0:
            self.logger.info(
                "enhance_run.progress processed=%s elapsed_sec=%.2f",
                processed,
                time.monotonic() - started_mono,
            )

    def _result(
        self,
        run_id: str,
        summary: RunSummary,
        context: ClasspathContext | None,
        started_ts: datetime,
        started_mono: float,
        engine_lines: tuple[str, ...],
    ) -> EnhanceRunResult:
        return EnhanceRunResult(
            run_id=run_id,
            config=self.config,
            state=self.state,
            summary=summary.snapshot(),
            classpath=context,
            started_ts=started_ts,
            finished_ts=_now_utc(),
            duration_sec=time.monotonic() - started_mono,
            engine_lines=engine_lines,
        )


def run_enhancement(
    config: RunConfig,
    engine: EnhancementEngine,
    *,
    listener: TransformListener | None = None,
    logger: logging.Logger | None = None,
) -> EnhanceRunResult:
    """Run one enhancement pass with a fresh orchestrator."""

    return EnhanceOrchestrator(config, engine, listener=listener, logger=logger).run()


def ensure_passed(result: EnhanceRunResult) -> EnhanceRunResult:
    """Apply the fail-on-exceptions policy to a finished run."""

    if result.passed:
        return result
    failed = tuple(sorted(result.summary.errors))
    raise EnhancementFailedError(
        f"Exceptions occurred during enhancement of {len(failed)} class(es), see the log above for the exact problems.",
        failed_classes=failed,
    )
