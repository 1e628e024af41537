"""Per-candidate transformation: engine call, write-back and event routing."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from class_enhance.classpath import ClasspathContext
from class_enhance.engine import EnhancementEngine
from class_enhance.errors import EngineError
from class_enhance.listener import LoggingListener, TransformListener
from class_enhance.summary import RunSummary, TransformOutcome
from class_enhance.utils.atomic import write_bytes_atomically
from class_enhance.walker import EnhanceCandidate

LOGGER = logging.getLogger(__name__)

CLASS_FILE_MAGIC = b"\xca\xfe\xba\xbe"


@dataclass(frozen=True, slots=True)
class TransformResult:
    """Outcome of one candidate, with the captured error when it failed."""

    candidate: EnhanceCandidate
    outcome: TransformOutcome
    error: BaseException | None = None


class TransformDriver:
    """Run candidates through the engine and record every outcome.

    Failures of a single class are captured and recorded, never raised, so one
    bad class cannot stop the rest of the run.
    """

    def __init__(
        self,
        engine: EnhancementEngine,
        context: ClasspathContext,
        summary: RunSummary,
        *,
        transform_args: str = "",
        listener: TransformListener | None = None,
    ) -> None:
        self.engine = engine
        self.context = context
        self.summary = summary
        self.transform_args = transform_args
        self.listener = listener or LoggingListener()

    def transform(self, candidate: EnhanceCandidate) -> TransformResult:
        try:
            result = self._transform(candidate)
        except (EngineError, OSError) as exc:
            result = TransformResult(candidate=candidate, outcome="FAILED", error=exc)

        self.summary.record(
            candidate.class_name,
            result.outcome,
            error=result.error,
            relative_path=str(candidate.relative_path),
        )
        self._emit(result)
        return result

    def _transform(self, candidate: EnhanceCandidate) -> TransformResult:
        original = candidate.source_path.read_bytes()
        if not original.startswith(CLASS_FILE_MAGIC):
            self._copy_through(candidate, original)
            return TransformResult(candidate=candidate, outcome="SKIPPED")

        try:
            enhanced = self.engine.transform(original, candidate.class_name, self.context, self.transform_args)
        except EngineError:
            raise
        except Exception as exc:
            raise EngineError(f"{type(exc).__name__}: {exc}", class_name=candidate.class_name) from exc

        if enhanced is not None and not isinstance(enhanced, (bytes, bytearray)):
            raise EngineError(
                f"Engine returned {type(enhanced).__name__}, expected bytes",
                class_name=candidate.class_name,
            )
        if enhanced is None or enhanced == original:
            self._copy_through(candidate, original)
            return TransformResult(candidate=candidate, outcome="UNCHANGED")

        write_bytes_atomically(enhanced, candidate.destination_path)
        return TransformResult(candidate=candidate, outcome="ENHANCED")

    def _copy_through(self, candidate: EnhanceCandidate, original: bytes) -> None:
        if candidate.in_place:
            return
        write_bytes_atomically(original, candidate.destination_path)

    def _emit(self, result: TransformResult) -> None:
        candidate = result.candidate
        if result.outcome == "FAILED":
            self.listener.on_error(f"Error enhancing class {candidate.class_name}: {result.error}")
        elif result.outcome == "ENHANCED":
            self.listener.on_info(f"Enhanced {candidate.class_name}")
        elif result.outcome == "SKIPPED":
            self.listener.on_info(f"Skipped {candidate.class_name} (not a class file)")
        else:
            self.listener.on_info(f"Unchanged {candidate.class_name}")
