"""Boundary to the external bytecode-enhancement engine.

The engine is opaque here: given the bytes of one class file, its dotted name,
the classpath context and the transform arguments, it returns rewritten bytes,
``None`` (or the same bytes) when nothing changed, or raises.

Two ways of plugging in an engine are supported:

* ``SubprocessEngine`` runs an external command per class. Class bytes are
  written to stdin; enhanced bytes are read from stdout; empty stdout means the
  class was left unchanged. A non-zero exit status or a timeout is an error.
* An importable Python factory given as ``module:callable``. The factory is
  called once per run with the transform argument string.
"""

from __future__ import annotations

import importlib
import logging
import subprocess
from typing import Protocol, Sequence, runtime_checkable

from class_enhance.classpath import ClasspathContext
from class_enhance.errors import ConfigurationError, EngineError

LOGGER = logging.getLogger(__name__)

SUMMARY_LINE_LIMIT = 290


@runtime_checkable
class EnhancementEngine(Protocol):
    def transform(
        self,
        class_bytes: bytes,
        class_name: str,
        context: ClasspathContext,
        transform_args: str,
    ) -> bytes | None: ...


def trim_summary_line(value: str, limit: int = SUMMARY_LINE_LIMIT) -> str:
    """Trim long engine summary lines for console output."""

    if len(value) > limit:
        return value[: limit - 1] + " ..."
    return value


def engine_summary_lines(engine: object) -> list[str]:
    """Return trimmed post-run summary lines if the engine reports any."""

    reporter = getattr(engine, "summary_lines", None)
    if reporter is None:
        return []
    return [trim_summary_line(str(line)) for line in reporter()]


class SubprocessEngine:
    """Drive an external enhancer command once per class file."""

    def __init__(self, command: Sequence[str], timeout_sec: float = 60.0) -> None:
        if not command:
            raise ConfigurationError("Engine command must not be empty.")
        self.command = list(command)
        self.timeout_sec = timeout_sec

    def build_command(self, class_name: str, context: ClasspathContext, transform_args: str) -> list[str]:
        values = {
            "class_name": class_name,
            "classpath": context.as_path_string(),
            "transform_args": transform_args,
        }
        try:
            return [part.format(**values) for part in self.command]
        except (KeyError, IndexError) as exc:
            raise ConfigurationError(f"Unknown placeholder in engine command: {exc}") from exc

    def transform(
        self,
        class_bytes: bytes,
        class_name: str,
        context: ClasspathContext,
        transform_args: str,
    ) -> bytes | None:
        command = self.build_command(class_name, context, transform_args)
        try:
            completed = subprocess.run(
                command,
                input=class_bytes,
                capture_output=True,
                timeout=self.timeout_sec,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise EngineError(
                f"Engine timed out after {self.timeout_sec}s", class_name=class_name
            ) from exc
        except OSError as exc:
            raise EngineError(f"Engine could not be started: {exc}", class_name=class_name) from exc

        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            raise EngineError(
                f"Engine exited with status {completed.returncode}: {stderr}",
                class_name=class_name,
            )
        if not completed.stdout:
            return None
        return completed.stdout


def load_entry_point(spec: str, transform_args: str) -> EnhancementEngine:
    """Import ``module:callable`` and call it to build an engine."""

    module_name, sep, attr_name = spec.partition(":")
    if not sep or not module_name or not attr_name:
        raise ConfigurationError(f"Engine entry point must look like 'module:callable', got {spec!r}")
    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attr_name)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationError(f"Cannot load engine entry point {spec!r}: {exc}") from exc

    engine = factory(transform_args)
    if not isinstance(engine, EnhancementEngine):
        raise ConfigurationError(f"Engine entry point {spec!r} did not return an engine")
    return engine


def load_engine(
    *,
    command: Sequence[str] | None = None,
    entry_point: str | None = None,
    timeout_sec: float = 60.0,
    transform_args: str = "",
    logger: logging.Logger | None = None,
) -> EnhancementEngine:
    """Build the configured engine; an entry point takes precedence over a command."""

    effective_logger = logger or LOGGER
    if entry_point:
        effective_logger.info("engine.load entry_point=%s", entry_point)
        return load_entry_point(entry_point, transform_args)
    if command:
        effective_logger.info("engine.load command=%s timeout_sec=%s", list(command), timeout_sec)
        return SubprocessEngine(command, timeout_sec=timeout_sec)
    raise ConfigurationError("No enhancement engine configured: set engine.entry_point or engine.command.")
