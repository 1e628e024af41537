"""Tests for the engine boundary."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from class_enhance.classpath import assemble_classpath
from class_enhance.engine import (
    SubprocessEngine,
    engine_summary_lines,
    load_engine,
    trim_summary_line,
)
from class_enhance.errors import ConfigurationError, EngineError
from tests.conftest import FakeEngine, SummaryEngine, class_bytes


@pytest.fixture
def context(tmp_path: Path):
    return assemble_classpath([tmp_path / "dep.jar"], tmp_path / "classes")


def test_subprocess_engine_returns_stdout(context) -> None:
    engine = SubprocessEngine(
        [sys.executable, "-c", "import sys; sys.stdout.buffer.write(sys.stdin.buffer.read() + b'!')"]
    )

    assert engine.transform(class_bytes("a.B"), "a.B", context, "") == class_bytes("a.B") + b"!"


def test_subprocess_engine_empty_stdout_means_unchanged(context) -> None:
    engine = SubprocessEngine([sys.executable, "-c", "import sys; sys.stdin.buffer.read()"])

    assert engine.transform(class_bytes("a.B"), "a.B", context, "") is None


def test_subprocess_engine_substitutes_placeholders(context) -> None:
    engine = SubprocessEngine(
        [
            sys.executable,
            "-c",
            "import sys; sys.stdout.write('|'.join(sys.argv[1:]))",
            "{class_name}",
            "{classpath}",
            "{transform_args}",
        ]
    )

    output = engine.transform(b"", "com.acme.Entity", context, "debug=2")

    assert output == f"com.acme.Entity|{context.as_path_string()}|debug=2".encode("utf-8")


def test_subprocess_engine_nonzero_exit_raises(context) -> None:
    engine = SubprocessEngine([sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"])

    with pytest.raises(EngineError, match="status 3: boom") as excinfo:
        engine.transform(b"", "a.B", context, "")
    assert excinfo.value.class_name == "a.B"


def test_subprocess_engine_timeout_raises(context) -> None:
    engine = SubprocessEngine([sys.executable, "-c", "import time; time.sleep(5)"], timeout_sec=0.2)

    with pytest.raises(EngineError, match="timed out"):
        engine.transform(b"", "a.B", context, "")


def test_subprocess_engine_missing_executable_raises(context, tmp_path: Path) -> None:
    engine = SubprocessEngine([str(tmp_path / "no-such-enhancer")])

    with pytest.raises(EngineError, match="could not be started"):
        engine.transform(b"", "a.B", context, "")


def test_unknown_placeholder_is_a_configuration_error(context) -> None:
    engine = SubprocessEngine(["enhancer", "{nope}"])

    with pytest.raises(ConfigurationError):
        engine.transform(b"", "a.B", context, "")


def test_load_engine_prefers_entry_point() -> None:
    engine = load_engine(
        command=["ignored"],
        entry_point="tests.conftest:build_fake_engine",
        transform_args="fail=helper",
    )

    assert isinstance(engine, FakeEngine)
    assert engine.fail_on == {"com.acme.Helper"}


def test_load_engine_builds_subprocess_engine() -> None:
    engine = load_engine(command=["enhancer", "{class_name}"], timeout_sec=5.0)

    assert isinstance(engine, SubprocessEngine)
    assert engine.timeout_sec == 5.0


@pytest.mark.parametrize(
    "entry_point",
    ["no_colon", "tests.conftest:missing_factory", "no_such_module_xyz:factory", "tests.conftest:build_not_an_engine"],
)
def test_bad_entry_points_raise_configuration_error(entry_point: str) -> None:
    with pytest.raises(ConfigurationError):
        load_engine(entry_point=entry_point)


def test_missing_engine_configuration() -> None:
    with pytest.raises(ConfigurationError):
        load_engine()


def test_summary_lines_are_optional_and_trimmed() -> None:
    assert engine_summary_lines(FakeEngine()) == []
    lines = engine_summary_lines(SummaryEngine(summary=["short", "y" * 300]))

    assert lines[0] == "short"
    assert lines[1] == "y" * 289 + " ..."
    assert trim_summary_line("z" * 290) == "z" * 290
