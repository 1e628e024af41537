"""Shared fixtures for enhancement tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from class_enhance.classpath import ClasspathContext

CLASS_MAGIC = b"\xca\xfe\xba\xbe"
ENHANCED_MARKER = b"|enhanced"


def class_bytes(class_name: str) -> bytes:
    return CLASS_MAGIC + b"\x00\x00\x00\x41" + class_name.encode("utf-8")


def write_class(root: Path, class_name: str, payload: bytes | None = None) -> Path:
    path = root.joinpath(*class_name.split(".")).with_suffix(".class")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(payload if payload is not None else class_bytes(class_name))
    return path


class FakeEngine:
    """Enhances classes whose simple name starts with 'Entity'; fails on configured names."""

    def __init__(self, fail_on: set[str] | None = None, summary: list[str] | None = None) -> None:
        self.fail_on = fail_on or set()
        self.calls: list[str] = []
        self.contexts: list[ClasspathContext] = []
        self._summary = summary

    def transform(
        self,
        class_bytes: bytes,
        class_name: str,
        context: ClasspathContext,
        transform_args: str,
    ) -> bytes | None:
        self.calls.append(class_name)
        self.contexts.append(context)
        if class_name in self.fail_on:
            raise RuntimeError(f"cannot enhance {class_name}")
        if class_name.rpartition(".")[2].startswith("Entity"):
            if class_bytes.endswith(ENHANCED_MARKER):
                return class_bytes
            return class_bytes + ENHANCED_MARKER
        return None


class WrongTypeEngine(FakeEngine):
    """Returns text instead of bytes for the configured class names."""

    def __init__(self, wrong_for: set[str]) -> None:
        super().__init__()
        self.wrong_for = wrong_for

    def transform(
        self,
        class_bytes: bytes,
        class_name: str,
        context: ClasspathContext,
        transform_args: str,
    ) -> bytes | None:
        if class_name in self.wrong_for:
            self.calls.append(class_name)
            return "not bytes"  # type: ignore[return-value]
        return super().transform(class_bytes, class_name, context, transform_args)


class SummaryEngine(FakeEngine):
    def summary_lines(self) -> list[str]:
        return list(self._summary or [])


class RecordingListener:
    def __init__(self) -> None:
        self.infos: list[str] = []
        self.errors: list[str] = []

    def on_info(self, message: str) -> None:
        self.infos.append(message)

    def on_error(self, message: str) -> None:
        self.errors.append(message)


@pytest.fixture
def class_root(tmp_path: Path) -> Path:
    root = tmp_path / "classes"
    write_class(root, "com.acme.EntityCustomer")
    write_class(root, "com.acme.Helper")
    write_class(root, "com.acme.sub.EntityOrder")
    write_class(root, "com.acmecorp.EntityOther")
    (root / "com" / "acme" / "messages.properties").write_text("greeting=hi\n", encoding="utf-8")
    return root


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


def build_fake_engine(transform_args: str) -> FakeEngine:
    """Entry-point factory used by CLI and engine-loading tests."""

    return FakeEngine(fail_on={"com.acme.Helper"} if "fail=helper" in transform_args else None)


def build_not_an_engine(transform_args: str) -> object:
    return object()
