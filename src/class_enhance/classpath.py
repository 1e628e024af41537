"""Assemble the ordered classpath used to resolve supporting classes."""

from __future__ import annotations

import logging
import os
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from class_enhance.errors import ConfigurationError

LOGGER = logging.getLogger(__name__)

CLASS_FILE_SUFFIX = ".class"
_URI_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]+:")


@dataclass(frozen=True, slots=True)
class ClasspathContext:
    """Read-only set of locations the engine may load supporting classes from.

    Entries are absolute, normalized and unique. Lookup honours entry order, so
    the first location that defines a class wins.
    """

    entries: tuple[Path, ...]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def as_path_string(self) -> str:
        """Return the entries joined with the platform path separator."""

        return os.pathsep.join(str(entry) for entry in self.entries)

    def find_class(self, class_name: str) -> bytes | None:
        """Return class bytes for a dotted class name from the first entry defining it."""

        relative = class_name.replace(".", "/") + CLASS_FILE_SUFFIX
        for entry in self.entries:
            if entry.is_dir():
                candidate = entry.joinpath(*relative.split("/"))
                if candidate.is_file():
                    return candidate.read_bytes()
                continue
            if entry.is_file() and zipfile.is_zipfile(entry):
                with zipfile.ZipFile(entry) as archive:
                    try:
                        return archive.read(relative)
                    except KeyError:
                        continue
        return None


def split_extra_classpath(value: str | None) -> list[str]:
    """Split a delimited classpath string on ';' and the platform separator.

    Tokens carrying a URI scheme such as ``file:`` are not split on the platform
    separator, which is ':' on POSIX.
    """

    if not value:
        return []
    parts: list[str] = []
    for token in value.split(";"):
        token = token.strip()
        if _URI_SCHEME.match(token):
            parts.append(token)
        else:
            parts.extend(piece.strip() for piece in token.split(os.pathsep))
    return [part for part in parts if part != ""]


def to_classpath_entry(raw: str | os.PathLike[str]) -> Path:
    """Convert a raw path or file URI into an absolute, normalized path."""

    text = os.fspath(raw).strip()
    if "\x00" in text:
        raise ConfigurationError(f"Malformed classpath element (embedded null byte): {text!r}")

    parsed = urlparse(text)
    # Single-letter schemes are Windows drive letters, not URIs.
    if len(parsed.scheme) > 1:
        if parsed.scheme.lower() != "file":
            raise ConfigurationError(f"Unsupported classpath URI scheme {parsed.scheme!r}: {text}")
        text = url2pathname(unquote(parsed.path))

    try:
        return Path(text).expanduser().resolve(strict=False)
    except (OSError, RuntimeError, ValueError) as exc:
        raise ConfigurationError(f"Malformed classpath element: {text!r}") from exc


def assemble_classpath(
    elements: Iterable[str | os.PathLike[str]],
    source_root: str | os.PathLike[str] | None = None,
    *,
    extra: str | None = None,
    source_first: bool = True,
    logger: logging.Logger | None = None,
) -> ClasspathContext:
    """Build a de-duplicated, ordered classpath context.

    Dependency elements keep their given order, followed by any ``extra``
    delimited entries. The module's own output directory is placed first or
    last depending on ``source_first``. Raises ConfigurationError on the first
    element that cannot be converted.
    """

    effective_logger = logger or LOGGER
    ordered: list[Path] = []
    seen: set[Path] = set()

    def _add(raw: str | os.PathLike[str], origin: str) -> None:
        if not os.fspath(raw).strip():
            return
        entry = to_classpath_entry(raw)
        if entry in seen:
            effective_logger.debug("classpath.duplicate_dropped entry=%s origin=%s", entry, origin)
            return
        effective_logger.debug("classpath.element entry=%s origin=%s", entry, origin)
        seen.add(entry)
        ordered.append(entry)

    if source_root is not None and source_first:
        _add(source_root, "source")
    for element in elements:
        _add(element, "dependency")
    for element in split_extra_classpath(extra):
        _add(element, "extra")
    if source_root is not None and not source_first:
        _add(source_root, "source")

    return ClasspathContext(entries=tuple(ordered))
