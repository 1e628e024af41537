"""Enumerate compiled class files eligible for enhancement."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterator

from class_enhance.classpath import CLASS_FILE_SUFFIX
from class_enhance.packages import PackageFilter

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EnhanceCandidate:
    """A compiled class file selected for possible transformation."""

    relative_path: PurePosixPath
    class_name: str
    source_path: Path
    destination_path: Path

    @property
    def in_place(self) -> bool:
        return self.source_path == self.destination_path


def class_name_from_relative(relative_path: PurePosixPath) -> str:
    """Infer the dotted class name from a root-relative ``.class`` path."""

    parts = list(relative_path.parts)
    parts[-1] = parts[-1][: -len(CLASS_FILE_SUFFIX)]
    return ".".join(parts)


def enumerate_candidates(
    source_root: Path,
    package_filter: PackageFilter | None = None,
    destination_root: Path | None = None,
    logger: logging.Logger | None = None,
) -> Iterator[EnhanceCandidate]:
    """Lazily yield class files under ``source_root`` accepted by the filter.

    Traversal is depth-first with sorted directory and file names so repeated
    runs produce the same order. Filtered-out classes are not yielded.
    """

    effective_logger = logger or LOGGER
    effective_filter = package_filter or PackageFilter()
    source = source_root.resolve(strict=False)
    destination = (destination_root or source_root).resolve(strict=False)
    if not source.is_dir():
        effective_logger.debug("walker.source_root_missing source_root=%s", source)
        return

    nested_destination = destination != source and destination.is_relative_to(source)
    for dirpath, dirnames, filenames in os.walk(source):
        if nested_destination:
            # Output written under the source root is not input.
            dirnames[:] = [name for name in dirnames if Path(dirpath, name) != destination]
        dirnames.sort()
        for file_name in sorted(filenames):
            if not file_name.endswith(CLASS_FILE_SUFFIX):
                continue
            file_path = Path(dirpath) / file_name
            relative_path = PurePosixPath(file_path.relative_to(source).as_posix())
            class_name = class_name_from_relative(relative_path)
            if not effective_filter.accepts(class_name):
                effective_logger.debug("walker.filtered class_name=%s", class_name)
                continue
            yield EnhanceCandidate(
                relative_path=relative_path,
                class_name=class_name,
                source_path=file_path,
                destination_path=destination.joinpath(*relative_path.parts),
            )
