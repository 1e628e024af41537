"""Package-pattern filtering for enhancement candidates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PatternKind = Literal["exact", "children", "recursive"]


def package_of(class_name: str) -> str:
    """Return the dotted package of a class name ('' for the default package)."""

    package, _, _ = class_name.rpartition(".")
    return package


@dataclass(frozen=True, slots=True)
class PackagePattern:
    """One entry of a comma-delimited package filter."""

    package: str
    kind: PatternKind

    @classmethod
    def parse(cls, token: str) -> "PackagePattern":
        """Parse a single pattern token such as ``com.acme.**`` or ``com/acme/*``."""

        text = token.strip().replace("/", ".")
        if text == "**" or text.endswith(".**"):
            return cls(package=text[:-2].rstrip("."), kind="recursive")
        if text == "*" or text.endswith(".*"):
            return cls(package=text[:-1].rstrip("."), kind="children")
        return cls(package=text, kind="exact")

    def matches(self, class_name: str) -> bool:
        package = package_of(class_name)
        if self.kind == "recursive":
            if self.package == "":
                return True
            return package == self.package or package.startswith(self.package + ".")
        return package == self.package

    def render(self) -> str:
        if self.kind == "recursive":
            return f"{self.package}.**" if self.package else "**"
        if self.kind == "children":
            return f"{self.package}.*" if self.package else "*"
        return self.package


@dataclass(frozen=True, slots=True)
class PackageFilter:
    """Union of package patterns; an empty filter accepts every class."""

    patterns: tuple[PackagePattern, ...] = ()

    @classmethod
    def parse(cls, text: str | None) -> "PackageFilter":
        """Parse a comma-delimited pattern list, dropping blank tokens."""

        if not text:
            return cls()
        tokens = [part.strip() for part in text.split(",") if part.strip() != ""]
        return cls(patterns=tuple(PackagePattern.parse(token) for token in tokens))

    @property
    def accepts_all(self) -> bool:
        return not self.patterns

    def accepts(self, class_name: str) -> bool:
        if not self.patterns:
            return True
        return any(pattern.matches(class_name) for pattern in self.patterns)

    def describe(self) -> str:
        """Return a one-line summary of the configured patterns."""

        if not self.patterns:
            return "packages=<all>"
        return "packages=" + ",".join(pattern.render() for pattern in self.patterns)
