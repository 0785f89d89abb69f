"""Automatic fixes for lint violations that can be repaired in place."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class FixError(ValueError):
    """Raised when a fix cannot be attempted."""


@dataclass(frozen=True)
class FixLocation:
    """A one-based row and column in a file."""

    row: int
    col: int


@dataclass
class RuntimeOptions:
    """Options handed to a fix when it runs; location based fixes get locations."""

    locations: list[FixLocation] = field(default_factory=list)


@dataclass
class FixCandidate:
    """A file in need of fixing."""

    filename: str
    contents: bytes


@dataclass
class FixResult:
    """New contents produced by a fix."""

    contents: bytes


class Fix(ABC):
    """A fix, named after the violation it addresses."""

    name: str = ""

    @abstractmethod
    def fix(self, candidate: FixCandidate, opts: RuntimeOptions | None) -> list[FixResult]:
        """Return the fixed contents, or an empty list when nothing changed."""


def _line_index(lines: list[bytes], row: int) -> int | None:
    if row < 1 or row > len(lines):
        return None
    return row - 1


class NoWhitespaceComment(Fix):
    """Insert a space after the ``#`` that starts a comment."""

    name = "no-whitespace-comment"

    def fix(self, candidate: FixCandidate, opts: RuntimeOptions | None) -> list[FixResult]:
        if opts is None:
            raise FixError("missing runtime options")

        lines = candidate.contents.split(b"\n")
        fixed = False

        for loc in opts.locations:
            index = _line_index(lines, loc.row)
            if index is None:
                continue
            line = lines[index]
            if loc.col < 1 or loc.col > len(line):
                continue
            if line[loc.col - 1 : loc.col] != b"#":
                continue
            lines[index] = line[: loc.col] + b" " + line[loc.col :]
            fixed = True

        return [FixResult(b"\n".join(lines))] if fixed else []


class UseAssignmentOperator(Fix):
    """Turn ``=`` into ``:=`` at the reported location."""

    name = "use-assignment-operator"

    def fix(self, candidate: FixCandidate, opts: RuntimeOptions | None) -> list[FixResult]:
        if opts is None:
            raise FixError("missing runtime options")

        lines = candidate.contents.split(b"\n")
        fixed = False

        for loc in opts.locations:
            index = _line_index(lines, loc.row)
            if index is None:
                continue
            line = lines[index]
            if loc.col < 1 or loc.col > len(line):
                continue
            if line[loc.col - 1 : loc.col] != b"=":
                continue
            lines[index] = line[: loc.col - 1] + b":" + line[loc.col - 1 :]
            fixed = True

        return [FixResult(b"\n".join(lines))] if fixed else []


def new_default_fixes() -> list[Fix]:
    """The fixes applied by default."""
    return [UseAssignmentOperator(), NoWhitespaceComment()]