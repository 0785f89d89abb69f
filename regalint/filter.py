"""Filtering of policy paths by gitignore-like patterns."""

from __future__ import annotations

import functools
import os
import re
from collections.abc import Iterator

REGO_EXT = ".rego"
_SKIPPED_DIRS = frozenset({".git", ".idea"})

_GLOB_PART = re.compile(
    r"""
    \\(?P<escaped>.)
    | (?P<double>\*\*)
    | (?P<star>\*)
    | (?P<question>\?)
    | \[(?P<negate>!?)(?P<cls>[^\]]*)\]
    | (?P<open>\{)
    | (?P<close>\})
    | (?P<comma>,)
    | (?P<bad>[\[\\])
    | (?P<literal>.)
    """,
    re.VERBOSE | re.DOTALL,
)


class GlobError(ValueError):
    """Raised when an ignore pattern cannot be compiled."""


def _class_body(body: str) -> str:
    return body.replace("\\", "\\\\").replace("^", "\\^").replace("[", "\\[")


@functools.lru_cache(maxsize=512)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Compile a glob with "/" as separator into an equivalent regular expression.

    ``*`` matches within one path segment, ``**`` across segments, ``?`` one
    non-separator character; ``[...]``, ``[!...]`` and ``{a,b}`` are supported.
    """
    parts = []
    depth = 0
    for part in _GLOB_PART.finditer(pattern):
        kind = part.lastgroup
        if kind == "escaped":
            parts.append(re.escape(part.group("escaped")))
        elif kind == "double":
            parts.append(".*")
        elif kind == "star":
            parts.append("[^/]*")
        elif kind == "question":
            parts.append("[^/]")
        elif kind in ("negate", "cls"):
            body = part.group("cls")
            if not body:
                raise GlobError(f"empty character class in pattern {pattern!r}")
            neg = "^" if part.group("negate") else ""
            parts.append(f"[{neg}{_class_body(body)}]")
        elif kind == "open":
            depth += 1
            parts.append("(?:")
        elif kind == "close" and depth:
            depth -= 1
            parts.append(")")
        elif kind == "comma" and depth:
            parts.append("|")
        elif kind == "bad":
            raise GlobError(f"unexpected {part.group()!r} in pattern {pattern!r}")
        else:
            parts.append(re.escape(part.group()))
    if depth:
        raise GlobError(f"unclosed group in pattern {pattern!r}")
    try:
        return re.compile("".join(parts), re.DOTALL)
    except re.error as exc:
        raise GlobError(f"failed to compile pattern {pattern}: {exc}") from exc


def exclude_file(pattern: str, filename: str, root_dir: str) -> bool:
    """Tell whether ``filename`` is excluded by a gitignore-like ``pattern``."""
    if root_dir and filename.startswith(root_dir):
        filename = filename[len(root_dir):]

    # without internal slashes the pattern may match at any depth
    if "/" not in pattern[:-1]:
        pattern = "**/" + pattern

    pattern = pattern.removeprefix("/")

    candidates = [pattern]
    if pattern.startswith("**/"):
        candidates.append(pattern.removeprefix("**/"))

    expanded = []
    for p in candidates:
        if p.endswith("/"):
            expanded.append(p + "**")
        elif not p.endswith("**"):
            expanded.extend((p, p + "/**"))
        else:
            expanded.append(p)

    return any(compile_glob(p).fullmatch(filename) for p in expanded)


def _walk_rego(path: str) -> Iterator[str]:
    if os.path.isdir(path) and not os.path.islink(path):
        if os.path.basename(os.path.normpath(path)) in _SKIPPED_DIRS:
            return
        with os.scandir(path) as it:
            entries = sorted(it, key=lambda e: e.name)
        for entry in entries:
            yield from _walk_rego(entry.path)
    elif path.endswith(REGO_EXT):
        yield path


def _collect_rego_files(paths: list[str]) -> list[str]:
    found: list[str] = []
    problems: list[OSError] = []
    for path in paths:
        try:
            os.stat(path)
            found.extend(_walk_rego(path))
        except OSError as exc:
            problems.append(exc)
    if problems:
        raise OSError("failed to filter paths:\n" + "\n".join(str(p) for p in problems))
    return found


def _filter_paths(paths: list[str], ignore: list[str], root_dir: str) -> list[str]:
    def excluded(path: str) -> bool:
        for pattern in filter(None, ignore):
            try:
                if exclude_file(pattern, path, root_dir):
                    return True
            except GlobError as exc:
                raise GlobError(
                    f"failed to check for exclusion using pattern {pattern}: {exc}"
                ) from exc
        return False

    return [path for path in paths if not excluded(path)]


def filter_ignored_paths(
    paths: list[str], ignore: list[str], check_file_exists: bool, root_dir: str
) -> list[str]:
    """Return the paths not matched by any ignore pattern.

    With ``check_file_exists`` the paths are walked on disk and only Rego files
    are kept; ``.git`` and ``.idea`` directories are skipped.
    """
    if root_dir and not root_dir.endswith(os.sep):
        root_dir += os.sep

    if check_file_exists:
        return _filter_paths(_collect_rego_files(paths), ignore, root_dir)

    if not ignore:
        return list(paths)

    return _filter_paths(paths, ignore, root_dir)