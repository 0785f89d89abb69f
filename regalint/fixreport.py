"""Summary of applied fixes and its human-readable output."""

from __future__ import annotations

from typing import TextIO


class FixReport:
    """Which violations were fixed in which files."""

    def __init__(self) -> None:
        self._fixed: dict[str, set[str]] = {}
        self._total = 0

    def set_file_fixed_violation(self, file: str, violation: str) -> None:
        """Record a fix; each file and violation pair counts once."""
        fixed = self._fixed.setdefault(file, set())
        if violation not in fixed:
            fixed.add(violation)
            self._total += 1

    def fixed_violations_for_file(self, file: str) -> list[str]:
        return sorted(self._fixed.get(file, ()))

    def fixed_files(self) -> list[str]:
        return sorted(self._fixed)

    def total_fixes(self) -> int:
        return self._total


class PrettyFixReporter:
    """Writes a fix report in a human-readable format."""

    def __init__(self, output: TextIO) -> None:
        self.output = output

    def report(self, fix_report: FixReport) -> None:
        total = fix_report.total_fixes()
        if total == 0:
            print("No fixes applied.", file=self.output)
            return

        print("1 fix applied:" if total == 1 else f"{total} fixes applied:", file=self.output)

        for file in fix_report.fixed_files():
            print(f"{file}:", file=self.output)
            for violation in fix_report.fixed_violations_for_file(file):
                print(f"- {violation}", file=self.output)


def reporter_for_format(format: str, output: TextIO) -> PrettyFixReporter:
    """Return a reporter for ``format``; only "pretty" is supported."""
    if format == "pretty":
        return PrettyFixReporter(output)
    raise ValueError(f"unsupported format {format}")