"""Applying registered fixes to policy files until nothing is left to fix."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol

from regalint.fileprovider import FileProvider
from regalint.fixes import Fix, FixCandidate, FixError, FixLocation, RuntimeOptions
from regalint.fixreport import FixReport
from regalint.report import Report


class FixerError(RuntimeError):
    """Raised when fixing cannot complete."""


class Linter(Protocol):
    """What the fixer needs from a linter."""

    def determine_enabled_rules(self) -> list[str]:
        """Names of the rules enabled by configuration."""

    def lint(self, files: Mapping[str, str], enabled_rules: Sequence[str]) -> Report:
        """Lint ``files`` (name to contents) with only ``enabled_rules`` enabled."""


class Fixer:
    """Runs mandatory fixes on every file, then fixes triggered by violations."""

    def __init__(self) -> None:
        self._fixes: dict[str, Fix] = {}
        self._mandatory: dict[str, Fix] = {}

    def register_fixes(self, *args: Fix) -> None:
        """Register fixes applied where the linter reports a matching violation."""
        for fix in args:
            if fix.name not in self._mandatory:
                self._fixes[fix.name] = fix

    def register_mandatory_fixes(self, *args: Fix) -> None:
        """Register fixes run first, against all files, regardless of violations."""
        for fix in args:
            self._mandatory[fix.name] = fix
            self._fixes.pop(fix.name, None)

    def get_fix_for_name(self, name: str) -> Fix | None:
        return self._fixes.get(name)

    def get_mandatory_fix_for_name(self, name: str) -> Fix | None:
        return self._mandatory.get(name)

    def fix(self, linter: Linter, provider: FileProvider) -> FixReport:
        """Apply fixes to the files of ``provider`` and report what was fixed."""
        report = FixReport()
        self._run_mandatory(provider, report)

        if not self._fixes:
            return report

        try:
            enabled = linter.determine_enabled_rules()
        except Exception as exc:
            raise FixerError(f"failed to determine enabled rules: {exc}") from exc

        fixable = [rule for rule in enabled if rule in self._fixes]

        while True:
            files = {name: _read(provider, name).decode("utf-8") for name in _list(provider)}
            try:
                lint_report = linter.lint(files, fixable)
            except Exception as exc:
                raise FixerError(f"failed to lint before fixing: {exc}") from exc

            fixed_in_iteration = False
            for violation in lint_report.violations:
                fix = self.get_fix_for_name(violation.title)
                if fix is None:
                    raise FixerError(f"no fix for violation {violation.title}")

                file = violation.location.file
                candidate = FixCandidate(filename=file, contents=_read(provider, file))
                opts = RuntimeOptions(
                    locations=[FixLocation(row=violation.location.row, col=violation.location.column)]
                )
                try:
                    results = fix.fix(candidate, opts)
                except FixError as exc:
                    raise FixerError(f"failed to fix {file}: {exc}") from exc

                if results:
                    # only one content update per fix is supported
                    _write(provider, file, results[0].contents)
                    report.set_file_fixed_violation(file, violation.title)
                    fixed_in_iteration = True

            if not fixed_in_iteration:
                return report

    def _run_mandatory(self, provider: FileProvider, report: FixReport) -> None:
        while self._mandatory:
            fixed_in_iteration = False
            for file in _list(provider):
                for name, fix in self._mandatory.items():
                    contents = _read(provider, file)
                    try:
                        results = fix.fix(FixCandidate(filename=file, contents=contents), None)
                    except FixError as exc:
                        raise FixerError(f"failed to fix {file}: {exc}") from exc

                    for result in results:
                        if result.contents != contents:
                            _write(provider, file, result.contents)
                            report.set_file_fixed_violation(file, name)
                            fixed_in_iteration = True
            if not fixed_in_iteration:
                return


def _list(provider: FileProvider) -> list[str]:
    try:
        return provider.list_files()
    except OSError as exc:
        raise FixerError(f"failed to list files: {exc}") from exc


def _read(provider: FileProvider, file: str) -> bytes:
    try:
        return provider.get_file(file)
    except OSError as exc:
        raise FixerError(f"failed to get file {file}: {exc}") from exc


def _write(provider: FileProvider, file: str, contents: bytes) -> None:
    try:
        provider.put_file(file, contents)
    except OSError as exc:
        raise FixerError(f"failed to write fixed content to file {file}: {exc}") from exc