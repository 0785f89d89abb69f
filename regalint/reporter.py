"""Publishing of lint reports as text tables, JSON, GitHub annotations, SARIF and JUnit XML."""

from __future__ import annotations

import json
import os
import re
import sys
import textwrap
from collections.abc import Callable, Sequence
from itertools import zip_longest
from typing import Any, TextIO

from regalint.report import Report, Violation

SARIF_VERSION = "2.1.0"
SARIF_SCHEMA = (
    "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/main/sarif-2.1/schema/"
    "sarif-schema-2.1.0.json"
)
TOOL_NAME = "Regal"
DEFAULT_INFORMATION_URI = "https://docs.example.com/regal"

_TEXT_LIMIT = 117
_COMPACT_COLUMN_WIDTH = 80

_ANSI = re.compile(r"\x1b\[[0-9;]*m")
_DECIMAL = re.compile(r"^-?(?:\d{1,3}(?:,\d{3})*|\d+)(?:\.\d+)?$")
_YELLOW, _RED, _CYAN = 33, 31, 36

_XML_ESCAPES = {
    '"': "&#34;",
    "'": "&#39;",
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "\t": "&#x9;",
    "\n": "&#xA;",
    "\r": "&#xD;",
}


def _s(count: int) -> str:
    return "" if count == 1 else "s"


def _documentation_url(violation: Violation) -> str:
    return next(
        (r.reference for r in violation.related_resources if r.description == "documentation"),
        "",
    )


def _colors_enabled() -> bool:
    if "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb":
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


def _paint(code: int, text: str, enabled: bool) -> str:
    return f"\x1b[{code}m{text}\x1b[0m" if enabled else text


def _width(text: str) -> int:
    return len(_ANSI.sub("", text))


def _ljust(text: str, width: int) -> str:
    return text + " " * (width - _width(text))


def _rjust(text: str, width: int) -> str:
    return " " * (width - _width(text)) + text


def _center(text: str, width: int) -> str:
    gap = width - _width(text)
    left = gap // 2
    return " " * left + text + " " * (gap - left)


def _align_default(text: str, width: int) -> str:
    return _rjust(text, width) if _DECIMAL.match(text.strip()) else _ljust(text, width)


def _column_widths(rows: Sequence[Sequence[list[str]]]) -> list[int]:
    widths: list[int] = []
    for row in rows:
        for column, lines in enumerate(row):
            cell_width = max((_width(line) for line in lines), default=0)
            if column < len(widths):
                widths[column] = max(widths[column], cell_width)
            else:
                widths.append(cell_width)
    return widths


def _wrap(text: str, limit: int = _COMPACT_COLUMN_WIDTH) -> list[str]:
    wrapped: list[str] = []
    for line in text.split("\n"):
        if _width(line) <= limit:
            wrapped.append(line)
            continue
        longest = max((_width(word) for word in line.split()), default=0)
        wrapped.extend(
            textwrap.wrap(
                line, max(limit, longest), break_long_words=False, break_on_hyphens=False
            )
            or [""]
        )
    return wrapped


def _plain_table(rows: list[list[str]]) -> str:
    """Render rows without borders, each cell padded and followed by a tab."""
    cells = [[cell.split("\n") for cell in row] for row in rows]
    widths = _column_widths(cells)
    lines = []
    for row in cells:
        for parts in zip_longest(*row, fillvalue=""):
            lines.append("".join(_ljust(p, w) + "\t" for p, w in zip(parts, widths)))
    return "".join(line + "\n" for line in lines)


def _boxed_line(parts: Sequence[str], widths: list[int], align: Callable[[str, int], str]) -> str:
    return "|" + "|".join(f" {align(p, w)} " for p, w in zip(parts, widths)) + "|"


def _boxed_table(header: list[str], rows: list[list[str]]) -> str:
    """Render a bordered table with a centred header, wrapping long cells."""
    cells = [[_wrap(cell) for cell in row] for row in rows]
    widths = _column_widths([[[h] for h in header], *cells])
    separator = "+" + "+".join("-" * (w + 2) for w in widths) + "+"
    lines = [separator, _boxed_line(header, widths, _center), separator]
    for row in cells:
        for parts in zip_longest(*row, fillvalue=""):
            lines.append(_boxed_line(parts, widths, _align_default))
    lines.append(separator)
    return "\n".join(lines) + "\n"


def _sort_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _sort_keys(value[k]) for k in sorted(value)}
    if isinstance(value, list):
        return [_sort_keys(v) for v in value]
    return value


def _to_json(data: Any) -> str:
    text = json.dumps(data, indent=2, ensure_ascii=False)
    return (
        text.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def _pretty_violations_table(violations: list[Violation]) -> str:
    colored = _colors_enabled()

    def yellow(text: str) -> str:
        return _paint(_YELLOW, text, colored)

    def cyan(text: str) -> str:
        return _paint(_CYAN, text, colored)

    def red(text: str) -> str:
        return _paint(_RED, text, colored)

    rows: list[list[str]] = []
    for violation in violations:
        if rows:
            rows.append([""])
        description = (
            yellow(violation.description) if violation.level == "warning" else red(violation.description)
        )
        rows.append([yellow("Rule:"), violation.title])
        rows.append([yellow("Description:"), description])
        rows.append([yellow("Category:"), violation.category])
        rows.append([yellow("Location:"), cyan(str(violation.location))])
        text = violation.location.text
        if text is not None:
            shown = text[:_TEXT_LIMIT] + "..." if len(text) > _TEXT_LIMIT else text.strip()
            rows.append([yellow("Text:"), shown])
        rows.append([yellow("Documentation:"), cyan(_documentation_url(violation))])

    return _plain_table(rows) + ("\n" if violations else "")


class PrettyReporter:
    """Reports violations as an aligned, human-readable listing."""

    def __init__(self, out: TextIO) -> None:
        self.out = out

    def publish(self, report: Report) -> None:
        table = _pretty_violations_table(report.violations)
        summary = report.summary

        footer = f"{summary.files_scanned} file{_s(summary.files_scanned)} linted."
        if summary.num_violations == 0:
            footer += " No violations found."
        else:
            footer += f" {summary.num_violations} violation{_s(summary.num_violations)} found"
            if summary.files_scanned > 1 and summary.files_failed > 0:
                footer += f" in {summary.files_failed} file{_s(summary.files_failed)}."
            else:
                footer += "."

        if summary.rules_skipped > 0:
            footer += f" {summary.rules_skipped} rule{_s(summary.rules_skipped)} skipped:\n"
            footer += "".join(
                f"- {notice.title}: {notice.description}\n"
                for notice in report.notices
                if notice.severity != "none"
            )

        self.out.write(table + footer + "\n")


class CompactReporter:
    """Reports violations in a compact bordered table."""

    def __init__(self, out: TextIO) -> None:
        self.out = out

    def publish(self, report: Report) -> None:
        if not report.violations:
            self.out.write("\n")
            return
        rows = [[str(v.location), v.description] for v in report.violations]
        table = _boxed_table(["Location", "Description"], rows)
        self.out.write(table.removesuffix(" ") + "\n")


class JSONReporter:
    """Reports violations as indented JSON."""

    def __init__(self, out: TextIO) -> None:
        self.out = out

    def publish(self, report: Report) -> None:
        data = report.to_dict()
        for key in ("aggregates", "metrics", "ignore_directives"):
            if key in data:
                data[key] = _sort_keys(data[key])
        self.out.write(_to_json(data) + "\n")


def _github_summary(report: Report) -> str:
    summary = report.summary
    parts = [
        "### Regal Lint Report\n\n",
        f"{summary.files_scanned} file{_s(summary.files_scanned)} linted.",
    ]
    if summary.num_violations == 0:
        parts.append(" No violations found")
    else:
        parts.append(f" {summary.num_violations} violation{_s(summary.num_violations)} found")
        if summary.files_scanned > 1 and summary.files_failed > 0:
            parts.append(f" in {summary.files_failed} file{_s(summary.files_failed)}.")
            parts.append(" See Files tab in PR for locations and details.\n\n")
            parts.append("#### Violations\n\n")
            urls = {v.description: _documentation_url(v) for v in report.violations}
            parts.extend(f"* [{description}]({url})\n" for description, url in urls.items())
    return "".join(parts)


class GitHubReporter:
    """Reports violations as a pretty listing followed by GitHub Actions annotations.

    When GITHUB_STEP_SUMMARY names a file, a job summary is appended to it.
    """

    def __init__(self, out: TextIO) -> None:
        self.out = out

    def publish(self, report: Report) -> None:
        PrettyReporter(self.out).publish(report)

        for v in report.violations:
            self.out.write(
                f"::{v.level} file={v.location.file},line={v.location.row},col={v.location.column}"
                f"::{v.description}. To learn more, see: {_documentation_url(v)}\n"
            )

        location = os.environ.get("GITHUB_STEP_SUMMARY")
        if location:
            fd = os.open(location, os.O_APPEND | os.O_WRONLY)
            with os.fdopen(fd, "a", encoding="utf-8") as summary_file:
                summary_file.write(_github_summary(report))


_SARIF_RULE_KEYS = ("id", "shortDescription", "helpUri", "properties")


def _sarif_location(violation: Violation) -> dict[str, Any]:
    loc = violation.location
    physical: dict[str, Any] = {"artifactLocation": {"uri": loc.file}}
    if loc.row > 0 and loc.column > 0:
        region: dict[str, Any] = {"startLine": loc.row, "startColumn": loc.column}
        if loc.end is not None:
            region["endLine"] = loc.end.row
            region["endColumn"] = loc.end.column
        physical["region"] = region
    return {"physicalLocation": physical}


class SarifReporter:
    """Reports violations in the SARIF 2.1.0 format."""

    def __init__(self, out: TextIO, information_uri: str = DEFAULT_INFORMATION_URI) -> None:
        self.out = out
        self.information_uri = information_uri

    def publish(self, report: Report) -> None:
        rules: dict[str, dict[str, Any]] = {}
        artifacts: dict[str, dict[str, Any]] = {}
        results: list[dict[str, Any]] = []

        def rule_for(rule_id: str) -> dict[str, Any]:
            return rules.setdefault(rule_id, {"id": rule_id})

        def rule_index(rule_id: str) -> int:
            return list(rules).index(rule_id)

        for v in report.violations:
            rule = rule_for(v.title)
            rule["shortDescription"] = {"text": v.description}
            rule["helpUri"] = _documentation_url(v)
            rule["properties"] = {"category": v.category}

            artifacts.setdefault(v.location.file, {"location": {"uri": v.location.file}, "length": -1})

            results.append(
                {
                    "ruleId": v.title,
                    "ruleIndex": rule_index(v.title),
                    "level": v.level,
                    "message": {"text": v.description},
                    "locations": [_sarif_location(v)],
                }
            )

        for notice in report.notices:
            # notices such as rules made obsolete are not worth reporting
            if notice.severity == "none":
                continue
            rule = rule_for(notice.title)
            rule["shortDescription"] = {"text": notice.description}
            rule["properties"] = {"category": notice.category}

            results.append(
                {
                    "ruleId": notice.title,
                    "ruleIndex": rule_index(notice.title),
                    "kind": "informational",
                    "level": "none",
                    "message": {"text": notice.description},
                }
            )

        run: dict[str, Any] = {
            "tool": {
                "driver": {
                    "informationUri": self.information_uri,
                    "name": TOOL_NAME,
                    "rules": [
                        {key: rule[key] for key in _SARIF_RULE_KEYS if key in rule}
                        for rule in rules.values()
                    ],
                }
            }
        }
        if artifacts:
            run["artifacts"] = list(artifacts.values())
        run["results"] = results

        document = {"version": SARIF_VERSION, "$schema": SARIF_SCHEMA, "runs": [run]}
        self.out.write(_to_json(document))


def _xml_escape(text: str) -> str:
    return "".join(_XML_ESCAPES.get(ch, ch) for ch in text)


def _xml_attrs(attrs: Sequence[tuple[str, str]]) -> str:
    return "".join(f' {name}="{_xml_escape(value)}"' for name, value in attrs)


def _cdata(text: str) -> str:
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


class JUnitReporter:
    """Reports violations as JUnit XML, one test suite per file."""

    def __init__(self, out: TextIO) -> None:
        self.out = out

    def _testcase_lines(self, v: Violation) -> list[str]:
        url = _documentation_url(v)
        location = str(v.location)
        case_attrs = [("name", f"{v.category}/{v.title}: {v.description}"), ("classname", location)]
        failure_attrs = [("message", f"{v.description}. To learn more, see: {url}")]
        if v.level:
            failure_attrs.append(("type", v.level))
        data = (
            f"Rule: {v.title}\n"
            f"Description: {v.description}\n"
            f"Category: {v.category}\n"
            f"Location: {location}\n"
            f"Text: {(v.location.text or '').strip()}\n"
            f"Documentation: {url}"
        )
        return [
            f"\t\t<testcase{_xml_attrs(case_attrs)}>",
            f"\t\t\t<failure{_xml_attrs(failure_attrs)}>{_cdata(data)}</failure>",
            "\t\t</testcase>",
        ]

    def publish(self, report: Report) -> None:
        by_file: dict[str, list[Violation]] = {}
        for v in report.violations:
            by_file.setdefault(v.location.file, []).append(v)

        # one entry per violation, so files with several violations repeat
        files = sorted(v.location.file for v in report.violations)

        suite_lines: list[str] = []
        total = 0
        for file in files:
            cases = by_file[file]
            count = str(len(cases))
            total += len(cases)
            suite_attrs = [
                ("name", file),
                ("tests", count),
                ("failures", count),
                ("errors", "0"),
                ("id", "0"),
                ("time", ""),
            ]
            suite_lines.append(f"\t<testsuite{_xml_attrs(suite_attrs)}>")
            for v in cases:
                suite_lines.extend(self._testcase_lines(v))
            suite_lines.append("\t</testsuite>")

        root_attrs = [("name", "regal")]
        if total:
            root_attrs += [("tests", str(total)), ("failures", str(total))]
        opening = f"<testsuites{_xml_attrs(root_attrs)}>"

        if suite_lines:
            text = "\n".join([opening, *suite_lines, "</testsuites>"])
        else:
            text = opening + "</testsuites>"
        self.out.write(text + "\n")