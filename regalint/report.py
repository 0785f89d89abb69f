"""Lint report data model: violations, notices, summaries and profiling data."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any


@dataclass
class RelatedResource:
    """A documentation resource related to a violation."""

    description: str = ""
    reference: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"description": self.description, "ref": self.reference}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RelatedResource:
        return cls(description=data.get("description", ""), reference=data.get("ref", ""))


@dataclass
class Position:
    """A row and column in a file."""

    row: int = 0
    column: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "col": self.column}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Position:
        return cls(row=data.get("row", 0), column=data.get("col", 0))


@dataclass
class Location:
    """Where a violation was found."""

    column: int = 0
    row: int = 0
    end: Position | None = None
    offset: int = 0
    file: str = ""
    text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"col": self.column, "row": self.row}
        if self.end is not None:
            result["end"] = self.end.to_dict()
        if self.offset:
            result["offset"] = self.offset
        result["file"] = self.file
        if self.text is not None:
            result["text"] = self.text
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Location:
        end = data.get("end")
        return cls(
            column=data.get("col", 0),
            row=data.get("row", 0),
            end=Position.from_dict(end) if end is not None else None,
            offset=data.get("offset", 0),
            file=data.get("file", ""),
            text=data.get("text"),
        )

    def __str__(self) -> str:
        if self.row == 0 and self.column == 0:
            return self.file
        return f"{self.file}:{self.row}:{self.column}"


@dataclass
class Violation:
    """A single rule violation."""

    title: str = ""
    description: str = ""
    category: str = ""
    level: str = ""
    related_resources: list[RelatedResource] = field(default_factory=list)
    location: Location = field(default_factory=Location)
    is_aggregate: bool = False

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "level": self.level,
        }
        if self.related_resources:
            result["related_resources"] = [r.to_dict() for r in self.related_resources]
        result["location"] = self.location.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Violation:
        return cls(
            title=data.get("title", ""),
            description=data.get("description", ""),
            category=data.get("category", ""),
            level=data.get("level", ""),
            related_resources=[
                RelatedResource.from_dict(r) for r in data.get("related_resources") or []
            ],
            location=Location.from_dict(data.get("location") or {}),
        )


@dataclass
class Notice:
    """A notice, such as a rule skipped for missing capabilities."""

    title: str = ""
    description: str = ""
    category: str = ""
    level: str = ""
    severity: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "level": self.level,
            "severity": self.severity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Notice:
        return cls(
            title=data.get("title", ""),
            description=data.get("description", ""),
            category=data.get("category", ""),
            level=data.get("level", ""),
            severity=data.get("severity", ""),
        )


@dataclass
class Summary:
    """Counts describing a lint run."""

    files_scanned: int = 0
    files_failed: int = 0
    rules_skipped: int = 0
    num_violations: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "files_scanned": self.files_scanned,
            "files_failed": self.files_failed,
            "rules_skipped": self.rules_skipped,
            "num_violations": self.num_violations,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Summary:
        return cls(
            files_scanned=data.get("files_scanned", 0),
            files_failed=data.get("files_failed", 0),
            rules_skipped=data.get("rules_skipped", 0),
            num_violations=data.get("num_violations", 0),
        )


@dataclass
class ProfileEntry:
    """Profiling information for one location, possibly aggregated over runs."""

    location: str = ""
    total_time_ns: int = 0
    num_eval: int = 0
    num_redo: int = 0
    num_gen_expr: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "location": self.location,
            "total_time_ns": self.total_time_ns,
            "num_eval": self.num_eval,
            "num_redo": self.num_redo,
            "num_gen_expr": self.num_gen_expr,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProfileEntry:
        return cls(
            location=data.get("location", ""),
            total_time_ns=data.get("total_time_ns", 0),
            num_eval=data.get("num_eval", 0),
            num_redo=data.get("num_redo", 0),
            num_gen_expr=data.get("num_gen_expr", 0),
        )


@dataclass
class Report:
    """The outcome of a linter run."""

    violations: list[Violation] = field(default_factory=list)
    aggregates: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    notices: list[Notice] = field(default_factory=list)
    summary: Summary = field(default_factory=Summary)
    metrics: dict[str, Any] = field(default_factory=dict)
    aggregate_profile: dict[str, ProfileEntry] | None = None
    profile: list[ProfileEntry] = field(default_factory=list)
    ignore_directives: dict[str, dict[str, list[str]]] = field(default_factory=dict)

    def add_profile_entries(self, prof: dict[str, ProfileEntry]) -> None:
        """Merge profile entries into the aggregate profile, summing counters."""
        if self.aggregate_profile is None:
            self.aggregate_profile = {}
        for loc, entry in prof.items():
            existing = self.aggregate_profile.get(loc)
            if existing is None:
                self.aggregate_profile[loc] = entry
                continue
            self.aggregate_profile[loc] = ProfileEntry(
                location=existing.location,
                total_time_ns=existing.total_time_ns + entry.total_time_ns,
                num_eval=existing.num_eval + entry.num_eval,
                num_redo=existing.num_redo + entry.num_redo,
                num_gen_expr=existing.num_gen_expr + entry.num_gen_expr,
            )

    def aggregate_profile_to_sorted_profile(self, num_results: int) -> None:
        """Fill the profile with aggregated entries, slowest first, keeping the top results."""
        entries = list((self.aggregate_profile or {}).values())
        entries.sort(key=lambda e: e.total_time_ns, reverse=True)
        if 0 < num_results <= len(entries):
            entries = entries[:num_results]
        self.profile = entries

    def violations_file_count(self) -> dict[str, int]:
        """Number of violations per file."""
        return dict(Counter(v.location.file for v in self.violations))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"violations": [v.to_dict() for v in self.violations]}
        if self.aggregates:
            result["aggregates"] = {k: list(v) for k, v in self.aggregates.items()}
        if self.notices:
            result["notices"] = [n.to_dict() for n in self.notices]
        result["summary"] = self.summary.to_dict()
        if self.metrics:
            result["metrics"] = dict(self.metrics)
        if self.profile:
            result["profile"] = [p.to_dict() for p in self.profile]
        if self.ignore_directives:
            result["ignore_directives"] = {
                k: {rk: list(rv) for rk, rv in v.items()} for k, v in self.ignore_directives.items()
            }
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Report:
        return cls(
            violations=[Violation.from_dict(v) for v in data.get("violations") or []],
            aggregates={
                k: [dict(a) for a in v or []] for k, v in (data.get("aggregates") or {}).items()
            },
            notices=[Notice.from_dict(n) for n in data.get("notices") or []],
            summary=Summary.from_dict(data.get("summary") or {}),
            metrics=dict(data.get("metrics") or {}),
            profile=[ProfileEntry.from_dict(p) for p in data.get("profile") or []],
            ignore_directives={
                k: {rk: list(rv) for rk, rv in (v or {}).items()}
                for k, v in (data.get("ignore_directives") or {}).items()
            },
        )