"""Version and build metadata."""

from __future__ import annotations

import platform as _platform
import sys
from dataclasses import asdict, dataclass

# Filled in at build time.
VERSION = ""
VCS = ""
TIMESTAMP = ""
HOSTNAME = ""


@dataclass(frozen=True)
class Info:
    """Version metadata that can be rendered as text or a dictionary."""

    version: str
    python_version: str
    platform: str
    commit: str
    timestamp: str
    hostname: str

    def __str__(self) -> str:
        lines = [
            "Version:        " + self.version,
            "Python Version: " + self.python_version,
            "Platform:       " + self.platform,
            "Commit:         " + self.commit,
            "Timestamp:      " + self.timestamp,
            "Hostname:       " + self.hostname,
        ]
        return "\n".join(lines) + "\n"

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def _unknown(value: str) -> str:
    return value or "unknown"


def new() -> Info:
    """Build an Info from the current build metadata."""
    return Info(
        version=_unknown(VERSION),
        python_version=_platform.python_version(),
        platform=f"{sys.platform}/{_platform.machine().lower()}",
        commit=_unknown(VCS),
        timestamp=_unknown(TIMESTAMP),
        hostname=_unknown(HOSTNAME),
    )