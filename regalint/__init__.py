"""Report data and output, configuration, path filtering, fixes and hints for a Rego policy linter."""

__version__ = "0.1.0"

__all__ = [
    "config",
    "defaults",
    "filter",
    "fileprovider",
    "fixer",
    "fixes",
    "fixreport",
    "hints",
    "report",
    "reporter",
    "version",
]