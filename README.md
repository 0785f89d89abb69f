# regalint

Building blocks for a Rego policy linter: report data and its output formats,
configuration loading and merging, `.gitignore`-style path filtering, automatic
fixes and a fix loop, error hints and version information.

## Installation

```
pip install regalint
```

## Modules

- `regalint.report` – the report data model: `Report`, `Violation`, `Location`,
  `Position`, `RelatedResource`, `Notice`, `Summary` and `ProfileEntry`, each
  convertible to and from dictionaries. `Report.violations_file_count()` counts
  violations per file; `add_profile_entries()` and
  `aggregate_profile_to_sorted_profile(n)` aggregate profiling data and keep the
  `n` slowest entries.
- `regalint.reporter` – publishing a `Report` to a text stream:
  `PrettyReporter`, `CompactReporter` (bordered table), `JSONReporter`,
  `GitHubReporter` (pretty output plus `::error`/`::warning` annotations, and a
  job summary appended to the file named by `GITHUB_STEP_SUMMARY` when set),
  `SarifReporter` (SARIF 2.1.0) and `JUnitReporter` (JUnit XML). Colours in the
  pretty output are used only when standard output is a terminal and
  `NO_COLOR` is not set.
- `regalint.config` – `Config.from_yaml()` reads the user-facing YAML layout,
  including `default` levels at the top of `rules` and per category, `ignore`
  files, `capabilities` (`from.file`, `plus`, `minus`) and
  `features.remote.check_version`. `Config.to_yaml()` writes it back.
  `from_map()` / `to_map()` convert the internal map layout.
  `find_regal_directory()` and `find_config()` search upwards for
  `.regal/config.yaml`; `global_dir()` returns (and creates)
  `~/.config/regal`. Errors are raised as `ConfigError`.
- `regalint.defaults` – `load_config_with_defaults(bundle_data, user_config)`
  merges a user `Config` onto the provided configuration found at
  `bundle_data["regal"]["config"]["provided"]`. Rules the user leaves without a
  level take the user's category default, then the global default, then the
  provided level.
- `regalint.filter` – `filter_ignored_paths(paths, ignore, check_file_exists,
  root_dir)`, `exclude_file()` and `compile_glob()`. With `check_file_exists`
  the paths are walked on disk, only `.rego` files are kept and `.git` /
  `.idea` directories are skipped. Bad patterns raise `GlobError`.
- `regalint.fixes` – `UseAssignmentOperator` (`=` to `:=`) and
  `NoWhitespaceComment` (`#x` to `# x`), applied at given `FixLocation`s;
  `new_default_fixes()` returns both.
- `regalint.fileprovider` – `InMemoryFileProvider` and `FSFileProvider`, the
  files fixes read and write.
- `regalint.fixer` – `Fixer` runs mandatory fixes on every file, then
  violation-triggered fixes until a lint pass finds nothing more to fix.
- `regalint.fixreport` – `FixReport` and `PrettyFixReporter`;
  `reporter_for_format("pretty", out)`.
- `regalint.hints` – `get_for_error()` maps an error's first
  `code: message` entry to documented hint keys.
- `regalint.version` – `new()` returns an `Info` with version and build data.

## Examples

Drop files that match ignore patterns:

```python
from regalint.filter import filter_ignored_paths

kept = filter_ignored_paths(
    ["foo/bar.rego", "foo/baz.rego", "bar/foo.rego"],
    ["foo/*"],
    False,
    "",
)
# ["bar/foo.rego"]
```

Load a configuration:

```python
from regalint.config import Config

conf = Config.from_yaml("""
rules:
  default:
    level: ignore
  bugs:
    default:
      level: error
""")
print(conf.defaults.global_.level)              # ignore
print(conf.defaults.categories["bugs"].level)   # error
```

Apply a fix at known locations:

```python
from regalint.fixes import FixCandidate, FixLocation, RuntimeOptions, UseAssignmentOperator

candidate = FixCandidate("p.rego", b"package p\n\nallow = true\n")
results = UseAssignmentOperator().fix(
    candidate, RuntimeOptions(locations=[FixLocation(row=3, col=7)])
)
print(results[0].contents.decode())  # ... allow := true
```

Print a report:

```python
import sys
from regalint.report import Report
from regalint.reporter import PrettyReporter

PrettyReporter(sys.stdout).publish(Report())
# 0 files linted. No violations found.
```

## Using the fixer

`Fixer.fix(linter, provider)` takes any object with two methods:

- `determine_enabled_rules()` returning the names of enabled rules, and
- `lint(files, enabled_rules)` taking a mapping of file name to contents and
  returning a `Report`.

Fixes registered with `register_fixes()` are applied at the location of each
violation whose title matches the fix's `name`. The result is a `FixReport`.

## What this package does not do

There is no linter engine here: no Rego parser, no rule evaluation, no
formatter and no built-in rules. The fixer needs a linter supplied by the
caller, and there is no formatting fix. No capabilities are bundled: the
default capabilities are empty, and `capabilities.from.engine` raises
`ConfigError`; use `from.file` with a capabilities JSON document instead.
There is no command-line program.

## Running the tests

```
pip install -e ".[test]"
pytest
```