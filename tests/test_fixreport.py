import io

import pytest

from regalint.fixreport import FixReport, PrettyFixReporter, reporter_for_format


def test_duplicates_counted_once():
    report = FixReport()
    report.set_file_fixed_violation("main.rego", "use-rego-v1")
    report.set_file_fixed_violation("main.rego", "use-rego-v1")
    report.set_file_fixed_violation("main.rego", "no-whitespace-comment")
    assert report.total_fixes() == 2
    assert report.fixed_violations_for_file("main.rego") == [
        "no-whitespace-comment",
        "use-rego-v1",
    ]


def test_files_sorted_and_unknown_file_empty():
    report = FixReport()
    report.set_file_fixed_violation("z.rego", "opa-fmt")
    report.set_file_fixed_violation("a.rego", "opa-fmt")
    assert report.fixed_files() == ["a.rego", "z.rego"]
    assert report.fixed_violations_for_file("missing.rego") == []


def test_pretty_no_fixes():
    out = io.StringIO()
    PrettyFixReporter(out).report(FixReport())
    assert out.getvalue() == "No fixes applied.\n"


def test_pretty_one_fix():
    report = FixReport()
    report.set_file_fixed_violation("main.rego", "opa-fmt")
    out = io.StringIO()
    PrettyFixReporter(out).report(report)
    assert out.getvalue() == "1 fix applied:\nmain.rego:\n- opa-fmt\n"


def test_pretty_many_fixes():
    report = FixReport()
    report.set_file_fixed_violation("b.rego", "use-rego-v1")
    report.set_file_fixed_violation("a.rego", "opa-fmt")
    out = io.StringIO()
    reporter_for_format("pretty", out).report(report)
    lines = out.getvalue().splitlines()
    assert lines[0] == f"{report.total_fixes()} fixes applied:"
    assert lines[1:] == ["a.rego:", "- opa-fmt", "b.rego:", "- use-rego-v1"]


def test_unsupported_format():
    with pytest.raises(ValueError, match="unsupported format json"):
        reporter_for_format("json", io.StringIO())