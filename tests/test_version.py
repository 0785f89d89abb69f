import platform

from regalint import version


def test_unset_metadata_is_unknown():
    info = version.new()
    assert info.version == "unknown"
    assert info.commit == "unknown"
    assert info.timestamp == "unknown"
    assert info.hostname == "unknown"


def test_injected_metadata_is_used(monkeypatch):
    monkeypatch.setattr(version, "VERSION", "1.2.3")
    monkeypatch.setattr(version, "VCS", "abc123")
    info = version.new()
    assert info.version == "1.2.3"
    assert info.commit == "abc123"


def test_python_version_reported():
    assert version.new().python_version == platform.python_version()


def test_str_lists_every_field():
    info = version.new()
    text = str(info)
    assert text.endswith("\n")
    lines = text.splitlines()
    assert len(lines) == len(info.to_dict())
    assert lines[0].startswith("Version:")
    assert lines[0].endswith(info.version)
    assert lines[-1].endswith(info.hostname)


def test_to_dict_keys():
    assert set(version.new().to_dict()) == {
        "version",
        "python_version",
        "platform",
        "commit",
        "timestamp",
        "hostname",
    }