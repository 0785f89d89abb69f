import json
import pathlib

import pytest
import yaml

from regalint.config import (
    Capabilities,
    Config,
    ConfigError,
    Default,
    Defaults,
    Features,
    Ignore,
    RemoteFeatures,
    Rule,
    find_config,
    find_regal_directory,
    from_map,
    global_dir,
    to_map,
)


def _make_tree(root, files):
    for name, content in files.items():
        p = root / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content)


def test_find_regal_directory(tmp_path):
    _make_tree(tmp_path, {"foo/bar/baz/p.rego": ""})
    (tmp_path / ".regal").mkdir()
    found = find_regal_directory(tmp_path / "foo" / "bar" / "baz")
    assert found == (tmp_path / ".regal").absolute()


def test_find_regal_directory_from_file(tmp_path):
    _make_tree(tmp_path, {"foo/bar/baz/p.rego": ""})
    (tmp_path / "foo" / ".regal").mkdir()
    found = find_regal_directory(tmp_path / "foo" / "bar" / "baz" / "p.rego")
    assert found == (tmp_path / "foo" / ".regal").absolute()


def test_find_regal_directory_missing(tmp_path):
    _make_tree(tmp_path, {"foo/bar/baz/p.rego": "", "foo/bar/bax.json": ""})
    with pytest.raises(ConfigError):
        find_regal_directory(tmp_path / "foo" / "bar" / "baz")


def test_find_regal_directory_nonexistent_path(tmp_path):
    with pytest.raises(ConfigError, match="failed to stat path"):
        find_regal_directory(tmp_path / "nope")


def test_find_config(tmp_path):
    _make_tree(tmp_path, {"foo/bar/baz/p.rego": "", "foo/bar/.regal/config.yaml": ""})
    found = find_config(tmp_path / "foo" / "bar" / "baz")
    assert found.name == "config.yaml"
    assert found.parent.name == ".regal"


def test_find_config_missing(tmp_path):
    _make_tree(tmp_path, {"foo/bar/baz/p.rego": "", "foo/bar/bax.json": ""})
    with pytest.raises(ConfigError):
        find_config(tmp_path / "foo" / "bar" / "baz")


def _marshal_conf():
    return Config(
        ignore=Ignore(files=[]),
        rules={
            "testing": {
                "foo": Rule(
                    level="error",
                    ignore=Ignore(files=["foo.rego"]),
                    extra={"bar": "baz", "ignore": "this should be removed by the marshaller"},
                )
            }
        },
    )


def test_marshal_config():
    conf = _marshal_conf()
    expected = {
        "rules": {
            "testing": {
                "foo": {"bar": "baz", "ignore": {"files": ["foo.rego"]}, "level": "error"}
            }
        }
    }
    assert conf.to_yaml_data() == expected
    text = conf.to_yaml()
    assert yaml.safe_load(text) == expected
    assert text.startswith("rules:\n")
    assert "\nignore:" not in text


def test_unmarshal_marshal_config_with_default_rule_configs():
    text = """
rules:
  default:
    level: ignore
  bugs:
    default:
      level: error
    constant-condition:
      level: ignore
  testing:
    print-or-trace-call:
      level: error
"""
    original = Config.from_yaml(text)
    assert original.defaults.global_.level == "ignore"
    assert "default" not in original.rules["bugs"]
    assert original.defaults.categories["bugs"].level == "error"
    assert original.rules["testing"]["print-or-trace-call"].level == "error"

    original.capabilities = None
    round_tripped = Config.from_yaml(original.to_yaml())
    assert round_tripped.defaults.global_.level == "ignore"
    assert round_tripped.defaults.categories["bugs"].level == "error"
    assert round_tripped.rules["bugs"]["constant-condition"].level == "ignore"


def _write_caps(path, builtins):
    path.write_text(json.dumps({"builtins": builtins, "future_keywords": ["in"], "features": []}))
    return path


def test_unmarshal_config(tmp_path):
    caps = _write_caps(
        tmp_path / "caps.json",
        [
            {"name": "regex.match", "decl": {"type": "function", "args": [{"type": "string"}, {"type": "string"}], "result": {"type": "boolean"}}},
            {"name": "http.send", "decl": {"type": "function", "args": [{"type": "object"}], "result": {"type": "object"}}},
        ],
    )
    text = f"""rules:
  testing:
    foo:
      bar: baz
      ignore:
        files:
          - foo.rego
      level: error
capabilities:
  from:
    file: {json.dumps(str(caps))}
  plus:
    builtins:
      - name: ldap.query
        type: function
        decl:
          args:
            - type: string
        result:
          type: object
  minus:
    builtins:
      - name: http.send
"""
    conf = Config.from_yaml(text)
    foo = conf.rules["testing"]["foo"]
    assert foo.level == "error"
    assert foo.ignore is not None
    assert foo.ignore.files == ["foo.rego"]
    assert foo.extra["bar"] == "baz"
    assert "ignore" not in foo.extra
    assert "level" not in foo.extra
    assert set(conf.capabilities.builtins) == {"regex.match", "ldap.query"}
    assert conf.capabilities.builtins["ldap.query"].args == ["string"]
    assert conf.capabilities.builtins["ldap.query"].result == ""
    assert conf.capabilities.builtins["regex.match"].result == "boolean"
    assert conf.capabilities.future_keywords == ["in"]


def test_unmarshal_config_with_builtins_file(tmp_path):
    caps = _write_caps(
        tmp_path / "caps.json",
        [{"name": "wow", "decl": {"type": "function", "args": [{"type": "string"}], "result": {"type": "boolean"}}}],
    )
    conf = Config.from_yaml(f"rules: {{}}\ncapabilities:\n  from:\n    file: {json.dumps(str(caps))}\n")
    assert list(conf.capabilities.builtins) == ["wow"]
    assert conf.capabilities.builtins["wow"].args == ["string"]
    assert conf.capabilities.builtins["wow"].result == "boolean"


def test_unmarshal_config_default_capabilities():
    conf = Config.from_yaml("rules: {}\n")
    assert conf.capabilities == Capabilities()
    assert conf.rules == {}


def test_capabilities_type_rendering():
    caps = Capabilities.from_opa(
        {
            "builtins": [
                {
                    "name": "f",
                    "decl": {
                        "type": "function",
                        "args": [
                            {"type": "array", "dynamic": {"type": "any"}},
                            {"type": "set", "of": {"type": "number"}},
                            {"type": "object", "dynamic": {"key": {"type": "string"}, "value": {"type": "any"}}},
                            {"type": "any", "of": [{"type": "string"}, {"type": "null"}]},
                        ],
                    },
                }
            ]
        }
    )
    assert caps.builtins["f"].args == [
        "array[any]",
        "set[number]",
        "object[string: any]",
        "any<null, string>",
    ]
    assert caps.builtins["f"].result == ""


def test_capabilities_file_and_engine_are_exclusive():
    text = "capabilities:\n  from:\n    file: caps.json\n    engine: opa\n    version: v0.45.0\n"
    with pytest.raises(ConfigError, match="mutually exclusive"):
        Config.from_yaml(text)


def test_capabilities_engine_requires_version():
    with pytest.raises(ConfigError, match="please set the version"):
        Config.from_yaml("capabilities:\n  from:\n    engine: opa\n")


def test_capabilities_missing_file(tmp_path):
    text = f"capabilities:\n  from:\n    file: {json.dumps(str(tmp_path / 'missing.json'))}\n"
    with pytest.raises(ConfigError, match="failed to load capabilities file"):
        Config.from_yaml(text)


def test_category_not_a_map():
    with pytest.raises(ConfigError, match="rules for category bugs were not a map"):
        Config.from_yaml("rules:\n  bugs: 1\n")


def test_rule_not_a_map():
    with pytest.raises(ConfigError, match="result was not a map"):
        Config.from_yaml("rules:\n  bugs:\n    foo: 1\n")


def test_features_check_version():
    conf = Config.from_yaml("features:\n  remote:\n    check_version: true\n")
    assert conf.features == Features(remote=RemoteFeatures(check_version=True))
    assert to_map(conf)["features"] == {"remote": {"check-version": True}}


def test_features_absent_by_default():
    conf = Config.from_yaml("rules: {}\n")
    assert conf.features is None


def test_rule_from_map_and_to_dict():
    rule = Rule.from_map({"level": "warning", "ignore": {"files": []}, "max": 3})
    assert rule.level == "warning"
    assert rule.ignore == Ignore(files=[])
    assert rule.extra == {"max": 3}
    assert rule.to_dict() == {"level": "warning", "max": 3}


def test_rule_from_map_rejects_non_map():
    with pytest.raises(ConfigError):
        Rule.from_map(["level"])


def test_map_round_trip():
    conf = Config(
        rules={"style": {"file-length": Rule(level="error", extra={"max-file-length": 1})}},
        ignore=Ignore(files=["vendor/"]),
        capabilities=Capabilities(future_keywords=["in", "if"]),
    )
    data = to_map(conf)
    assert data["rules"] == {"style": {"file-length": {"level": "error", "max-file-length": 1}}}
    assert data["ignore"] == {"files": ["vendor/"]}
    back = from_map(data)
    assert back.rules == conf.rules
    assert back.ignore == conf.ignore
    assert back.capabilities == conf.capabilities


def test_to_map_without_capabilities():
    data = to_map(Config())
    assert data == {"rules": {}, "ignore": {}}


def test_from_map_invalid():
    with pytest.raises(ConfigError, match="failed to convert config map"):
        from_map({"rules": {"bugs": "nope"}})


def test_yaml_data_with_unknown_category_default():
    conf = Config(defaults=Defaults(categories={"bugs": Default(level="error")}))
    with pytest.raises(ConfigError, match="category bugs was not a map"):
        conf.to_yaml_data()


def test_global_dir_creates_directory(tmp_path, monkeypatch):
    monkeypatch.setattr(pathlib.Path, "home", classmethod(lambda cls: tmp_path))
    (tmp_path / ".config").mkdir()
    result = global_dir()
    assert result == str(tmp_path / ".config" / "regal")
    assert (tmp_path / ".config" / "regal").is_dir()


def test_global_dir_without_config_parent(tmp_path, monkeypatch):
    monkeypatch.setattr(pathlib.Path, "home", classmethod(lambda cls: tmp_path))
    assert global_dir() == ""