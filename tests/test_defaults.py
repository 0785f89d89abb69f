import copy

import pytest

from regalint.config import Config, ConfigError, Default, Defaults, Ignore, Rule
from regalint.defaults import load_config_with_defaults


def _bundle():
    return {
        "regal": {
            "config": {
                "provided": {
                    "rules": {
                        "style": {
                            "opa-fmt": {"level": "error"},
                            "chained-rule-body": {"level": "error"},
                            "file-length": {"level": "error", "max-file-length": 500},
                        },
                        "bugs": {"constant-condition": {"level": "error"}},
                        "imports": {"avoid-importing-input": {"level": "error"}},
                    }
                }
            }
        }
    }


def test_missing_path_raises():
    with pytest.raises(ConfigError):
        load_config_with_defaults({"regal": {}}, None)


def test_provided_not_a_mapping_raises():
    with pytest.raises(ConfigError):
        load_config_with_defaults({"regal": {"config": {"provided": [1, 2]}}}, None)


def test_no_user_config_returns_provided():
    conf = load_config_with_defaults(_bundle(), None)
    assert conf.rules["style"]["opa-fmt"].level == "error"
    assert conf.rules["style"]["file-length"].extra == {"max-file-length": 500}
    assert conf.capabilities is not None
    assert conf.capabilities.builtins == {}


def test_inherits_level_from_provided():
    user = Config(rules={"style": {"file-length": Rule(extra={"max-file-length": 1})}})
    conf = load_config_with_defaults(_bundle(), user)
    assert conf.rules["style"]["file-length"].level == "error"
    assert conf.rules["style"]["file-length"].extra["max-file-length"] == 1


def test_uses_user_defaults():
    user = Config(
        defaults=Defaults(
            global_=Default(level="ignore"),
            categories={"style": Default(level="error"), "bugs": Default(level="warning")},
        ),
        rules={"style": {"opa-fmt": Rule(level="warning")}},
    )
    conf = load_config_with_defaults(_bundle(), user)
    assert conf.rules["style"]["opa-fmt"].level == "warning"
    assert conf.rules["style"]["chained-rule-body"].level == "error"
    assert conf.rules["bugs"]["constant-condition"].level == "warning"
    assert conf.rules["imports"]["avoid-importing-input"].level == "ignore"


def test_user_ignore_overrides_and_unknown_rule_kept():
    user = Config(
        ignore=Ignore(files=["p.rego"]),
        rules={"custom": {"acme-corp-package": Rule(level="ignore")}},
    )
    conf = load_config_with_defaults(_bundle(), user)
    assert conf.ignore.files == ["p.rego"]
    assert conf.rules["custom"]["acme-corp-package"].level == "ignore"
    assert conf.rules["bugs"]["constant-condition"].level == "error"


def test_inputs_not_mutated():
    bundle = _bundle()
    before = copy.deepcopy(bundle)
    user = Config(rules={"style": {"opa-fmt": Rule()}})
    load_config_with_defaults(bundle, user)
    assert bundle == before
    assert user.rules["style"]["opa-fmt"].level == ""