"""Linter configuration: rules, defaults, ignore patterns and capabilities."""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CAPABILITIES_ENGINE_OPA = "opa"
KEY_IGNORE = "ignore"
KEY_LEVEL = "level"
KEY_DEFAULT = "default"
REGAL_DIR_NAME = ".regal"
CONFIG_FILE_NAME = "config.yaml"


class ConfigError(ValueError):
    """Raised when configuration cannot be read, converted or found."""


def _mapping(value: Any, what: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"{what} was not a map")
    return value


def _string_list(value: Any, what: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{what} must be a list of strings")
    return list(value)


@dataclass
class Default:
    """Global or per-category settings for rules; only the level for now."""

    level: str = ""

    @classmethod
    def from_map(cls, data: Any) -> Default:
        if not isinstance(data, Mapping):
            raise ConfigError("result was not a map")
        level = data.get(KEY_LEVEL)
        return cls(level=level if isinstance(level, str) else "")

    def to_dict(self) -> dict[str, Any]:
        return {KEY_LEVEL: self.level}


@dataclass
class Defaults:
    """Global and per-category rule defaults."""

    global_: Default = field(default_factory=Default)
    categories: dict[str, Default] = field(default_factory=dict)


@dataclass
class Ignore:
    """Files to leave out of linting."""

    files: list[str] = field(default_factory=list)

    @classmethod
    def from_map(cls, data: Any) -> Ignore:
        return cls(files=_string_list(_mapping(data, "ignore").get("files"), "ignore files"))

    def to_dict(self) -> dict[str, Any]:
        return {"files": list(self.files)} if self.files else {}


@dataclass
class Rule:
    """Configuration of a single rule."""

    level: str = ""
    ignore: Ignore | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_map(cls, data: Any) -> Rule:
        """Build a rule from its raw mapping; unknown keys become extra attributes."""
        if not isinstance(data, Mapping):
            raise ConfigError("result was not a map")
        extra = dict(data)
        level = extra.pop(KEY_LEVEL, None)
        rule = cls(level=level if isinstance(level, str) else "")
        if KEY_IGNORE in extra:
            try:
                rule.ignore = Ignore.from_map(extra.pop(KEY_IGNORE))
            except ConfigError as exc:
                raise ConfigError(f"unmarshalling rule ignore failed: {exc}") from exc
        rule.extra = extra
        return rule

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {KEY_LEVEL: self.level}
        if self.ignore is not None and self.ignore.files:
            result[KEY_IGNORE] = self.ignore.to_dict()
        for key, value in self.extra.items():
            if key not in (KEY_IGNORE, KEY_LEVEL):
                result[key] = copy.deepcopy(value)
        return result


def _type_string(t: Any) -> str:
    """Render a type declaration in the notation used for capabilities."""
    if not isinstance(t, Mapping):
        return "any"
    kind = t.get("type")
    if kind in ("null", "boolean", "number", "string"):
        return kind
    if kind == "any":
        of = sorted(_type_string(x) for x in t.get("of") or [])
        return f"any<{', '.join(of)}>" if of else "any"
    if kind == "array":
        text = "array"
        static = t.get("static") or []
        if static:
            text += "<" + ", ".join(_type_string(s) for s in static) + ">"
        if t.get("dynamic") is not None:
            text += f"[{_type_string(t['dynamic'])}]"
        return text
    if kind == "set":
        return f"set[{_type_string(t.get('of'))}]"
    if kind == "object":
        text = "object"
        static = t.get("static") or []
        if static:
            pairs = (
                f"{json.dumps(p.get('key'))}: {_type_string(p.get('value'))}" for p in static
            )
            text += "<" + ", ".join(pairs) + ">"
        dynamic = t.get("dynamic")
        if isinstance(dynamic, Mapping):
            text += f"[{_type_string(dynamic.get('key'))}: {_type_string(dynamic.get('value'))}]"
        return text
    if kind == "function":
        args = ", ".join(_type_string(a) for a in t.get("args") or [])
        result = t.get("result")
        return f"({args}) => {_type_string(result)}" if result is not None else f"({args})"
    return str(kind) if kind else "any"


@dataclass
class Builtin:
    """A built-in function declaration: argument and result types as strings."""

    args: list[str] = field(default_factory=list)
    result: str = ""

    @classmethod
    def from_opa(cls, data: Any) -> Builtin:
        decl = _mapping(_mapping(data, "builtin").get("decl"), "builtin decl")
        result = decl.get("result")
        return cls(
            args=[_type_string(a) for a in decl.get("args") or []],
            result=_type_string(result) if result is not None else "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {"decl": {"args": list(self.args), "result": self.result}}


@dataclass
class Capabilities:
    """Built-ins, future keywords and features available to policies."""

    builtins: dict[str, Builtin] = field(default_factory=dict)
    future_keywords: list[str] = field(default_factory=list)
    features: list[str] = field(default_factory=list)

    @classmethod
    def from_opa(cls, data: Any) -> Capabilities:
        """Convert a capabilities document as published by the policy engine."""
        data = _mapping(data, "capabilities")
        builtins = {}
        for builtin in data.get("builtins") or []:
            name = _mapping(builtin, "builtin").get("name")
            if not isinstance(name, str):
                raise ConfigError("builtin without a name")
            builtins[name] = Builtin.from_opa(builtin)
        return cls(
            builtins=builtins,
            future_keywords=_string_list(data.get("future_keywords"), "future_keywords"),
            features=_string_list(data.get("features"), "features"),
        )

    @classmethod
    def _from_dict(cls, data: Any) -> Capabilities:
        data = _mapping(data, "capabilities")
        builtins = {}
        for name, builtin in _mapping(data.get("builtins"), "builtins").items():
            decl = _mapping(_mapping(builtin, "builtin").get("decl"), "builtin decl")
            builtins[name] = Builtin(
                args=_string_list(decl.get("args"), "builtin args"),
                result=decl.get("result") or "",
            )
        return cls(
            builtins=builtins,
            future_keywords=_string_list(data.get("future_keywords"), "future_keywords"),
            features=_string_list(data.get("features"), "features"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "builtins": {name: b.to_dict() for name, b in self.builtins.items()},
            "future_keywords": list(self.future_keywords),
            "features": list(self.features),
        }


@dataclass
class RemoteFeatures:
    """Features that reach out over the network."""

    check_version: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"check-version": True} if self.check_version else {}


@dataclass
class Features:
    """Optional linter features."""

    remote: RemoteFeatures | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"remote": self.remote.to_dict()} if self.remote is not None else {}


class _IndentedDumper(yaml.SafeDumper):
    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        return super().increase_indent(flow, False)


@dataclass
class Config:
    """The full linter configuration."""

    rules: dict[str, dict[str, Rule]] = field(default_factory=dict)
    ignore: Ignore = field(default_factory=Ignore)
    capabilities: Capabilities | None = None
    defaults: Defaults = field(default_factory=Defaults)
    features: Features | None = None

    @classmethod
    def from_yaml(cls, text: str | bytes) -> Config:
        """Parse a configuration file's YAML contents."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"unmarshalling config failed {exc}") from exc
        return cls.from_yaml_data(data)

    @classmethod
    def from_yaml_data(cls, data: Any) -> Config:
        """Build a configuration from the user-facing layout, defaults included."""
        data = _mapping(data, "config")
        raw_rules = _mapping(data.get("rules"), "rules")
        config = cls()

        try:
            config.defaults = _extract_defaults(raw_rules)
        except ConfigError as exc:
            raise ConfigError(f"extracting defaults failed: {exc}") from exc

        try:
            config.rules = _extract_rules(raw_rules)
        except ConfigError as exc:
            raise ConfigError(f"extracting rules failed: {exc}") from exc

        config.ignore = Ignore.from_map(data.get("ignore"))
        config.capabilities = _load_capabilities(_mapping(data.get("capabilities"), "capabilities"))

        remote = _mapping(_mapping(data.get("features"), "features").get("remote"), "remote")
        if remote.get("check_version"):
            config.features = Features(remote=RemoteFeatures(check_version=True))

        return config

    def to_yaml_data(self) -> dict[str, Any]:
        """Return the user-facing layout, with defaults placed under rules."""
        data = to_map(self)
        rules = data["rules"]
        if self.defaults.global_.level:
            rules[KEY_DEFAULT] = self.defaults.global_.to_dict()
        for name, category_default in self.defaults.categories.items():
            category = rules.get(name)
            if not isinstance(category, dict):
                raise ConfigError(f"category {name} was not a map")
            category[KEY_DEFAULT] = category_default.to_dict()
        if not self.ignore.files:
            data.pop(KEY_IGNORE, None)
        return data

    def to_yaml(self) -> str:
        return yaml.dump(
            self.to_yaml_data(),
            Dumper=_IndentedDumper,
            sort_keys=True,
            default_flow_style=False,
            indent=4,
            allow_unicode=True,
        )


def _extract_defaults(raw_rules: Mapping[str, Any]) -> Defaults:
    defaults = Defaults()
    if KEY_DEFAULT in raw_rules:
        try:
            defaults.global_ = Default.from_map(raw_rules[KEY_DEFAULT])
        except ConfigError as exc:
            raise ConfigError(f"unmarshalling global defaults failed: {exc}") from exc
    for key, value in raw_rules.items():
        if not isinstance(value, Mapping):
            raise ConfigError(f"rules for category {key} were not a map")
        if KEY_DEFAULT in value:
            try:
                defaults.categories[key] = Default.from_map(value[KEY_DEFAULT])
            except ConfigError as exc:
                raise ConfigError(f"unmarshalling category defaults failed: {exc}") from exc
    return defaults


def _extract_rules(raw_rules: Mapping[str, Any]) -> dict[str, dict[str, Rule]]:
    categories: dict[str, dict[str, Rule]] = {}
    for key, value in raw_rules.items():
        if key == KEY_DEFAULT:
            continue
        if not isinstance(value, Mapping):
            raise ConfigError(f"rules for category {key} were not a map")
        category = {}
        for rule_name, rule_data in value.items():
            if rule_name == KEY_DEFAULT:
                continue
            try:
                category[rule_name] = Rule.from_map(rule_data)
            except ConfigError as exc:
                raise ConfigError(f"unmarshalling rule failed: {exc}") from exc
        categories[key] = category
    return categories


def _load_capabilities(raw: Mapping[str, Any]) -> Capabilities:
    source = _mapping(raw.get("from"), "capabilities from")
    file = source.get("file") or ""
    engine = source.get("engine") or ""
    version = source.get("version") or ""

    if file and engine:
        raise ConfigError("capabilities from.file and from.engine are mutually exclusive")
    if engine and not version:
        raise ConfigError(
            "please set the version for the engine from which to load capabilities from"
        )

    if file:
        try:
            contents = json.loads(Path(file).read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"failed to load capabilities file: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigError(f"failed to unmarshal capabilities file contents: {exc}") from exc
        capabilities = Capabilities.from_opa(contents)
    elif engine == CAPABILITIES_ENGINE_OPA:
        raise ConfigError(f"loading capabilities failed: no capabilities for version {version}")
    elif engine:
        raise ConfigError(f"unsupported capabilities engine {engine}")
    else:
        capabilities = Capabilities()

    minus = _mapping(raw.get("minus"), "capabilities minus")
    for builtin in minus.get("builtins") or []:
        capabilities.builtins.pop(_mapping(builtin, "builtin").get("name"), None)

    plus = _mapping(raw.get("plus"), "capabilities plus")
    for builtin in plus.get("builtins") or []:
        name = _mapping(builtin, "builtin").get("name")
        if not isinstance(name, str):
            raise ConfigError("builtin without a name")
        capabilities.builtins[name] = Builtin.from_opa(builtin)

    return capabilities


def from_map(conf_map: Mapping[str, Any]) -> Config:
    """Build a configuration from its internal map layout (no defaults)."""
    try:
        rules = {
            category: {name: Rule.from_map(rule) for name, rule in _mapping(rules, category).items()}
            for category, rules in _mapping(conf_map.get("rules"), "rules").items()
        }
        capabilities = conf_map.get("capabilities")
        features = conf_map.get("features")
        config = Config(
            rules=rules,
            ignore=Ignore.from_map(conf_map.get("ignore")),
            capabilities=Capabilities._from_dict(capabilities) if capabilities is not None else None,
        )
        if features is not None:
            remote = _mapping(features, "features").get("remote")
            config.features = Features(
                remote=None
                if remote is None
                else RemoteFeatures(
                    check_version=bool(_mapping(remote, "remote").get("check-version"))
                )
            )
    except ConfigError as exc:
        raise ConfigError(f"failed to convert config map to config struct: {exc}") from exc
    return config


def to_map(config: Config) -> dict[str, Any]:
    """Convert a configuration to its internal map layout."""
    result: dict[str, Any] = {
        "rules": {
            category: {name: rule.to_dict() for name, rule in rules.items()}
            for category, rules in config.rules.items()
        },
        "ignore": config.ignore.to_dict(),
    }
    if config.capabilities is not None:
        result["capabilities"] = config.capabilities.to_dict()
    if config.features is not None:
        result["features"] = config.features.to_dict()
    return result


def find_regal_directory(path: str | Path) -> Path:
    """Find the nearest .regal directory at or above ``path``."""
    start = Path(path)
    try:
        is_dir = start.stat() and start.is_dir()
    except OSError as exc:
        raise ConfigError(f"failed to stat path {path}: {exc}") from exc

    directory = (start if is_dir else start.parent).absolute()
    for candidate in (directory, *directory.parents):
        regal_dir = candidate / REGAL_DIR_NAME
        if regal_dir.is_dir():
            return regal_dir
    raise ConfigError("can't traverse past root directory")


def find_config(path: str | Path) -> Path:
    """Find the config file in the nearest .regal directory."""
    try:
        regal_dir = find_regal_directory(path)
    except ConfigError as exc:
        raise ConfigError(f"could not find .regal directory: {exc}") from exc
    config_file = regal_dir / CONFIG_FILE_NAME
    if not config_file.is_file():
        raise ConfigError(f"no {CONFIG_FILE_NAME} in {regal_dir}")
    return config_file


def global_dir() -> str:
    """Return the user-wide config directory, creating it if needed; "" on failure."""
    try:
        home = Path.home()
    except (RuntimeError, KeyError, OSError):
        return ""
    regal_dir = home / ".config" / "regal"
    if not regal_dir.exists():
        try:
            regal_dir.mkdir()
        except OSError:
            return ""
    return str(regal_dir)