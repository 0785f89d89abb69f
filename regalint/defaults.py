"""Merging of the provided default configuration with user configuration."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from regalint.config import Capabilities, Config, ConfigError, Default, Rule, from_map

_PROVIDED_PATH = ("regal", "config", "provided")


def _search(data: Any, path: tuple[str, ...]) -> Any:
    current = data
    for key in path:
        if not isinstance(current, Mapping) or key not in current:
            raise ConfigError(f"config path not found {'.'.join(path)}: missing key {key}")
        current = current[key]
    return current


def _provided_levels(config: Config) -> dict[str, str]:
    # provided rules are assumed to have unique names across categories
    return {
        name: rule.level for rules in config.rules.values() for name, rule in rules.items()
    }


def _merge(base: Config, user: Config) -> Config:
    """Overlay the non-empty parts of ``user`` onto ``base``."""
    rules = {category: dict(category_rules) for category, category_rules in base.rules.items()}
    for category, user_rules in user.rules.items():
        overrides = {
            name: copy.deepcopy(rule) for name, rule in user_rules.items() if rule != Rule()
        }
        if overrides:
            rules.setdefault(category, {}).update(overrides)

    merged = Config(
        rules=rules,
        ignore=copy.deepcopy(user.ignore if user.ignore.files else base.ignore),
        capabilities=copy.deepcopy(
            user.capabilities if user.capabilities is not None else base.capabilities
        ),
        defaults=copy.deepcopy(base.defaults),
        features=copy.deepcopy(user.features if user.features is not None else base.features),
    )

    if user.defaults.global_.level:
        merged.defaults.global_ = Default(level=user.defaults.global_.level)
    for category, category_default in user.defaults.categories.items():
        if category_default.level:
            merged.defaults.categories[category] = Default(level=category_default.level)

    return merged


def _apply_user_rule_levels(user: Config, merged: Config, provided: dict[str, str]) -> None:
    for category, category_rules in merged.rules.items():
        for name, rule in category_rules.items():
            if name not in provided:
                continue

            level = provided[name]
            user_rule = user.rules.get(category, {}).get(name)

            if user_rule is not None and user_rule.level:
                level = user_rule.level
            elif category in merged.defaults.categories:
                if merged.defaults.categories[category].level:
                    level = merged.defaults.categories[category].level
            elif merged.defaults.global_.level:
                level = merged.defaults.global_.level

            rule.level = level


def load_config_with_defaults(bundle_data: Mapping[str, Any], user_config: Config | None) -> Config:
    """Combine the configuration provided in ``bundle_data`` with ``user_config``.

    Rules the user leaves without a level take it from the user's category
    default, then the global default, then the provided configuration.
    """
    bundled = _search(bundle_data, _PROVIDED_PATH)
    if not isinstance(bundled, Mapping):
        raise ConfigError("expected 'rules' of object type")

    try:
        default_config = from_map(bundled)
    except ConfigError as exc:
        raise ConfigError(f"failed to convert config from map: {exc}") from exc

    if user_config is None:
        default_config.capabilities = Capabilities()
        return default_config

    provided = _provided_levels(default_config)
    merged = _merge(default_config, user_config)

    if merged.capabilities is None:
        merged.capabilities = Capabilities()

    _apply_user_rule_levels(user_config, merged, provided)
    return merged