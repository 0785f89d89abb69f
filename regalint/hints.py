"""Map policy errors to documented hint keys."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

_PATTERNS: dict[str, re.Pattern[str]] = {
    "eval-conflict-error/complete-rules-must-not-produce-multiple-outputs": re.compile(
        r"^eval_conflict_error: complete rules must not produce multiple outputs\Z"
    ),
    "eval-conflict-error/object-keys-must-be-unique": re.compile(
        r"^object insert conflict\Z|^eval_conflict_error: object keys must be unique\Z"
    ),
    "rego-unsafe-var-error/var-name-is-unsafe": re.compile(
        r"^rego_unsafe_var_error: var .* is unsafe\Z"
    ),
    "rego-recursion-error/rule-name-is-recursive": re.compile(
        r"^rego_recursion_error: rule .* is recursive:"
    ),
    "rego-parse-error/var-cannot-be-used-for-rule-name": re.compile(
        r"^rego_parse_error: var cannot be used for rule name\Z"
    ),
    "rego-type-error/conflicting-rules-name-found": re.compile(
        r"^rego_type_error: conflicting rules .* found\Z"
    ),
    "rego-type-error/match-error": re.compile(r"^rego_type_error: match error"),
    "rego-type-error/arity-mismatch": re.compile(r"^rego_type_error: .*: arity mismatch"),
    "rego-type-error/function-has-arity-got-argument": re.compile(
        r"^rego_type_error: function .* has arity [0-9]+, got [0-9]+ arguments?\Z"
    ),
    "rego-compile-error/assigned-var-name-unused": re.compile(
        r"^rego_compile_error: assigned var .* unused\Z"
    ),
    "rego-parse-error/unexpected-assign-token": re.compile(
        r"^rego_parse_error: unexpected assign token:"
    ),
    "rego-parse-error/unexpected-identifier-token": re.compile(
        r"^rego_parse_error: unexpected identifier token:"
    ),
    "rego-parse-error/unexpected-left-curly-token": re.compile(
        r"^rego_parse_error: unexpected \{ token:"
    ),
    "rego-parse-error/unexpected-right-curly-token": re.compile(
        r"^rego_parse_error: unexpected \} token"
    ),
    "rego-parse-error/unexpected-name-keyword": re.compile(
        r"^rego_parse_error: unexpected .* keyword:"
    ),
    "rego-parse-error/unexpected-string-token": re.compile(
        r"^rego_parse_error: unexpected string token:"
    ),
    "rego-type-error/multiple-default-rules-name-found": re.compile(
        r"^rego_type_error: multiple default rules .* found\Z"
    ),
}


def _innermost(error: Any) -> Any:
    while isinstance(error, BaseException) and error.__cause__ is not None:
        error = error.__cause__
    return error


def _field(item: Any, name: str) -> str:
    if isinstance(item, Mapping):
        value = item.get(name, "")
    else:
        value = getattr(item, name, "")
    return "" if value is None else str(value)


def extract_messages(error: Any) -> list[str]:
    """Return "code: message" strings for each error entry carried by ``error``.

    ``error`` is either a sequence of entries or an exception with an ``errors``
    attribute holding one. Entries are mappings or objects with ``code`` and
    ``message``.
    """
    items = getattr(error, "errors", None) if isinstance(error, BaseException) else error
    if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
        raise ValueError(
            f"failed to decode error: source data must be a sequence, got {type(items).__name__}"
        )

    messages = []
    for item in items:
        if not isinstance(item, Mapping) and not hasattr(item, "message"):
            raise ValueError(f"failed to decode error: unsupported entry {item!r}")
        code = _field(item, "code")
        prefix = f"{code}: " if code else ""
        messages.append(prefix + _field(item, "message"))
    return messages


def get_for_error(error: Any) -> list[str]:
    """Return the hint keys whose patterns match the first message of ``error``."""
    try:
        messages = extract_messages(_innermost(error))
    except ValueError as exc:
        raise ValueError(f"failed to extract messages: {exc}") from exc

    if not messages:
        raise ValueError("no messages found")

    first = messages[0]
    return [key for key, pattern in _PATTERNS.items() if pattern.search(first)]