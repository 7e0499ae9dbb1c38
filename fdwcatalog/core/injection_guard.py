"""
Injection Guard
===============

Validates untrusted strings and option maps before they are interpolated into
administrative SQL. DDL such as CREATE SERVER cannot take bind parameters, so
this module is the only barrier between caller input and the statement text.

Values are checked against a denylist (quotes, statement terminators, comment
sequences, escapes, control characters). Option keys are rendered as bare SQL
words, so they are checked against an allowlist instead and folded to lower
case, the way PostgreSQL folds unquoted names.

A successful check returns a ValidatedIdentifier or ValidatedOptions. The SQL
builder only accepts those types, and they can only be produced here.
"""

import re
from typing import Any, Iterator, Mapping, Optional

from fdwcatalog.core.errors import ValidationError
from fdwcatalog.core.redaction import is_sensitive_key

# Sentinel that only this module holds; the wrapper constructors demand it.
_GUARD_TOKEN = object()

_DENYLIST: tuple[tuple[str, str], ...] = (
    ("single_quote", "'"),
    ("double_quote", '"'),
    ("backtick", "`"),
    ("semicolon", ";"),
    ("backslash", "\\"),
    ("line_comment", "--"),
    ("block_comment_open", "/*"),
    ("block_comment_close", "*/"),
    ("dollar_quote", "$$"),
)

_CONTROL_CHAR_RE = re.compile(r"[\x00-\x1f\x7f]")
_OPTION_KEY_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

MAX_VALUE_LENGTH = 1024


class ValidatedIdentifier(str):
    """A string that passed the injection check. Built only by the guard."""

    def __new__(cls, value: str, *, _token: Optional[object] = None):
        if _token is not _GUARD_TOKEN:
            raise TypeError(
                "ValidatedIdentifier can only be produced by validate_string_against_injections()"
            )
        return super().__new__(cls, value)


class ValidatedOptions(Mapping[str, str]):
    """Read-only option map whose keys and values passed the injection check."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, str], *, _token: Optional[object] = None):
        if _token is not _GUARD_TOKEN:
            raise TypeError(
                "ValidatedOptions can only be produced by validate_object_against_injections()"
            )
        self._values = dict(values)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        # Never print credential values
        shown = {k: ("***" if is_sensitive_key(k) else v) for k, v in self._values.items()}
        return f"ValidatedOptions({shown!r})"


def find_injection_risk(value: str) -> Optional[str]:
    """Return the name of the first denylist rule *value* violates, or None."""
    if _CONTROL_CHAR_RE.search(value):
        return "control_character"
    for rule, needle in _DENYLIST:
        if needle in value:
            return rule
    if len(value) > MAX_VALUE_LENGTH:
        return "too_long"
    return None


def validate_string_against_injections(value: Any, field: str = "value") -> ValidatedIdentifier:
    """Validate a single identifier-like string.

    Raises:
        ValidationError: naming *field* and the violated rule. The offending
            value is never echoed back.
    """
    if not isinstance(value, str) or not value:
        raise ValidationError(
            f"{field} must be a non-empty string",
            context={"field": field, "rule": "empty_or_not_string"},
        )
    rule = find_injection_risk(value)
    if rule:
        raise ValidationError(
            f"{field} contains disallowed content ({rule})",
            context={"field": field, "rule": rule},
        )
    return ValidatedIdentifier(value, _token=_GUARD_TOKEN)


def validate_object_against_injections(
    options: Mapping[str, Any],
    field: str = "options",
) -> ValidatedOptions:
    """Validate a flat option map.

    Scalar values are stringified; nested structures, booleans and None are
    rejected. Every key must be a plain SQL word; keys are returned lower-cased
    and must stay distinct after folding.
    """
    if not isinstance(options, Mapping):
        raise ValidationError(
            f"{field} must be a mapping",
            context={"field": field, "rule": "not_a_mapping"},
        )

    validated: dict[str, str] = {}
    for key, raw in options.items():
        if not isinstance(key, str) or not _OPTION_KEY_RE.fullmatch(key):
            raise ValidationError(
                f"{field} has an invalid option name",
                context={"field": field, "rule": "invalid_option_name"},
            )

        key = key.lower()
        if key in validated:
            raise ValidationError(
                f"{field} repeats an option name",
                context={"field": f"{field}.{key}", "rule": "duplicate_option_name"},
            )

        path = f"{field}.{key}"
        if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
            raise ValidationError(
                f"{path} must be a string or number",
                context={"field": path, "rule": "not_a_scalar"},
            )

        value = str(raw)
        rule = find_injection_risk(value)
        if rule:
            raise ValidationError(
                f"{path} contains disallowed content ({rule})",
                context={"field": path, "rule": rule},
            )
        validated[key] = value

    return ValidatedOptions(validated, _token=_GUARD_TOKEN)
