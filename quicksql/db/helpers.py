from __future__ import annotations

import re
from typing import Any, Mapping

from .models import Bindings, StatementKind

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

# Anchored on the first keyword; only these verbs have a defined result shape.
_VERB_RE = re.compile(
    r"^\s*(select|describe|pragma|delete|update|insert)\b",
    re.IGNORECASE,
)


def validate_identifier(name: str, identifier_type: str = "identifier") -> str:
    """
    Validate that an identifier (table/column name) is safe for SQL interpolation.

    Identifiers are restricted to letters, digits and underscores and may not
    start with a digit. They are quoted by the caller with the dialect's
    identifier quoting after validation.

    Args:
        name: The identifier to validate
        identifier_type: Description of the identifier (for error messages)

    Returns:
        The validated identifier (unchanged if valid)

    Raises:
        TypeError: If identifier is not a string
        ValueError: If identifier contains unsafe characters or is empty

    Example:
        >>> validate_identifier("users", "table")
        'users'
        >>> validate_identifier("'; DROP TABLE--", "table")
        ValueError: Invalid table '; DROP TABLE--': ...
    """
    if not isinstance(name, str):
        raise TypeError(f"{identifier_type} must be a string, got {type(name).__name__}")

    if not name:
        raise ValueError(f"{identifier_type} cannot be empty")

    if not _IDENTIFIER_RE.match(name):
        raise ValueError(
            f"Invalid {identifier_type} {name!r}: "
            "must start with letter/underscore and contain only alphanumeric characters and underscores"
        )

    return name


def normalize_bindings(bindings: Any) -> Bindings:
    """
    Coerce caller-supplied bind parameters into executable form.

    - None, "" and empty containers become an empty mapping
    - mappings keep their values; a leading ":" on keys is dropped
    - lists/tuples become a positional tuple
    - any other scalar becomes a one-element positional tuple
    """
    if bindings is None:
        return {}
    if isinstance(bindings, Mapping):
        return {str(key).lstrip(":"): value for key, value in bindings.items()}
    if isinstance(bindings, (list, tuple)):
        return tuple(bindings) if bindings else {}
    if isinstance(bindings, str) and not bindings:
        return {}
    return (bindings,)


def classify_sql(sql: str) -> StatementKind | None:
    """
    Determine the statement kind from the leading SQL keyword.

    Returns None for verbs without a defined result shape.
    """
    match = _VERB_RE.match(sql)
    if match is None:
        return None
    return StatementKind(match.group(1).lower())


def leading_keyword(sql: str) -> str:
    """First word of sql, upper-cased; "" for blank input."""
    parts = sql.split(None, 1)
    return parts[0].upper() if parts else ""
