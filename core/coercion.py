"""Defensive coercion helpers for loosely-typed vendor JSON.

Vendor documents are parsed into plain ``dict``/``list`` trees and then read
through these helpers. Scalar helpers never raise: a value that cannot be
interpreted falls back to the type's zero value, matching what the vendors'
own clients do with missing fields.
"""

import math
from typing import Any

# =============================================================================
# Container access
# =============================================================================


def as_dict(value: Any) -> dict | None:
    """Return ``value`` if it is a JSON object, else None."""
    return value if isinstance(value, dict) else None


def as_list(value: Any) -> list | None:
    """Return ``value`` if it is a JSON array, else None."""
    return value if isinstance(value, list) else None


def dig(document: Any, *path: str) -> Any:
    """Walk nested objects by key, returning None as soon as a hop is missing.

    Example: ``dig(doc, "message", "body", "lyrics")``
    """
    current = document
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


# =============================================================================
# Scalar coercion (zero fallback)
# =============================================================================


def to_str(value: Any) -> str:
    """Return ``value`` if it is a string, else empty string."""
    return value if isinstance(value, str) else ""


def to_int(value: Any) -> int:
    """Coerce a vendor number or numeric string to int, 0 on failure.

    Last.fm serves counts as strings ("2531979"); Musixmatch serves ids as
    JSON numbers. Booleans are not numbers here, and neither are NaN or
    infinity (the json module accepts both literals).
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def to_float(value: Any) -> float:
    """Coerce a vendor number or numeric string to a finite float, 0.0 on failure."""
    if isinstance(value, bool):
        return 0.0
    if not isinstance(value, int | float | str):
        return 0.0
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return 0.0
    return number if math.isfinite(number) else 0.0


# =============================================================================
# Display text
# =============================================================================


def single_line(text: str) -> str:
    """Rewrite embedded newlines as ". " for single-line display."""
    return text.replace("\n", ". ")
