"""Path parameter coercion.

Route parameters are captured as strings. When a handler declares a
scalar annotation, the binder converts the captured text through this
fixed table. Anything else is passed through untouched.
"""

from collections.abc import Callable
from typing import Any

_TRUTHY: frozenset[str] = frozenset({"true", "1"})


def to_bool(value: str) -> bool:
    """``"true"``/``"1"`` (any case) are True; everything else is False."""
    return value.strip().lower() in _TRUTHY


def to_list(value: str) -> list[str]:
    return [value]


# annotation -> converter. ``None`` marks "no annotation": keep the raw string.
COERCIONS: dict[Any, Callable[[str], Any]] = {
    int: int,
    float: float,
    bool: to_bool,
    str: str,
    list: to_list,
}


def is_coercible(annotation: Any) -> bool:
    """True if *annotation* has an entry in the coercion table."""
    return annotation in COERCIONS


def coerce_param(value: str, annotation: Any) -> Any:
    """Convert a captured path parameter string to the annotated type.

    Unknown annotations return *value* unchanged.
    Raises ``ValueError`` if ``int``/``float`` conversion fails.
    """
    converter = COERCIONS.get(annotation)
    if converter is None:
        return value
    return converter(value)
