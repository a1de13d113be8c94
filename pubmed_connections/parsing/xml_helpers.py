"""
Helpers for reading the dict trees xmltodict produces from E-utilities XML.

The same element can arrive as a plain string (``"123"``), as a dict with
its text under ``#text`` when it carries attributes, as ``None`` when it is
empty, or as a list of any of these when it repeats. These helpers collapse
those shapes without ever raising.
"""

import math
from dataclasses import dataclass
from typing import Any, List, Optional

TEXT_KEY = "#text"
ATTRIBUTE_PREFIX = "@"


@dataclass(frozen=True)
class WrappedValue:
    """A node's resolved text, plus its numeric reading when it has one."""

    text: str
    number: Optional[float] = None


def ensure_list(node: Any) -> List[Any]:
    """Wrap a single node in a list; ``None`` becomes an empty list."""
    if node is None:
        return []
    if isinstance(node, list):
        return node
    return [node]


def _scalar_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    # bool before int: True is an int
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return None


def get_text(node: Any, default: Optional[str] = "") -> Optional[str]:
    """
    Text content of a node.

    Accepts a scalar, a ``{"#text": ...}`` dict, or a ``WrappedValue``.
    Returns ``default`` for anything else, including dicts without text.
    """
    if isinstance(node, WrappedValue):
        return node.text
    text = _scalar_text(node)
    if text is not None:
        return text
    if isinstance(node, dict):
        text = _scalar_text(node.get(TEXT_KEY))
        if text is not None:
            return text
    return default


def get_attribute(node: Any, name: str, default: str = "") -> str:
    """Attribute value of a dict node (``name`` without the ``@`` prefix)."""
    if isinstance(node, dict):
        text = _scalar_text(node.get(f"{ATTRIBUTE_PREFIX}{name}"))
        if text is not None:
            return text
    return default


def to_number(value: Any) -> Optional[float]:
    """Float reading of a value, or None when it is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def normalize_value(node: Any) -> WrappedValue:
    """Normalize one element. Missing text resolves to ``""``."""
    if isinstance(node, WrappedValue):
        return node
    text = get_text(node, "")
    return WrappedValue(text=text.strip(), number=to_number(text))


def normalize_values(node: Any) -> List[WrappedValue]:
    """
    Normalize a node of unknown shape into an ordered list of values.

    - absent -> ``[]``
    - a single scalar or wrapped scalar -> one value
    - a list -> one value per element, in order

    Already-normalized values pass through unchanged, so normalizing twice
    gives the same result.
    """
    return [normalize_value(item) for item in ensure_list(node)]


def first_text(node: Any) -> Optional[str]:
    """First non-empty text in a possibly-repeated node, or None."""
    for value in normalize_values(node):
        if value.text:
            return value.text
    return None
