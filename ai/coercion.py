"""Repair loosely-shaped model output into a fixed JSON shape.

A template describes the expected shape:

    {"name": "Unknown",                      # string with default
     "active": False,                        # boolean
     "level": Choice("Low", "High", "Low"),  # enumerated string
     "score": Bounded(50, 0, 100),           # clamped integer
     "tags": ["General"],                    # list of strings, default when empty
     "items": ListOf({"title": ""}, [...]),  # list of repaired objects
     "nested": {...}}                        # nested object

``repair(value, template)`` returns a value with exactly the template's
structure. It never raises: anything unusable is replaced by the default.
"""
from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Choice:
    """Enumerated string, matched case-insensitively and returned in canonical casing."""
    default: str
    allowed: tuple[str, ...]

    def __init__(self, default: str, *allowed: str) -> None:
        object.__setattr__(self, "default", default)
        object.__setattr__(self, "allowed", tuple(allowed) or (default,))


@dataclass(frozen=True)
class Bounded:
    """Integer clamped to ``[low, high]``."""
    default: int
    low: int
    high: int


@dataclass(frozen=True)
class ListOf:
    """List whose items are repaired against ``item``; empty lists take ``default``."""
    item: Any
    default: list = field(default_factory=list)


def _repair_str(value: Any, default: str) -> str:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _repair_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1"):
            return True
        if lowered in ("false", "no", "0"):
            return False
    if isinstance(value, (int, float)):
        return bool(value)
    return default


def _repair_choice(value: Any, choice: Choice) -> str:
    if isinstance(value, str):
        lowered = value.strip().lower()
        for option in choice.allowed:
            if option.lower() == lowered:
                return option
    return choice.default


def _repair_bounded(value: Any, bounded: Bounded) -> int:
    number: float | None = None
    if isinstance(value, bool):
        number = None
    elif isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip().rstrip("%"))
        except ValueError:
            number = None
    if number is None or not math.isfinite(number):
        return bounded.default
    return int(max(bounded.low, min(bounded.high, round(number))))


def _repair_list(value: Any, shape: ListOf) -> list:
    items: list = []
    if isinstance(value, list):
        for raw in value:
            if raw is None:
                continue
            # Strings in an object list carry no structure worth keeping
            if isinstance(shape.item, dict) and not isinstance(raw, dict):
                continue
            items.append(repair(raw, shape.item))
    if isinstance(shape.item, str):
        items = [item for item in items if item]
    if not items:
        return copy.deepcopy(shape.default)
    return items


def repair(value: Any, template: Any) -> Any:
    """Coerce ``value`` into the shape described by ``template``."""
    if isinstance(template, dict):
        source = value if isinstance(value, dict) else {}
        return {key: repair(source.get(key), sub) for key, sub in template.items()}
    if isinstance(template, ListOf):
        return _repair_list(value, template)
    if isinstance(template, list):
        return _repair_list(value, ListOf("", list(template)))
    if isinstance(template, Choice):
        return _repair_choice(value, template)
    if isinstance(template, Bounded):
        return _repair_bounded(value, template)
    if isinstance(template, bool):
        return _repair_bool(value, template)
    if isinstance(template, str):
        return _repair_str(value, template)
    logger.warning(f"Unsupported template type {type(template).__name__}; passing value through")
    return value


def defaults(template: Any) -> Any:
    """The value ``repair`` produces for completely missing input."""
    return repair(None, template)
