# Quire Sheets
# File: coerce.py
# Version: v1

"""Conversion between grid cells and typed dataclass field values.

Cells arrive untyped: the Sheets API hands back text, JSON numbers (which may
be floats even for whole numbers) or boolean-like strings. The destination
field's type hint decides how a cell is interpreted.

Coercion is best-effort. ``from_cell`` never raises; it reports ``ok=False``
and the caller leaves the field at whatever value it already had.
"""

from __future__ import annotations

import builtins
import dataclasses
import json
import math
import re
import sys
import types
import typing
from typing import Any, Dict, NewType, Tuple, Union

from .grid import Cell

Unsigned = NewType("Unsigned", int)

_INT_RE = re.compile(r"[+-]?[0-9]+")
_TRUE_SPELLINGS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_SPELLINGS = frozenset({"0", "f", "F", "FALSE", "false", "False"})
_SEQUENCE_ORIGINS = (list, tuple, set, frozenset)


def to_cell(value: Any) -> Cell:
    """Field value -> cell. Values are passed through unchanged."""
    return value


def cell_text(cell: Cell) -> str:
    """Canonical text of a cell, shared by decoding and filtering."""
    if cell is None:
        return ""
    if isinstance(cell, bool):
        return "true" if cell else "false"
    if isinstance(cell, float):
        # Whole numbers come back from the API as floats; 30.0 must read "30".
        if math.isfinite(cell) and cell.is_integer() and abs(cell) < 1e21:
            return str(int(cell))
        return repr(cell)
    if isinstance(cell, str):
        return cell
    if isinstance(cell, (list, dict)):
        try:
            return json.dumps(cell, separators=(",", ":"))
        except (TypeError, ValueError):
            return str(cell)
    return str(cell)


def parse_bool(text: str) -> bool:
    if text in _TRUE_SPELLINGS:
        return True
    if text in _FALSE_SPELLINGS:
        return False
    raise ValueError(f"invalid boolean: {text!r}")


def parse_int(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


def parse_float(text: str) -> float:
    if not text or not text.isascii() or text != text.strip() or "_" in text:
        raise ValueError(f"invalid float: {text!r}")
    return float(text)


def _is_class(hint: Any) -> bool:
    return isinstance(hint, type) and typing.get_origin(hint) is None


def split_optional(hint: Any) -> Tuple[Any, bool]:
    """Return ``(inner, is_optional)`` for ``Optional[X]`` / ``X | None``."""
    origin = typing.get_origin(hint)
    if origin is Union or origin is types.UnionType:
        args = typing.get_args(hint)
        inner = [a for a in args if a is not type(None)]
        if len(inner) == 1:
            return inner[0], len(inner) != len(args)
    return hint, False


def _resolve_hint(hint: Any, globalns: Dict[str, Any], localns: Dict[str, Any]) -> Any:
    if not isinstance(hint, str):
        return hint
    try:
        return eval(hint, globalns, localns)  # noqa: S307
    except (NameError, AttributeError, SyntaxError, TypeError):
        return Any


def type_hints(record_type: type) -> Dict[str, Any]:
    """Resolved field hints of a dataclass.

    Postponed annotations are resolved field by field against the defining
    module, so one unresolvable name (a function-local class, a
    ``TYPE_CHECKING`` import) only turns that field into ``Any``.
    """
    try:
        return typing.get_type_hints(record_type)
    except (NameError, TypeError):
        pass

    module = sys.modules.get(record_type.__module__)
    globalns: Dict[str, Any] = dict(vars(builtins))
    globalns.update(getattr(module, "__dict__", {}))
    localns = {record_type.__name__: record_type}

    return {
        f.name: _resolve_hint(f.type, globalns, localns)
        for f in dataclasses.fields(record_type)
    }


def zero_value(hint: Any) -> Any:
    """The value a field of type ``hint`` holds before anything is decoded."""
    hint, optional = split_optional(hint)
    if optional or hint is Any or hint is object or hint is None:
        return None
    if hint is str:
        return ""
    if hint is bool:
        return False
    if hint is Unsigned:
        return 0
    if _is_class(hint) and issubclass(hint, int):
        return 0
    if _is_class(hint) and issubclass(hint, float):
        return 0.0
    if _is_class(hint) and dataclasses.is_dataclass(hint):
        return build_dataclass(hint, {})
    origin = typing.get_origin(hint) or hint
    if origin in _SEQUENCE_ORIGINS or origin is dict:
        return origin()
    return None


def build_dataclass(record_type: type, values: Dict[str, Any]) -> Any:
    """Instantiate ``record_type`` from ``values``, zero-filling required fields."""
    hints = type_hints(record_type)
    kwargs: Dict[str, Any] = {}
    for f in dataclasses.fields(record_type):
        if not f.init:
            continue
        if f.name in values:
            kwargs[f.name] = values[f.name]
        elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            kwargs[f.name] = zero_value(hints.get(f.name, Any))
    return record_type(**kwargs)


def from_cell(cell: Cell, target: Any) -> Tuple[Any, bool]:
    """Convert ``cell`` to the type described by ``target``.

    Returns ``(value, ok)``. ``ok`` is False when the cell could not be
    interpreted; ``value`` is then meaningless.
    """
    target, _ = split_optional(target)
    if target is Any or target is object or target is None:
        return cell, True

    text = cell_text(cell)
    try:
        if target is str:
            return text, True
        if target is bool:
            return parse_bool(text), True
        if target is Unsigned:
            if text[:1] in ("+", "-"):
                return None, False
            return parse_int(text), True
        if _is_class(target) and issubclass(target, int):
            return target(parse_int(text)), True
        if _is_class(target) and issubclass(target, float):
            return target(parse_float(text)), True
        return _from_structured(cell, target)
    except (ValueError, TypeError, OverflowError, RecursionError):
        return None, False


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"{type(value).__name__} is not JSON serialisable")


def _from_structured(cell: Cell, target: Any) -> Tuple[Any, bool]:
    if isinstance(cell, str):
        payload = json.loads(cell)
    else:
        payload = json.loads(json.dumps(cell, default=_json_default))
    return _convert(payload, target)


def _convert_item(payload: Any, hint: Any) -> Tuple[Any, bool]:
    inner, optional = split_optional(hint)
    if payload is None and optional:
        return None, True
    if inner in (str, bool, int, float, Unsigned) or inner is Any or inner is object:
        return from_cell(payload, inner)
    if _is_class(inner) and issubclass(inner, (int, float)):
        return from_cell(payload, inner)
    return _convert(payload, inner)


def _convert(payload: Any, target: Any) -> Tuple[Any, bool]:
    if _is_class(target) and dataclasses.is_dataclass(target):
        if not isinstance(payload, dict):
            return None, False
        hints = type_hints(target)
        values: Dict[str, Any] = {}
        for f in dataclasses.fields(target):
            key = f.metadata.get("column") or f.name
            if key == "-" or key not in payload:
                continue
            value, ok = _convert_item(payload[key], hints.get(f.name, Any))
            if ok:
                values[f.name] = value
        return build_dataclass(target, values), True

    origin = typing.get_origin(target) or target
    args = typing.get_args(target)

    if origin in _SEQUENCE_ORIGINS:
        if not isinstance(payload, list):
            return None, False
        if origin is tuple and args and Ellipsis not in args:
            if len(args) != len(payload):
                return None, False
            hints = list(args)
        else:
            hints = [args[0] if args else Any] * len(payload)
        items = []
        for item, hint in zip(payload, hints):
            value, ok = _convert_item(item, hint)
            if not ok:
                return None, False
            items.append(value)
        return origin(items), True

    if origin is dict:
        if not isinstance(payload, dict):
            return None, False
        value_hint = args[1] if len(args) == 2 else Any
        out: Dict[Any, Any] = {}
        for key, item in payload.items():
            value, ok = _convert_item(item, value_hint)
            if not ok:
                return None, False
            out[key] = value
        return out, True

    return None, False
