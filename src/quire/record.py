# Quire Sheets
# File: record.py
# Version: v1

"""Mapping between dataclass records and grid rows.

A record type is any dataclass. Each field binds to the header column named
after the field, unless the field declares another column::

    @dataclass
    class User:
        id: int = column("ID")
        name: str = column("Name", default="")
        notes: str = column(IGNORE, default="")   # never read or written

Encoding is positional (declaration order, ignored fields skipped).
Decoding is keyed by header name, so column order in the sheet does not
matter when reading.
"""

from __future__ import annotations

import dataclasses
import keyword
import logging
import re
from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .coerce import build_dataclass, cell_text, from_cell, to_cell, type_hints
from .errors import ShapeError
from .grid import Cell, Row, column_index

logger = logging.getLogger(__name__)

COLUMN_KEY = "column"
IGNORE = "-"


@dataclass(frozen=True)
class ColumnBinding:
    """How one dataclass field maps onto the grid."""

    field_name: str
    column: str
    ignored: bool = False
    hint: Any = Any


RecordShape = Tuple[ColumnBinding, ...]


def column(name: Optional[str] = None, **kwargs: Any) -> Any:
    """``dataclasses.field`` with a column binding.

    ``column("Name")`` binds the field to the ``Name`` header;
    ``column(IGNORE)`` excludes it from reads and writes. Other keyword
    arguments (``default``, ``default_factory``, ...) go to ``field``.
    """
    metadata: Dict[str, Any] = dict(kwargs.pop("metadata", None) or {})
    if name is not None:
        metadata[COLUMN_KEY] = name
    return dataclasses.field(metadata=metadata, **kwargs)


def _record_type(record: Any) -> type:
    record_type = record if isinstance(record, type) else type(record)
    if not dataclasses.is_dataclass(record_type):
        raise ShapeError(
            f"record must be a dataclass, got {record_type.__name__}"
        )
    return record_type


def shape_of(record: Any) -> RecordShape:
    """Column bindings of a dataclass type or instance, in declaration order."""
    record_type = _record_type(record)
    hints = type_hints(record_type)

    bindings: List[ColumnBinding] = []
    for f in dataclasses.fields(record_type):
        tag = f.metadata.get(COLUMN_KEY) or ""
        bindings.append(
            ColumnBinding(
                field_name=f.name,
                column=tag or f.name,
                ignored=tag == IGNORE,
                hint=hints.get(f.name, Any),
            )
        )
    return tuple(bindings)


def encode(record: Any) -> Row:
    """Dataclass instance -> row of cells (ignored fields omitted)."""
    if isinstance(record, type) or not dataclasses.is_dataclass(record):
        raise ShapeError(
            f"record must be a dataclass instance, got {type(record).__name__}"
        )
    return [
        to_cell(getattr(record, binding.field_name))
        for binding in shape_of(record)
        if not binding.ignored
    ]


def encode_many(records: Any) -> List[Row]:
    """Sequence of dataclass instances -> rows. An empty sequence is fine."""
    if isinstance(records, (str, bytes, bytearray)) or not isinstance(records, Sequence):
        raise ShapeError(
            f"records must be a sequence of dataclass instances, got {type(records).__name__}"
        )
    return [encode(record) for record in records]


def _decode_values(row: Row, header: Row, shape: RecordShape) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for binding in shape:
        if binding.ignored:
            continue
        idx = column_index(header, binding.column)
        if idx < 0 or idx >= len(row):
            continue
        value, ok = from_cell(row[idx], binding.hint)
        if ok:
            values[binding.field_name] = value
    return values


def new_record(record_type: type) -> Any:
    """A record with every field at its default or zero value."""
    if not isinstance(record_type, type):
        raise ShapeError(f"record type must be a class, got {type(record_type).__name__}")
    return build_dataclass(_record_type(record_type), {})


def decode_one(row: Row, header: Row, dest: Any) -> Any:
    """Decode ``row`` into ``dest`` and return the record.

    ``dest`` is either a dataclass type (a fresh zero record is filled) or a
    dataclass instance (filled in place; frozen instances are copied).
    Columns missing from the header, cells missing from the row and cells
    that cannot be coerced leave the field as it was.
    """
    shape = shape_of(dest)
    values = _decode_values(row, header, shape)

    if isinstance(dest, type):
        return build_dataclass(dest, values)

    if type(dest).__dataclass_params__.frozen:
        init_names = {f.name for f in dataclasses.fields(dest) if f.init}
        return dataclasses.replace(
            dest, **{k: v for k, v in values.items() if k in init_names}
        )

    for name, value in values.items():
        setattr(dest, name, value)
    return dest


def decode_many(
    rows: Sequence[Row],
    header: Row,
    record_type: type,
    dest: Optional[MutableSequence] = None,
) -> MutableSequence:
    """Decode every row into a new ``record_type`` and append it to ``dest``."""
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise ShapeError(
            f"record type must be a dataclass type, got {record_type!r}"
        )
    if dest is None:
        dest = []
    elif not isinstance(dest, MutableSequence):
        raise ShapeError(
            f"dest must be a mutable sequence, got {type(dest).__name__}"
        )

    shape = shape_of(record_type)
    for row in rows:
        dest.append(build_dataclass(record_type, _decode_values(row, header, shape)))

    logger.debug("Decoded %d rows into %s", len(rows), record_type.__name__)
    return dest


def _identifier(text: str, position: int, used: set) -> str:
    name = re.sub(r"\W", "_", text)
    if not name or name[0].isdigit() or keyword.iskeyword(name):
        name = f"col_{name}" if name else f"col_{position}"
    while name in used:
        name = f"{name}_{position}"
    used.add(name)
    return name


def record_type_for(header: Sequence[Cell], name: str = "Row") -> type:
    """Build a dataclass whose fields follow ``header`` column by column.

    Field hints are ``Any`` so decoded cells are kept as they arrive; every
    field defaults to ``None``.
    """
    used: set = set()
    fields = []
    for position, cell in enumerate(header):
        text = cell_text(cell)
        fields.append(
            (
                _identifier(text, position, used),
                Any,
                dataclasses.field(default=None, metadata={COLUMN_KEY: text}),
            )
        )
    return dataclasses.make_dataclass(name, fields)
