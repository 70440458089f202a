"""
Record shapes and the field enumerator.

A record is a pydantic model whose fields map to table columns. The column
of a field is its name unless annotated otherwise:

    class Thing(Record):
        sysname: str | None = None
        ip: Annotated[str | None, Column("ip_address")] = None
        note: Annotated[str | None, EXCLUDED] = None

Fields are tri-state. A field that was never assigned is *unset* and is left
out of writes, so a partial update never clobbers unrelated columns. A field
explicitly assigned None writes NULL.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Iterable, NamedTuple

from pydantic import BaseModel, ConfigDict

from core.errors import TypeMismatch


@dataclass(frozen=True)
class Column:
    """Column mapping marker for Annotated record fields."""

    name: str | None = None
    excluded: bool = False


EXCLUDED = Column(excluded=True)


class Record(BaseModel):
    """Base class for every type persisted through the façade."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ColumnSpec(NamedTuple):
    column: str
    slot: str


class FieldEntry(NamedTuple):
    column: str
    value: Any
    slot: str


@lru_cache(maxsize=None)
def record_columns(record_type: type[Record]) -> tuple[ColumnSpec, ...]:
    """Column mapping of a record type, in field declaration order. Resolved once per type."""
    if not (isinstance(record_type, type) and issubclass(record_type, Record)):
        raise TypeMismatch(f"expected a record type, got {record_type!r}")
    specs: list[ColumnSpec] = []
    for name, info in record_type.model_fields.items():
        marker = next((m for m in info.metadata if isinstance(m, Column)), None)
        if marker is not None and marker.excluded:
            continue
        column = marker.name if marker is not None and marker.name else name
        specs.append(ColumnSpec(column, name))
    return tuple(specs)


def enumerate_fields(
    record: Record | type[Record],
    exclude: Iterable[str] = (),
    populate: bool = False,
) -> list[FieldEntry]:
    """
    Ordered (column, value, slot) entries of a record.

    Write mode skips unset fields. Populate mode lists every mapped column so
    a read has a slot for each; it also accepts the record type itself.
    """
    if isinstance(record, Record):
        record_type = type(record)
    elif populate and isinstance(record, type) and issubclass(record, Record):
        record_type, record = record, None
    else:
        raise TypeMismatch(f"got the wrong data type: {type(record).__name__}")

    skip = frozenset(exclude)
    fields_set = record.model_fields_set if record is not None else frozenset()
    entries: list[FieldEntry] = []
    for column, slot in record_columns(record_type):
        if column in skip:
            continue
        if not populate and slot not in fields_set:
            continue
        value = getattr(record, slot) if record is not None else None
        entries.append(FieldEntry(column, to_db_value(value), slot))
    return entries


def to_db_value(value: Any) -> Any:
    """Adapt a field value for the driver."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        raise TypeMismatch(f"nested model {type(value).__name__} cannot be stored in a column")
    return value


def populate(record: Record, row: dict[str, Any]) -> None:
    """Write a result row (keyed by column) into the record's slots."""
    columns = record_columns(type(record))
    data = {slot: row[column] for column, slot in columns if column in row}
    fresh = type(record).model_validate(data)
    for slot in data:
        setattr(record, slot, getattr(fresh, slot))


def from_row(record_type: type[Record], row: dict[str, Any]) -> Record:
    """Allocate a fresh record from a result row."""
    columns = record_columns(record_type)
    return record_type.model_validate({slot: row[column] for column, slot in columns if column in row})
