"""Values as stored by a database, and the right-hand sides of search conditions."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from erpcore.fields import FieldKind, FieldType, MultipleIds, SingleId


class SearchOperator(enum.Enum):
    """Comparison operator of a search condition."""

    EQUAL = "="
    NOT_EQUAL = "!="
    GREATER = ">"
    GREATER_EQUAL = ">="
    LOWER = "<"
    LOWER_EQUAL = "<="


class DbKind(enum.Enum):
    """The kinds of value a database cell may hold."""

    STRING = "string"
    INTEGER = "integer"
    UINTEGER = "uinteger"
    FLOAT = "float"
    BOOLEAN = "boolean"


_FIELD_TO_DB = {
    FieldKind.STRING: DbKind.STRING,
    FieldKind.INTEGER: DbKind.INTEGER,
    FieldKind.FLOAT: DbKind.FLOAT,
    FieldKind.BOOL: DbKind.BOOLEAN,
    FieldKind.REF: DbKind.UINTEGER,
}
_DB_TO_FIELD = {db: kind for kind, db in _FIELD_TO_DB.items()}


@dataclass(frozen=True)
class DbValue:
    """A typed database cell value. Equal only if kind and value match."""

    kind: DbKind
    value: Any

    def __post_init__(self) -> None:
        kind, value = self.kind, self.value
        if kind is DbKind.STRING and not isinstance(value, str):
            raise TypeError(f"String value needs a str, got {value!r}")
        if kind in (DbKind.INTEGER, DbKind.UINTEGER):
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"Integer value needs an int, got {value!r}")
            if kind is DbKind.UINTEGER and value < 0:
                raise ValueError(f"Unsigned value cannot be negative, got {value}")
        if kind is DbKind.FLOAT:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(f"Float value needs a number, got {value!r}")
            object.__setattr__(self, "value", float(value))
        if kind is DbKind.BOOLEAN and not isinstance(value, bool):
            raise TypeError(f"Boolean value needs a bool, got {value!r}")

    @classmethod
    def from_field(cls, field: FieldType) -> DbValue:
        """Convert a field value; lists of references cannot be stored in a cell."""
        if field.kind is FieldKind.REFS:
            raise ValueError("Cannot convert Refs fields to database objet")
        return cls(_FIELD_TO_DB[field.kind], field.value)

    def to_field(self) -> FieldType:
        return FieldType(_DB_TO_FIELD[self.kind], self.value)

    def to_right(self) -> RightTuple:
        return RightTuple(value=self)

    def matches(self, right: RightTuple) -> bool:
        """Tell whether this value equals the right side, or is one of its values."""
        if right.value is not None:
            return self == right.value
        if right.array is not None:
            return self in right.array
        return False

    def __str__(self) -> str:
        return str(self.to_field())


def _as_db_value(value: DbValue | FieldType) -> DbValue:
    if isinstance(value, DbValue):
        return value
    if isinstance(value, FieldType):
        return DbValue.from_field(value)
    raise TypeError(f"Expected a database or field value, got {value!r}")


@dataclass(frozen=True)
class RightTuple:
    """Right-hand side of a search condition: one value, a list of values, or nothing."""

    value: DbValue | None = None
    array: tuple[DbValue, ...] | None = None

    def __post_init__(self) -> None:
        if self.value is not None and self.array is not None:
            raise ValueError("A right side holds either a value or an array, not both")
        if self.value is not None:
            object.__setattr__(self, "value", _as_db_value(self.value))
        if self.array is not None:
            object.__setattr__(
                self, "array", tuple(_as_db_value(v) for v in self.array)
            )

    @classmethod
    def none(cls) -> RightTuple:
        return cls()

    @classmethod
    def of(cls, value: DbValue | FieldType) -> RightTuple:
        return cls(value=_as_db_value(value))

    @classmethod
    def of_array(cls, values: Iterable[DbValue | FieldType]) -> RightTuple:
        return cls(array=tuple(values))

    @classmethod
    def from_ids(cls, ids: Any) -> RightTuple:
        """A single id gives one unsigned value; several ids give an array."""
        if isinstance(ids, SingleId):
            return cls(value=DbValue(DbKind.UINTEGER, ids.id))
        if isinstance(ids, int) and not isinstance(ids, bool):
            return cls(value=DbValue(DbKind.UINTEGER, ids))
        if isinstance(ids, MultipleIds):
            ids = ids.ids
        return cls(array=tuple(DbValue(DbKind.UINTEGER, i) for i in ids))

    @property
    def is_none(self) -> bool:
        return self.value is None and self.array is None