"""Field values, record identifiers and field descriptions."""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, Union

MISSING_ID = 2**32 - 1
"""Identifier returned when a position is outside the known ids."""

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


def _check_u32(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected an unsigned integer id, got {value!r}")
    if not 0 <= value <= MISSING_ID:
        raise ValueError(f"Id {value} is out of the unsigned 32-bit range")
    return value


class FieldKind(enum.Enum):
    """The kinds of value a field may hold."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOL = "bool"
    REF = "ref"
    REFS = "refs"


@dataclass(frozen=True)
class FieldType:
    """A typed field value. Two values are equal only if kind and value match."""

    kind: FieldKind
    value: Any

    def __post_init__(self) -> None:
        kind, value = self.kind, self.value
        if kind is FieldKind.STRING:
            if not isinstance(value, str):
                raise TypeError(f"String field needs a str, got {value!r}")
        elif kind is FieldKind.INTEGER:
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"Integer field needs an int, got {value!r}")
            if not _I32_MIN <= value <= _I32_MAX:
                raise ValueError(f"Integer {value} is out of the signed 32-bit range")
        elif kind is FieldKind.FLOAT:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(f"Float field needs a number, got {value!r}")
            object.__setattr__(self, "value", float(value))
        elif kind is FieldKind.BOOL:
            if not isinstance(value, bool):
                raise TypeError(f"Bool field needs a bool, got {value!r}")
        elif kind is FieldKind.REF:
            _check_u32(value)
        elif kind is FieldKind.REFS:
            if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
                raise TypeError(f"Refs field needs a sequence of ids, got {value!r}")
            object.__setattr__(self, "value", tuple(_check_u32(v) for v in value))

    @classmethod
    def from_value(cls, value: Any) -> FieldType:
        """Build a field value from a plain Python value, inferring its kind."""
        if isinstance(value, FieldType):
            return value
        if isinstance(value, enum.Enum):
            text = value.value if isinstance(value.value, str) else value.name
            return cls(FieldKind.STRING, text)
        if isinstance(value, str):
            return cls(FieldKind.STRING, value)
        if isinstance(value, bool):
            return cls(FieldKind.BOOL, value)
        if isinstance(value, int):
            return cls(FieldKind.INTEGER, value)
        if isinstance(value, float):
            return cls(FieldKind.FLOAT, value)
        if isinstance(value, SingleId):
            return cls(FieldKind.REF, value.id)
        if isinstance(value, MultipleIds):
            return cls(FieldKind.REFS, value.ids)
        if isinstance(value, (list, tuple)):
            return cls(FieldKind.REFS, value)
        raise TypeError(f"Cannot build a field value from {value!r}")

    def as_kind(self, kind: FieldKind) -> Any:
        """Return the raw value if this field is of the given kind, else None."""
        return self.value if self.kind is kind else None

    def __str__(self) -> str:
        kind, value = self.kind, self.value
        if kind is FieldKind.BOOL:
            return "true" if value else "false"
        if kind is FieldKind.FLOAT:
            if math.isnan(value):
                return "NaN"
            if math.isinf(value):
                return "inf" if value > 0 else "-inf"
            if value.is_integer():
                return str(int(value))
            return repr(value)
        if kind is FieldKind.REFS:
            return str(list(value))
        return str(value)


def _ids_of(value: Any) -> list[int]:
    """Collect the ids held by an id, a record set or an iterable of them."""
    if isinstance(value, SingleId):
        return [value.id]
    if isinstance(value, MultipleIds):
        return list(value.ids)
    if isinstance(value, int) and not isinstance(value, bool):
        return [_check_u32(value)]
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        result: list[int] = []
        for item in value:
            result.extend(_ids_of(item))
        return result
    raise TypeError(f"Cannot read ids from {value!r}")


class SingleId:
    """Identifier of exactly one record."""

    __slots__ = ("_id",)

    def __init__(self, id: int = 0) -> None:
        self._id = _check_u32(id)

    @property
    def id(self) -> int:
        return self._id

    @property
    def ids(self) -> list[int]:
        return [self._id]

    def get_id_at(self, pos: int) -> int:
        """Return the id at the given position, or MISSING_ID if out of range."""
        return self._id if pos == 0 else MISSING_ID

    def contains(self, id: int) -> bool:
        return self._id == id

    def is_empty(self) -> bool:
        return False

    def __contains__(self, id: object) -> bool:
        return self._id == id

    def __iter__(self) -> Iterator[SingleId]:
        yield SingleId(self._id)

    def __len__(self) -> int:
        return 1

    def __int__(self) -> int:
        return self._id

    def __add__(self, other: SingleId) -> MultipleIds:
        if not isinstance(other, SingleId):
            return NotImplemented
        if self._id != other._id:
            return MultipleIds([self._id, other._id])
        return MultipleIds([self._id])

    def __eq__(self, other: object) -> bool:
        if isinstance(other, bool):
            return NotImplemented
        if isinstance(other, int):
            return self._id == other
        if isinstance(other, (SingleId, MultipleIds)):
            return other.ids == [self._id]
        if isinstance(other, (list, tuple)):
            return len(other) == 1 and other[0] == self._id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return f"SingleId({self._id})"


class MultipleIds:
    """Ordered identifiers of any number of records."""

    __slots__ = ("ids",)
    __hash__ = None  # type: ignore[assignment]

    def __init__(self, ids: Iterable[int] = ()) -> None:
        self.ids: list[int] = [_check_u32(i) for i in ids]

    @classmethod
    def from_iterable(cls, items: Iterable[Any]) -> MultipleIds:
        """Merge ids, record sets and lists of them, dropping duplicates."""
        result = cls()
        for item in items:
            result += cls(_ids_of(item))
        result.remove_dup()
        return result

    def get_id_at(self, pos: int) -> int:
        """Return the id at the given position, or MISSING_ID if out of range."""
        if pos < 0 or pos >= len(self.ids):
            return MISSING_ID
        return self.ids[pos]

    def contains(self, id: int) -> bool:
        return id in self.ids

    def remove_dup(self) -> None:
        """Drop repeated ids, keeping the first occurrence of each."""
        self.ids = list(dict.fromkeys(self.ids))

    def is_empty(self) -> bool:
        return not self.ids

    def __contains__(self, id: object) -> bool:
        return id in self.ids

    def __iter__(self) -> Iterator[SingleId]:
        return (SingleId(i) for i in list(self.ids))

    def __len__(self) -> int:
        return len(self.ids)

    def __bool__(self) -> bool:
        return bool(self.ids)

    def __sub__(self, other: Any) -> MultipleIds:
        removed = set(_ids_of(other))
        return MultipleIds(i for i in self.ids if i not in removed)

    def __isub__(self, other: Any) -> MultipleIds:
        removed = set(_ids_of(other))
        self.ids = [i for i in self.ids if i not in removed]
        return self

    def __add__(self, other: Any) -> MultipleIds:
        result = MultipleIds(self.ids + _ids_of(other))
        result.remove_dup()
        return result

    def __iadd__(self, other: Any) -> MultipleIds:
        self.ids.extend(_ids_of(other))
        self.remove_dup()
        return self

    def __eq__(self, other: object) -> bool:
        if isinstance(other, bool):
            return NotImplemented
        if isinstance(other, int):
            return self.ids == [other]
        if isinstance(other, (SingleId, MultipleIds)):
            return self.ids == other.ids
        if isinstance(other, (list, tuple)):
            return self.ids == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"MultipleIds({self.ids!r})"


class RequiredFieldEmpty(Exception):
    """A required field of a record has no value."""

    def __init__(self, model_name: str, field_name: str, id: int) -> None:
        self.model_name = model_name
        self.field_name = field_name
        self.id = id
        super().__init__(
            f'Field "{model_name}"."{field_name}" for record "{id}" is required '
            "but is empty. This should not happen"
        )


@dataclass
class FieldCompute:
    """How a computed field is computed: the owning type and its dependencies."""

    type_id: Any
    depends: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SameModel:
    """Dependency on a field of the current model; always last in a path."""

    field_name: str


@dataclass(frozen=True)
class AnotherModel:
    """Step through a one-to-many field into another model."""

    target_model: str
    target_field: str


@dataclass(frozen=True)
class CurrentFieldAnotherModel:
    """Step through a many-to-one field into the model it targets."""

    target_model: str
    field_name: str


FieldDepend = Union[SameModel, AnotherModel, CurrentFieldAnotherModel]


@dataclass(frozen=True)
class O2M:
    """One-to-many link, naming the many-to-one field on the target model."""

    inverse_field: str


@dataclass
class M2O:
    """Many-to-one link, listing the one-to-many fields that mirror it."""

    inverse_fields: list[str] = field(default_factory=list)


@dataclass
class FieldReference:
    """Link from a field to another model."""

    target_model: str
    inverse_field: O2M | M2O


@dataclass
class FieldDescriptor:
    """Description of one field as declared by a single model definition."""

    name: str = ""
    default_value: FieldType | None = None
    description: str | None = None
    required: bool = False
    compute: FieldCompute | None = None
    field_ref: FieldReference | None = None