"""Maps of field values, model descriptions and merged field definitions."""

from __future__ import annotations

import copy
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from erpcore.fields import (
    FieldCompute,
    FieldDepend,
    FieldDescriptor,
    FieldKind,
    FieldReference,
    FieldType,
)


@dataclass
class MapOfFields:
    """Field values of one record, keyed by field name. A value may be None."""

    fields: dict[str, FieldType | None] = field(default_factory=dict)

    def get(self, field_name: str) -> Any:
        """Return the raw value of a field; raise KeyError if absent or empty."""
        value = self.get_option(field_name)
        if value is None:
            raise KeyError(f"Field {field_name} has no value")
        return value

    def get_option(self, field_name: str) -> Any:
        """Return the raw value of a field, or None if absent or empty."""
        value = self.fields.get(field_name)
        return None if value is None else value.value

    def insert(self, field_name: str, value: Any) -> None:
        """Store a value, converting plain Python values to a FieldType."""
        self.fields[field_name] = FieldType.from_value(value)

    def insert_option(self, field_name: str, value: Any) -> None:
        """Store a value, or an empty value when given None."""
        if value is None:
            self.insert_none(field_name)
        else:
            self.insert(field_name, value)

    def insert_none(self, field_name: str) -> None:
        self.fields[field_name] = None

    def keys(self) -> list[str]:
        return list(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, field_name: object) -> bool:
        return field_name in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)


@dataclass
class ModelDescriptor:
    """Description of a model as declared by one model definition."""

    name: str
    description: str | None = None
    fields: list[FieldDescriptor] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.description is None:
            self.description = self.name


@dataclass
class InternalField:
    """A field as declared in a single model definition."""

    name: str
    default_value: FieldType | None = None
    description: str | None = None
    required: bool = False
    compute: FieldCompute | None = None
    field_ref: FieldReference | None = None


@dataclass
class FinalInternalField:
    """A field combining every declaration of it across model definitions."""

    name: str
    description: str = ""
    required: bool = False
    default_value: FieldType = field(
        default_factory=lambda: FieldType(FieldKind.STRING, "")
    )
    compute: FieldCompute | None = None
    inverse: FieldReference | None = None
    depends: list[list[FieldDepend]] = field(default_factory=list)
    _is_init: bool = field(default=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.description:
            self.description = self.name

    def is_stored(self) -> bool:
        return self.default_value.kind is not FieldKind.REFS

    def register_internal_field(
        self, field_descriptor: InternalField | FieldDescriptor, type_id: Any
    ) -> None:
        """Merge one declaration of this field into the combined definition."""
        default_value = field_descriptor.default_value
        if default_value is not None:
            if self._is_init and self.default_value.kind is not default_value.kind:
                raise ValueError(
                    "Default values are of different type "
                    f"(name: {self.name}, first default value: {self.default_value}, "
                    f"second default value: {default_value}"
                )
            self.default_value = default_value
        elif not self._is_init:
            raise ValueError(
                "First register should have a default value. This is needed to "
                f"identify the type of the field (name: {field_descriptor.name})."
            )
        if field_descriptor.description is not None:
            self.description = field_descriptor.description
        self.required = field_descriptor.required
        new_compute = field_descriptor.compute
        if new_compute is not None:
            if self.compute is not None:
                self.compute.type_id = type_id
                merged = self.compute.depends + list(new_compute.depends)
                self.compute.depends = list(dict.fromkeys(merged))
            else:
                self.compute = FieldCompute(
                    type_id=type_id, depends=list(new_compute.depends)
                )
        if field_descriptor.field_ref is not None:
            self.inverse = copy.deepcopy(field_descriptor.field_ref)
        self._is_init = True