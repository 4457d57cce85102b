"""In-memory caching of record field values, dirty state and pending recomputes."""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from erpcore.fields import FieldType
from erpcore.models import MapOfFields


class Dirty(enum.Enum):
    """Whether a cache write marks changed fields as dirty."""

    UPDATE_DIRTY = enum.auto()
    NOT_UPDATE_DIRTY = enum.auto()


class Update(enum.Enum):
    """Whether a cache write replaces a field that is already cached."""

    UPDATE_IF_EXISTS = enum.auto()
    NOT_UPDATE_IF_EXISTS = enum.auto()


class RecordsNotFoundError(Exception):
    """Some records of a model could not be found."""

    def __init__(self, model_name: str, ids: Iterable[int]) -> None:
        self.model_name = model_name
        self.ids = list(ids)
        super().__init__(f"Records {self.ids} not found for model {model_name}")


@dataclass
class CacheField:
    """Cached value of a single field."""

    value: FieldType | None = None

    def get(self) -> FieldType | None:
        return self.value

    def set(self, value: FieldType) -> None:
        self.value = value

    def is_set(self) -> bool:
        return self.value is not None

    def clear(self) -> None:
        self.value = None


@dataclass
class CacheModel:
    """Cached fields of one record."""

    id: int
    fields: dict[str, CacheField] = field(default_factory=dict)

    def contains(self, name: str) -> bool:
        return name in self.fields

    def get_field(self, name: str) -> CacheField | None:
        return self.fields.get(name)

    def get_map_of_fields(self, fields: Iterable[str]) -> MapOfFields:
        """Return the cached values of the given fields that are in cache."""
        return MapOfFields(
            {name: self.fields[name].get() for name in fields if name in self.fields}
        )

    def insert_field(
        self, name: str, field_value: FieldType | None, update_if_exists: Update
    ) -> tuple[CacheField, bool] | None:
        """Store a value; return the field and whether it changed, or None if skipped."""
        if update_if_exists is Update.NOT_UPDATE_IF_EXISTS and name in self.fields:
            return None
        cache_field = self.fields.setdefault(name, CacheField())
        changed = False
        if field_value is not None:
            if cache_field.get() is None or cache_field.get() != field_value:
                changed = True
                cache_field.set(field_value)
        elif cache_field.is_set():
            changed = True
            cache_field.clear()
        return cache_field, changed

    def insert_fields(self, fields: MapOfFields, update_if_exists: Update) -> list[str]:
        """Store several values; return the names of those that changed."""
        changed = []
        for name, value in fields.fields.items():
            result = self.insert_field(name, value, update_if_exists)
            if result is not None and result[1]:
                changed.append(name)
        return changed

    def to_map_of_fields(self) -> MapOfFields:
        return MapOfFields({name: f.get() for name, f in self.fields.items()})


FieldFilter = Callable[[str], bool]


@dataclass
class CacheModels:
    """Cache of every record of one model, with dirty and to-recompute tracking."""

    name: str
    models: dict[int, CacheModel] = field(default_factory=dict)
    dirty: dict[int, set[str]] = field(default_factory=dict)
    to_recompute: dict[str, set[int]] = field(default_factory=dict)

    def is_record_present(self, id: int) -> bool:
        return id in self.models

    def get_model(self, id: int) -> CacheModel | None:
        return self.models.get(id)

    def get_model_or_create(self, id: int) -> CacheModel:
        model = self.models.get(id)
        if model is None:
            model = self.models[id] = CacheModel(id)
        return model

    def insert_field(
        self,
        field_name: str,
        id: int,
        field_value: FieldType | None,
        update_dirty: Dirty,
        update_if_exists: Update,
    ) -> bool:
        """Store a value for a record; return False if it was skipped."""
        result = self.get_model_or_create(id).insert_field(
            field_name, field_value, update_if_exists
        )
        if result is None:
            return False
        if update_dirty is Dirty.UPDATE_DIRTY and result[1]:
            self.add_dirty(id, [field_name])
        return True

    def insert_fields(
        self,
        id: int,
        field_values: MapOfFields,
        update_dirty: Dirty,
        update_if_exists: Update,
    ) -> None:
        changed = self.get_model_or_create(id).insert_fields(
            field_values, update_if_exists
        )
        if update_dirty is Dirty.UPDATE_DIRTY and changed:
            self.add_dirty(id, changed)

    # Dirty tracking

    def _dirty_map(self, id: int, field_filter: FieldFilter) -> MapOfFields | None:
        model = self.models.get(id)
        dirty_fields = self.dirty.get(id)
        if model is None or dirty_fields is None:
            return None
        values = {
            name: model.fields[name].get()
            for name in dirty_fields
            if field_filter(name) and name in model.fields
        }
        return MapOfFields(values) if values else None

    def get_dirty_fields(self, field_filter: FieldFilter) -> dict[int, MapOfFields]:
        """Return dirty values of every record, keeping fields the filter accepts."""
        result = {}
        for id in self.dirty:
            values = self._dirty_map(id, field_filter)
            if values is not None:
                result[id] = values
        return result

    def get_dirty_fields_for_fields(self, fields: Iterable[str]) -> dict[int, MapOfFields]:
        wanted = set(fields)
        return self.get_dirty_fields(lambda name: name in wanted)

    def get_dirty_records(
        self, ids: Iterable[int], field_filter: FieldFilter
    ) -> dict[int, MapOfFields]:
        """Return dirty values of the given records, keeping fields the filter accepts."""
        result = {}
        for id in ids:
            values = self._dirty_map(id, field_filter)
            if values is not None:
                result[id] = values
        return result

    def add_dirty(self, id: int, fields: Iterable[str]) -> None:
        self.dirty.setdefault(id, set()).update(fields)

    def is_dirty(self, id: int) -> bool:
        return id in self.dirty

    def is_field_dirty(self, field_name: str, id: int) -> bool:
        return field_name in self.dirty.get(id, ())

    def get_dirty(self, id: int) -> set[str] | None:
        return self.dirty.get(id)

    def clear_all_dirty(self) -> None:
        self.dirty.clear()

    def clear_dirty(self, ids: Iterable[int]) -> None:
        for id in set(ids):
            self.dirty.pop(id, None)

    def clear_dirty_records(self, fields: Iterable[str], ids: Iterable[int]) -> None:
        """Unmark the given fields of the given records as dirty."""
        removed = set(fields)
        for id in ids:
            dirty_fields = self.dirty.get(id)
            if dirty_fields is None:
                continue
            dirty_fields -= removed
            if not dirty_fields:
                del self.dirty[id]

    # Recompute tracking

    def add_to_recompute(self, fields_name: Iterable[str], ids: Iterable[int]) -> None:
        ids = list(ids)
        for name in fields_name:
            self.to_recompute.setdefault(name, set()).update(ids)

    def remove_to_recompute(self, fields_name: Iterable[str], ids: Iterable[int]) -> None:
        removed = set(ids)
        for name in fields_name:
            pending = self.to_recompute.get(name)
            if pending is None:
                continue
            pending -= removed
            if not pending:
                del self.to_recompute[name]

    def is_to_recompute(self, field_name: str, id: int) -> bool:
        return id in self.to_recompute.get(field_name, ())

    def get_to_recompute(self, field_name: str) -> set[int] | None:
        return self.to_recompute.get(field_name)