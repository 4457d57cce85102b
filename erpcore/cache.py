"""Per-model caches of record values, grouped for a whole environment."""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any

from erpcore.cache_models import CacheModels, Dirty, FieldFilter, Update
from erpcore.fields import FieldType, MultipleIds, SingleId
from erpcore.models import MapOfFields


def _id_list(ids: Any) -> list[int]:
    """Return the ids held by an id object, a single int or an iterable of ints."""
    if isinstance(ids, (SingleId, MultipleIds)):
        return list(ids.ids)
    if isinstance(ids, int) and not isinstance(ids, bool):
        return [ids]
    return list(ids)


class Cache:
    """Cache of every known model, keyed by model name."""

    def __init__(self, model_names: Iterable[str] = ()) -> None:
        self._cache: dict[str, CacheModels] = {
            name: CacheModels(name) for name in model_names
        }

    def is_record_present(self, model_name: str, id: int) -> bool:
        """Tell whether a record is cached; raise KeyError for an unknown model."""
        return self.get_cache_models(model_name).is_record_present(id)

    def get_cache_models(self, model_name: str) -> CacheModels:
        """Return the cache of a model; raise KeyError if the model is unknown."""
        try:
            return self._cache[model_name]
        except KeyError:
            raise KeyError(f"Model {model_name} not found") from None

    def get_field_from_cache(
        self, model_name: str, field_name: str, id: int
    ) -> FieldType | None:
        """Return the cached value of a field of a record, or None."""
        cache_models = self._cache.get(model_name)
        if cache_models is None:
            return None
        model = cache_models.get_model(id)
        if model is None:
            return None
        cache_field = model.get_field(field_name)
        return None if cache_field is None else cache_field.get()

    def get_ids_not_in_cache(
        self, model_name: str, field_name: str, ids: Iterable[int]
    ) -> list[int]:
        """Return the ids whose field is not cached, in the order given."""
        cache_models = self._cache.get(model_name)
        if cache_models is None:
            return []
        result = []
        for id in _id_list(ids):
            model = cache_models.get_model(id)
            if model is None or model.get_field(field_name) is None:
                result.append(id)
        return result

    def is_field_in_cache(self, model_name: str, field_name: str, id: int) -> bool:
        cache_models = self._cache.get(model_name)
        if cache_models is None:
            return False
        model = cache_models.get_model(id)
        return model is not None and model.get_field(field_name) is not None

    def insert_field_in_cache(
        self,
        model_name: str,
        field_name: str,
        ids: Iterable[int],
        field_value: FieldType | None,
        update_dirty: Dirty,
        update_if_exists: Update,
    ) -> list[int]:
        """Store one value for several records; return the ids that were written."""
        cache_models = self.get_cache_models(model_name)
        updated = [
            id
            for id in _id_list(ids)
            if cache_models.insert_field(
                field_name, id, field_value, update_dirty, update_if_exists
            )
        ]
        cache_models.remove_to_recompute([field_name], updated)
        return updated

    def insert_fields_in_cache(
        self,
        model_name: str,
        id: int,
        field_values: MapOfFields,
        update_dirty: Dirty,
        update_if_exists: Update,
    ) -> None:
        """Store several values for one record."""
        self.get_cache_models(model_name).insert_fields(
            id, field_values, update_dirty, update_if_exists
        )

    # Dirty tracking

    def get_dirty_models(
        self, model_name: str, field_filter: FieldFilter
    ) -> dict[int, MapOfFields]:
        """Return dirty values of a model, keeping fields the filter accepts."""
        return self.get_cache_models(model_name).get_dirty_fields(field_filter)

    def get_dirty_fields(
        self, model_name: str, fields: Iterable[str]
    ) -> dict[int, MapOfFields]:
        """Return dirty values of a model restricted to the given fields."""
        return self.get_cache_models(model_name).get_dirty_fields_for_fields(fields)

    def get_dirty_records(
        self, model_name: str, ids: Iterable[int], field_filter: FieldFilter
    ) -> dict[int, MapOfFields]:
        """Return dirty values of the given records."""
        return self.get_cache_models(model_name).get_dirty_records(
            _id_list(ids), field_filter
        )

    def clear_dirty_model(self, model_name: str) -> None:
        self.get_cache_models(model_name).clear_all_dirty()

    def clear_dirty_fields(
        self, model_name: str, fields: Iterable[str], ids: Any
    ) -> None:
        """Unmark the given fields of the given records as dirty."""
        self.get_cache_models(model_name).clear_dirty_records(fields, _id_list(ids))

    def clear_dirty_records(self, model_name: str, ids: Any) -> None:
        """Unmark every dirty field of the given records."""
        self.get_cache_models(model_name).clear_dirty(_id_list(ids))

    # Recompute tracking

    def is_field_to_recompute(self, model_name: str, field_name: str, id: int) -> bool:
        cache_models = self._cache.get(model_name)
        return cache_models is not None and cache_models.is_to_recompute(field_name, id)

    def get_ids_to_recompute(
        self, model_name: str, field_name: str, ids: Iterable[int]
    ) -> list[int]:
        """Return those of the given ids whose field awaits recomputation."""
        cache_models = self._cache.get(model_name)
        if cache_models is None:
            return []
        pending = cache_models.get_to_recompute(field_name)
        if pending is None:
            return []
        return [id for id in dict.fromkeys(_id_list(ids)) if id in pending]

    def add_ids_to_recompute(
        self, model_name: str, fields_name: Iterable[str], ids: Iterable[int]
    ) -> None:
        self.get_cache_models(model_name).add_to_recompute(fields_name, _id_list(ids))

    def remove_ids_from_recompute(
        self, model_name: str, fields_name: Iterable[str], ids: Iterable[int]
    ) -> None:
        self.get_cache_models(model_name).remove_to_recompute(
            fields_name, _id_list(ids)
        )

    # Export / import

    def export_cache(self) -> dict[str, CacheModels]:
        """Return an independent copy of the whole cache."""
        return copy.deepcopy(self._cache)

    def import_cache(self, cache: dict[str, CacheModels]) -> None:
        """Replace the whole cache with the given one."""
        self._cache = cache