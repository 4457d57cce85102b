import pytest

from erpcore.cache_models import (
    CacheField,
    CacheModel,
    CacheModels,
    Dirty,
    RecordsNotFoundError,
    Update,
)
from erpcore.fields import FieldKind, FieldType
from erpcore.models import MapOfFields


def s(text):
    return FieldType(FieldKind.STRING, text)


def i(n):
    return FieldType(FieldKind.INTEGER, n)


# Cases carried over from the source tests


def test_cache_field():
    cache_field = CacheField()
    assert cache_field.get() is None
    cache_field.set(i(1))
    assert cache_field.get() == i(1)


def test_access_valid_fields():
    fields = {name: CacheField() for name in ("test", "test2", "test3", "test4")}
    model = CacheModel(1, fields)
    test_field = model.get_field("test")
    assert test_field is not None
    assert test_field.get() is None
    test_field.set(s("test"))
    assert test_field.get() == s("test")
    assert model.get_field("test").get() == s("test")


def test_access_invalid_field_should_not_panic():
    model = CacheModel(1, {"test": CacheField()})
    assert model.get_field("test2") is None


# Further behaviour


def test_cache_field_clear():
    f = CacheField(s("x"))
    assert f.is_set()
    f.clear()
    assert not f.is_set()
    assert f.get() is None


def test_records_not_found_message():
    err = RecordsNotFoundError("partner", [1, 2])
    assert str(err) == "Records [1, 2] not found for model partner"


def test_cache_model_insert_field_changes():
    model = CacheModel(1)
    cache_field, changed = model.insert_field("name", s("a"), Update.UPDATE_IF_EXISTS)
    assert changed and cache_field.get() == s("a")
    _, changed = model.insert_field("name", s("a"), Update.UPDATE_IF_EXISTS)
    assert not changed
    _, changed = model.insert_field("name", None, Update.UPDATE_IF_EXISTS)
    assert changed and model.get_field("name").get() is None


def test_cache_model_insert_none_new_field_not_changed():
    model = CacheModel(1)
    _, changed = model.insert_field("name", None, Update.UPDATE_IF_EXISTS)
    assert changed is False
    assert model.contains("name")


def test_cache_model_not_update_if_exists():
    model = CacheModel(1)
    model.insert_field("name", s("a"), Update.UPDATE_IF_EXISTS)
    assert model.insert_field("name", s("b"), Update.NOT_UPDATE_IF_EXISTS) is None
    assert model.get_field("name").get() == s("a")


def test_cache_model_insert_fields_and_maps():
    model = CacheModel(1)
    model.insert_field("a", s("x"), Update.UPDATE_IF_EXISTS)
    changed = model.insert_fields(
        MapOfFields({"a": s("x"), "b": i(2)}), Update.UPDATE_IF_EXISTS
    )
    assert changed == ["b"]
    assert model.get_map_of_fields(["b", "missing"]).fields == {"b": i(2)}
    assert model.to_map_of_fields().fields == {"a": s("x"), "b": i(2)}


def test_cache_models_insert_and_dirty():
    cm = CacheModels("partner")
    assert cm.insert_field("name", 1, s("a"), Dirty.UPDATE_DIRTY, Update.UPDATE_IF_EXISTS)
    assert cm.is_record_present(1)
    assert cm.is_dirty(1)
    assert cm.is_field_dirty("name", 1)
    assert cm.get_dirty(1) == {"name"}
    assert not cm.insert_field(
        "name", 1, s("b"), Dirty.UPDATE_DIRTY, Update.NOT_UPDATE_IF_EXISTS
    )


def test_cache_models_not_update_dirty():
    cm = CacheModels("partner")
    cm.insert_field("name", 1, s("a"), Dirty.NOT_UPDATE_DIRTY, Update.UPDATE_IF_EXISTS)
    assert not cm.is_dirty(1)
    assert cm.get_dirty(1) is None
    assert cm.get_model(1).get_field("name").get() == s("a")


def test_cache_models_insert_fields_dirty():
    cm = CacheModels("partner")
    cm.insert_fields(1, MapOfFields({"a": s("x"), "b": None}), Dirty.UPDATE_DIRTY, Update.UPDATE_IF_EXISTS)
    assert cm.get_dirty(1) == {"a"}


def test_get_dirty_fields_filters():
    cm = CacheModels("partner")
    cm.insert_field("a", 1, s("x"), Dirty.UPDATE_DIRTY, Update.UPDATE_IF_EXISTS)
    cm.insert_field("b", 1, i(5), Dirty.UPDATE_DIRTY, Update.UPDATE_IF_EXISTS)
    cm.insert_field("b", 2, i(6), Dirty.UPDATE_DIRTY, Update.UPDATE_IF_EXISTS)
    result = cm.get_dirty_fields(lambda name: name == "a")
    assert list(result) == [1]
    assert result[1].fields == {"a": s("x")}
    by_fields = cm.get_dirty_fields_for_fields(["b"])
    assert by_fields[1].fields == {"b": i(5)}
    assert by_fields[2].fields == {"b": i(6)}


def test_get_dirty_records():
    cm = CacheModels("partner")
    cm.insert_field("a", 1, s("x"), Dirty.UPDATE_DIRTY, Update.UPDATE_IF_EXISTS)
    cm.insert_field("a", 2, s("y"), Dirty.UPDATE_DIRTY, Update.UPDATE_IF_EXISTS)
    result = cm.get_dirty_records([2, 3], lambda name: True)
    assert list(result) == [2]
    assert result[2].fields == {"a": s("y")}


def test_clear_dirty_variants():
    cm = CacheModels("partner")
    for rid in (1, 2, 3):
        cm.insert_field("a", rid, s("x"), Dirty.UPDATE_DIRTY, Update.UPDATE_IF_EXISTS)
        cm.insert_field("b", rid, s("y"), Dirty.UPDATE_DIRTY, Update.UPDATE_IF_EXISTS)
    cm.clear_dirty([1])
    assert not cm.is_dirty(1)
    cm.clear_dirty_records(["a"], [2])
    assert cm.get_dirty(2) == {"b"}
    cm.clear_dirty_records(["b"], [2])
    assert not cm.is_dirty(2)
    cm.clear_all_dirty()
    assert cm.dirty == {}


def test_recompute_tracking():
    cm = CacheModels("partner")
    cm.add_to_recompute(["total"], [1, 2])
    assert cm.is_to_recompute("total", 1)
    assert cm.get_to_recompute("total") == {1, 2}
    cm.remove_to_recompute(["total"], [1])
    assert not cm.is_to_recompute("total", 1)
    cm.remove_to_recompute(["total"], [2])
    assert cm.get_to_recompute("total") is None
    assert not cm.is_to_recompute("other", 1)


def test_get_model_or_create_reuses():
    cm = CacheModels("partner")
    first = cm.get_model_or_create(4)
    assert cm.get_model_or_create(4) is first
    assert first.id == 4
    assert cm.get_model(5) is None


@pytest.mark.parametrize("update", [Update.UPDATE_IF_EXISTS, Update.NOT_UPDATE_IF_EXISTS])
def test_insert_into_new_record_always_applies(update):
    cm = CacheModels("partner")
    assert cm.insert_field("a", 9, s("v"), Dirty.NOT_UPDATE_DIRTY, update)
    assert cm.get_model(9).get_field("a").get() == s("v")