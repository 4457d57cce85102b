import pytest

from erpcore.dbvalues import DbKind, DbValue, RightTuple, SearchOperator
from erpcore.table import Row, Table


def _int(value):
    return DbValue(DbKind.INTEGER, value)


def test_add_row_assigns_increasing_ids():
    table = Table()
    first = table.add_row(Row(cells={"name": DbValue(DbKind.STRING, "a")}))
    second = table.add_row(Row())
    assert (first, second) == (1, 2)
    row = table.get_row(first)
    assert row.id == first
    assert row.get_cell("id") == DbValue(DbKind.UINTEGER, first)
    assert row.get_cell("name") == DbValue(DbKind.STRING, "a")


def test_missing_row_and_delete():
    table = Table()
    id = table.add_row(Row())
    assert table.get_row(id + 1) is None
    table.delete_row(id)
    assert table.get_row(id) is None
    assert table.add_row(Row()) == id + 1


def test_get_and_set_cell():
    row = Row()
    assert row.get_cell("x") is None
    row.set_cell("x", _int(3))
    assert row.get_cell("x") == _int(3)
    row.set_cell("x", None)
    assert row.get_cell("x") is None


def test_equal_with_empty_values():
    row = Row(cells={"x": None})
    assert row.is_valid("x", SearchOperator.EQUAL, RightTuple.none())
    assert not row.is_valid("x", SearchOperator.EQUAL, RightTuple.of(_int(1)))
    assert not row.is_valid("x", SearchOperator.NOT_EQUAL, RightTuple.none())
    assert row.is_valid("x", SearchOperator.NOT_EQUAL, RightTuple.of(_int(1)))


def test_equal_with_set_value():
    row = Row(cells={"x": _int(1)})
    assert row.is_valid("x", SearchOperator.EQUAL, RightTuple.of(_int(1)))
    assert not row.is_valid("x", SearchOperator.EQUAL, RightTuple.none())
    assert row.is_valid("x", SearchOperator.NOT_EQUAL, RightTuple.of(_int(2)))
    assert row.is_valid("x", SearchOperator.NOT_EQUAL, RightTuple.none())
    assert row.is_valid("x", SearchOperator.EQUAL, RightTuple.of_array([_int(2), _int(1)]))


@pytest.mark.parametrize(
    "operator, right, expected",
    [
        (SearchOperator.GREATER, 1, True),
        (SearchOperator.GREATER, 2, False),
        (SearchOperator.GREATER_EQUAL, 2, True),
        (SearchOperator.LOWER, 2, False),
        (SearchOperator.LOWER, 3, True),
        (SearchOperator.LOWER_EQUAL, 2, True),
    ],
)
def test_ordering(operator, right, expected):
    row = Row(cells={"x": _int(2)})
    assert row.is_valid("x", operator, RightTuple.of(_int(right))) is expected


def test_ordering_needs_same_kind_and_no_strings():
    row = Row(cells={"x": _int(2), "s": DbValue(DbKind.STRING, "b")})
    assert not row.is_valid("x", SearchOperator.GREATER, RightTuple.of(DbValue(DbKind.UINTEGER, 1)))
    assert not row.is_valid(
        "s", SearchOperator.GREATER, RightTuple.of(DbValue(DbKind.STRING, "a"))
    )
    assert not row.is_valid("missing", SearchOperator.LOWER, RightTuple.of(_int(5)))
    assert not row.is_valid("x", SearchOperator.LOWER, RightTuple.none())