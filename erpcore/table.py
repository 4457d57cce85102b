"""Rows and tables of the in-memory database."""

from __future__ import annotations

from dataclasses import dataclass, field

from erpcore.dbvalues import DbKind, DbValue, RightTuple, SearchOperator

_ORDERED_KINDS = frozenset(
    {DbKind.INTEGER, DbKind.UINTEGER, DbKind.FLOAT, DbKind.BOOLEAN}
)

_ORDERINGS = {
    SearchOperator.GREATER: lambda cell, right: cell > right,
    SearchOperator.GREATER_EQUAL: lambda cell, right: cell >= right,
    SearchOperator.LOWER: lambda cell, right: cell < right,
    SearchOperator.LOWER_EQUAL: lambda cell, right: cell <= right,
}


@dataclass
class Row:
    """One stored record: its id and a value, possibly empty, per column."""

    id: int = 0
    cells: dict[str, DbValue | None] = field(default_factory=dict)

    def get_cell(self, field_name: str) -> DbValue | None:
        return self.cells.get(field_name)

    def set_cell(self, field_name: str, cell: DbValue | None) -> None:
        self.cells[field_name] = cell

    def is_valid(
        self, field_name: str, operator: SearchOperator, right: RightTuple
    ) -> bool:
        """Tell whether this row satisfies one search condition."""
        cell = self.get_cell(field_name)
        if operator is SearchOperator.EQUAL:
            if cell is None:
                return right.is_none
            return cell.matches(right)
        if operator is SearchOperator.NOT_EQUAL:
            if cell is None:
                return not right.is_none
            return not cell.matches(right)
        right_value = right.value
        if (
            cell is None
            or right_value is None
            or cell.kind is not right_value.kind
            or cell.kind not in _ORDERED_KINDS
        ):
            return False
        return _ORDERINGS[operator](cell.value, right_value.value)


@dataclass
class Table:
    """Rows of one model, with ids handed out in increasing order."""

    last_id: int = 0
    rows: dict[int, Row] = field(default_factory=dict)

    def get_row(self, id: int) -> Row | None:
        return self.rows.get(id)

    def add_row(self, row: Row) -> int:
        """Store a row under the next id, recording that id in its cells."""
        self.last_id += 1
        id = self.last_id
        cells = dict(row.cells)
        cells["id"] = DbValue(DbKind.UINTEGER, id)
        self.rows[id] = Row(id, cells)
        return id

    def delete_row(self, id: int) -> None:
        self.rows.pop(id, None)