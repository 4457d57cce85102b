"""Database interface and an in-memory database used mainly for tests."""

from __future__ import annotations

import abc
import copy
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol, Union

from erpcore.dbvalues import DbKind, DbValue, RightTuple, SearchOperator
from erpcore.fields import FieldKind, O2M
from erpcore.models import FinalInternalField, MapOfFields
from erpcore.table import Row, Table


class DatabaseError(Exception):
    """A database operation could not be carried out."""


@dataclass(frozen=True)
class SearchTuple:
    """One search condition: a field path, an operator and a right-hand side.

    The path goes from the searched model through linked fields; its last
    element is the field that is compared.
    """

    path: tuple[str, ...]
    operator: SearchOperator
    right: RightTuple

    def __post_init__(self) -> None:
        path = (self.path,) if isinstance(self.path, str) else tuple(self.path)
        if not path:
            raise ValueError("A search path needs at least one field")
        object.__setattr__(self, "path", path)


@dataclass(frozen=True)
class And:
    """Records matching both sides."""

    left: SearchType
    right: SearchType


@dataclass(frozen=True)
class Or:
    """Records matching either side."""

    left: SearchType
    right: SearchType


@dataclass(frozen=True)
class Nothing:
    """A domain that matches no record."""


SearchType = Union[SearchTuple, And, Or, Nothing]

SearchResult = list[tuple[int, dict[str, Union[DbValue, None]]]]


class _Model(Protocol):
    name: str

    def get_internal_field(self, field_name: str) -> FinalInternalField: ...


class _ModelLookup(Protocol):
    def get_model(self, model_name: str) -> _Model: ...


class Database(abc.ABC):
    """Storage of records, searchable by domain, with transactions and savepoints."""

    @abc.abstractmethod
    def is_installed(self) -> bool:
        """Tell whether the database is already installed."""

    @abc.abstractmethod
    def initialize(self) -> None:
        """Install the database."""

    @abc.abstractmethod
    def browse(
        self, model_name: str, domain: SearchType, model_manager: _ModelLookup
    ) -> list[int]:
        """Return the ids of the records of a model that match a domain."""

    @abc.abstractmethod
    def search(
        self,
        model_name: str,
        fields: Sequence[str],
        domain: SearchType,
        model_manager: _ModelLookup,
    ) -> SearchResult:
        """Return ids and the given fields of the records that match a domain."""

    @abc.abstractmethod
    def create(self, model_name: str, data: Iterable[MapOfFields]) -> list[int]:
        """Create one record per map of values; return the new ids."""

    @abc.abstractmethod
    def update(self, model_name: str, data: Mapping[int, MapOfFields]) -> int:
        """Write values to existing records; return how many were updated."""

    @abc.abstractmethod
    def get_installed_plugins(self) -> list[str]:
        """Return the names of the installed plugins."""

    @abc.abstractmethod
    def savepoint(self, name: str) -> None:
        """Create a named savepoint."""

    @abc.abstractmethod
    def savepoint_commit(self, name: str) -> None:
        """Release the latest savepoint, keeping its changes."""

    @abc.abstractmethod
    def savepoint_rollback(self, name: str) -> None:
        """Undo every change made since the latest savepoint."""

    @abc.abstractmethod
    def start_transaction(self) -> None:
        """Start a transaction; call before creating any savepoint."""

    @abc.abstractmethod
    def commit_transaction(self) -> None:
        """Keep every change made since the latest transaction started."""

    @abc.abstractmethod
    def rollback_transaction(self) -> None:
        """Undo every change made since the latest transaction started."""


def _to_cell(value) -> DbValue | None:
    return None if value is None else DbValue.from_field(value)


class CacheDatabase(Database):
    """In-memory database. Searches scan every row; fine for tests."""

    def __init__(self) -> None:
        self._installed = False
        self._tables: dict[str, Table] = {}
        self._savepoints: list[tuple[str | None, dict[str, Table]]] = []

    # Searching

    def _rows_matching(
        self, model_name: str, domain: SearchType, model_manager: _ModelLookup
    ) -> list[int]:
        match domain:
            case And(left, right):
                left_ids = self._rows_matching(model_name, left, model_manager)
                right_ids = set(self._rows_matching(model_name, right, model_manager))
                return [id for id in left_ids if id in right_ids]
            case Or(left, right):
                left_ids = self._rows_matching(model_name, left, model_manager)
                right_ids = self._rows_matching(model_name, right, model_manager)
                return list(dict.fromkeys(left_ids + right_ids))
            case SearchTuple(path, operator, right):
                found = self._search_path(
                    model_name, path, operator, right, model_manager
                )
                return list(dict.fromkeys(found))
            case Nothing():
                return []
        raise TypeError(f"Unknown search domain {domain!r}")

    def _search_path(
        self,
        model_name: str,
        path: Sequence[str],
        operator: SearchOperator,
        right: RightTuple,
        model_manager: _ModelLookup,
    ) -> list[int]:
        current, *rest = path
        if not rest:
            return self._matching_ids(model_name, current, operator, right)
        model = model_manager.get_model(model_name)
        final_field = model.get_internal_field(current)
        reference = final_field.inverse
        if reference is None:
            raise ValueError(
                f"Field {model_name}.{current} doesn't have any inverse fields"
            )
        target = model_manager.get_model(reference.target_model)
        ids = self._search_path(target.name, rest, operator, right, model_manager)

        if final_field.default_value.kind is FieldKind.REF:
            return self._matching_ids(
                model.name,
                final_field.name,
                SearchOperator.EQUAL,
                RightTuple.from_ids(ids),
            )

        link = reference.inverse_field
        if not isinstance(link, O2M):
            raise ValueError(
                f"Field {target.name}.{current} is of type M2O. "
                "This should not be possible here"
            )
        table = self._tables[target.name]
        result = []
        for id in ids:
            cell = table.rows[id].get_cell(link.inverse_field)
            if cell is not None and cell.kind is DbKind.UINTEGER:
                result.append(cell.value)
        return result

    def _matching_ids(
        self,
        model_name: str,
        field_name: str,
        operator: SearchOperator,
        right: RightTuple,
    ) -> list[int]:
        table = self._tables.get(model_name)
        if table is None:
            return []
        return [
            id
            for id, row in table.rows.items()
            if row.is_valid(field_name, operator, right)
        ]

    # Database interface

    def is_installed(self) -> bool:
        return self._installed

    def initialize(self) -> None:
        self._installed = True

    def browse(
        self, model_name: str, domain: SearchType, model_manager: _ModelLookup
    ) -> list[int]:
        return self._rows_matching(model_name, domain, model_manager)

    def search(
        self,
        model_name: str,
        fields: Sequence[str],
        domain: SearchType,
        model_manager: _ModelLookup,
    ) -> SearchResult:
        ids = self.browse(model_name, domain, model_manager)
        if not ids:
            return []
        table = self._tables[model_name]
        result: SearchResult = []
        for id in ids:
            row = table.rows[id]
            values = {
                name: (
                    DbValue(DbKind.UINTEGER, id) if name == "id" else row.get_cell(name)
                )
                for name in fields
            }
            result.append((id, values))
        return result

    def create(self, model_name: str, data: Iterable[MapOfFields]) -> list[int]:
        table = self._tables.setdefault(model_name, Table())
        return [
            table.add_row(
                Row(0, {name: _to_cell(value) for name, value in values.fields.items()})
            )
            for values in data
        ]

    def update(self, model_name: str, data: Mapping[int, MapOfFields]) -> int:
        table = self._tables.get(model_name)
        if table is None:
            return 0
        updated = 0
        for id, values in data.items():
            row = table.get_row(id)
            if row is None:
                continue
            for name, value in values.fields.items():
                if name != "id":
                    row.set_cell(name, _to_cell(value))
            updated += 1
        return updated

    def get_installed_plugins(self) -> list[str]:
        if not self._installed:
            return []
        table = self._tables.get("plugin")
        if table is None:
            return []
        result = []
        for row in table.rows.values():
            state = row.get_cell("state")
            name = row.get_cell("name")
            if (
                state is not None
                and name is not None
                and state.kind is DbKind.STRING
                and name.kind is DbKind.STRING
                and state.value == "installed"
            ):
                result.append(name.value)
        return result

    # Transactions

    def _pop_savepoint(self, name: str) -> dict[str, Table]:
        if not self._savepoints:
            raise DatabaseError("Cannot commit a missing savepoint")
        last_name, tables = self._savepoints[-1]
        if last_name != name:
            raise DatabaseError(f"Last savepoint is not {name}")
        self._savepoints.pop()
        return tables

    def savepoint(self, name: str) -> None:
        self._savepoints.append((name, copy.deepcopy(self._tables)))

    def savepoint_commit(self, name: str) -> None:
        self._pop_savepoint(name)

    def savepoint_rollback(self, name: str) -> None:
        self._tables = self._pop_savepoint(name)

    def start_transaction(self) -> None:
        self._savepoints.append((None, copy.deepcopy(self._tables)))

    def commit_transaction(self) -> None:
        while self._savepoints:
            name, _ = self._savepoints.pop()
            if name is None:
                return
        raise DatabaseError("No savepoint left")

    def rollback_transaction(self) -> None:
        while self._savepoints:
            name, tables = self._savepoints.pop()
            if name is None:
                self._tables = tables
                return
        raise DatabaseError("No savepoint left")