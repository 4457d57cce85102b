# erpcore

The data layer of a plugin-based ERP, as a plain Python library.

## Modules

- `erpcore.fields`: typed field values (`FieldType`, with kinds from
  `FieldKind`: string, 32-bit integer, float, bool, single reference, list of
  references), record ids (`SingleId`, `MultipleIds`, with `+` and `-` to join
  and subtract ids and `remove_dup()` to drop repeated ones), and the
  descriptions of fields: `FieldDescriptor`, `FieldCompute`, `FieldReference`
  with `O2M` or `M2O` links, and dependency steps `SameModel`, `AnotherModel`
  and `CurrentFieldAnotherModel`. `RequiredFieldEmpty` is raised for a required
  field that has no value.
- `erpcore.models`: `MapOfFields` holds the values of one record, keyed by field
  name. `ModelDescriptor` describes a model. `FinalInternalField` merges the
  `InternalField` or `FieldDescriptor` declarations of one field. It raises
  `ValueError` when the first declaration has no default value, or when a later
  one gives a default of another kind.
- `erpcore.cache_models`: `CacheField`, `CacheModel` (one record) and
  `CacheModels` (every record of one model). `CacheModels` also tracks dirty
  fields and fields waiting to be recomputed. `Dirty` and `Update` choose, on
  each write, whether a change is marked dirty and whether a value already in
  the cache is overwritten.
- `erpcore.cache`: `Cache` groups one `CacheModels` per model name. It offers
  lookups, writes, dirty tracking, recompute tracking and `export_cache()` /
  `import_cache()`. Asking for an unknown model raises `KeyError`.
- `erpcore.dbvalues`: stored values (`DbValue` with kinds from `DbKind`), the
  right-hand sides of search conditions (`RightTuple`) and `SearchOperator`.
- `erpcore.table`: `Row` and `Table`. A table hands out increasing ids, and
  `Row.is_valid` checks a row against one condition.
- `erpcore.database`: the abstract `Database` interface and `CacheDatabase`, an
  in-memory implementation. Search domains are built from `SearchTuple`, `And`,
  `Or` and `Nothing`. `CacheDatabase` supports named savepoints and
  transactions. Misuse of savepoints or transactions raises `DatabaseError`.
- `erpcore.config`: `Config` and `DatabaseConfig`, read from a TOML file and
  `ERP_` environment variables.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## A short tour

```python
from erpcore.fields import FieldType, MultipleIds
from erpcore.models import MapOfFields
from erpcore.dbvalues import RightTuple, SearchOperator
from erpcore.database import CacheDatabase, SearchTuple

ids = MultipleIds([1, 2, 2, 3])
ids.remove_dup()                  # ids.ids == [1, 2, 3]

values = MapOfFields()
values.insert("name", "Alice")    # stored as a string FieldType
values.insert("age", 42)          # stored as an integer FieldType

db = CacheDatabase()
db.initialize()
db.start_transaction()
new_ids = db.create("contact", [values])        # [1]
db.commit_transaction()

domain = SearchTuple("age", SearchOperator.GREATER, RightTuple.of(FieldType.from_value(40)))
db.browse("contact", domain, None)              # [1]
db.search("contact", ["id", "name"], domain, None)
```

A condition on a single field does not use the model manager argument, so the
example passes `None`. A condition whose path runs through linked fields, such
as `("partner", "name")`, needs an object whose `get_model(name)` returns models
that have a `name` and a `get_internal_field(field_name)` method.

`savepoint(name)` saves a copy of every table. `savepoint_rollback(name)` puts
that copy back. `savepoint_commit(name)` drops it. Either call raises
`DatabaseError` if the latest savepoint has another name or there is none.
`rollback_transaction()` and `commit_transaction()` go back to the latest
`start_transaction()`.

## Configuration

`Config.load(path, environ=None)` reads a TOML file and then applies environment
variables, from `os.environ` by default. The database settings `url`, `name` and
`schema` default to `localhost`, `erp` and `public`. `user`, `password` and the
top-level `plugin_path` must be given. A variable such as `ERP_DATABASE_NAME`
overrides `database.name`. A missing file, a malformed file or a missing setting
raises `erpcore.config.ConfigError`.

`Config.try_default()` prints the path it uses. It then loads `config.toml`
from the user configuration directory of the application `erp`, as given by
`platformdirs`.

## What this package does not do

- It has no database server backend. `CacheDatabase` is the only `Database`
  implementation, and it keeps everything in memory.
- It has no model manager, record environment or plugin loading. Searches
  across linked fields need a model lookup that you supply.
- It has no command-line program.