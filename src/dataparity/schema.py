"""Semantic types shared by every backend.

Each backend has its own opinion about types: pandas turns an integer
column with missing values into floats, polars emits ``large_string``
columns, DuckDB names pivoted columns after the values it found and
so on. Comparing results across backends requires a common ground.

The :class:`SemanticType` enum is that common ground: a small set of
types (integer, float, string, boolean, null) each bound to exactly one
Arrow type. An operation declares the :class:`Schema` of its output in
terms of semantic types, and :func:`normalize` is the one and only
step that turns whatever a backend produced into a table of that shape.

>>> import pyarrow as pa
>>> schema = Schema([("name", SemanticType.STRING), ("n", SemanticType.INTEGER)])
>>> data = pa.table({"n": pa.array([1.0, None]), "name": pa.array(["a", "b"], pa.large_string())})
>>> normalize(data, schema)
pyarrow.Table
name: string
n: int64
----
name: [["a","b"]]
n: [[1,null]]
"""

import enum
from typing import Iterable, Iterator

import pyarrow as pa

__all__ = ("SemanticType", "Schema", "SchemaError", "normalize")


class SchemaError(ValueError):
    """A table does not fit the schema it was expected to have."""


class SemanticType(enum.Enum):
    """The types a normalized column can have."""

    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    BOOLEAN = "boolean"
    NULL = "null"

    @property
    def arrow_type(self) -> pa.DataType:
        """The Arrow type used to store columns of this type."""
        return _ARROW_TYPES[self]


_ARROW_TYPES = {
    SemanticType.INTEGER: pa.int64(),
    SemanticType.FLOAT: pa.float64(),
    SemanticType.STRING: pa.string(),
    SemanticType.BOOLEAN: pa.bool_(),
    SemanticType.NULL: pa.null(),
}


class Schema:
    """Ordered list of named columns, each with a :class:`SemanticType`."""

    def __init__(self, columns: Iterable[tuple[str, SemanticType]]) -> None:
        """
        :param columns: ``(name, type)`` pairs in the order the
                        columns must appear in the normalized table.
        """
        self.columns = tuple(columns)
        names = [name for name, _ in self.columns]
        if len(set(names)) != len(names):
            raise SchemaError(f"Duplicate column names in schema: {names}")
        for name, semantic_type in self.columns:
            if not isinstance(semantic_type, SemanticType):
                raise SchemaError(f"Column {name!r} has invalid type {semantic_type!r}")

    @property
    def names(self) -> list[str]:
        """Column names in declared order."""
        return [name for name, _ in self.columns]

    def to_arrow(self) -> pa.Schema:
        """The Arrow schema matching this semantic schema."""
        return pa.schema(
            [pa.field(name, semantic_type.arrow_type) for name, semantic_type in self.columns]
        )

    def __iter__(self) -> Iterator[tuple[str, SemanticType]]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schema):
            return NotImplemented
        return self.columns == other.columns

    def __hash__(self) -> int:
        return hash(self.columns)

    def __str__(self) -> str:
        cols = ", ".join(f"{name} {semantic_type.name}" for name, semantic_type in self.columns)
        return f"Schema({cols})"


def normalize(table: pa.Table, schema: Schema) -> pa.Table:
    """Coerce a backend result to the declared schema.

    Columns are picked by name and emitted in the order
    declared by ``schema``, every column is cast to the Arrow
    type of its semantic type and any metadata the backend
    attached to the table (like the pandas index) is dropped.

    Extra columns are discarded, missing ones raise :class:`SchemaError`.
    The input table is never modified.
    """
    if isinstance(table, pa.RecordBatch):
        table = pa.Table.from_batches([table])

    available = table.column_names
    missing = [name for name in schema.names if name not in available]
    if missing:
        raise SchemaError(f"Missing columns {missing}, got {available}")

    arrays = []
    for name, semantic_type in schema:
        if available.count(name) > 1:
            raise SchemaError(f"Column {name!r} appears more than once")
        column = table.column(name)
        try:
            arrays.append(column.cast(semantic_type.arrow_type))
        except (pa.ArrowInvalid, pa.ArrowNotImplementedError) as e:
            raise SchemaError(
                f"Column {name!r} of type {column.type} can't be cast to {semantic_type.name}: {e}"
            ) from e

    return pa.Table.from_arrays(arrays, schema=schema.to_arrow())
