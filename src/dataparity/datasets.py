"""Seed data shared by every backend.

All the operations of the catalog run on a handful of tiny tables
whose content is a literal constant of this module, so runs never
depend on network or files and always start from identical data.

The tables are:

* ``cars``: the first ten rows of the classic ``mtcars`` dataset.
* ``cars_new``: three more cars, the first of which is an exact
  duplicate of a row in ``cars``, used by the append operations.
* ``engines``: an engine description for 4 and 6 cylinders only,
  so that joining on ``cyl`` leaves 8 cylinders unmatched.
* ``cities``: population of three countries over three years,
  the long format input of pivot and unpivot.

>>> tables = load()
>>> sorted(tables)
['cars', 'cars_new', 'cities', 'engines']
>>> tables["cars"].num_rows, tables["cities"].num_rows
(10, 9)
"""

from typing import Any, Sequence

import pyarrow as pa

from .schema import Schema, SemanticType

__all__ = ("LoadError", "load", "build_table", "SEED_DATA")

INTEGER = SemanticType.INTEGER
FLOAT = SemanticType.FLOAT
STRING = SemanticType.STRING

CARS_SCHEMA = Schema(
    [
        ("model_name", STRING),
        ("mpg", FLOAT),
        ("cyl", INTEGER),
        ("disp", FLOAT),
        ("hp", INTEGER),
        ("wt", FLOAT),
        ("am", INTEGER),
        ("gear", INTEGER),
    ]
)

SEED_DATA: dict[str, tuple[Schema, list[tuple[Any, ...]]]] = {
    "cars": (
        CARS_SCHEMA,
        [
            ("Mazda RX4", 21.0, 6, 160.0, 110, 2.620, 1, 4),
            ("Mazda RX4 Wag", 21.0, 6, 160.0, 110, 2.875, 1, 4),
            ("Datsun 710", 22.8, 4, 108.0, 93, 2.320, 1, 4),
            ("Hornet 4 Drive", 21.4, 6, 258.0, 110, 3.215, 0, 3),
            ("Hornet Sportabout", 18.7, 8, 360.0, 175, 3.440, 0, 3),
            ("Valiant", 18.1, 6, 225.0, 105, 3.460, 0, 3),
            ("Duster 360", 14.3, 8, 360.0, 245, 3.570, 0, 3),
            ("Merc 240D", 24.4, 4, 146.7, 62, 3.190, 0, 4),
            ("Merc 230", 22.8, 4, 140.8, 95, 3.150, 0, 4),
            ("Merc 280", 19.2, 6, 167.6, 123, 3.440, 0, 4),
        ],
    ),
    "cars_new": (
        CARS_SCHEMA,
        [
            ("Valiant", 18.1, 6, 225.0, 105, 3.460, 0, 3),
            ("Merc 280C", 17.8, 6, 167.6, 123, 3.440, 0, 4),
            ("Fiat 128", 32.4, 4, 78.7, 66, 2.200, 1, 4),
        ],
    ),
    "engines": (
        Schema([("cyl", INTEGER), ("engine_type", STRING)]),
        [
            (4, "inline-4"),
            (6, "v6"),
        ],
    ),
    "cities": (
        Schema(
            [
                ("continent", STRING),
                ("country", STRING),
                ("year", INTEGER),
                ("population", FLOAT),
            ]
        ),
        [
            ("Europe", "France", 2000, 60.9),
            ("Europe", "France", 2010, 65.0),
            ("Europe", "France", 2020, 67.6),
            ("Europe", "Germany", 2000, 81.5),
            ("Europe", "Germany", 2010, 81.8),
            ("Europe", "Germany", 2020, 83.2),
            ("Asia", "Japan", 2000, 126.8),
            ("Asia", "Japan", 2010, 128.1),
            ("Asia", "Japan", 2020, 126.3),
        ],
    ),
}


class LoadError(Exception):
    """The literal seed data is malformed."""


def build_table(name: str, schema: Schema, rows: Sequence[Sequence[Any]]) -> pa.Table:
    """Build a :class:`pyarrow.Table` out of literal rows.

    Every row must provide exactly one value for each column
    of the schema, ``None`` is accepted as a null value.

    :param name: The name of the table, only used in error messages.
    :param schema: The schema of the table.
    :param rows: The rows, each one a sequence of values in column order.
    """
    width = len(schema)
    for idx, row in enumerate(rows):
        if len(row) != width:
            raise LoadError(
                f"Table {name!r}: row {idx} has {len(row)} values, expected {width}"
            )

    # Transpose rows into columns, as Arrow is column major.
    columns = [[row[colidx] for row in rows] for colidx in range(width)]
    try:
        arrays = [
            pa.array(values, type=semantic_type.arrow_type)
            for values, (_, semantic_type) in zip(columns, schema)
        ]
    except (pa.ArrowInvalid, pa.ArrowTypeError, TypeError) as e:
        raise LoadError(f"Table {name!r}: {e}") from e
    return pa.Table.from_arrays(arrays, schema=schema.to_arrow())


def load(
    seed: dict[str, tuple[Schema, list[tuple[Any, ...]]]] | None = None,
) -> dict[str, pa.Table]:
    """Materialize all the seed tables.

    :param seed: The literal data to load, in the form
                 ``{table_name: (schema, rows)}``.
                 Defaults to :data:`SEED_DATA`.
    """
    seed = SEED_DATA if seed is None else seed
    tables = {}
    for name, entry in seed.items():
        try:
            schema, rows = entry
        except (TypeError, ValueError) as e:
            raise LoadError(f"Table {name!r}: expected (schema, rows), got {entry!r}") from e
        if not isinstance(schema, Schema):
            raise LoadError(f"Table {name!r}: invalid schema {schema!r}")
        tables[name] = build_table(name, schema, rows)
    return tables
