"""The catalog of operations compared across backends.

An :class:`Operation` is a backend independent description of
a transformation: which tables it reads, the shape of the table
it produces and whether the order of the rows in the output is
part of the result.

How the operation is actually performed is up to each backend,
see :mod:`dataparity.backends`, which registers one expression
per operation name.

The :data:`CATALOG` is evaluated in declaration order, operations
declaring ``materialize`` publish their result under that name
so that later operations can use it as an input. For example
``join_left`` joins the ``cars_by_cyl`` table published by
``group_aggregate``.

>>> get_operation("filter_and").inputs
('cars',)
>>> get_operation("group_aggregate").materialize
'cars_by_cyl'
"""

import dataclasses

from .datasets import CARS_SCHEMA
from .schema import Schema, SemanticType

__all__ = ("Operation", "CATALOG", "get_operation", "UnknownOperationError")

INTEGER = SemanticType.INTEGER
FLOAT = SemanticType.FLOAT
STRING = SemanticType.STRING
BOOLEAN = SemanticType.BOOLEAN


class UnknownOperationError(KeyError):
    """No operation with the requested name exists in the catalog."""


@dataclasses.dataclass(frozen=True)
class Operation:
    """A data operation and the shape of its result.

    :param name: Unique name of the operation.
    :param description: Human readable explanation of what it does.
    :param inputs: Names of the tables the operation reads.
    :param schema: The expected schema of the output.
    :param ordered: If the order of rows in the output matters.
    :param materialize: Publish the output as a new table with this name.
    :param pivot_index: For pivot operations, the grouping columns
                        that identify a row of the wide table.
    """

    name: str
    description: str
    inputs: tuple[str, ...]
    schema: Schema
    ordered: bool = False
    materialize: str | None = None
    pivot_index: tuple[str, ...] = ()


WIDE_YEARS = [("2000", FLOAT), ("2010", FLOAT), ("2020", FLOAT)]

CARS_BY_CYL_SCHEMA = Schema(
    [("cyl", INTEGER), ("n_cars", INTEGER), ("avg_mpg", FLOAT), ("max_hp", INTEGER)]
)

JOINED_SCHEMA = Schema(list(CARS_BY_CYL_SCHEMA) + [("engine_type", STRING)])

CATALOG: tuple[Operation, ...] = (
    Operation(
        name="select_rename",
        description="Select two columns renaming them.",
        inputs=("cars",),
        schema=Schema([("model", STRING), ("miles_per_gallon", FLOAT)]),
    ),
    Operation(
        name="select_distinct",
        description="Distinct combinations of cylinders and gears.",
        inputs=("cars",),
        schema=Schema([("cyl", INTEGER), ("gear", INTEGER)]),
    ),
    Operation(
        name="count_rows_columns",
        description="Count the rows and the columns of a table.",
        inputs=("cars",),
        schema=Schema([("n_rows", INTEGER), ("n_columns", INTEGER)]),
    ),
    Operation(
        name="derived_columns",
        description="Compute new columns from existing ones: hp / wt and mpg > 20.",
        inputs=("cars",),
        schema=Schema(
            [("model_name", STRING), ("power_to_weight", FLOAT), ("is_efficient", BOOLEAN)]
        ),
    ),
    Operation(
        name="filter_and",
        description="Rows where mpg = 21 AND cyl = 6.",
        inputs=("cars",),
        schema=CARS_SCHEMA,
    ),
    Operation(
        name="filter_or",
        description="Rows where mpg = 21 OR cyl = 6.",
        inputs=("cars",),
        schema=CARS_SCHEMA,
    ),
    Operation(
        name="sort_desc_limit",
        description="The 5 cars with the highest mpg, ties broken by model name.",
        inputs=("cars",),
        schema=Schema([("model_name", STRING), ("mpg", FLOAT)]),
        ordered=True,
    ),
    Operation(
        name="group_aggregate",
        description="Per number of cylinders: count of cars, average mpg and max hp.",
        inputs=("cars",),
        schema=CARS_BY_CYL_SCHEMA,
        materialize="cars_by_cyl",
    ),
    Operation(
        name="create_or_replace",
        description="Create (or replace) a table with the cars having mpg > 20.",
        inputs=("cars",),
        schema=CARS_SCHEMA,
        materialize="cars_efficient",
    ),
    Operation(
        name="create_if_not_exists",
        description="Create the efficient cars table only if it does not exist yet, "
        "as it does the existing content is kept.",
        inputs=("cars", "cars_efficient"),
        schema=CARS_SCHEMA,
    ),
    Operation(
        name="unique_check",
        description="Check that model_name uniquely identifies a car.",
        inputs=("cars",),
        schema=Schema([("is_unique", BOOLEAN)]),
    ),
    Operation(
        name="append_all",
        description="Append new cars keeping duplicates (UNION ALL).",
        inputs=("cars", "cars_new"),
        schema=CARS_SCHEMA,
        materialize="cars_all",
    ),
    Operation(
        name="append_distinct",
        description="Append new cars discarding duplicates (UNION).",
        inputs=("cars", "cars_new"),
        schema=CARS_SCHEMA,
    ),
    Operation(
        name="duplicate_rows",
        description="Rows that appear more than once, every occurrence kept.",
        inputs=("cars_all",),
        schema=CARS_SCHEMA,
    ),
    Operation(
        name="unique_rows",
        description="Rows that appear exactly once.",
        inputs=("cars_all",),
        schema=CARS_SCHEMA,
    ),
    Operation(
        name="join_left",
        description="Left join of the cylinders summary with the engine types.",
        inputs=("cars_by_cyl", "engines"),
        schema=JOINED_SCHEMA,
    ),
    Operation(
        name="join_inner",
        description="Inner join of the cylinders summary with the engine types.",
        inputs=("cars_by_cyl", "engines"),
        schema=JOINED_SCHEMA,
    ),
    Operation(
        name="delete_rows",
        description="Delete the row where model_name = 'Mazda RX4'.",
        inputs=("cars",),
        schema=CARS_SCHEMA,
        materialize="cars_deleted",
    ),
    Operation(
        name="delete_rows_again",
        description="Delete 'Mazda RX4' again, which is a no-op.",
        inputs=("cars_deleted",),
        schema=CARS_SCHEMA,
    ),
    Operation(
        name="update_cell",
        description="Set mpg = 999 where model_name = 'Mazda RX4 Wag'.",
        inputs=("cars",),
        schema=CARS_SCHEMA,
    ),
    Operation(
        name="pivot_one",
        description="One row per country, one column per year, summing population.",
        inputs=("cities",),
        schema=Schema([("country", STRING)] + WIDE_YEARS),
        materialize="cities_wide",
        pivot_index=("country",),
    ),
    Operation(
        name="pivot_two",
        description="One row per continent and country, one column per year.",
        inputs=("cities",),
        schema=Schema([("continent", STRING), ("country", STRING)] + WIDE_YEARS),
        pivot_index=("continent", "country"),
    ),
    Operation(
        name="pivot_sparse",
        description="Pivot with Japan 2020 missing, the missing cell becomes null.",
        inputs=("cities",),
        schema=Schema([("country", STRING)] + WIDE_YEARS),
        pivot_index=("country",),
    ),
    Operation(
        name="unpivot",
        description="Turn the wide cities table back to one row per country and year.",
        inputs=("cities_wide",),
        schema=Schema([("country", STRING), ("year", INTEGER), ("population", FLOAT)]),
    ),
)


def get_operation(name: str) -> Operation:
    """Lookup an operation of the :data:`CATALOG` by name."""
    for operation in CATALOG:
        if operation.name == name:
            return operation
    raise UnknownOperationError(name)
