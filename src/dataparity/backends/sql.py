"""SQL backend running on an in-memory DuckDB database.

Each session owns its own in-memory DuckDB connection,
which is closed when the session ends.

Input tables are copied into real database tables
before each operation, so statements like ``UPDATE``
and ``DELETE`` can be used and only ever modify
the copy owned by the session.

Expressions are SQL text. An expression can contain multiple
statements separated by ``;``, they are executed in order and
the result of the last one is the result of the operation::

    DELETE FROM cars WHERE model_name = 'Mazda RX4';
    SELECT * FROM cars
"""

import logging
from typing import Any

import duckdb
import pyarrow as pa

from .base import Backend

logger = logging.getLogger(__name__)


class SQLBackend(Backend):
    """Run operations as SQL queries on DuckDB."""

    id = "sql-engine"

    def __init__(self, database: str = ":memory:") -> None:
        """
        :param database: The DuckDB database to connect to.
        """
        super().__init__()
        self.database = database

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        """The connection of the open session."""
        if self._session is None:
            raise RuntimeError(f"No session open for {self.id!r}")
        return self._session

    def open_session(self) -> duckdb.DuckDBPyConnection:
        return duckdb.connect(database=self.database)

    def close_session(self, session: duckdb.DuckDBPyConnection) -> None:
        session.close()

    def from_arrow(self, name: str, table: pa.Table) -> str:
        """Copy the table into the database and return its name."""
        staging = f"__input_{name}"
        self.connection.register(staging, table)
        try:
            self.connection.execute(f'CREATE OR REPLACE TABLE "{name}" AS SELECT * FROM "{staging}"')
        finally:
            self.connection.unregister(staging)
        return name

    def to_arrow(self, result: duckdb.DuckDBPyConnection) -> pa.Table:
        return result.to_arrow_table()

    def run(self, expression: str, tables: dict[str, Any]) -> duckdb.DuckDBPyConnection:
        statements = [stmt.strip() for stmt in expression.split(";") if stmt.strip()]
        if not statements:
            raise ValueError("Empty SQL expression")

        result = None
        for statement in statements:
            logger.debug("Executing SQL: %s", statement)
            result = self.connection.execute(statement)
        return result


register = SQLBackend.register

register(
    "select_rename",
    """
    SELECT model_name AS model, mpg AS miles_per_gallon
    FROM cars
    """,
)

register(
    "select_distinct",
    """
    SELECT DISTINCT cyl, gear
    FROM cars
    """,
)

register(
    "count_rows_columns",
    """
    SELECT
        (SELECT COUNT(*) FROM cars) AS n_rows,
        (SELECT COUNT(*) FROM information_schema.columns WHERE table_name = 'cars') AS n_columns
    """,
)

register(
    "derived_columns",
    """
    SELECT model_name, hp / wt AS power_to_weight, mpg > 20 AS is_efficient
    FROM cars
    """,
)

register(
    "filter_and",
    """
    SELECT *
    FROM cars
    WHERE mpg = 21 AND cyl = 6
    """,
)

register(
    "filter_or",
    """
    SELECT *
    FROM cars
    WHERE mpg = 21 OR cyl = 6
    """,
)

register(
    "sort_desc_limit",
    """
    SELECT model_name, mpg
    FROM cars
    ORDER BY mpg DESC, model_name ASC
    LIMIT 5
    """,
)

register(
    "group_aggregate",
    """
    SELECT cyl, COUNT(*) AS n_cars, AVG(mpg) AS avg_mpg, MAX(hp) AS max_hp
    FROM cars
    GROUP BY cyl
    """,
)

register(
    "create_or_replace",
    """
    CREATE OR REPLACE TABLE cars_efficient AS
        SELECT * FROM cars WHERE mpg > 20;
    SELECT * FROM cars_efficient
    """,
)

register(
    "create_if_not_exists",
    """
    CREATE TABLE IF NOT EXISTS cars_efficient AS
        SELECT * FROM cars;
    SELECT * FROM cars_efficient
    """,
)

register(
    "unique_check",
    """
    SELECT COUNT(DISTINCT model_name) = COUNT(*) AS is_unique
    FROM cars
    """,
)

register(
    "append_all",
    """
    SELECT * FROM cars
    UNION ALL
    SELECT * FROM cars_new
    """,
)

register(
    "append_distinct",
    """
    SELECT * FROM cars
    UNION
    SELECT * FROM cars_new
    """,
)

register(
    "duplicate_rows",
    """
    SELECT * EXCLUDE (occurrences)
    FROM (
        SELECT *, COUNT(*) OVER (
            PARTITION BY model_name, mpg, cyl, disp, hp, wt, am, gear
        ) AS occurrences
        FROM cars_all
    )
    WHERE occurrences > 1
    """,
)

register(
    "unique_rows",
    """
    SELECT * EXCLUDE (occurrences)
    FROM (
        SELECT *, COUNT(*) OVER (
            PARTITION BY model_name, mpg, cyl, disp, hp, wt, am, gear
        ) AS occurrences
        FROM cars_all
    )
    WHERE occurrences = 1
    """,
)

register(
    "join_left",
    """
    SELECT c.*, e.engine_type
    FROM cars_by_cyl AS c
    LEFT JOIN engines AS e ON c.cyl = e.cyl
    """,
)

register(
    "join_inner",
    """
    SELECT c.*, e.engine_type
    FROM cars_by_cyl AS c
    INNER JOIN engines AS e ON c.cyl = e.cyl
    """,
)

register(
    "delete_rows",
    """
    DELETE FROM cars WHERE model_name = 'Mazda RX4';
    SELECT * FROM cars
    """,
)

register(
    "delete_rows_again",
    """
    DELETE FROM cars_deleted WHERE model_name = 'Mazda RX4';
    SELECT * FROM cars_deleted
    """,
)

register(
    "update_cell",
    """
    UPDATE cars SET mpg = 999 WHERE model_name = 'Mazda RX4 Wag';
    SELECT * FROM cars
    """,
)

register(
    "pivot_one",
    """
    PIVOT cities
    ON year
    USING SUM(population)
    GROUP BY country
    """,
)

register(
    "pivot_two",
    """
    PIVOT cities
    ON year
    USING SUM(population)
    GROUP BY continent, country
    """,
)

register(
    "pivot_sparse",
    """
    CREATE OR REPLACE TEMP TABLE cities_sparse AS
        SELECT * FROM cities WHERE NOT (country = 'Japan' AND year = 2020);
    PIVOT cities_sparse
    ON year IN (2000, 2010, 2020)
    USING SUM(population)
    GROUP BY country
    """,
)

register(
    "unpivot",
    """
    UNPIVOT cities_wide
    ON COLUMNS(* EXCLUDE (country))
    INTO NAME year VALUE population
    """,
)
