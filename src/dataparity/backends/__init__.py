"""Backends able to execute the operations of the catalog.

A backend adapts a data processing engine to a uniform surface:
given an operation of the catalog and its input tables (as
:class:`pyarrow.Table`) it returns the resulting table normalized
to the schema declared by the operation.

The registered backends, in the order they are compared, are:

* ``sql-engine``: SQL queries on an in-memory DuckDB database,
  see :class:`dataparity.backends.sql.SQLBackend`.
* ``pandas``: pandas DataFrames,
  see :class:`dataparity.backends.pandas.PandasBackend`.
* ``polars``: polars DataFrames,
  see :class:`dataparity.backends.polars.PolarsBackend`.
* ``arrow``: pyarrow compute functions,
  see :class:`dataparity.backends.arrow.ArrowBackend`.

The first backend is the canonical one: when checking equivalence,
the results of every other backend are compared against it.

>>> list(BACKENDS)
['sql-engine', 'pandas', 'polars', 'arrow']
>>> get_backend("polars").supports("pivot_one")
True
>>> get_backend("arrow").supports("pivot_one")
False
"""

from .arrow import ArrowBackend
from .base import Backend, BackendExecutionError, UnsupportedOperationError
from .pandas import PandasBackend
from .polars import PolarsBackend
from .sql import SQLBackend

__all__ = (
    "Backend",
    "BackendExecutionError",
    "UnsupportedOperationError",
    "UnknownBackendError",
    "BACKENDS",
    "get_backend",
    "SQLBackend",
    "PandasBackend",
    "PolarsBackend",
    "ArrowBackend",
)

BACKENDS: dict[str, type[Backend]] = {
    backend.id: backend for backend in (SQLBackend, PandasBackend, PolarsBackend, ArrowBackend)
}


class UnknownBackendError(KeyError):
    """No backend with the requested id is registered."""

    def __str__(self) -> str:
        return f"Unknown backend {self.args[0]!r}, available: {list(BACKENDS)}"


def get_backend(backend_id: str) -> Backend:
    """Create a new instance of the backend registered with the given id."""
    try:
        backend_class = BACKENDS[backend_id]
    except KeyError:
        raise UnknownBackendError(backend_id) from None
    return backend_class()
