"""DataParity

Run the same data operations on multiple engines and check they agree.

Selecting, filtering, sorting, grouping, joining, pivoting, updating
and deleting rows are things every data engine can do, but each of
them has its own way of expressing it: a SQL query, a chain of
pandas calls, a polars expression, pyarrow compute functions...

DataParity keeps a catalog of common operations, with the equivalent
expression for each engine side by side, runs them all on the same
data and checks that the results match. The outcome is a report
that works both as a test of equivalence and as a cheat sheet
to translate an operation from one engine to another.

The primary components are:

* The Dataset Loader (:mod:`dataparity.datasets`), the seed tables.
* The Operation Catalog (:mod:`dataparity.catalog`), what has to be done.
* The Backends (:mod:`dataparity.backends`), how each engine does it.
* The Equivalence Checker (:mod:`dataparity.equivalence`), do they agree?
* The Runner (:mod:`dataparity.runner`) and the Report (:mod:`dataparity.report`).

For the user guide and code documentation of each component, refer to the
component itself.
"""

from .backends import BackendExecutionError, UnknownBackendError, UnsupportedOperationError
from .catalog import CATALOG, Operation
from .config import RunConfig
from .datasets import LoadError
from .equivalence import EquivalenceResult, MismatchError
from .runner import RunReport, run
from .schema import SchemaError, SemanticType

__all__ = (
    "CATALOG",
    "Operation",
    "RunConfig",
    "RunReport",
    "run",
    "EquivalenceResult",
    "SemanticType",
    "LoadError",
    "SchemaError",
    "UnsupportedOperationError",
    "BackendExecutionError",
    "MismatchError",
    "UnknownBackendError",
)
