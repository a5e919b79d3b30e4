"""Check that backends agree on the result of an operation.

Two tables are equivalent when they have the same columns, the same
number of rows and the same rows. Unless the operation declares that
the order of its rows matters, rows can appear in any order.

Backends disagree on a few details that are not part of the result,
so the tables are brought to a common form before being compared:

1. For pivot operations, a group that a backend left out entirely
   is added back as a row of nulls. Some engines emit a row with
   null cells for a missing combination, others omit the row,
   both mean "no data for that group".
2. Unless the operation is ordered, rows are sorted by all columns.
   Float columns are sorted on their value rounded to the number of
   decimal digits implied by the tolerance, so that noise in the last
   digits does not change the order. Only the sort uses the rounded
   values, the comparison uses the exact ones.

Then every table is compared with the result of the canonical backend
(the first one that produced a result). Float values are compared
with a relative tolerance, everything else must be exactly equal.

>>> import pyarrow as pa
>>> from dataparity.catalog import get_operation
>>> results = {
...     "a": pa.table({"cyl": [4, 6], "gear": [4, 3]}),
...     "b": pa.table({"cyl": [6, 4], "gear": [3, 4]}),
... }
>>> compare(get_operation("select_distinct"), results).passed
True
"""

import dataclasses
import logging
import math
from typing import Any, Iterable, Mapping

import pyarrow as pa
import pyarrow.compute as pc

from .backends import BackendExecutionError
from .catalog import Operation

__all__ = ("EquivalenceResult", "MismatchError", "compare", "prepare", "fill_missing_groups")

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 1e-9


class MismatchError(Exception):
    """A backend produced a result different from the canonical one."""

    def __init__(
        self, operation: str, backend: str, reason: str, row_index: int | None = None
    ) -> None:
        """
        :param operation: The name of the operation.
        :param backend: The id of the backend that diverged.
        :param reason: What differs.
        :param row_index: Index of the first differing row,
                          in the normalized tables, if the difference
                          is in the rows.
        """
        location = f" at row {row_index}" if row_index is not None else ""
        super().__init__(f"{backend!r} diverges on {operation!r}{location}: {reason}")
        self.operation = operation
        self.backend = backend
        self.reason = reason
        self.row_index = row_index


@dataclasses.dataclass
class EquivalenceResult:
    """Outcome of comparing the results of an operation across backends."""

    operation: str
    canonical: str | None = None
    backends: list[str] = dataclasses.field(default_factory=list)
    mismatches: list[MismatchError] = dataclasses.field(default_factory=list)
    errors: dict[str, BackendExecutionError] = dataclasses.field(default_factory=dict)
    skipped: list[str] = dataclasses.field(default_factory=list)
    row_counts: dict[str, int] = dataclasses.field(default_factory=dict)
    table: pa.Table | None = dataclasses.field(default=None, repr=False, compare=False)

    @property
    def passed(self) -> bool:
        """No backend failed and all results matched."""
        return not self.mismatches and not self.errors

    @property
    def status(self) -> str:
        if self.errors:
            return "error"
        elif self.mismatches:
            return "mismatch"
        elif not self.backends:
            return "skipped"
        return "passed"


def fill_missing_groups(
    tables: Mapping[str, pa.Table], keys: Iterable[str]
) -> dict[str, pa.Table]:
    """Add a row of nulls for every group a table is missing.

    The groups are identified by the values of the ``keys`` columns,
    every table ends up with the union of the groups found in all tables.
    """
    keys = list(keys)
    groups: dict[tuple, None] = {}
    present = {}
    for name, table in tables.items():
        present[name] = {tuple(row[k] for k in keys) for row in table.select(keys).to_pylist()}
        groups.update(dict.fromkeys(present[name]))

    filled = {}
    for name, table in tables.items():
        missing = [group for group in groups if group not in present[name]]
        if missing:
            logger.debug("Filling %d missing groups for %s", len(missing), name)
            rows = [
                {col: dict(zip(keys, group)).get(col) for col in table.column_names}
                for group in missing
            ]
            table = pa.concat_tables([table, pa.Table.from_pylist(rows, schema=table.schema)])
        filled[name] = table
    return filled


def prepare(table: pa.Table, ordered: bool, tolerance: float = DEFAULT_TOLERANCE) -> pa.Table:
    """Sort the rows of a table, unless ``ordered``.

    Float columns are sorted by their value rounded to the decimal
    digits implied by the tolerance, then by their exact value to
    break ties. The values themselves are left untouched: rounding
    could move two values within tolerance to neighbouring digits.
    """
    if ordered:
        return table

    ndigits = math.floor(-math.log10(tolerance))
    keys = {}
    exact = {}
    for idx, field in enumerate(table.schema):
        # Null typed columns can't be sorted, they are all null anyway.
        if pa.types.is_null(field.type):
            continue
        column = table.column(idx)
        if pa.types.is_floating(field.type):
            exact[f"exact_{idx}"] = column
            column = pc.round(column, ndigits)
        keys[f"key_{idx}"] = column
    keys.update(exact)
    if not keys:
        return table

    indices = pc.sort_indices(pa.table(keys), sort_keys=[(name, "ascending") for name in keys])
    return table.take(indices)


def values_equal(left: Any, right: Any, tolerance: float) -> bool:
    """Compare two values, floats within the relative tolerance."""
    if isinstance(left, float) and isinstance(right, float):
        if math.isnan(left) and math.isnan(right):
            return True
        return math.isclose(left, right, rel_tol=tolerance, abs_tol=tolerance)
    return left == right


def compare(
    operation: Operation,
    backend_results: Mapping[str, pa.Table],
    tolerance: float = DEFAULT_TOLERANCE,
    errors: Mapping[str, BackendExecutionError] | None = None,
    skipped: Iterable[str] = (),
) -> EquivalenceResult:
    """Compare the results of an operation produced by multiple backends.

    :param operation: The operation that produced the results.
    :param backend_results: ``{backend_id: table}`` for every backend that
                            succeeded, the first one is the canonical result.
    :param tolerance: Relative tolerance for float comparisons.
    :param errors: Backends that failed to execute the operation.
    :param skipped: Backends that don't support the operation.
    """
    if tolerance <= 0:
        raise ValueError(f"Tolerance must be positive, got {tolerance}")

    result = EquivalenceResult(
        operation=operation.name,
        backends=list(backend_results),
        errors=dict(errors or {}),
        skipped=list(skipped),
        row_counts={name: table.num_rows for name, table in backend_results.items()},
    )
    if not backend_results:
        return result

    tables = dict(backend_results)
    if operation.pivot_index:
        tables = fill_missing_groups(tables, operation.pivot_index)
    tables = {
        name: prepare(table, operation.ordered, tolerance) for name, table in tables.items()
    }

    canonical_name, canonical = next(iter(tables.items()))
    result.canonical = canonical_name
    result.table = canonical
    canonical_rows = canonical.to_pylist()

    for name, table in tables.items():
        if name == canonical_name:
            continue
        mismatch = _find_mismatch(operation.name, name, canonical, canonical_rows, table, tolerance)
        if mismatch is not None:
            logger.warning("%s", mismatch)
            result.mismatches.append(mismatch)
    return result


def _find_mismatch(
    operation: str,
    backend: str,
    canonical: pa.Table,
    canonical_rows: list[dict],
    table: pa.Table,
    tolerance: float,
) -> MismatchError | None:
    """Find the first difference between a table and the canonical one."""
    if set(table.column_names) != set(canonical.column_names):
        return MismatchError(
            operation,
            backend,
            f"columns {table.column_names} != {canonical.column_names}",
        )
    if table.num_rows != canonical.num_rows:
        return MismatchError(
            operation, backend, f"{table.num_rows} rows != {canonical.num_rows} rows"
        )

    for idx, (row, expected) in enumerate(zip(table.to_pylist(), canonical_rows)):
        for column in canonical.column_names:
            if not values_equal(row[column], expected[column], tolerance):
                return MismatchError(
                    operation,
                    backend,
                    f"{column}={row[column]!r}, expected {expected[column]!r}",
                    row_index=idx,
                )
    return None
