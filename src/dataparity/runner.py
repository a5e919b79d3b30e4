"""Run the whole catalog on every backend.

A run loads the seed data, opens a session for each backend
and evaluates the operations of the catalog strictly in order,
as later operations can read tables materialized by earlier ones.
For each operation every backend that supports it executes it,
then the results are compared through :func:`dataparity.equivalence.compare`.

Failures are isolated per operation and per backend:

* A backend without an expression for an operation is skipped
  for that operation only.
* A backend raising while executing an operation is recorded
  as an error, the other backends are still compared.
* Mismatches are recorded and the run goes on,
  unless ``stop_on_mismatch`` is enabled.

Only a failure to load the seed data aborts the run,
before any operation is executed.

Sessions are all released when the run ends, whatever the outcome::

    report = run(RunConfig(backends=("sql-engine", "polars")))
    print(report.exit_code)
"""

import contextlib
import dataclasses
import logging
from typing import Any, Iterable, Sequence

import pyarrow as pa

from . import datasets
from .backends import Backend, BackendExecutionError, get_backend
from .catalog import CATALOG, Operation
from .config import RunConfig
from .datasets import LoadError
from .equivalence import EquivalenceResult, compare

__all__ = ("RunReport", "run", "run_operation", "check_registrations")

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class RunReport:
    """Everything that happened during a run."""

    config: RunConfig
    catalog: Sequence[Operation]
    results: list[EquivalenceResult] = dataclasses.field(default_factory=list)
    unsupported: dict[str, list[str]] = dataclasses.field(default_factory=dict)
    load_error: LoadError | None = None
    halted: bool = False

    @property
    def ok(self) -> bool:
        """Seed data loaded and every operation passed."""
        return self.load_error is None and all(result.passed for result in self.results)

    @property
    def exit_code(self) -> int:
        """Process exit status: 0 success, 1 failed comparisons, 2 unable to load data."""
        if self.load_error is not None:
            return 2
        return 0 if self.ok else 1


def check_registrations(
    backends: Iterable[Backend], catalog: Iterable[Operation]
) -> dict[str, list[str]]:
    """Find the operations each backend has no expression for.

    Returns ``{backend_id: [operation names]}``.
    """
    catalog = list(catalog)
    unsupported = {}
    for backend in backends:
        missing = [operation.name for operation in catalog if not backend.supports(operation.name)]
        if missing:
            logger.warning("Backend %s does not support: %s", backend.id, ", ".join(missing))
        unsupported[backend.id] = missing
    return unsupported


def run_operation(
    operation: Operation,
    backends: Sequence[Backend],
    tables: dict[str, pa.Table],
    tolerance: float,
    broken: dict[str, Exception] | None = None,
) -> tuple[EquivalenceResult, dict[str, pa.Table]]:
    """Execute one operation on all the backends and compare the results.

    :param operation: The operation to run.
    :param backends: The backends, with an open session.
    :param tables: The tables available as inputs.
    :param tolerance: Relative tolerance when comparing floats.
    :param broken: Backends that can't run anything, with the reason.

    Returns the comparison result and the output of each backend.
    """
    broken = broken or {}
    outputs: dict[str, pa.Table] = {}
    errors: dict[str, BackendExecutionError] = {}
    skipped: list[str] = []

    for backend in backends:
        if not backend.supports(operation.name):
            skipped.append(backend.id)
            continue
        if backend.id in broken:
            errors[backend.id] = BackendExecutionError(
                backend.id, operation.name, broken[backend.id]
            )
            continue

        try:
            outputs[backend.id] = backend.execute(operation, tables)
        except BackendExecutionError as e:
            logger.error("%s", e)
            logger.debug("Failure details", exc_info=True)
            errors[backend.id] = e

    result = compare(operation, outputs, tolerance=tolerance, errors=errors, skipped=skipped)
    logger.info(
        "%s: %s (%s)",
        operation.name,
        result.status,
        ", ".join(f"{name}={count}" for name, count in result.row_counts.items()),
    )
    return result, outputs


def _open_sessions(stack: contextlib.ExitStack, backends: Sequence[Backend]) -> dict[str, Exception]:
    """Open a session per backend, returns the backends that failed to open one."""
    broken = {}
    for backend in backends:
        try:
            stack.enter_context(backend.session())
        except Exception as e:
            logger.error("Unable to open a session for %s: %s", backend.id, e)
            broken[backend.id] = e
    return broken


def run(
    config: RunConfig | None = None,
    catalog: Sequence[Operation] = CATALOG,
    seed: dict[str, Any] | None = None,
) -> RunReport:
    """Run the catalog on the configured backends.

    :param config: The options of the run, defaults to :class:`RunConfig`.
    :param catalog: The operations to run, in order.
    :param seed: The literal seed data, defaults to :data:`dataparity.datasets.SEED_DATA`.
    """
    config = config or RunConfig()
    report = RunReport(config=config, catalog=catalog)
    logger.info("Running %d operations on %s", len(catalog), ", ".join(config.backends))

    try:
        tables = datasets.load(seed)
    except LoadError as e:
        logger.error("Unable to load seed data: %s", e)
        report.load_error = e
        return report

    backends = [get_backend(backend_id) for backend_id in config.backends]
    report.unsupported = check_registrations(backends, catalog)

    with contextlib.ExitStack() as stack:
        broken = _open_sessions(stack, backends)
        for operation in catalog:
            result, outputs = run_operation(
                operation, backends, tables, config.tolerance, broken=broken
            )
            report.results.append(result)

            if operation.materialize:
                if result.canonical is not None:
                    tables[operation.materialize] = outputs[result.canonical]
                else:
                    logger.warning(
                        "No backend produced %s, operations reading it will fail",
                        operation.materialize,
                    )

            if result.mismatches and config.stop_on_mismatch:
                logger.warning("Stopping at %s, stop_on_mismatch is enabled", operation.name)
                report.halted = True
                break

    logger.info(
        "Run completed: %d/%d operations passed",
        sum(result.passed for result in report.results),
        len(report.results),
    )
    return report
