import warnings

import pyarrow as pa
import pytest

from dataparity.backends import (
    BACKENDS,
    BackendExecutionError,
    SQLBackend,
    UnknownBackendError,
    UnsupportedOperationError,
    get_backend,
)
from dataparity.backends.base import FrameBackend
from dataparity.catalog import Operation, get_operation
from dataparity.datasets import load
from dataparity.schema import Schema, SemanticType

ECHO_OPERATION = Operation(
    name="echo",
    description="Return the input unchanged.",
    inputs=("numbers",),
    schema=Schema([("value", SemanticType.INTEGER)]),
)

BROKEN_OPERATION = Operation(
    name="broken",
    description="Always fails.",
    inputs=("numbers",),
    schema=Schema([("value", SemanticType.INTEGER)]),
)

NUMBERS = pa.table({"value": [3, 1, 2]})


class EchoBackend(FrameBackend):
    id = "echo"

    def __init__(self):
        super().__init__()
        self.opened = 0
        self.closed = 0

    def open_session(self):
        self.opened += 1
        return {}

    def close_session(self, session):
        self.closed += 1

    def from_arrow(self, name, table):
        return table

    def to_arrow(self, result):
        return result


@EchoBackend.expression("echo")
def echo(tables):
    return tables["numbers"]


@EchoBackend.expression("broken")
def broken(tables):
    raise ZeroDivisionError("division by zero")


def test_registry_is_per_backend_class():
    assert EchoBackend.supports("echo")
    assert not SQLBackend.supports("echo")
    assert not FrameBackend.supports("echo")


def test_register_twice_fails():
    with pytest.raises(ValueError):
        EchoBackend.register("echo", lambda tables: None)


def test_source_strips_decorator():
    assert EchoBackend.source("echo") == 'def echo(tables):\n    return tables["numbers"]'


def test_source_of_sql_expression():
    assert SQLBackend.source("filter_and") == "SELECT *\nFROM cars\nWHERE mpg = 21 AND cyl = 6"


def test_source_unsupported():
    with pytest.raises(UnsupportedOperationError):
        EchoBackend.source("pivot_one")


def test_execute():
    backend = EchoBackend()
    with backend.session():
        result = backend.execute(ECHO_OPERATION, {"numbers": NUMBERS})
    assert result.column("value").to_pylist() == [3, 1, 2]


def test_execute_requires_session():
    with pytest.raises(RuntimeError):
        EchoBackend().execute(ECHO_OPERATION, {"numbers": NUMBERS})


def test_execute_unsupported_operation():
    backend = EchoBackend()
    with backend.session():
        with pytest.raises(UnsupportedOperationError) as exc_info:
            backend.execute(get_operation("filter_and"), {"numbers": NUMBERS})
    assert exc_info.value.backend == "echo"
    assert exc_info.value.operation == "filter_and"


def test_execute_missing_input():
    backend = EchoBackend()
    with backend.session():
        with pytest.raises(BackendExecutionError, match="missing input tables"):
            backend.execute(ECHO_OPERATION, {})


def test_execution_errors_are_wrapped():
    backend = EchoBackend()
    with backend.session():
        with pytest.raises(BackendExecutionError) as exc_info:
            backend.execute(BROKEN_OPERATION, {"numbers": NUMBERS})
    assert exc_info.value.backend == "echo"
    assert exc_info.value.operation == "broken"
    assert isinstance(exc_info.value.__cause__, ZeroDivisionError)


def test_session_is_released_on_error():
    backend = EchoBackend()
    with pytest.raises(KeyError):
        with backend.session():
            raise KeyError("boom")
    assert backend.opened == backend.closed == 1
    # A new session can be opened once the previous one is closed.
    with backend.session():
        pass
    assert backend.closed == 2


def test_nested_sessions_are_refused():
    backend = EchoBackend()
    with backend.session():
        with pytest.raises(RuntimeError):
            with backend.session():
                pass


def test_sql_session_closes_connection():
    backend = SQLBackend()
    with backend.session():
        connection = backend.connection
        connection.execute("SELECT 1")
    with pytest.raises(RuntimeError):
        backend.connection
    with pytest.raises(Exception):
        connection.execute("SELECT 1")


def test_sql_errors_are_wrapped():
    operation = Operation(
        name="missing_table",
        description="Query a table that does not exist.",
        inputs=(),
        schema=Schema([("value", SemanticType.INTEGER)]),
    )
    SQLBackend.expressions["missing_table"] = "SELECT value FROM does_not_exist"
    try:
        backend = SQLBackend()
        with backend.session():
            with pytest.raises(BackendExecutionError, match="missing_table"):
                backend.execute(operation, {})
    finally:
        del SQLBackend.expressions["missing_table"]


def test_get_backend():
    for backend_id, backend_class in BACKENDS.items():
        backend = get_backend(backend_id)
        assert isinstance(backend, backend_class)
        assert backend.id == backend_id


def test_get_unknown_backend():
    with pytest.raises(UnknownBackendError):
        get_backend("spreadsheet")


def test_sql_results_fetched_without_deprecation_warnings():
    backend = SQLBackend()
    with backend.session():
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            result = backend.execute(get_operation("filter_and"), load())
    assert result.num_rows == 2
