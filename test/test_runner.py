import logging

import pyarrow as pa
import pytest

from dataparity.backends import BACKENDS, get_backend
from dataparity.backends.base import FrameBackend
from dataparity.catalog import CATALOG, get_operation
from dataparity.config import RunConfig
from dataparity.datasets import load
from dataparity.runner import check_registrations, run, run_operation


class LyingBackend(FrameBackend):
    """Returns every car for any filter."""

    id = "liar"

    def from_arrow(self, name, table):
        return table

    def to_arrow(self, result):
        return result


@LyingBackend.expression("filter_and")
def filter_and(tables):
    return tables["cars"]


class UnreachableBackend(LyingBackend):
    """A backend whose engine can never be reached."""

    id = "unreachable"

    def open_session(self):
        raise ConnectionError("engine unreachable")


UnreachableBackend.register("filter_and", filter_and)


@pytest.fixture
def liar(monkeypatch):
    monkeypatch.setitem(BACKENDS, LyingBackend.id, LyingBackend)


@pytest.fixture
def unreachable(monkeypatch):
    monkeypatch.setitem(BACKENDS, UnreachableBackend.id, UnreachableBackend)


def test_full_run_passes():
    report = run()
    assert report.load_error is None
    assert not report.halted
    assert [result.operation for result in report.results] == [op.name for op in CATALOG]
    failures = [result for result in report.results if not result.passed]
    assert failures == []
    assert report.ok
    assert report.exit_code == 0


def test_arrow_is_skipped_for_pivots():
    report = run(RunConfig(backends=("sql-engine", "arrow")))
    by_name = {result.operation: result for result in report.results}
    assert by_name["pivot_one"].skipped == ["arrow"]
    assert by_name["pivot_one"].backends == ["sql-engine"]
    assert by_name["filter_and"].backends == ["sql-engine", "arrow"]
    assert "pivot_one" in report.unsupported["arrow"]
    assert report.unsupported["sql-engine"] == []
    assert report.exit_code == 0


def test_first_backend_is_canonical():
    report = run(RunConfig(backends=("polars", "sql-engine")))
    assert {result.canonical for result in report.results} == {"polars"}


def test_materialized_tables_feed_later_operations():
    catalog = [get_operation("group_aggregate"), get_operation("join_left")]
    report = run(RunConfig(backends=("pandas", "polars")), catalog=catalog)
    assert [result.status for result in report.results] == ["passed", "passed"]
    assert report.results[1].row_counts == {"pandas": 3, "polars": 3}


def test_missing_materialized_table_is_an_error():
    report = run(RunConfig(backends=("sql-engine",)), catalog=[get_operation("join_left")])
    [result] = report.results
    assert result.status == "error"
    assert "cars_by_cyl" in str(result.errors["sql-engine"])
    assert report.exit_code == 1


def test_mismatch_continues_by_default(liar):
    report = run(RunConfig(backends=("sql-engine", "liar")))
    assert len(report.results) == len(CATALOG)
    failed = [result.operation for result in report.results if not result.passed]
    assert failed == ["filter_and"]
    assert report.exit_code == 1


def test_stop_on_mismatch(liar):
    report = run(RunConfig(backends=("sql-engine", "liar"), stop_on_mismatch=True))
    assert report.halted
    assert report.results[-1].operation == "filter_and"
    assert len(report.results) == [op.name for op in CATALOG].index("filter_and") + 1
    [mismatch] = report.results[-1].mismatches
    assert mismatch.backend == "liar"
    assert report.exit_code == 1


def test_backend_unable_to_open_session(unreachable, caplog):
    catalog = [get_operation("filter_and")]
    with caplog.at_level(logging.ERROR, logger="dataparity.runner"):
        report = run(RunConfig(backends=("sql-engine", "unreachable")), catalog=catalog)
    [result] = report.results
    assert result.backends == ["sql-engine"]
    assert "engine unreachable" in str(result.errors["unreachable"])
    assert "Unable to open a session for unreachable" in caplog.text
    assert report.exit_code == 1


def test_bad_seed_aborts_the_run():
    report = run(seed={"cars": "not a table"})
    assert report.load_error is not None
    assert report.results == []
    assert not report.ok
    assert report.exit_code == 2


def test_run_operation_returns_outputs():
    tables = load()
    backends = [get_backend("sql-engine"), get_backend("pandas")]
    with backends[0].session(), backends[1].session():
        result, outputs = run_operation(get_operation("filter_or"), backends, tables, 1e-9)
    assert result.passed
    assert set(outputs) == {"sql-engine", "pandas"}
    assert all(isinstance(table, pa.Table) for table in outputs.values())


def test_run_operation_with_broken_backend():
    tables = load()
    backend = get_backend("pandas")
    with backend.session():
        result, outputs = run_operation(
            get_operation("filter_and"), [backend], tables, 1e-9, broken={"pandas": OSError("x")}
        )
    assert outputs == {}
    assert result.status == "error"


def test_check_registrations_logs_unsupported(caplog):
    with caplog.at_level(logging.WARNING, logger="dataparity.runner"):
        unsupported = check_registrations([get_backend("arrow"), get_backend("polars")], CATALOG)
    assert unsupported["polars"] == []
    assert unsupported["arrow"] == [
        "duplicate_rows",
        "unique_rows",
        "pivot_one",
        "pivot_two",
        "pivot_sparse",
    ]
    assert "arrow does not support" in caplog.text


def test_pivot_gaps_agree_between_sql_and_polars():
    catalog = [get_operation("pivot_one"), get_operation("pivot_sparse")]
    report = run(RunConfig(backends=("sql-engine", "polars")), catalog=catalog)
    assert [result.status for result in report.results] == ["passed", "passed"]
    assert report.exit_code == 0
