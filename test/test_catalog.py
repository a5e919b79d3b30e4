import pytest

from dataparity.backends import BACKENDS
from dataparity.catalog import CATALOG, UnknownOperationError, get_operation
from dataparity.datasets import SEED_DATA


def test_operation_names_are_unique():
    names = [operation.name for operation in CATALOG]
    assert len(names) == len(set(names)) == 24


def test_inputs_are_available_when_the_operation_runs():
    available = set(SEED_DATA)
    for operation in CATALOG:
        assert set(operation.inputs) <= available, operation.name
        if operation.materialize:
            available.add(operation.materialize)


def test_materialized_names_do_not_shadow_seed_tables():
    materialized = [op.materialize for op in CATALOG if op.materialize]
    assert len(materialized) == len(set(materialized))
    assert not set(materialized) & set(SEED_DATA)


def test_only_sort_limit_is_ordered():
    assert [op.name for op in CATALOG if op.ordered] == ["sort_desc_limit"]


def test_pivot_index_is_part_of_the_schema():
    for operation in CATALOG:
        assert set(operation.pivot_index) <= set(operation.schema.names)


def test_every_operation_has_a_backend():
    for operation in CATALOG:
        assert any(backend.supports(operation.name) for backend in BACKENDS.values())


def test_get_operation():
    operation = get_operation("join_left")
    assert operation.inputs == ("cars_by_cyl", "engines")
    assert operation.schema.names[-1] == "engine_type"


def test_get_unknown_operation():
    with pytest.raises(UnknownOperationError):
        get_operation("drop_everything")


def test_operations_are_immutable():
    with pytest.raises(AttributeError):
        get_operation("filter_and").ordered = True
