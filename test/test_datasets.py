import pyarrow as pa
import pytest

from dataparity.datasets import CARS_SCHEMA, SEED_DATA, LoadError, build_table, load
from dataparity.schema import Schema, SemanticType


def test_load_all_tables():
    tables = load()
    assert set(tables) == {"cars", "cars_new", "engines", "cities"}
    for name, (schema, rows) in SEED_DATA.items():
        assert tables[name].schema == schema.to_arrow()
        assert tables[name].num_rows == len(rows)


def test_load_is_deterministic():
    first, second = load(), load()
    for name in first:
        assert first[name].equals(second[name])


def test_cars():
    cars = load()["cars"]
    assert cars.num_rows == 10
    assert cars.column_names == CARS_SCHEMA.names
    assert cars.slice(0, 1).to_pylist() == [
        {
            "model_name": "Mazda RX4",
            "mpg": 21.0,
            "cyl": 6,
            "disp": 160.0,
            "hp": 110,
            "wt": 2.62,
            "am": 1,
            "gear": 4,
        }
    ]


def test_cities_is_a_full_grid():
    cities = load()["cities"]
    pairs = {(row["country"], row["year"]) for row in cities.to_pylist()}
    assert len(pairs) == cities.num_rows == 9


def test_build_table_accepts_nulls():
    table = build_table(
        "t", Schema([("a", SemanticType.INTEGER), ("b", SemanticType.STRING)]), [(1, None)]
    )
    assert table.to_pylist() == [{"a": 1, "b": None}]


def test_build_table_ragged_rows():
    schema = Schema([("a", SemanticType.INTEGER), ("b", SemanticType.INTEGER)])
    with pytest.raises(LoadError, match="row 1 has 1 values, expected 2"):
        build_table("t", schema, [(1, 2), (3,)])


def test_build_table_wrong_types():
    with pytest.raises(LoadError):
        build_table("t", Schema([("a", SemanticType.INTEGER)]), [("abc",)])


@pytest.mark.parametrize(
    "seed",
    [
        {"t": (Schema([("a", SemanticType.INTEGER)]), [(1, 2)])},
        {"t": "not a table"},
        {"t": (["a"], [(1,)])},
    ],
)
def test_load_malformed_seed(seed):
    with pytest.raises(LoadError):
        load(seed)


def test_build_empty_table():
    table = build_table("t", Schema([("a", SemanticType.FLOAT)]), [])
    assert table.num_rows == 0
    assert table.schema == pa.schema([pa.field("a", pa.float64())])
