import pyarrow as pa
import pytest

from dataparity.schema import Schema, SchemaError, SemanticType, normalize

SCHEMA = Schema(
    [
        ("name", SemanticType.STRING),
        ("count", SemanticType.INTEGER),
        ("ratio", SemanticType.FLOAT),
        ("flag", SemanticType.BOOLEAN),
    ]
)


def test_schema_names_and_arrow():
    assert SCHEMA.names == ["name", "count", "ratio", "flag"]
    assert SCHEMA.to_arrow() == pa.schema(
        [
            pa.field("name", pa.string()),
            pa.field("count", pa.int64()),
            pa.field("ratio", pa.float64()),
            pa.field("flag", pa.bool_()),
        ]
    )
    assert len(SCHEMA) == 4


def test_schema_rejects_duplicate_names():
    with pytest.raises(SchemaError):
        Schema([("a", SemanticType.INTEGER), ("a", SemanticType.FLOAT)])


def test_schema_rejects_invalid_types():
    with pytest.raises(SchemaError):
        Schema([("a", "integer")])


def test_schema_str():
    assert str(Schema([("a", SemanticType.INTEGER)])) == "Schema(a INTEGER)"


def test_normalize_reorders_and_casts():
    data = pa.table(
        {
            "flag": pa.array([True, False]),
            "ratio": pa.array([1, 2], pa.int32()),
            "count": pa.array([1.0, None]),
            "name": pa.array(["a", "b"], pa.large_string()),
            "extra": pa.array([0, 0]),
        }
    )
    result = normalize(data, SCHEMA)
    assert result.schema == SCHEMA.to_arrow()
    assert result.to_pydict() == {
        "name": ["a", "b"],
        "count": [1, None],
        "ratio": [1.0, 2.0],
        "flag": [True, False],
    }


def test_normalize_dictionary_columns():
    data = pa.table({"name": pa.array(["x", "y", "x"]).dictionary_encode()})
    result = normalize(data, Schema([("name", SemanticType.STRING)]))
    assert result.column("name").type == pa.string()
    assert result.column("name").to_pylist() == ["x", "y", "x"]


def test_normalize_strings_to_integers():
    # Unpivoted column names come back as strings.
    data = pa.table({"year": ["2000", "2010"]})
    result = normalize(data, Schema([("year", SemanticType.INTEGER)]))
    assert result.column("year").to_pylist() == [2000, 2010]


def test_normalize_drops_metadata():
    data = pa.table({"a": [1]}).replace_schema_metadata({"pandas": "{}"})
    result = normalize(data, Schema([("a", SemanticType.INTEGER)]))
    assert result.schema.metadata is None


def test_normalize_record_batch():
    data = pa.record_batch({"a": [1, 2]})
    result = normalize(data, Schema([("a", SemanticType.INTEGER)]))
    assert isinstance(result, pa.Table)
    assert result.num_rows == 2


def test_normalize_missing_column():
    with pytest.raises(SchemaError, match="Missing columns"):
        normalize(pa.table({"name": ["a"]}), SCHEMA)


def test_normalize_incompatible_values():
    with pytest.raises(SchemaError):
        normalize(pa.table({"a": ["not a number"]}), Schema([("a", SemanticType.INTEGER)]))


def test_normalize_does_not_modify_input():
    data = pa.table({"a": pa.array([1, 2], pa.int32())})
    normalize(data, Schema([("a", SemanticType.FLOAT)]))
    assert data.column("a").type == pa.int32()
