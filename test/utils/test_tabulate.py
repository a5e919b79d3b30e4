import pyarrow as pa

from dataparity.utils.tabulate import format_value, tabulate


def test_tabulate_table():
    table = pa.table({"country": ["France", "Japan"], "2020": [67.6, None]})
    assert tabulate(table) == "\n".join(
        [
            "country | 2020",
            "------- | -----",
            "France  | 67.60",
            "Japan   | null",
        ]
    )


def test_tabulate_record_batch():
    batch = pa.record_batch({"is_unique": [True]})
    assert tabulate(batch).splitlines()[-1] == "true"


def test_tabulate_limits_rows():
    table = pa.table({"n": list(range(30))})
    lines = tabulate(table, max_rows=5).splitlines()
    assert len(lines) == 2 + 5 + 1
    assert lines[-1] == "... and 25 more rows"


def test_tabulate_empty_table():
    table = pa.table({"a": pa.array([], pa.int64())})
    assert tabulate(table) == "a\n-"


def test_format_value():
    assert format_value(None) == "null"
    assert format_value(False) == "false"
    assert format_value(3.14159) == "3.14"
    assert format_value(42) == "42"
    assert format_value("x" * 40) == "x" * 27 + "..."
