"""Format tabular data into a text table for print.

the `tabulate` function takes a `pyarrow.Table` or `pyarrow.RecordBatch` and formats it into a text table.
It will truncate long strings, format floats to 2 decimal places, and limit the number of rows to display.
The function is used by the report to preview the result of each operation.

Example:

    >>> import pyarrow as pa
    >>> data = {
    ...     "model_name": ["Mazda RX4", "Datsun 710", "Valiant"],
    ...     "cyl": [6, 4, None],
    ...     "mpg": [21.0, 22.8, 18.1],
    ... }
    >>> table = pa.table(data)
    >>> print(tabulate(table))
    model_name | cyl  | mpg
    ---------- | ---- | -----
    Mazda RX4  | 6    | 21.00
    Datsun 710 | 4    | 22.80
    Valiant    | null | 18.10
"""

from typing import Any

import pyarrow as pa


def tabulate(table: pa.Table | pa.RecordBatch, max_rows: int = 20) -> str:
    """Format a Table or RecordBatch into a text table.

    Will produce a string like::

        country | 2000   | 2010   | 2020
        ------- | ------ | ------ | ------
        France  | 60.90  | 65.00  | 67.60
        Japan   | 126.80 | 128.10 | null
    """
    cols = table.column_names
    rows = [
        [format_value(row[c]) for c in cols]
        for row in table.slice(length=max_rows).to_pylist()
    ]

    colsizes = compute_max_colsize(cols, rows)
    header = [maketablerow(cols, colsizes=colsizes)]
    separator = [maketablerow(["-"] * len(cols), colsizes=colsizes, fillvalue="-")]
    textrows = [maketablerow(row, colsizes=colsizes) for row in rows]

    text = "\n".join(header + separator + textrows)
    if table.num_rows > max_rows:
        text += f"\n... and {table.num_rows - max_rows} more rows"
    return text


def compute_max_colsize(cols: list[str], rows: list[list[str]]) -> list[int]:
    """Compute the maximum size of each column in a table."""
    return [
        max([len(row[colidx]) for row in rows] + [len(cols[colidx])])
        for colidx, _ in enumerate(cols)
    ]


def maketablerow(cols: list[str], colsizes: list[int], fillvalue: str = " ") -> str:
    """Make a table row with the given column sizes."""
    return " | ".join(
        [col.ljust(colsizes[idx], fillvalue) for idx, col in enumerate(cols)]
    ).rstrip()


def format_value(v: Any) -> str:
    """Format a value to be printed in the table.

    This function will format floats to 2 decimal places,
    show nulls as ``null`` and truncate long strings.
    """
    if v is None:
        return "null"
    elif isinstance(v, bool):
        return "true" if v else "false"
    elif isinstance(v, float):
        return f"{v:.2f}"

    v = str(v)
    if len(v) > 30:
        v = v[:27] + "..."
    return v
