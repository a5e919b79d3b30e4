"""Backend running operations with pandas DataFrames.

Input tables are converted to :class:`pandas.DataFrame` and every
expression is a function receiving the dictionary of input frames.
Results are converted back to Arrow without their index.
"""

import pandas as pd
import pyarrow as pa

from .base import FrameBackend


class PandasBackend(FrameBackend):
    """Run operations as pandas DataFrame calls."""

    id = "pandas"

    def from_arrow(self, name: str, table: pa.Table) -> pd.DataFrame:
        return table.to_pandas()

    def to_arrow(self, result: pd.DataFrame) -> pa.Table:
        return pa.Table.from_pandas(result, preserve_index=False)


@PandasBackend.expression("select_rename")
def select_rename(tables):
    cars = tables["cars"]
    return cars[["model_name", "mpg"]].rename(
        columns={"model_name": "model", "mpg": "miles_per_gallon"}
    )


@PandasBackend.expression("select_distinct")
def select_distinct(tables):
    return tables["cars"][["cyl", "gear"]].drop_duplicates()


@PandasBackend.expression("count_rows_columns")
def count_rows_columns(tables):
    n_rows, n_columns = tables["cars"].shape
    return pd.DataFrame({"n_rows": [n_rows], "n_columns": [n_columns]})


@PandasBackend.expression("derived_columns")
def derived_columns(tables):
    cars = tables["cars"]
    return cars.assign(
        power_to_weight=cars["hp"] / cars["wt"],
        is_efficient=cars["mpg"] > 20,
    )[["model_name", "power_to_weight", "is_efficient"]]


@PandasBackend.expression("filter_and")
def filter_and(tables):
    cars = tables["cars"]
    return cars[(cars["mpg"] == 21) & (cars["cyl"] == 6)]


@PandasBackend.expression("filter_or")
def filter_or(tables):
    cars = tables["cars"]
    return cars[(cars["mpg"] == 21) | (cars["cyl"] == 6)]


@PandasBackend.expression("sort_desc_limit")
def sort_desc_limit(tables):
    cars = tables["cars"]
    return cars.sort_values(["mpg", "model_name"], ascending=[False, True]).head(5)[
        ["model_name", "mpg"]
    ]


@PandasBackend.expression("group_aggregate")
def group_aggregate(tables):
    return (
        tables["cars"]
        .groupby("cyl", as_index=False)
        .agg(n_cars=("model_name", "count"), avg_mpg=("mpg", "mean"), max_hp=("hp", "max"))
    )


@PandasBackend.expression("create_or_replace")
def create_or_replace(tables):
    cars = tables["cars"]
    tables["cars_efficient"] = cars[cars["mpg"] > 20]
    return tables["cars_efficient"]


@PandasBackend.expression("create_if_not_exists")
def create_if_not_exists(tables):
    if "cars_efficient" not in tables:
        tables["cars_efficient"] = tables["cars"].copy()
    return tables["cars_efficient"]


@PandasBackend.expression("unique_check")
def unique_check(tables):
    return pd.DataFrame({"is_unique": [tables["cars"]["model_name"].is_unique]})


@PandasBackend.expression("append_all")
def append_all(tables):
    return pd.concat([tables["cars"], tables["cars_new"]], ignore_index=True)


@PandasBackend.expression("append_distinct")
def append_distinct(tables):
    return pd.concat([tables["cars"], tables["cars_new"]], ignore_index=True).drop_duplicates()


@PandasBackend.expression("duplicate_rows")
def duplicate_rows(tables):
    cars_all = tables["cars_all"]
    return cars_all[cars_all.duplicated(keep=False)]


@PandasBackend.expression("unique_rows")
def unique_rows(tables):
    cars_all = tables["cars_all"]
    return cars_all[~cars_all.duplicated(keep=False)]


@PandasBackend.expression("join_left")
def join_left(tables):
    return tables["cars_by_cyl"].merge(tables["engines"], on="cyl", how="left")


@PandasBackend.expression("join_inner")
def join_inner(tables):
    return tables["cars_by_cyl"].merge(tables["engines"], on="cyl", how="inner")


@PandasBackend.expression("delete_rows")
def delete_rows(tables):
    cars = tables["cars"]
    return cars[cars["model_name"] != "Mazda RX4"]


@PandasBackend.expression("delete_rows_again")
def delete_rows_again(tables):
    cars = tables["cars_deleted"]
    return cars[cars["model_name"] != "Mazda RX4"]


@PandasBackend.expression("update_cell")
def update_cell(tables):
    cars = tables["cars"].copy()
    cars.loc[cars["model_name"] == "Mazda RX4 Wag", "mpg"] = 999
    return cars


def _pivot_years(cities, index):
    wide = cities.pivot_table(
        index=index, columns="year", values="population", aggfunc="sum"
    ).reset_index()
    wide.columns = [str(c) for c in wide.columns]
    return wide


@PandasBackend.expression("pivot_one")
def pivot_one(tables):
    return _pivot_years(tables["cities"], ["country"])


@PandasBackend.expression("pivot_two")
def pivot_two(tables):
    return _pivot_years(tables["cities"], ["continent", "country"])


@PandasBackend.expression("pivot_sparse")
def pivot_sparse(tables):
    cities = tables["cities"]
    sparse = cities[~((cities["country"] == "Japan") & (cities["year"] == 2020))]
    return _pivot_years(sparse, ["country"])


@PandasBackend.expression("unpivot")
def unpivot(tables):
    return tables["cities_wide"].melt(
        id_vars=["country"], var_name="year", value_name="population"
    )
