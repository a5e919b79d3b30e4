"""Backend running operations with polars DataFrames."""

import polars as pl
import pyarrow as pa

from .base import FrameBackend


class PolarsBackend(FrameBackend):
    """Run operations as polars DataFrame calls."""

    id = "polars"

    def from_arrow(self, name: str, table: pa.Table) -> pl.DataFrame:
        return pl.from_arrow(table)

    def to_arrow(self, result: pl.DataFrame | pl.LazyFrame) -> pa.Table:
        if isinstance(result, pl.LazyFrame):
            result = result.collect()
        return result.to_arrow()


@PolarsBackend.expression("select_rename")
def select_rename(tables):
    return tables["cars"].select(
        pl.col("model_name").alias("model"), pl.col("mpg").alias("miles_per_gallon")
    )


@PolarsBackend.expression("select_distinct")
def select_distinct(tables):
    return tables["cars"].select("cyl", "gear").unique()


@PolarsBackend.expression("count_rows_columns")
def count_rows_columns(tables):
    n_rows, n_columns = tables["cars"].shape
    return pl.DataFrame({"n_rows": [n_rows], "n_columns": [n_columns]})


@PolarsBackend.expression("derived_columns")
def derived_columns(tables):
    return tables["cars"].select(
        "model_name",
        (pl.col("hp") / pl.col("wt")).alias("power_to_weight"),
        (pl.col("mpg") > 20).alias("is_efficient"),
    )


@PolarsBackend.expression("filter_and")
def filter_and(tables):
    return tables["cars"].filter((pl.col("mpg") == 21) & (pl.col("cyl") == 6))


@PolarsBackend.expression("filter_or")
def filter_or(tables):
    return tables["cars"].filter((pl.col("mpg") == 21) | (pl.col("cyl") == 6))


@PolarsBackend.expression("sort_desc_limit")
def sort_desc_limit(tables):
    return (
        tables["cars"]
        .sort(["mpg", "model_name"], descending=[True, False])
        .head(5)
        .select("model_name", "mpg")
    )


@PolarsBackend.expression("group_aggregate")
def group_aggregate(tables):
    return (
        tables["cars"]
        .lazy()
        .group_by("cyl")
        .agg(
            pl.len().alias("n_cars"),
            pl.col("mpg").mean().alias("avg_mpg"),
            pl.col("hp").max().alias("max_hp"),
        )
    )


@PolarsBackend.expression("create_or_replace")
def create_or_replace(tables):
    tables["cars_efficient"] = tables["cars"].filter(pl.col("mpg") > 20)
    return tables["cars_efficient"]


@PolarsBackend.expression("create_if_not_exists")
def create_if_not_exists(tables):
    if "cars_efficient" not in tables:
        tables["cars_efficient"] = tables["cars"].clone()
    return tables["cars_efficient"]


@PolarsBackend.expression("unique_check")
def unique_check(tables):
    return tables["cars"].select(pl.col("model_name").is_unique().all().alias("is_unique"))


@PolarsBackend.expression("append_all")
def append_all(tables):
    return pl.concat([tables["cars"], tables["cars_new"]], how="vertical")


@PolarsBackend.expression("append_distinct")
def append_distinct(tables):
    return pl.concat([tables["cars"], tables["cars_new"]], how="vertical").unique()


@PolarsBackend.expression("duplicate_rows")
def duplicate_rows(tables):
    cars_all = tables["cars_all"]
    return cars_all.filter(cars_all.is_duplicated())


@PolarsBackend.expression("unique_rows")
def unique_rows(tables):
    cars_all = tables["cars_all"]
    return cars_all.filter(cars_all.is_unique())


@PolarsBackend.expression("join_left")
def join_left(tables):
    return tables["cars_by_cyl"].join(tables["engines"], on="cyl", how="left")


@PolarsBackend.expression("join_inner")
def join_inner(tables):
    return tables["cars_by_cyl"].join(tables["engines"], on="cyl", how="inner")


@PolarsBackend.expression("delete_rows")
def delete_rows(tables):
    return tables["cars"].filter(pl.col("model_name") != "Mazda RX4")


@PolarsBackend.expression("delete_rows_again")
def delete_rows_again(tables):
    return tables["cars_deleted"].filter(pl.col("model_name") != "Mazda RX4")


@PolarsBackend.expression("update_cell")
def update_cell(tables):
    return tables["cars"].with_columns(
        pl.when(pl.col("model_name") == "Mazda RX4 Wag")
        .then(pl.lit(999.0))
        .otherwise(pl.col("mpg"))
        .alias("mpg")
    )


def _pivot_years(cities, index):
    # Sum before pivoting, so that a missing country/year stays null.
    totals = cities.group_by([*index, "year"]).agg(pl.col("population").sum())
    return totals.pivot(on="year", index=index, values="population")


@PolarsBackend.expression("pivot_one")
def pivot_one(tables):
    return _pivot_years(tables["cities"], ["country"])


@PolarsBackend.expression("pivot_two")
def pivot_two(tables):
    return _pivot_years(tables["cities"], ["continent", "country"])


@PolarsBackend.expression("pivot_sparse")
def pivot_sparse(tables):
    sparse = tables["cities"].filter(
        ~((pl.col("country") == "Japan") & (pl.col("year") == 2020))
    )
    return _pivot_years(sparse, ["country"])


@PolarsBackend.expression("unpivot")
def unpivot(tables):
    return tables["cities_wide"].unpivot(
        index="country", variable_name="year", value_name="population"
    )
