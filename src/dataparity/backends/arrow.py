"""Backend running operations with pyarrow compute functions.

Tables are already in Arrow format, so this backend needs
no conversion at all and works directly on :class:`pyarrow.Table`
through :mod:`pyarrow.compute` and the Table methods
(``filter``, ``group_by``, ``join``, ``sort_by``).

PyArrow provides no pivot and no way to flag duplicated rows,
so the ``pivot_*``, ``duplicate_rows`` and ``unique_rows`` operations
are not registered for this backend and are reported as unsupported.
"""

import pyarrow as pa
import pyarrow.compute as pc

from .base import FrameBackend


class ArrowBackend(FrameBackend):
    """Run operations as pyarrow compute calls."""

    id = "arrow"

    def from_arrow(self, name: str, table: pa.Table) -> pa.Table:
        return table

    def to_arrow(self, result: pa.Table) -> pa.Table:
        return result


@ArrowBackend.expression("select_rename")
def select_rename(tables):
    return tables["cars"].select(["model_name", "mpg"]).rename_columns(["model", "miles_per_gallon"])


@ArrowBackend.expression("select_distinct")
def select_distinct(tables):
    return tables["cars"].group_by(["cyl", "gear"]).aggregate([])


@ArrowBackend.expression("count_rows_columns")
def count_rows_columns(tables):
    cars = tables["cars"]
    return pa.table({"n_rows": [cars.num_rows], "n_columns": [cars.num_columns]})


@ArrowBackend.expression("derived_columns")
def derived_columns(tables):
    cars = tables["cars"]
    return pa.table(
        {
            "model_name": cars["model_name"],
            "power_to_weight": pc.divide(pc.cast(cars["hp"], pa.float64()), cars["wt"]),
            "is_efficient": pc.greater(cars["mpg"], 20),
        }
    )


@ArrowBackend.expression("filter_and")
def filter_and(tables):
    cars = tables["cars"]
    return cars.filter(pc.and_(pc.equal(cars["mpg"], 21), pc.equal(cars["cyl"], 6)))


@ArrowBackend.expression("filter_or")
def filter_or(tables):
    cars = tables["cars"]
    return cars.filter(pc.or_(pc.equal(cars["mpg"], 21), pc.equal(cars["cyl"], 6)))


@ArrowBackend.expression("sort_desc_limit")
def sort_desc_limit(tables):
    return (
        tables["cars"]
        .sort_by([("mpg", "descending"), ("model_name", "ascending")])
        .slice(0, 5)
        .select(["model_name", "mpg"])
    )


@ArrowBackend.expression("group_aggregate")
def group_aggregate(tables):
    grouped = tables["cars"].group_by("cyl").aggregate(
        [("model_name", "count"), ("mpg", "mean"), ("hp", "max")]
    )
    return pa.table(
        {
            "cyl": grouped["cyl"],
            "n_cars": grouped["model_name_count"],
            "avg_mpg": grouped["mpg_mean"],
            "max_hp": grouped["hp_max"],
        }
    )


@ArrowBackend.expression("create_or_replace")
def create_or_replace(tables):
    cars = tables["cars"]
    tables["cars_efficient"] = cars.filter(pc.greater(cars["mpg"], 20))
    return tables["cars_efficient"]


@ArrowBackend.expression("create_if_not_exists")
def create_if_not_exists(tables):
    if "cars_efficient" not in tables:
        tables["cars_efficient"] = tables["cars"]
    return tables["cars_efficient"]


@ArrowBackend.expression("unique_check")
def unique_check(tables):
    cars = tables["cars"]
    n_distinct = pc.count_distinct(cars["model_name"]).as_py()
    return pa.table({"is_unique": [n_distinct == cars.num_rows]})


@ArrowBackend.expression("append_all")
def append_all(tables):
    return pa.concat_tables([tables["cars"], tables["cars_new"]])


@ArrowBackend.expression("append_distinct")
def append_distinct(tables):
    appended = pa.concat_tables([tables["cars"], tables["cars_new"]])
    return appended.group_by(appended.column_names).aggregate([])


@ArrowBackend.expression("join_left")
def join_left(tables):
    return tables["cars_by_cyl"].join(tables["engines"], keys="cyl", join_type="left outer")


@ArrowBackend.expression("join_inner")
def join_inner(tables):
    return tables["cars_by_cyl"].join(tables["engines"], keys="cyl", join_type="inner")


@ArrowBackend.expression("delete_rows")
def delete_rows(tables):
    cars = tables["cars"]
    return cars.filter(pc.not_equal(cars["model_name"], "Mazda RX4"))


@ArrowBackend.expression("delete_rows_again")
def delete_rows_again(tables):
    cars = tables["cars_deleted"]
    return cars.filter(pc.not_equal(cars["model_name"], "Mazda RX4"))


@ArrowBackend.expression("update_cell")
def update_cell(tables):
    cars = tables["cars"]
    mpg = pc.if_else(pc.equal(cars["model_name"], "Mazda RX4 Wag"), 999.0, cars["mpg"])
    return cars.set_column(cars.schema.get_field_index("mpg"), "mpg", mpg)


@ArrowBackend.expression("unpivot")
def unpivot(tables):
    wide = tables["cities_wide"]
    years = [name for name in wide.column_names if name != "country"]
    return pa.concat_tables(
        [
            pa.table(
                {
                    "country": wide["country"],
                    "year": pa.chunked_array([[year] * wide.num_rows], type=pa.string()),
                    "population": wide[year],
                }
            )
            for year in years
        ]
    )
