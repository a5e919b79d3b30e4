"""Pytest fixtures shared by the dataparity tests."""

import pyarrow as pa
import pyarrow.compute as pc
import pytest

from dataparity import datasets
from dataparity.backends import BACKENDS, get_backend

CARS_BY_CYL = pa.table(
    {
        "cyl": pa.array([4, 6, 8], pa.int64()),
        "n_cars": pa.array([3, 5, 2], pa.int64()),
        "avg_mpg": pa.array([70.0 / 3, 20.14, 16.5], pa.float64()),
        "max_hp": pa.array([95, 123, 245], pa.int64()),
    }
)

CITIES_WIDE = pa.table(
    {
        "country": ["France", "Germany", "Japan"],
        "2000": [60.9, 81.5, 126.8],
        "2010": [65.0, 81.8, 128.1],
        "2020": [67.6, 83.2, 126.3],
    }
)


@pytest.fixture
def tables():
    """The seed tables plus the tables the catalog materializes."""
    tables = datasets.load()
    cars = tables["cars"]
    tables["cars_by_cyl"] = CARS_BY_CYL
    tables["cars_efficient"] = cars.filter(pc.greater(cars["mpg"], 20))
    tables["cars_all"] = pa.concat_tables([cars, tables["cars_new"]])
    tables["cars_deleted"] = cars.filter(pc.not_equal(cars["model_name"], "Mazda RX4"))
    tables["cities_wide"] = CITIES_WIDE
    return tables


@pytest.fixture(params=list(BACKENDS))
def backend(request):
    """Each registered backend, with an open session."""
    backend = get_backend(request.param)
    with backend.session():
        yield backend
