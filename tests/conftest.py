import geopandas as gpd
import numpy as np
import pandas as pd
import pytest
from rasterio.transform import from_bounds

from reserveopt import Raster


@pytest.fixture
def transform():
    """Transform for a 5x5 grid over the unit square."""
    return from_bounds(0, 0, 1, 1, 5, 5)


@pytest.fixture
def cost_raster(transform) -> Raster:
    """5x5 cost grid with cost ~ N(100, 10)."""
    rng = np.random.default_rng(1)
    return Raster(
        rng.normal(100, 10, (5, 5)),
        transform=transform,
        crs="EPSG:3857",
        names=["cost"],
    )


@pytest.fixture
def cost_raster_na(cost_raster: Raster) -> Raster:
    """Same cost grid with cells 6-10 (the second row) missing."""
    values = cost_raster.values.copy()
    values[0, 1, :] = np.nan
    return Raster(values, transform=cost_raster.transform, crs=cost_raster.crs)


@pytest.fixture
def feature_raster(transform) -> Raster:
    """Four binary feature layers on the 5x5 grid."""
    rng = np.random.default_rng(2)
    return Raster(
        rng.integers(0, 2, (4, 5, 5)),
        transform=transform,
        crs="EPSG:3857",
        names=["a", "b", "c", "d"],
    )


@pytest.fixture
def pu_polygons(cost_raster: Raster) -> gpd.GeoDataFrame:
    """The 5x5 cost grid as 25 square polygons with a cost column."""
    return cost_raster.to_polygons()


@pytest.fixture
def rij_dense() -> np.ndarray:
    """3 features x 4 planning units."""
    return np.array(
        [
            [1.0, 0.0, 2.0, 0.0],
            [0.0, 0.0, 0.0, 3.5],
            [4.0, 1.0, 0.0, 0.5],
        ]
    )


@pytest.fixture
def rij_table() -> pd.DataFrame:
    """Long-format version of rij_dense with 1-based indices."""
    return pd.DataFrame(
        {
            "feature": [1, 1, 2, 3, 3, 3],
            "pu": [1, 3, 4, 1, 2, 4],
            "amount": [1.0, 2.0, 3.5, 4.0, 1.0, 0.5],
        }
    )
