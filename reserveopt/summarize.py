"""Summarizing raster feature distributions over planning unit polygons."""

import logging

import geopandas as gpd
import numpy as np
from pyproj import CRS
from rasterio.features import rasterize
from scipy.sparse import coo_matrix

from .errors import UnsupportedInputType
from .matrix import dense_to_matrix
from .planning_units import Raster

logger = logging.getLogger(__name__)


def summarize_features(
    polygons: gpd.GeoDataFrame,
    features: Raster,
    all_touched: bool = False,
) -> coo_matrix:
    """Sum each feature layer within each planning unit polygon.

    A cell is assigned to the polygon containing its centre, or to every
    polygon it touches when ``all_touched`` is set. Where polygons overlap the
    later polygon wins. Missing feature cells are ignored.

    Args:
        polygons: Planning unit polygons.
        features: Feature raster, one band per feature.
        all_touched: Passed through to rasterio's rasterize.

    Returns:
        coo_matrix: Representation matrix with one row per band and one
            column per polygon, in the polygons' row order.

    Raises:
        UnsupportedInputType: If the raster has no transform.
    """
    if not isinstance(features, Raster):
        msg = f"Features must be a Raster, got {type(features)}"
        raise UnsupportedInputType(msg)
    if features.transform is None:
        msg = "Feature raster needs a transform to be overlaid on polygons"
        raise UnsupportedInputType(msg)

    geoms = polygons.geometry
    if (
        geoms.crs is not None
        and features.crs is not None
        and not CRS.from_user_input(geoms.crs).equals(features.crs)
    ):
        logger.debug("Reprojecting planning units to %s", features.crs.name)
        geoms = geoms.to_crs(features.crs)

    n = len(geoms)
    # zone 0 is background, polygon i is zone i + 1
    shapes = [
        (geom, i + 1)
        for i, geom in enumerate(geoms)
        if geom is not None and not geom.is_empty
    ]
    if not shapes:
        return dense_to_matrix(np.zeros((features.nlayers, n)))

    zones = rasterize(
        shapes,
        out_shape=(features.nrows, features.ncols),
        transform=features.transform,
        fill=0,
        all_touched=all_touched,
        dtype="int32",
    ).ravel()

    amounts = np.zeros((features.nlayers, n))
    for b in range(features.nlayers):
        band = features.values[b].ravel()
        valid = (zones > 0) & ~np.isnan(band)
        amounts[b] = np.bincount(zones[valid] - 1, weights=band[valid], minlength=n)

    logger.debug("Summarized %d features over %d polygons", features.nlayers, n)
    return dense_to_matrix(amounts)
