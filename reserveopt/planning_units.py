"""Planning unit inputs: gridded rasters and polygon layers.

A problem is built either from a single band raster, where every cell is a
planning unit and the cell value is its cost, or from a polygon layer with a
``cost`` attribute. The two cases are kept as separate types so that model
builders can handle each one explicitly.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Self

import geopandas as gpd
import numpy as np
import rasterio
import shapely
from pyproj import CRS
from rasterio.transform import Affine

from .errors import DimensionMismatch, UnsupportedInputType

RASTER_SUFFIXES = {".tif", ".tiff", ".asc", ".img", ".vrt"}


class Raster:
    """A stack of co-registered grid layers.

    Cells are numbered row-major from the top-left cell, the same order as
    ``numpy.ravel`` on a single band.

    Attributes:
        values (np.ndarray): Float array of shape (bands, rows, cols). Missing
            cells are NaN.
        transform (Affine | None): Affine transform from cell to map coordinates.
        crs (CRS | None): Coordinate reference system.
        names (list[str]): One name per band.
    """

    def __init__(
        self,
        values: np.ndarray,
        transform: Affine | None = None,
        crs: CRS | str | None = None,
        names: list[str] | None = None,
    ) -> None:
        """Create a Raster from an in-memory array.

        Args:
            values: Array of shape (rows, cols) for a single band or
                (bands, rows, cols) for a stack.
            transform: Optional affine transform. Needed to overlay polygons.
            crs: Optional coordinate reference system, anything pyproj accepts.
            names: Optional band names.

        Raises:
            UnsupportedInputType: If values is not 2 or 3 dimensional.
            DimensionMismatch: If the number of names does not match the
                number of bands.
        """
        arr = np.array(values, dtype=float)
        if arr.ndim == 2:
            arr = arr[np.newaxis, ...]
        if arr.ndim != 3:
            msg = f"Raster values must have 2 or 3 dimensions, got {arr.ndim}"
            raise UnsupportedInputType(msg)

        if names is None:
            names = [f"layer_{i + 1}" for i in range(arr.shape[0])]
        elif len(names) != arr.shape[0]:
            msg = f"Got {len(names)} names for {arr.shape[0]} bands"
            raise DimensionMismatch(msg)

        self.values = arr
        self.transform = transform
        self.crs = CRS.from_user_input(crs) if crs is not None else None
        self.names = list(names)

    @classmethod
    def from_file(cls, path: str | Path, bands: list[int] | None = None) -> Self:
        """Read a raster file with rasterio.

        Nodata cells are read as NaN.

        Args:
            path: Path to any raster format rasterio can open.
            bands: Optional 1-based band indices. Defaults to all bands.
        """
        with rasterio.open(path) as src:
            data = src.read(indexes=bands, masked=True)
            descriptions = (
                src.descriptions
                if bands is None
                else [src.descriptions[b - 1] for b in bands]
            )
            transform = src.transform
            crs = src.crs.to_string() if src.crs is not None else None

        if data.ndim == 2:
            data = data[np.newaxis, ...]
        values = data.astype(float).filled(np.nan)
        names = [d or f"layer_{i + 1}" for i, d in enumerate(descriptions)]

        return cls(values, transform=transform, crs=crs, names=names)

    @property
    def nlayers(self) -> int:
        return self.values.shape[0]

    @property
    def nrows(self) -> int:
        return self.values.shape[1]

    @property
    def ncols(self) -> int:
        return self.values.shape[2]

    @property
    def ncell(self) -> int:
        return self.nrows * self.ncols

    def layer(self, i: int) -> "Raster":
        """Return band i (0-based) as a single band Raster."""
        return Raster(
            self.values[i],
            transform=self.transform,
            crs=self.crs,
            names=[self.names[i]],
        )

    def cell_values(self) -> np.ndarray:
        """Cell values as an (ncell, nlayers) array."""
        return self.values.reshape(self.nlayers, -1).T

    def same_grid(self, other: "Raster") -> bool:
        """Check that two rasters share dimensions, transform and CRS."""
        if self.values.shape[1:] != other.values.shape[1:]:
            return False
        if (self.transform is None) != (other.transform is None):
            return False
        if self.transform is not None and not self.transform.almost_equals(
            other.transform
        ):
            return False
        if self.crs is not None and other.crs is not None:
            return self.crs.equals(other.crs, ignore_axis_order=True)
        return True

    def to_polygons(
        self,
        name: str = "cost",
        layer: int = 0,
        dropna: bool = True,
    ) -> gpd.GeoDataFrame:
        """Convert grid cells to square polygons.

        Args:
            name: Column holding the cell values.
            layer: 0-based band to take the values from.
            dropna: If True, cells with missing values are left out.

        Returns:
            gpd.GeoDataFrame: One polygon per cell with columns ``cell``
                (1-based cell number), ``name`` and ``geometry``.

        Raises:
            ValueError: If the raster has no transform.
        """
        if self.transform is None:
            msg = "Raster has no transform, cannot build cell polygons"
            raise ValueError(msg)

        rows, cols = np.divmod(np.arange(self.ncell), self.ncols)
        x0, y0 = _apply_transform(self.transform, cols, rows)
        x1, y1 = _apply_transform(self.transform, cols + 1, rows + 1)
        geoms = shapely.box(
            np.minimum(x0, x1),
            np.minimum(y0, y1),
            np.maximum(x0, x1),
            np.maximum(y0, y1),
        )

        gdf = gpd.GeoDataFrame(
            {"cell": np.arange(self.ncell) + 1, name: self.values[layer].ravel()},
            geometry=geoms,
            crs=self.crs,
        )
        if dropna:
            gdf = gdf[gdf[name].notna()].reset_index(drop=True)
        return gdf


def _apply_transform(
    transform: Affine,
    cols: np.ndarray,
    rows: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """Map cell coordinates to map coordinates, vectorized over arrays."""
    x = transform.a * cols + transform.b * rows + transform.c
    y = transform.d * cols + transform.e * rows + transform.f
    return x, y


@dataclass(frozen=True, eq=False)
class GridPlanningUnits:
    """Planning units given as raster cells, the cell value being the cost."""

    raster: Raster

    @property
    def n(self) -> int:
        return self.raster.ncell

    def cost(self) -> np.ndarray:
        return self.raster.values[0].ravel().copy()


@dataclass(frozen=True, eq=False)
class PolygonPlanningUnits:
    """Planning units given as polygons with a cost attribute."""

    data: gpd.GeoDataFrame
    cost_column: str = "cost"

    @property
    def n(self) -> int:
        return len(self.data)

    def cost(self) -> np.ndarray:
        return self.data[self.cost_column].to_numpy(dtype=float, copy=True)


PlanningUnits = GridPlanningUnits | PolygonPlanningUnits


def as_planning_units(pu) -> PlanningUnits:
    """Wrap raw planning unit input in the matching planning unit type.

    Accepts a Raster, a 2-D or 3-D numpy array, a GeoDataFrame, or a path to
    a raster or vector file.

    Raises:
        UnsupportedInputType: If pu is none of the above.
    """
    if isinstance(pu, (GridPlanningUnits, PolygonPlanningUnits)):
        return pu
    if isinstance(pu, Raster):
        return GridPlanningUnits(pu)
    if isinstance(pu, gpd.GeoDataFrame):
        return PolygonPlanningUnits(pu)
    if isinstance(pu, np.ndarray):
        return GridPlanningUnits(Raster(pu))
    if isinstance(pu, (str, Path)):
        path = Path(pu)
        if path.suffix.lower() in RASTER_SUFFIXES:
            return GridPlanningUnits(Raster.from_file(path))
        return PolygonPlanningUnits(gpd.read_file(path))

    msg = f"Unsupported planning unit type: {type(pu)}"
    raise UnsupportedInputType(msg)
