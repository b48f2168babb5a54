"""Precondition checks run while building a model.

Each check raises on the first problem it finds and returns None otherwise.
"""

from numbers import Real

import numpy as np
import pandas as pd
from scipy.sparse import coo_matrix

from .errors import (
    DimensionMismatch,
    InfeasibleBudget,
    InfeasibleTarget,
    InvalidCost,
    InvalidLockSet,
    InvalidTarget,
    NonFiniteRepresentation,
    UnsupportedInputType,
)
from .planning_units import (
    GridPlanningUnits,
    PlanningUnits,
    PolygonPlanningUnits,
    Raster,
)


def check_single_cost_layer(pu: PlanningUnits) -> None:
    """Planning units must carry exactly one numeric cost layer or attribute."""
    if isinstance(pu, GridPlanningUnits):
        if pu.raster.nlayers != 1:
            msg = (
                f"Planning unit raster must have a single cost layer, "
                f"got {pu.raster.nlayers}"
            )
            raise UnsupportedInputType(msg)
    elif isinstance(pu, PolygonPlanningUnits):
        if pu.cost_column not in pu.data.columns:
            msg = f"Planning unit polygons are missing a '{pu.cost_column}' column"
            raise UnsupportedInputType(msg)
        if not pd.api.types.is_numeric_dtype(pu.data[pu.cost_column]):
            msg = f"Planning unit column '{pu.cost_column}' must be numeric"
            raise UnsupportedInputType(msg)
    else:
        msg = f"Unsupported planning unit type: {type(pu)}"
        raise UnsupportedInputType(msg)


def check_cost(cost: np.ndarray) -> None:
    """Costs must all be present when planning units cannot be excluded."""
    if not np.all(np.isfinite(cost)):
        msg = "Planning unit costs cannot be missing or infinite"
        raise InvalidCost(msg)


def check_locks(locked_in: np.ndarray, locked_out: np.ndarray, n: int) -> None:
    """Lock indices must lie in [1, n] and the two sets must not overlap."""
    for name, locks in (("locked_in", locked_in), ("locked_out", locked_out)):
        if locks.size and (locks.min() < 1 or locks.max() > n):
            msg = f"{name} indices must lie in [1, {n}]"
            raise InvalidLockSet(msg)

    overlap = np.intersect1d(locked_in, locked_out)
    if overlap.size:
        msg = (
            "Planning units cannot be both locked in and locked out: "
            f"{overlap.tolist()}"
        )
        raise InvalidLockSet(msg)


def check_budget(budget: float) -> None:
    """The budget must be a positive, finite number."""
    if (
        isinstance(budget, bool)
        or not isinstance(budget, Real)
        or not np.isfinite(budget)
        or budget <= 0
    ):
        msg = f"Budget must be a positive finite number, got {budget!r}"
        raise InfeasibleBudget(msg)


def check_locked_in_cost(
    cost: np.ndarray,
    locked_in: np.ndarray,
    budget: float,
) -> None:
    """Locked in planning units must not use up more than the budget.

    Missing costs (excluded planning units) count as zero.
    """
    locked_cost = float(np.nansum(cost[locked_in - 1]))
    if locked_cost > budget:
        msg = (
            f"Cost of locked in planning units ({locked_cost:.2f}) "
            f"exceeds the budget ({budget:.2f})"
        )
        raise InfeasibleBudget(msg)


def check_same_grid(pu: Raster, features: Raster) -> None:
    """Feature rasters must be defined on the planning unit grid."""
    if not pu.same_grid(features):
        msg = "Feature raster does not match the planning unit grid"
        raise DimensionMismatch(msg)


def check_rij_columns(rij: coo_matrix, n: int) -> None:
    if rij.shape[1] != n:
        msg = (
            f"Representation matrix has {rij.shape[1]} columns "
            f"but there are {n} planning units"
        )
        raise DimensionMismatch(msg)


def check_rij_rows(rij: coo_matrix, n: int) -> None:
    if rij.shape[0] != n:
        msg = f"Representation matrix has {rij.shape[0]} rows but there are {n} features"
        raise DimensionMismatch(msg)


def check_rij_values(rij: coo_matrix) -> None:
    if rij.dtype.kind not in "biuf" or not np.all(np.isfinite(rij.data)):
        msg = "Representation matrix cannot have missing or non-numeric values."
        raise NonFiniteRepresentation(msg)


def check_targets(targets) -> None:
    """Targets must be finite, non-negative numbers."""
    arr = np.asarray(targets)
    if arr.dtype == bool or arr.dtype.kind not in "iuf":
        msg = "Targets must be numeric"
        raise InvalidTarget(msg)
    if not np.all(np.isfinite(arr)) or np.any(arr < 0):
        msg = "Targets must be finite and non-negative"
        raise InvalidTarget(msg)


def check_relative_targets(targets) -> None:
    """Relative targets are proportions and cannot exceed 1."""
    arr = np.atleast_1d(np.asarray(targets, dtype=float))
    above = np.flatnonzero(arr > 1)
    if above.size:
        i = above[0]
        msg = (
            f"Relative target for feature {i + 1} ({arr[i]}) is above 1, "
            "it can never be met"
        )
        raise InfeasibleTarget(msg)
