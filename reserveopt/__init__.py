"""Build solver-ready reserve design problems from raster and polygon data."""

from .core import (
    MaxCoverModel,
    ReserveModel,
    TargetModel,
    build_maxcoverage_model,
    build_target_model,
    maxcover_model,
    prioritizr_model,
)
from .errors import (
    DimensionMismatch,
    InfeasibleBudget,
    InfeasibleTarget,
    InvalidCost,
    InvalidLockSet,
    InvalidTarget,
    MalformedTable,
    ModelConstructionError,
    NonFiniteRepresentation,
    UnsupportedInputType,
)
from .matrix import as_rij, df_to_matrix, row_sums
from .planning_units import (
    GridPlanningUnits,
    PlanningUnits,
    PolygonPlanningUnits,
    Raster,
    as_planning_units,
)
from .solver import expand_selection, get_selection_summary, solve
from .summarize import summarize_features
from .targets import set_targets

__all__ = [
    "DimensionMismatch",
    "GridPlanningUnits",
    "InfeasibleBudget",
    "InfeasibleTarget",
    "InvalidCost",
    "InvalidLockSet",
    "InvalidTarget",
    "MalformedTable",
    "MaxCoverModel",
    "ModelConstructionError",
    "NonFiniteRepresentation",
    "PlanningUnits",
    "PolygonPlanningUnits",
    "Raster",
    "ReserveModel",
    "TargetModel",
    "UnsupportedInputType",
    "as_planning_units",
    "as_rij",
    "build_maxcoverage_model",
    "build_target_model",
    "df_to_matrix",
    "expand_selection",
    "get_selection_summary",
    "maxcover_model",
    "prioritizr_model",
    "row_sums",
    "set_targets",
    "solve",
    "summarize_features",
]
