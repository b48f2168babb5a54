import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Self

import numpy as np
import pandas as pd
from pydantic import BaseModel
from scipy.sparse import coo_matrix

from .errors import (
    InvalidCost,
    InvalidTarget,
    ModelConstructionError,
    UnsupportedInputType,
)
from .inclusion import InclusionMask, inclusion_mask, subset_cost, subset_rij
from .locks import normalize_locks, remap_locks
from .matrix import as_rij, dense_to_matrix, row_sums
from .planning_units import (
    GridPlanningUnits,
    PlanningUnits,
    PolygonPlanningUnits,
    Raster,
    as_planning_units,
)
from .summarize import summarize_features
from .targets import TargetType, set_targets
from .validation import (
    check_budget,
    check_cost,
    check_locked_in_cost,
    check_locks,
    check_relative_targets,
    check_rij_columns,
    check_rij_values,
    check_same_grid,
    check_single_cost_layer,
    check_targets,
)

logger = logging.getLogger(__name__)

RijInput = np.ndarray | pd.DataFrame | coo_matrix
LockInput = int | Iterable[int] | np.ndarray | None


class RijSchema(BaseModel):
    """Schema for serializing a representation matrix as 0-based triplets."""

    nrow: int
    ncol: int
    i: list[int]
    j: list[int]
    v: list[float]


class MaxCoverModelSchema(BaseModel):
    """Schema for serializing a MaxCoverModel."""

    kind: Literal["maxcover"] = "maxcover"
    cost: list[float]
    rij: RijSchema
    budget: float
    locked_in: list[int]
    locked_out: list[int]
    included: Literal[True] | list[bool]


class TargetModelSchema(BaseModel):
    """Schema for serializing a TargetModel."""

    kind: Literal["target"] = "target"
    cost: list[float]
    rij: RijSchema
    targets: list[float]
    locked_in: list[int]
    locked_out: list[int]


@dataclass(frozen=True, eq=False)
class ReserveModel(ABC):
    """Solver-ready reserve design problem.

    Instances are built by ``maxcover_model`` or ``prioritizr_model`` and are
    read-only afterwards: the arrays they hold cannot be written to.
    ``ReserveModel.load`` returns whichever variant was saved.

    Attributes:
        cost (np.ndarray): Cost of each planning unit in the model.
        rij (coo_matrix): Amount of each feature (rows) in each planning unit
            (columns).
        locked_in (np.ndarray): Ascending 1-based indices of planning units
            that must be selected.
        locked_out (np.ndarray): Ascending 1-based indices of planning units
            that must not be selected.
    """

    cost: np.ndarray
    rij: coo_matrix
    locked_in: np.ndarray
    locked_out: np.ndarray

    def __post_init__(self) -> None:
        for arr in (
            self.cost,
            self.locked_in,
            self.locked_out,
            self.rij.data,
            self.rij.row,
            self.rij.col,
        ):
            arr.setflags(write=False)

    @property
    def n_planning_units(self) -> int:
        return self.rij.shape[1]

    @property
    def n_features(self) -> int:
        return self.rij.shape[0]

    def summary(self) -> dict:
        """Get a summary of the problem size and locks."""
        return {
            "planning_units": self.n_planning_units,
            "features": self.n_features,
            "total_cost": float(self.cost.sum()),
            "locked_in": len(self.locked_in),
            "locked_out": len(self.locked_out),
        }

    def print_summary(self) -> None:
        """Pretty-print the problem summary."""
        summary = self.summary()

        print(f"{type(self).__name__} Summary")
        for key, value in summary.items():
            label = key.replace("_", " ").capitalize()
            if isinstance(value, float):
                print(f"  {label:<16}: {value:.2f}")
            else:
                print(f"  {label:<16}: {value}")

    def save(self, path: str | Path) -> None:
        """Save the model to {path}.json.

        Args:
            path: Base path for saving (without extension).
        """
        Path(path).with_suffix(".json").write_text(
            self._to_schema().model_dump_json(indent=2),
        )

    @classmethod
    def load(cls, path: str | Path) -> Self:
        """Load a model saved with ``save``.

        The loaded model goes through the same lock and matrix checks as a
        freshly built one.

        Args:
            path: Base path (without extension). Looks for {path}.json.

        Raises:
            FileNotFoundError: If the file is missing.
            ModelConstructionError: If loaded through ``ReserveModel`` and the
                file does not name a known model kind.
        """
        json_path = Path(path).with_suffix(".json")
        if not json_path.exists():
            msg = f"JSON model file not found: {json_path}"
            raise FileNotFoundError(msg)

        data = json.loads(json_path.read_text())
        model_cls = cls
        if cls is ReserveModel:
            kind = data.get("kind") if isinstance(data, dict) else None
            if kind not in _MODEL_KINDS:
                msg = f"Unknown model kind in {json_path}: {kind!r}"
                raise ModelConstructionError(msg)
            model_cls = _MODEL_KINDS[kind]

        return model_cls._from_schema(data)

    def _rij_schema(self) -> RijSchema:
        return RijSchema(
            nrow=self.rij.shape[0],
            ncol=self.rij.shape[1],
            i=self.rij.row.tolist(),
            j=self.rij.col.tolist(),
            v=self.rij.data.tolist(),
        )

    @abstractmethod
    def _to_schema(self) -> BaseModel: ...

    @classmethod
    @abstractmethod
    def _from_schema(cls, data: dict) -> Self: ...


@dataclass(frozen=True, eq=False)
class MaxCoverModel(ReserveModel):
    """Maximum coverage problem: maximize representation within a budget.

    Attributes:
        budget (float): Maximum total cost of selected planning units.
        included (True | np.ndarray): True if every original planning unit is
            in the model, otherwise a boolean array over the original grid
            cells marking the ones that are.
    """

    budget: float
    included: InclusionMask

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.included is not True:
            self.included.setflags(write=False)

    def summary(self) -> dict:
        summary = super().summary()
        summary["budget"] = float(self.budget)
        summary["excluded"] = (
            0 if self.included is True else int(np.count_nonzero(~self.included))
        )
        return summary

    def _to_schema(self) -> MaxCoverModelSchema:
        return MaxCoverModelSchema(
            cost=self.cost.tolist(),
            rij=self._rij_schema(),
            budget=self.budget,
            locked_in=self.locked_in.tolist(),
            locked_out=self.locked_out.tolist(),
            included=True if self.included is True else self.included.tolist(),
        )

    @classmethod
    def _from_schema(cls, data: dict) -> Self:
        schema = MaxCoverModelSchema.model_validate(data)
        cost, rij, locked_in, locked_out = _restore_common(schema)
        check_budget(schema.budget)
        check_locked_in_cost(cost, locked_in, schema.budget)

        included = schema.included
        if included is not True:
            included = np.array(included, dtype=bool)
            if np.count_nonzero(included) != len(cost):
                msg = "Saved inclusion mask does not match the number of costs"
                raise ModelConstructionError(msg)

        return cls(
            cost=cost,
            rij=rij,
            locked_in=locked_in,
            locked_out=locked_out,
            budget=schema.budget,
            included=included,
        )


@dataclass(frozen=True, eq=False)
class TargetModel(ReserveModel):
    """Minimum set problem: meet every feature target at least cost.

    Attributes:
        targets (np.ndarray): Absolute target for each feature (row of rij).
    """

    targets: np.ndarray

    def __post_init__(self) -> None:
        super().__post_init__()
        self.targets.setflags(write=False)

    def summary(self) -> dict:
        summary = super().summary()
        summary["total_target"] = float(self.targets.sum())
        return summary

    def _to_schema(self) -> TargetModelSchema:
        return TargetModelSchema(
            cost=self.cost.tolist(),
            rij=self._rij_schema(),
            targets=self.targets.tolist(),
            locked_in=self.locked_in.tolist(),
            locked_out=self.locked_out.tolist(),
        )

    @classmethod
    def _from_schema(cls, data: dict) -> Self:
        schema = TargetModelSchema.model_validate(data)
        cost, rij, locked_in, locked_out = _restore_common(schema)
        check_cost(cost)
        check_targets(schema.targets)
        targets = set_targets(row_sums(rij), schema.targets, "absolute")

        return cls(
            cost=cost,
            rij=rij,
            locked_in=locked_in,
            locked_out=locked_out,
            targets=targets,
        )


_MODEL_KINDS: dict[str, type[ReserveModel]] = {
    "maxcover": MaxCoverModel,
    "target": TargetModel,
}


def maxcover_model(
    planning_units,
    features: Raster | np.ndarray | None = None,
    budget: float | None = None,
    rij: RijInput | None = None,
    locked_in: LockInput = (),
    locked_out: LockInput = (),
) -> MaxCoverModel:
    """Prepare a maximum coverage reserve design problem.

    The maximum coverage problem selects the planning units that maximize
    overall representation of the conservation features while keeping total
    cost within a budget.

    Args:
        planning_units: Either a single band Raster (or array, or raster file
            path) with the cost of each cell, or a GeoDataFrame (or vector file
            path) with a ``cost`` column. Raster cells with a missing cost are
            excluded from the problem.
        features: Raster with one band per feature. On a grid it must share
            the planning unit grid, for polygons it is summed within each
            polygon. Not needed if rij is given.
        budget: Maximum total cost of the selected planning units.
        rij: Representation matrix with features as rows and planning units
            as columns. A dense array, a scipy sparse matrix, or a DataFrame
            with ``feature``, ``pu`` and ``amount`` columns (1-based indices).
        locked_in: 1-based indices of planning units that must be selected.
        locked_out: 1-based indices of planning units that must not be
            selected.

    Returns:
        MaxCoverModel: The assembled problem.

    Example:
        >>> import numpy as np
        >>> from rasterio.transform import from_bounds
        >>> rng = np.random.default_rng(1)
        >>> transform = from_bounds(0, 0, 1, 1, 5, 5)
        >>> cost = Raster(rng.normal(100, 10, (5, 5)), transform=transform)
        >>> features = Raster(rng.integers(0, 2, (4, 5, 5)), transform=transform)
        >>> budget = 0.25 * np.nansum(cost.values)
        >>> model = maxcover_model(cost, features, budget=budget,
        ...                        locked_in=range(6, 11), locked_out=range(16, 21))
        >>> model.rij.shape
        (4, 25)
    """
    pu = as_planning_units(planning_units)
    return build_maxcoverage_model(
        pu,
        features=features,
        budget=budget,
        rij=rij,
        locked_in=locked_in,
        locked_out=locked_out,
    )


def prioritizr_model(
    planning_units,
    features: Raster | np.ndarray | None = None,
    targets: float | list[float] | np.ndarray | None = None,
    rij: RijInput | None = None,
    locked_in: LockInput = (),
    locked_out: LockInput = (),
    target_type: TargetType = "relative",
) -> TargetModel:
    """Prepare a target based reserve design problem.

    Args:
        planning_units: Single band Raster (or array, or raster file path)
            of costs, or a GeoDataFrame (or vector file path) with a ``cost``
            column. Costs may not be missing.
        features: Raster with one band per feature. Not needed if rij is given.
        targets: One target for all features or one per feature, in rij row
            order. Proportions of each feature's total when target_type is
            "relative", amounts when it is "absolute".
        rij: Representation matrix, as for ``maxcover_model``.
        locked_in: 1-based indices of planning units that must be selected.
        locked_out: 1-based indices of planning units that must not be
            selected.
        target_type: "relative" (default) or "absolute".

    Returns:
        TargetModel: The assembled problem, with absolute targets.
    """
    pu = as_planning_units(planning_units)
    return build_target_model(
        pu,
        features=features,
        targets=targets,
        rij=rij,
        locked_in=locked_in,
        locked_out=locked_out,
        target_type=target_type,
    )


def build_maxcoverage_model(
    pu: PlanningUnits,
    features: Raster | np.ndarray | None = None,
    budget: float | None = None,
    rij: RijInput | None = None,
    locked_in: LockInput = (),
    locked_out: LockInput = (),
) -> MaxCoverModel:
    """Assemble a MaxCoverModel from grid or polygon planning units.

    On a grid, cells with a missing cost are dropped from the cost vector and
    rij, and lock indices are shifted to count included cells only.

    Raises:
        UnsupportedInputType: If an input is not one of the accepted shapes.
        InvalidLockSet: If lock indices are out of range or overlap.
        InfeasibleBudget: If the budget is not positive or locked in units
            cost more than the budget.
        DimensionMismatch: If rij or features do not match the planning units.
        NonFiniteRepresentation: If rij holds missing values.
    """
    check_single_cost_layer(pu)
    locked_in = normalize_locks(locked_in)
    locked_out = normalize_locks(locked_out)
    check_locks(locked_in, locked_out, pu.n)
    check_budget(budget)

    cost = pu.cost()
    if isinstance(pu, GridPlanningUnits):
        included = inclusion_mask(cost)
        if included is not True and not included.any():
            msg = "Every planning unit has a missing cost"
            raise InvalidCost(msg)
    else:
        check_cost(cost)
        included = True
    check_locked_in_cost(cost, locked_in, budget)

    cost = subset_cost(cost, included)
    rij = _build_rij(pu, features, rij, included)
    check_rij_columns(rij, len(cost))
    check_rij_values(rij)

    locked_in = remap_locks(locked_in, included, pu.n)
    locked_out = remap_locks(locked_out, included, pu.n)

    logger.debug(
        "Built maximum coverage model: %d features, %d planning units",
        *rij.shape,
    )
    return MaxCoverModel(
        cost=cost,
        rij=rij,
        locked_in=locked_in,
        locked_out=locked_out,
        budget=float(budget),
        included=included,
    )


def build_target_model(
    pu: PlanningUnits,
    features: Raster | np.ndarray | None = None,
    targets: float | list[float] | np.ndarray | None = None,
    rij: RijInput | None = None,
    locked_in: LockInput = (),
    locked_out: LockInput = (),
    target_type: TargetType = "relative",
) -> TargetModel:
    """Assemble a TargetModel from grid or polygon planning units.

    No planning units are excluded: every cost must be present.

    Raises:
        ValueError: If target_type is not recognised.
        UnsupportedInputType: If an input is not one of the accepted shapes.
        InvalidLockSet: If lock indices are out of range or overlap.
        InvalidCost: If a cost is missing.
        InvalidTarget: If targets are missing, negative or non-numeric.
        InfeasibleTarget: If a target exceeds its feature's total.
        DimensionMismatch: If rij, features or targets do not match.
        NonFiniteRepresentation: If rij holds missing values.
    """
    if target_type not in ("relative", "absolute"):
        msg = f"target_type must be 'relative' or 'absolute', got {target_type!r}"
        raise ValueError(msg)

    check_single_cost_layer(pu)
    locked_in = normalize_locks(locked_in)
    locked_out = normalize_locks(locked_out)
    check_locks(locked_in, locked_out, pu.n)

    if targets is None:
        msg = "targets must be given"
        raise InvalidTarget(msg)
    check_targets(targets)
    if target_type == "relative":
        check_relative_targets(targets)

    cost = pu.cost()
    check_cost(cost)

    rij = _build_rij(pu, features, rij, True)
    check_rij_columns(rij, len(cost))
    check_rij_values(rij)

    targets = set_targets(row_sums(rij), targets, target_type)

    logger.debug(
        "Built target model: %d features, %d planning units",
        *rij.shape,
    )
    return TargetModel(
        cost=cost,
        rij=rij,
        locked_in=locked_in,
        locked_out=locked_out,
        targets=targets,
    )


def _build_rij(
    pu: PlanningUnits,
    features: Raster | np.ndarray | None,
    rij: RijInput | None,
    included: InclusionMask,
) -> coo_matrix:
    """Build rij over the included planning units.

    An explicit rij takes precedence over features.
    """
    if rij is not None:
        if features is not None:
            logger.debug("rij was given, ignoring features")
        rij = as_rij(rij, ncol=pu.n)
        check_rij_columns(rij, pu.n)
        return subset_rij(rij, included)

    if features is None:
        msg = "Either features or rij must be given"
        raise ModelConstructionError(msg)

    if isinstance(pu, PolygonPlanningUnits):
        features = _as_feature_raster(features, None)
        return summarize_features(pu.data, features)

    features = _as_feature_raster(features, pu.raster)
    check_same_grid(pu.raster, features)
    values = features.cell_values()
    if included is not True:
        values = values[included]
    return dense_to_matrix(values.T)


def _as_feature_raster(features, template: Raster | None) -> Raster:
    if isinstance(features, Raster):
        return features
    if isinstance(features, (str, Path)):
        return Raster.from_file(features)
    if isinstance(features, np.ndarray) and template is not None:
        # bare arrays are taken to be on the planning unit grid
        return Raster(features, transform=template.transform, crs=template.crs)

    msg = f"Unsupported features type: {type(features)}"
    raise UnsupportedInputType(msg)


def _restore_common(
    schema: MaxCoverModelSchema | TargetModelSchema,
) -> tuple[np.ndarray, coo_matrix, np.ndarray, np.ndarray]:
    cost = np.array(schema.cost, dtype=float)
    rij = as_rij(
        coo_matrix(
            (schema.rij.v, (schema.rij.i, schema.rij.j)),
            shape=(schema.rij.nrow, schema.rij.ncol),
        ),
    )
    check_rij_columns(rij, len(cost))
    check_rij_values(rij)

    locked_in = normalize_locks(schema.locked_in)
    locked_out = normalize_locks(schema.locked_out)
    check_locks(locked_in, locked_out, len(cost))

    return cost, rij, locked_in, locked_out
