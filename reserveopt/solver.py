"""Solving reserve design models with Gurobi."""

import logging

import gurobipy as gp
import numpy as np

from .core import MaxCoverModel, ReserveModel, TargetModel
from .errors import DimensionMismatch

logger = logging.getLogger(__name__)


def solve(
    model: ReserveModel,
    time_limit: float | None = None,
    gap: float | None = None,
    verbose: bool = False,
) -> np.ndarray:
    """Solve a reserve design model.

    A MaxCoverModel maximizes the summed representation of all features
    subject to the budget. A TargetModel minimizes cost subject to every
    feature meeting its target. Locked in and locked out planning units are
    fixed through variable bounds.

    Args:
        model: The model to solve. It is not modified.
        time_limit: Optional time limit in seconds.
        gap: Optional relative MIP gap.
        verbose: If True, shows Gurobi's log.

    Returns:
        np.ndarray: 0/1 selection, one entry per planning unit in the model.

    Raises:
        TypeError: If model is not a MaxCoverModel or TargetModel.
        RuntimeError: If the model is infeasible, unbounded, or fails to solve
            for any other reason.
    """
    if not isinstance(model, (MaxCoverModel, TargetModel)):
        msg = f"Cannot solve model of type {type(model)}"
        raise TypeError(msg)

    n = model.n_planning_units
    lb = np.zeros(n)
    ub = np.ones(n)
    lb[model.locked_in - 1] = 1.0
    ub[model.locked_out - 1] = 0.0

    gmodel = gp.Model("reserve_design")
    gmodel.setParam("OutputFlag", 1 if verbose else 0)
    if time_limit is not None:
        gmodel.setParam("TimeLimit", time_limit)
    if gap is not None:
        gmodel.setParam("MIPGap", gap)

    x = gmodel.addMVar(n, lb=lb, ub=ub, vtype=gp.GRB.BINARY, name="x")
    cost = np.array(model.cost, dtype=float)
    rij = model.rij.tocsr()

    if isinstance(model, MaxCoverModel):
        representation = np.asarray(rij.sum(axis=0), dtype=float).ravel()
        gmodel.setObjective(representation @ x, gp.GRB.MAXIMIZE)
        gmodel.addMConstr(cost.reshape(1, -1), x, "<", np.array([model.budget]))
    else:
        gmodel.setObjective(cost @ x, gp.GRB.MINIMIZE)
        gmodel.addMConstr(rij, x, ">", np.array(model.targets, dtype=float))

    gmodel.optimize()
    status = gmodel.Status

    if status == gp.GRB.INFEASIBLE:
        msg = "Model is infeasible"
        raise RuntimeError(msg)
    if status == gp.GRB.INF_OR_UNBD:
        msg = "Model is infeasible or unbounded"
        raise RuntimeError(msg)
    if status == gp.GRB.UNBOUNDED:
        msg = "Model is unbounded"
        raise RuntimeError(msg)
    if status == gp.GRB.TIME_LIMIT and gmodel.SolCount > 0:
        logger.warning("Time limit reached, returning best solution found")
    elif status != gp.GRB.OPTIMAL:
        msg = f"Optimization failed with status {status}"
        raise RuntimeError(msg)

    logger.debug(
        "Solved in %.3f sec, objective %.4f", gmodel.Runtime, gmodel.ObjVal
    )
    return np.round(x.X).astype(int)


def expand_selection(model: ReserveModel, selection: np.ndarray) -> np.ndarray:
    """Map a selection back onto the original planning units.

    Args:
        model: The model the selection was computed for.
        selection: One value per planning unit in the model.

    Returns:
        np.ndarray: Float array over the original planning units, NaN where a
            planning unit was excluded from the model.

    Raises:
        DimensionMismatch: If selection does not match the model.
    """
    selection = _check_selection(model, selection)

    if not isinstance(model, MaxCoverModel) or model.included is True:
        return selection.copy()

    full = np.full(model.included.size, np.nan)
    full[model.included] = selection
    return full


def get_selection_summary(model: ReserveModel, selection: np.ndarray) -> dict:
    """Summarize a selection.

    Returns:
        Dictionary containing:
            - selected_count: Number of selected planning units
            - total_cost: Cost of the selection
            - representation: Amount of each feature held by the selection
            - targets_met: Per-feature flags (TargetModel only)
            - within_budget: Whether the cost fits the budget (MaxCoverModel only)
    """
    selection = _check_selection(model, selection)

    total_cost = float(model.cost @ selection)
    representation = model.rij.tocsr() @ selection

    summary = {
        "selected_count": int(np.count_nonzero(selection)),
        "total_cost": total_cost,
        "representation": representation,
    }
    if isinstance(model, TargetModel):
        summary["targets_met"] = representation >= model.targets
    elif isinstance(model, MaxCoverModel):
        summary["within_budget"] = total_cost <= model.budget
    return summary


def _check_selection(model: ReserveModel, selection: np.ndarray) -> np.ndarray:
    selection = np.asarray(selection, dtype=float)
    if selection.shape != (model.n_planning_units,):
        msg = (
            f"Selection has {selection.size} values but the model has "
            f"{model.n_planning_units} planning units"
        )
        raise DimensionMismatch(msg)
    return selection
