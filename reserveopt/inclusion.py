"""Excluding planning units whose cost is missing."""

import logging
from typing import Literal

import numpy as np
from scipy.sparse import coo_matrix

from .matrix import _canonicalize

logger = logging.getLogger(__name__)

InclusionMask = Literal[True] | np.ndarray


def inclusion_mask(cost: np.ndarray) -> InclusionMask:
    """Derive which planning units take part in the model.

    Args:
        cost: Per planning unit costs, NaN marking units to exclude.

    Returns:
        True if every unit is included, otherwise a boolean array that is
        True for included units.
    """
    missing = np.isnan(np.asarray(cost, dtype=float))
    if not missing.any():
        return True

    logger.debug("Excluding %d of %d planning units", missing.sum(), missing.size)
    return ~missing


def subset_cost(cost: np.ndarray, included: InclusionMask) -> np.ndarray:
    """Return the costs of included planning units, in their original order."""
    cost = np.asarray(cost, dtype=float)
    if included is True:
        return cost.copy()
    return cost[included]


def subset_rij(rij: coo_matrix, included: InclusionMask) -> coo_matrix:
    """Drop the rij columns of excluded planning units.

    Args:
        rij: Representation matrix over the original planning units.
        included: Inclusion mask over the same planning units.

    Returns:
        coo_matrix: A new matrix with the same rows and one column per
            included planning unit.
    """
    if included is True:
        return _canonicalize(rij)
    return _canonicalize(rij.tocsc()[:, np.flatnonzero(included)])
