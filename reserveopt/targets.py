"""Converting representation targets to absolute amounts."""

from typing import Literal

import numpy as np

from .errors import DimensionMismatch, InfeasibleTarget

TargetType = Literal["relative", "absolute"]


def set_targets(
    totals: np.ndarray,
    targets: float | list[float] | np.ndarray,
    target_type: TargetType = "relative",
) -> np.ndarray:
    """Compute one absolute target per feature.

    Args:
        totals: Total representation of each feature (row sums of rij).
        targets: A single value applied to every feature, or one value per
            feature in the same order as the rows of rij.
        target_type: "relative" if targets are proportions of the totals,
            "absolute" if they are amounts.

    Returns:
        np.ndarray: Absolute targets.

    Raises:
        ValueError: If target_type is not recognised.
        DimensionMismatch: If the number of targets does not match the number
            of features.
        InfeasibleTarget: If an absolute target exceeds the feature's total.
    """
    if target_type not in ("relative", "absolute"):
        msg = f"target_type must be 'relative' or 'absolute', got {target_type!r}"
        raise ValueError(msg)

    totals = np.asarray(totals, dtype=float)
    targets = np.asarray(targets, dtype=float)

    if targets.size == 1:
        targets = np.full(totals.shape, targets.item())
    elif targets.shape != totals.shape:
        msg = (
            f"Got {targets.size} targets for {totals.size} features. "
            "Provide a single target or one per feature."
        )
        raise DimensionMismatch(msg)

    if target_type == "relative":
        return targets * totals

    infeasible = np.flatnonzero(targets > totals)
    if infeasible.size:
        i = infeasible[0]
        msg = (
            f"Target for feature {i + 1} ({targets[i]}) exceeds its total "
            f"representation ({totals[i]})"
        )
        raise InfeasibleTarget(msg)

    return targets.copy()
