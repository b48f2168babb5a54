"""Locked in and locked out planning unit indices.

Lock indices are 1-based. Before any exclusion they refer to the original
planning units; after exclusion they refer to the included units only.
"""

import logging
from collections.abc import Iterable
from numbers import Integral

import numpy as np

from .errors import InvalidLockSet
from .inclusion import InclusionMask

logger = logging.getLogger(__name__)


def normalize_locks(locks: int | Iterable[int] | np.ndarray | None) -> np.ndarray:
    """Coerce lock indices to a sorted array of unique integers.

    Args:
        locks: A single integer index, any iterable of integer indices, or
            None for no locks.

    Returns:
        np.ndarray: 1-D int64 array, strictly ascending.

    Raises:
        InvalidLockSet: If the indices are not integers.
    """
    if locks is None:
        return np.array([], dtype=np.int64)

    if isinstance(locks, Integral):
        locks = [locks]
    elif not isinstance(locks, np.ndarray):
        try:
            locks = list(locks)
        except TypeError as err:
            msg = f"Locked planning units must be integers, got {type(locks)}"
            raise InvalidLockSet(msg) from err
    arr = np.atleast_1d(np.asarray(locks))
    if arr.size == 0:
        return np.array([], dtype=np.int64)

    if arr.ndim != 1 or arr.dtype.kind not in "iu":
        msg = "Locked planning units must be given as a 1-D sequence of integers"
        raise InvalidLockSet(msg)

    return np.unique(arr.astype(np.int64))


def remap_locks(
    locks: np.ndarray,
    included: InclusionMask,
    n: int,
) -> np.ndarray:
    """Translate lock indices from original to included-only coordinates.

    Locks on excluded planning units are dropped.

    Args:
        locks: 1-based indices into the original n planning units.
        included: Inclusion mask over the original planning units.
        n: Number of original planning units.

    Returns:
        np.ndarray: Ascending 1-based indices into the included units. When
            every unit is included the input array is returned unchanged.
    """
    if included is True:
        return locks

    lock = np.zeros(n, dtype=bool)
    lock[np.asarray(locks, dtype=np.int64) - 1] = True

    dropped = int(np.count_nonzero(lock & ~included))
    if dropped:
        logger.warning(
            "%d locked planning unit(s) fall on excluded cells and were dropped",
            dropped,
        )

    return np.flatnonzero(lock[included]).astype(np.int64) + 1
