"""Building the canonical sparse representation matrix (rij).

Rows of rij are conservation features and columns are planning units. Whatever
shape the caller supplies, the result is a ``coo_matrix`` of floats with
duplicate entries summed, explicit zeros removed and entries ordered row-major.
Missing values are kept so that validation can reject them.
"""

import numpy as np
import pandas as pd
from scipy.sparse import coo_matrix, csr_matrix, issparse

from .errors import (
    DimensionMismatch,
    MalformedTable,
    NonFiniteRepresentation,
    UnsupportedInputType,
)

RIJ_COLUMNS = ("feature", "pu", "amount")


def as_rij(
    rij: np.ndarray | pd.DataFrame | coo_matrix,
    ncol: int | None = None,
    nrow: int | None = None,
) -> coo_matrix:
    """Convert a user supplied representation matrix to canonical form.

    Args:
        rij: A dense 2-D array, any scipy sparse matrix, or a long-format
            DataFrame with ``feature``, ``pu`` and ``amount`` columns.
        ncol: Number of planning units. Required for long-format tables since
            the table does not have to mention every planning unit.
        nrow: Number of features for long-format tables. Defaults to the
            largest feature index in the table.

    Returns:
        coo_matrix: The canonical representation matrix.

    Raises:
        UnsupportedInputType: If rij is none of the accepted shapes.
        MalformedTable: If a long-format table is missing required columns.
    """
    if isinstance(rij, pd.DataFrame):
        if ncol is None:
            msg = "ncol must be given to convert a long-format rij table"
            raise ValueError(msg)
        return df_to_matrix(rij, ncol=ncol, nrow=nrow)

    if issparse(rij):
        if rij.dtype.kind not in "biuf":
            msg = "Representation matrix cannot have non-numeric values."
            raise NonFiniteRepresentation(msg)
        return _canonicalize(rij)

    if isinstance(rij, (np.ndarray, list)):
        return dense_to_matrix(rij)

    msg = f"Unsupported rij type: {type(rij)}"
    raise UnsupportedInputType(msg)


def dense_to_matrix(values: np.ndarray | list) -> coo_matrix:
    """Convert a dense features x planning units array to canonical form.

    Exact zeros are dropped. NaN values are stored so they can be rejected
    during validation.
    """
    arr = np.asarray(values)
    if arr.ndim != 2:
        msg = f"Dense rij must be 2-dimensional, got {arr.ndim} dimensions"
        raise UnsupportedInputType(msg)

    if arr.dtype == bool:
        arr = arr.astype(float)
    if arr.dtype.kind not in "iuf":
        msg = "Representation matrix cannot have missing or non-numeric values."
        raise NonFiniteRepresentation(msg)

    return _canonicalize(coo_matrix(arr))


def df_to_matrix(
    df: pd.DataFrame,
    ncol: int,
    nrow: int | None = None,
    variables: tuple[str, str, str] = RIJ_COLUMNS,
) -> coo_matrix:
    """Convert a long-format (feature, pu, amount) table to canonical form.

    Feature and planning unit indices in the table are 1-based. Rows that
    repeat a (feature, pu) pair are summed.

    Args:
        df: Long-format table.
        ncol: Number of planning units (columns of the result).
        nrow: Number of features. Defaults to the largest feature index.
        variables: Names of the feature, planning unit and amount columns.

    Returns:
        coo_matrix: Matrix with shape (nrow, ncol).

    Raises:
        MalformedTable: If a required column is missing or an index column
            does not hold integers.
        DimensionMismatch: If an index falls outside the matrix extents.
    """
    missing_columns = [col for col in variables if col not in df.columns]
    if missing_columns:
        msg = f"rij table is missing required columns: {missing_columns}"
        raise MalformedTable(msg)

    feature_col, pu_col, amount_col = variables
    for col in (feature_col, pu_col):
        if not pd.api.types.is_integer_dtype(df[col]):
            msg = f"rij table column '{col}' must hold integer indices"
            raise MalformedTable(msg)
    if not pd.api.types.is_numeric_dtype(df[amount_col]):
        msg = "Representation matrix cannot have missing or non-numeric values."
        raise NonFiniteRepresentation(msg)

    features = df[feature_col].to_numpy(dtype=np.int64)
    pus = df[pu_col].to_numpy(dtype=np.int64)
    amounts = df[amount_col].to_numpy(dtype=float)

    if nrow is None:
        nrow = int(features.max()) if len(features) else 0

    if len(features) and (features.min() < 1 or features.max() > nrow):
        msg = f"Feature indices in rij table must lie in [1, {nrow}]"
        raise DimensionMismatch(msg)
    if len(pus) and (pus.min() < 1 or pus.max() > ncol):
        msg = f"Planning unit indices in rij table must lie in [1, {ncol}]"
        raise DimensionMismatch(msg)

    m = coo_matrix((amounts, (features - 1, pus - 1)), shape=(nrow, ncol))
    return _canonicalize(m)


def row_sums(rij: coo_matrix) -> np.ndarray:
    """Total representation of each feature across all planning units."""
    return np.asarray(rij.sum(axis=1), dtype=float).ravel()


def _canonicalize(m) -> coo_matrix:
    # copy so summing and pruning never touch the caller's matrix
    csr = csr_matrix(m, dtype=float, copy=True)
    csr.sum_duplicates()
    csr.eliminate_zeros()
    return csr.tocoo()
