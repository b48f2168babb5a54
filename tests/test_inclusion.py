import numpy as np
from scipy.sparse import coo_matrix

from reserveopt.inclusion import inclusion_mask, subset_cost, subset_rij


def test_mask_all_included():
    """Test that a cost vector without gaps gives the single True value."""
    assert inclusion_mask(np.array([1.0, 2.0, 3.0])) is True


def test_mask_with_missing_costs():
    mask = inclusion_mask(np.array([1.0, np.nan, 3.0, np.nan]))

    assert mask.dtype == bool
    assert mask.tolist() == [True, False, True, False]


def test_subset_cost_keeps_order():
    cost = np.array([5.0, np.nan, 3.0, 1.0])

    subset = subset_cost(cost, inclusion_mask(cost))

    assert subset.tolist() == [5.0, 3.0, 1.0]


def test_subset_cost_all_included_returns_copy():
    cost = np.array([1.0, 2.0])

    subset = subset_cost(cost, True)
    subset[0] = 99.0

    # Should leave the input untouched
    assert cost[0] == 1.0


def test_subset_rij_drops_columns(rij_dense: np.ndarray):
    rij = coo_matrix(rij_dense)
    mask = np.array([True, False, True, False])

    subset = subset_rij(rij, mask)

    # Should keep every row and only the included columns
    assert subset.shape == (3, 2)
    np.testing.assert_array_equal(subset.toarray(), rij_dense[:, mask])
    assert rij.shape == (3, 4)


def test_subset_rij_all_included(rij_dense: np.ndarray):
    rij = coo_matrix(rij_dense)

    subset = subset_rij(rij, True)

    assert subset is not rij
    np.testing.assert_array_equal(subset.toarray(), rij_dense)
