"""
Summary statistics of fold-change profiles.
"""

import numpy as np

from tpmap.core.constants import MEAN_FC_MIN_CELLS


def mean_fold_change(matrix) -> float:
    """
    Mean of a fold-change matrix with missing cells counted as 1.

    Parameters
    ----------
    matrix : array-like
        Fold-change matrix.

    Returns
    -------
    float
        The mean, or 0.0 for matrices with too few cells to be meaningful.
    """
    m = np.asarray(matrix, dtype=float)
    if m.size < MEAN_FC_MIN_CELLS:
        return 0.0
    return float(np.where(np.isfinite(m), m, 1.0).mean())


def area_under_curve(temperatures, ratios) -> np.ndarray:
    """
    Trapezoid area under each replicate curve.

    Parameters
    ----------
    temperatures : array-like
        Temperatures, one per column.
    ratios : array-like
        Matrix of shape ``(replicates, temperatures)``.

    Returns
    -------
    np.ndarray
        One area per row; rows with missing values give NaN.
    """
    t = np.asarray(temperatures, dtype=float)
    r = np.atleast_2d(np.asarray(ratios, dtype=float))
    widths = np.diff(t)
    return ((r[:, 1:] + r[:, :-1]) / 2.0 * widths).sum(axis=1)
