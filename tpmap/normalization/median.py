"""
Population median normalization of fold-change matrices.

For every cell the finite ratios of all proteins are collected and the
middle element of the sorted values is used as the divisor. With an even
number of values this is the upper of the two central elements.
"""

from typing import Iterable, Optional

import numpy as np

from tpmap.core.exceptions import InvalidShapeError
from tpmap.core.logger import get_logger
from tpmap.model.protein import Protein
from tpmap.normalization.base import RatioNormalizer

logger = get_logger("tpmap.normalization.median")


def cell_medians(stacked: np.ndarray, fallback: float) -> np.ndarray:
    """
    Upper median of each cell over the first axis, ignoring missing values.

    Parameters
    ----------
    stacked : np.ndarray
        Array of shape ``(n_proteins, rows, columns)``.
    fallback : float
        Value of cells without any finite ratio.

    Returns
    -------
    np.ndarray
        Matrix of shape ``(rows, columns)``.
    """
    n_rows, n_cols = stacked.shape[1:]
    medians = np.full((n_rows, n_cols), fallback, dtype=float)
    for i in range(n_rows):
        for j in range(n_cols):
            values = stacked[:, i, j]
            values = np.sort(values[np.isfinite(values)])
            if values.size:
                medians[i, j] = values[values.size // 2]
    return medians


class MedianNormalizer(RatioNormalizer):
    """
    Divide each ratio cell by the population median of that cell.

    Parameters
    ----------
    fallback : float, default=1.0
        Median used for cells with no finite value in the population. 2D
        experiments use 1.0, 1D experiments 0.0.

    Attributes
    ----------
    medians_ : np.ndarray or None
        Read-only median table, available after :meth:`fit`.
    """

    def __init__(self, fallback: float = 1.0):
        self.fallback = fallback
        self.medians_: Optional[np.ndarray] = None

    @property
    def name(self) -> str:
        return "median"

    def fit(self, proteins: Iterable[Protein]) -> "MedianNormalizer":
        """
        Build the median table from the raw ratios of the population.

        Raises
        ------
        InvalidShapeError
            If the proteins' ratio matrices differ in shape.
        ValueError
            If the population is empty.
        """
        proteins = list(proteins)
        if not proteins:
            raise ValueError("Cannot fit median normalization on an empty population")

        expected = proteins[0].ratio.shape
        for protein in proteins:
            if protein.ratio.shape != expected:
                raise InvalidShapeError(
                    f"Ratio matrix of {protein.accession} has shape {protein.ratio.shape}, "
                    f"expected {expected} like {proteins[0].accession}"
                )

        medians = cell_medians(np.stack([p.ratio for p in proteins]), self.fallback)
        medians.setflags(write=False)
        self.medians_ = medians
        logger.info(f"Median table computed from {len(proteins)} proteins, shape {medians.shape}")
        return self

    def transform(self, protein: Protein) -> np.ndarray:
        """
        Divide the protein's ratio by the median table.

        Raises
        ------
        ValueError
            If :meth:`fit` has not been called.
        InvalidShapeError
            If the protein does not match the fitted shape.
        """
        if self.medians_ is None:
            raise ValueError("Must call fit() before transform()")
        if protein.ratio.shape != self.medians_.shape:
            raise InvalidShapeError(
                f"Ratio matrix of {protein.accession} has shape {protein.ratio.shape}, "
                f"median table has {self.medians_.shape}"
            )
        with np.errstate(divide="ignore", invalid="ignore"):
            return protein.ratio / self.medians_
