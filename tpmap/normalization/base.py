"""
Base class for fold-change normalization.

A normalizer is fitted on the protein population and then writes the
normalized ratio matrix of each protein.
"""

from abc import ABC, abstractmethod
from typing import Iterable

import numpy as np

from tpmap.model.protein import Protein


class RatioNormalizer(ABC):
    """
    Abstract base class for ratio normalizers.

    Subclasses follow the ``fit`` / ``transform`` protocol: ``fit`` learns
    population level state, ``transform`` returns the normalized ratio of one
    protein without modifying it.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the normalization method."""
        pass

    @abstractmethod
    def fit(self, proteins: Iterable[Protein]) -> "RatioNormalizer":
        """Learn population state; returns self for method chaining."""
        pass

    @abstractmethod
    def transform(self, protein: Protein) -> np.ndarray:
        """Return the normalized ratio matrix of ``protein``."""
        pass

    def fit_transform(self, proteins: Iterable[Protein]) -> None:
        """
        Fit on the population and store the normalized ratios on each protein.

        Parameters
        ----------
        proteins : iterable of Protein
            The protein population.
        """
        proteins = list(proteins)
        self.fit(proteins)
        for protein in proteins:
            protein.set_normalized_ratio(self.transform(protein))


class NoNormalizer(RatioNormalizer):
    """Pass-through normalizer: the normalized ratio is a copy of the ratio."""

    @property
    def name(self) -> str:
        return "none"

    def fit(self, proteins: Iterable[Protein]) -> "NoNormalizer":
        return self

    def transform(self, protein: Protein) -> np.ndarray:
        return protein.ratio.copy()
