"""
Fold-change normalization for the tpmap package.

This module provides the pass-through and the population median
normalizers and a factory selecting one from a :class:`NormalizationMethod`.
"""

from typing import Union

from tpmap.model.normalization import ExperimentType, NormalizationMethod
from tpmap.normalization.base import RatioNormalizer, NoNormalizer
from tpmap.normalization.median import MedianNormalizer, cell_medians


def get_normalizer(
    method: Union[NormalizationMethod, str],
    experiment_type: Union[ExperimentType, str] = ExperimentType.TP2D,
) -> RatioNormalizer:
    """
    Get a normalizer instance.

    Parameters
    ----------
    method : NormalizationMethod or str
        ``none`` or ``median``.
    experiment_type : ExperimentType or str
        Decides the fallback median of empty cells: 1.0 for 2D, 0.0 for 1D.

    Returns
    -------
    RatioNormalizer
        An unfitted normalizer.

    Raises
    ------
    KeyError
        If the method name is not recognized.
    """
    method = NormalizationMethod.from_str(method)
    if method == NormalizationMethod.MEDIAN:
        fallback = 1.0 if ExperimentType.from_str(experiment_type) == ExperimentType.TP2D else 0.0
        return MedianNormalizer(fallback=fallback)
    return NoNormalizer()


__all__ = [
    "RatioNormalizer",
    "NoNormalizer",
    "MedianNormalizer",
    "cell_medians",
    "get_normalizer",
]
