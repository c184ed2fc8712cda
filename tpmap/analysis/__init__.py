"""
Population level analyses for the tpmap package.

This module provides:
- bootstrap: empirical p-values of 2D scores
- similarity: profile comparison between proteins
"""

from tpmap.analysis.bootstrap import BootstrapAnalysis, RunningStatistics
from tpmap.analysis.similarity import (
    mean_difference,
    rank_by_similarity,
    distance_matrix,
    cluster_order,
)

__all__ = [
    "BootstrapAnalysis",
    "RunningStatistics",
    "mean_difference",
    "rank_by_similarity",
    "distance_matrix",
    "cluster_order",
]
