"""
Scoring algorithms for thermal profiling data.

This module provides:
- denaturation: sigmoid curve fitting and melting temperatures (1D)
- rank1d: rank-based scoring of 1D proteins
- flood2d: flood-fill scoring of 2D fold-change matrices
- fold_change: fold-change summaries
"""

from tpmap.scoring.denaturation import (
    FitResult,
    EMPTY_FIT,
    denaturation_curve,
    denaturation_gradient,
    curve_rmse,
    fit_curve,
    melting_temperature,
)
from tpmap.scoring.flood2d import (
    MatrixScore,
    as_score_matrix,
    stabilisation_score,
    destabilisation_score,
    score_matrix,
    effect,
)
from tpmap.scoring.fold_change import mean_fold_change, area_under_curve
from tpmap.scoring.rank1d import RankList, TP1DScorer

__all__ = [
    "FitResult",
    "EMPTY_FIT",
    "denaturation_curve",
    "denaturation_gradient",
    "curve_rmse",
    "fit_curve",
    "melting_temperature",
    "MatrixScore",
    "as_score_matrix",
    "stabilisation_score",
    "destabilisation_score",
    "score_matrix",
    "effect",
    "mean_fold_change",
    "area_under_curve",
    "RankList",
    "TP1DScorer",
]
