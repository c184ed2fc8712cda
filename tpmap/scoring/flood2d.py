"""
Flood-fill scoring of 2D fold-change matrices.

Each finite cell walks to its steepest neighbour until it reaches a local
extremum. Cells ending on a peak above the stabilisation threshold (or a
trough below the destabilisation threshold) are counted per extremum, and the
largest basin relative to the matrix size is the score.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from tpmap.core.constants import (
    EFFECT_DESTABILISED,
    EFFECT_SOLUBILITY,
    EFFECT_STABILISED,
    MISSING_DATA_LIMIT,
)
from tpmap.core.exceptions import InvalidShapeError

# Neighbour order decides ties: up, down, left, right.
NEIGHBOURS = ((-1, 0), (1, 0), (0, -1), (0, 1))

Cell = Tuple[int, int]


@dataclass(frozen=True)
class MatrixScore:
    """
    Result of scoring one fold-change matrix.

    Attributes
    ----------
    stabilisation : float
        Fraction of cells draining to the dominant peak above the maximum
        threshold.
    destabilisation : float
        Fraction of cells draining to the dominant trough below the minimum
        threshold.
    """

    stabilisation: float
    destabilisation: float

    @property
    def score(self) -> float:
        return self.stabilisation - self.destabilisation


def as_score_matrix(matrix) -> np.ndarray:
    """
    Convert a nested sequence into a 2D float matrix.

    ``None`` entries become NaN.

    Raises
    ------
    InvalidShapeError
        If the input is ragged or not two-dimensional.
    """
    if isinstance(matrix, np.ndarray):
        if matrix.ndim != 2:
            raise InvalidShapeError(f"Expected a 2D matrix, got {matrix.ndim} dimensions")
        return matrix.astype(float, copy=False)

    rows = list(matrix)
    if not rows:
        raise InvalidShapeError("Expected a 2D matrix, got an empty sequence")
    widths = set()
    for row in rows:
        if np.ndim(row) != 1:
            raise InvalidShapeError("Expected a 2D matrix, found a row that is not a sequence")
        widths.add(len(row))
    if len(widths) != 1:
        raise InvalidShapeError(f"Ragged matrix with row lengths {sorted(widths)}")
    return np.array([[np.nan if v is None else v for v in row] for row in rows], dtype=float)


def _has_enough_data(m: np.ndarray) -> bool:
    if m.size == 0:
        return False
    return np.isfinite(m).sum() / m.size >= MISSING_DATA_LIMIT


def _step(m: np.ndarray, cell: Cell, ascending: bool) -> Optional[Cell]:
    """Return the steepest neighbour of ``cell`` or ``None`` at an extremum."""
    n_rows, n_cols = m.shape
    i, j = cell
    best = m[i, j]
    best_cell = None
    for di, dj in NEIGHBOURS:
        ni, nj = i + di, j + dj
        if not (0 <= ni < n_rows and 0 <= nj < n_cols):
            continue
        value = m[ni, nj]
        if not np.isfinite(value):
            continue
        if (value > best) if ascending else (value < best):
            best = value
            best_cell = (ni, nj)
    return best_cell


def _extremum(m: np.ndarray, start: Cell, ascending: bool, memo: Dict[Cell, Cell]) -> Cell:
    path = []
    cell = start
    while cell not in memo:
        path.append(cell)
        nxt = _step(m, cell, ascending)
        if nxt is None:
            memo[cell] = cell
            break
        cell = nxt
    end = memo[cell]
    for visited in path:
        memo[visited] = end
    return end


def _flood_score(m: np.ndarray, threshold: float, ascending: bool) -> float:
    if not _has_enough_data(m):
        return 0.0

    memo: Dict[Cell, Cell] = {}
    counts: Dict[Cell, int] = {}
    n_rows, n_cols = m.shape
    for i in range(n_rows):
        for j in range(n_cols):
            value = m[i, j]
            if not np.isfinite(value):
                continue
            if ascending and value < 1.0:
                continue
            if not ascending and value > 1.0:
                continue
            end = _extremum(m, (i, j), ascending, memo)
            peak = m[end]
            if (peak > threshold) if ascending else (peak < threshold):
                counts[end] = counts.get(end, 0) + 1

    if not counts:
        return 0.0
    return max(counts.values()) / m.size


def stabilisation_score(matrix, max_threshold: float) -> float:
    """
    Score the dominant region of increased abundance.

    Parameters
    ----------
    matrix : array-like
        Fold-change matrix, concentrations by temperatures.
    max_threshold : float
        A peak only counts when it is strictly above this value.

    Returns
    -------
    float
        Score in ``[0, 1]``.
    """
    return _flood_score(as_score_matrix(matrix), max_threshold, ascending=True)


def destabilisation_score(matrix, min_threshold: float) -> float:
    """Score the dominant region of decreased abundance, mirror of :func:`stabilisation_score`."""
    return _flood_score(as_score_matrix(matrix), min_threshold, ascending=False)


def score_matrix(matrix, min_threshold: float, max_threshold: float) -> MatrixScore:
    """
    Compute both flood scores of a matrix.

    Returns
    -------
    MatrixScore
        Stabilisation and destabilisation scores; both are 0 when fewer than
        half the cells are finite.
    """
    m = as_score_matrix(matrix)
    return MatrixScore(
        stabilisation=_flood_score(m, max_threshold, ascending=True),
        destabilisation=_flood_score(m, min_threshold, ascending=False),
    )


def effect(score: float, matrix, min_threshold: float, max_threshold: float) -> Optional[str]:
    """
    Classify a combined score.

    A shift already visible in the first (reference concentration) row is
    reported as a solubility or expression change rather than a thermal one.

    Returns
    -------
    str or None
        ``"Stabilized"``, ``"Destabilized"``, ``"Solubility/Expression"`` or
        ``None`` when the score is zero or missing.
    """
    if score is None or not np.isfinite(score) or score == 0:
        return None
    first_row = as_score_matrix(matrix)[0]
    with np.errstate(invalid="ignore"):
        if score < 0:
            return EFFECT_SOLUBILITY if np.any(first_row < min_threshold) else EFFECT_DESTABILISED
        return EFFECT_SOLUBILITY if np.any(first_row > max_threshold) else EFFECT_STABILISED
