"""
Tests for flood-fill scoring of 2D fold-change matrices.
"""

import numpy as np
import pytest

from tpmap.core.exceptions import InvalidShapeError
from tpmap.scoring.flood2d import (
    MatrixScore,
    as_score_matrix,
    destabilisation_score,
    effect,
    score_matrix,
    stabilisation_score,
)
from tpmap.scoring.fold_change import area_under_curve, mean_fold_change


class TestAsScoreMatrix:
    """Tests for matrix conversion."""

    def test_none_becomes_nan(self):
        m = as_score_matrix([[1.0, None], [2.0, 3.0]])
        assert np.isnan(m[0, 1])
        assert m[1, 1] == 3.0

    def test_ragged_raises(self):
        with pytest.raises(InvalidShapeError, match="Ragged"):
            as_score_matrix([[1.0, 2.0], [3.0]])

    def test_one_dimensional_raises(self):
        with pytest.raises(InvalidShapeError):
            as_score_matrix(np.array([1.0, 2.0]))

    def test_empty_raises(self):
        with pytest.raises(InvalidShapeError):
            as_score_matrix([])


class TestFloodScores:
    """Tests for stabilisation and destabilisation scores."""

    def test_flat_matrix_scores_zero(self):
        result = score_matrix(np.ones((3, 4)), 0.8, 1.2)
        assert result == MatrixScore(0.0, 0.0)
        assert result.score == 0.0

    def test_destabilised_rows(self):
        m = [[1.0, 1.0], [0.25, 0.25]]
        assert destabilisation_score(m, 0.8) == 0.5
        assert stabilisation_score(m, 1.2) == 0.0
        assert score_matrix(m, 0.8, 1.2).score == -0.5

    def test_stabilised_rows(self):
        m = [[1.0, 1.0], [4.0, 4.0]]
        assert score_matrix(m, 0.8, 1.2).score == 0.5

    def test_single_peak_collects_basin(self):
        m = [
            [1.0, 1.1, 1.0],
            [1.1, 2.0, 1.1],
            [1.0, 1.1, 1.0],
        ]
        assert stabilisation_score(m, 1.5) == pytest.approx(1.0)

    def test_largest_basin_wins(self):
        m = [[3.0, 2.0, 1.0, 4.0, 5.0]]
        # The middle cell climbs towards its steeper neighbour.
        assert stabilisation_score(m, 1.5) == pytest.approx(3 / 5)

    def test_peak_must_exceed_threshold(self):
        m = [[1.0, 1.2], [1.0, 1.0]]
        assert stabilisation_score(m, 1.2) == 0.0
        # (1, 0) has no strictly larger neighbour and is its own peak.
        assert stabilisation_score(m, 1.19) == pytest.approx(3 / 4)

    def test_ties_are_not_climbed(self):
        m = [[1.0, 2.0], [2.0, 1.0]]
        assert stabilisation_score(m, 1.5) == 0.5

    def test_too_many_missing_cells(self):
        m = [[4.0, np.nan], [np.nan, np.nan]]
        assert score_matrix(m, 0.8, 1.2) == MatrixScore(0.0, 0.0)

    def test_missing_cells_are_skipped(self):
        m = [[1.0, np.nan], [4.0, 4.0]]
        # Missing cells still count towards the matrix size.
        assert stabilisation_score(m, 1.2) == pytest.approx(2 / 4)

    def test_deep_gradient(self):
        m = np.linspace(1.0, 3.0, 2000).reshape(40, 50)
        assert stabilisation_score(m, 2.0) == pytest.approx(1.0)


class TestEffect:
    """Tests for effect classification."""

    def test_zero_score_has_no_effect(self):
        assert effect(0.0, [[1.0, 1.0]], 0.8, 1.2) is None

    def test_nan_score_has_no_effect(self):
        assert effect(np.nan, [[1.0, 1.0]], 0.8, 1.2) is None

    def test_stabilised(self):
        assert effect(0.5, [[1.0, 1.0], [4.0, 4.0]], 0.8, 1.2) == "Stabilized"

    def test_destabilised(self):
        assert effect(-0.5, [[1.0, 1.0], [0.25, 0.25]], 0.8, 1.2) == "Destabilized"

    def test_reference_row_shift_is_solubility(self):
        assert effect(0.5, [[1.5, 1.0], [4.0, 4.0]], 0.8, 1.2) == "Solubility/Expression"
        assert effect(-0.5, [[0.5, 1.0], [0.2, 0.2]], 0.8, 1.2) == "Solubility/Expression"


class TestFoldChange:
    """Tests for fold-change summaries."""

    def test_small_matrix_mean_is_zero(self):
        assert mean_fold_change(np.full((2, 2), 3.0)) == 0.0

    def test_mean_counts_missing_as_one(self):
        m = np.full((5, 6), 2.0)
        m[0, :] = np.nan
        assert mean_fold_change(m) == pytest.approx((24 * 2.0 + 6 * 1.0) / 30)

    def test_area_under_curve(self):
        areas = area_under_curve([40.0, 50.0, 60.0], [[1.0, 1.0, 1.0], [1.0, 0.5, 0.0]])
        np.testing.assert_allclose(areas, [20.0, 10.0])

    def test_area_with_missing_value(self):
        areas = area_under_curve([40.0, 50.0], [[1.0, np.nan]])
        assert np.isnan(areas[0])
