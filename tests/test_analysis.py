"""
Tests for the TPAnalysis scoring pipeline.
"""

import numpy as np
import pytest

from tpmap import AnalysisConfig, RunStatus, TPAnalysis
from tpmap.core.constants import COLOUR_DESTABILISED, COLOUR_MISSING, COLOUR_NEUTRAL, COLOUR_STABILISED
from tpmap.model.normalization import NormalizationMethod


class TestTPAnalysis2D:
    """2D pipeline tests."""

    @pytest.fixture
    def analysis(self, scenario_proteome):
        return TPAnalysis(scenario_proteome, AnalysisConfig(multithreading=False))

    def test_fixed_thresholds(self, analysis):
        status = analysis.recompute_scores(thresholds=(0.8, 1.2))
        assert status == RunStatus.COMPLETED

        proteome = analysis.proteome
        assert [p.accession for p in proteome] == ["P3", "P1", "P2"]

        p1, p2, p3 = proteome.get("P1"), proteome.get("P2"), proteome.get("P3")
        assert p1.score == 0.0
        assert p1.effect is None
        assert p2.score == pytest.approx(-0.5)
        assert p2.destabilisation_score == pytest.approx(0.5)
        assert p2.effect == "Destabilized"
        assert p3.score == pytest.approx(0.5)
        assert p3.stabilisation_score == pytest.approx(0.5)
        assert p3.effect == "Stabilized"
        assert np.isnan(p3.p_value)
        assert proteome.min_threshold == 0.8
        assert proteome.max_threshold == 1.2

    def test_percentile_thresholds(self, analysis):
        analysis.recompute_scores()
        proteome = analysis.proteome
        assert proteome.sorted_minima == (0.25, 1.0, 1.0)
        assert proteome.sorted_maxima == (1.0, 1.0, 4.0)
        assert proteome.min_threshold == 0.25
        assert proteome.max_threshold == 1.0
        assert proteome.get("P3").score == pytest.approx(0.5)
        # The trough equals the threshold and does not count.
        assert proteome.get("P2").score == 0.0

    def test_percentile_lookup(self, analysis):
        proteome = analysis.proteome
        proteome.update_population_statistics()
        assert proteome.lower_percentile(0.0) == 0.25
        assert proteome.lower_percentile(0.5) == 1.0
        assert proteome.upper_percentile(0.4) == 1.0
        assert proteome.upper_percentile(1.0) == 4.0

    def test_compute_thresholds_does_not_store(self, analysis):
        proteome = analysis.proteome
        minima, maxima, low, high = proteome.compute_thresholds()
        assert (minima, maxima) == ((0.25, 1.0, 1.0), (1.0, 1.0, 4.0))
        assert (low, high) == (0.25, 1.0)
        assert proteome.sorted_minima == ()
        assert (proteome.min_threshold, proteome.max_threshold) != (0.25, 1.0)

        assert proteome.update_thresholds() == (0.25, 1.0)
        assert proteome.min_threshold == 0.25
        assert proteome.sorted_maxima == maxima

    def test_thresholds_out_of_order(self, analysis):
        with pytest.raises(ValueError, match="exceeds"):
            analysis.recompute_scores(thresholds=(1.2, 0.8))

    def test_bootstrap_p_values(self, analysis):
        analysis.set_bootstrap_iterations(200)
        analysis.recompute_scores(thresholds=(0.8, 1.2))
        assert analysis.bootstrap is not None
        assert analysis.bootstrap.is_fitted
        for protein in analysis.proteome:
            assert 0.0 <= protein.p_value <= 1.0
        assert 0.0 < analysis.proteome.min_p_value <= 1.0

    def test_recompute_is_repeatable(self, analysis):
        analysis.set_bootstrap_iterations(100)
        analysis.recompute_scores(thresholds=(0.8, 1.2))
        first = {p.accession: (p.score, p.p_value) for p in analysis.proteome}
        analysis.recompute_scores(thresholds=(0.8, 1.2))
        second = {p.accession: (p.score, p.p_value) for p in analysis.proteome}
        assert first == second

    def test_cancel_keeps_previous_scores(self, analysis):
        analysis.recompute_scores(thresholds=(0.8, 1.2))
        proteome = analysis.proteome
        before = {p.accession: (p.score, p.effect) for p in proteome}
        colour = analysis.get_colour_for(0.85)

        def progress(fraction):
            if fraction > 0.05:
                analysis.cancel()

        analysis.set_bootstrap_iterations(50)
        status = analysis.recompute_scores(progress=progress, thresholds=(0.1, 3.0))
        assert status == RunStatus.CANCELLED
        assert {p.accession: (p.score, p.effect) for p in proteome} == before
        assert (proteome.min_threshold, proteome.max_threshold) == (0.8, 1.2)
        assert analysis.get_colour_for(0.85) == colour

        # A later run starts with a fresh token.
        assert analysis.recompute_scores(thresholds=(0.8, 1.2)) == RunStatus.COMPLETED

    def test_cancel_keeps_percentile_thresholds(self, analysis):
        analysis.recompute_scores()
        proteome = analysis.proteome
        assert (proteome.min_threshold, proteome.max_threshold) == (0.25, 1.0)

        def progress(fraction):
            if fraction > 0.05:
                analysis.cancel()

        analysis.set_percentile_thresholds(0.5, 1.0)
        assert analysis.recompute_scores(progress=progress) == RunStatus.CANCELLED
        assert (proteome.min_threshold, proteome.max_threshold) == (0.25, 1.0)

        assert analysis.recompute_scores() == RunStatus.COMPLETED
        assert (proteome.min_threshold, proteome.max_threshold) == (1.0, 4.0)

    def test_progress_is_monotonic(self, analysis):
        progress = []
        analysis.recompute_scores(progress=progress.append, thresholds=(0.8, 1.2))
        assert progress == sorted(progress)
        assert progress[-1] == 1.0

    def test_median_normalization(self, random_proteome):
        analysis = TPAnalysis(random_proteome, AnalysisConfig(normalization="median", multithreading=False))
        analysis.recompute_scores()
        stacked = random_proteome.stacked_ratios()
        # Normalized ratios have an upper median of 1 in every cell.
        medians = np.sort(stacked, axis=0)[len(random_proteome) // 2]
        np.testing.assert_allclose(medians, 1.0)

    def test_switching_normalization_renormalizes(self, random_proteome):
        analysis = TPAnalysis(random_proteome, AnalysisConfig(multithreading=False))
        analysis.recompute_scores()
        protein = random_proteome[0]
        np.testing.assert_array_equal(protein.normalized_ratio, protein.ratio)

        analysis.set_normalization(NormalizationMethod.MEDIAN)
        analysis.recompute_scores()
        assert random_proteome.normalization_method == NormalizationMethod.MEDIAN
        assert not np.array_equal(protein.normalized_ratio, protein.ratio)

    def test_colours(self, analysis):
        analysis.recompute_scores(thresholds=(0.8, 1.2))
        assert analysis.get_colour_for(None) == COLOUR_MISSING
        assert analysis.get_colour_for(np.nan) == COLOUR_MISSING
        assert analysis.get_colour_for(0.1) == COLOUR_DESTABILISED
        assert analysis.get_colour_for(1.0) == pytest.approx(COLOUR_NEUTRAL)
        assert analysis.get_colour_for(5.0) == COLOUR_STABILISED
        midway = analysis.get_colour_for(1.15)
        expected = tuple((n + s) / 2 for n, s in zip(COLOUR_NEUTRAL, COLOUR_STABILISED))
        assert midway == pytest.approx(expected)


class TestTPAnalysisSettings:
    """Validation of analysis settings."""

    @pytest.fixture
    def analysis(self, scenario_proteome):
        return TPAnalysis(scenario_proteome)

    def test_percentiles_out_of_range(self, analysis):
        with pytest.raises(ValueError, match="between 0 and 1"):
            analysis.set_percentile_thresholds(-0.1, 0.8)
        with pytest.raises(ValueError):
            analysis.set_percentile_thresholds(0.2, 1.1)

    def test_negative_counts(self, analysis):
        with pytest.raises(ValueError, match="must not be negative"):
            analysis.set_bootstrap_iterations(-1)
        with pytest.raises(ValueError):
            analysis.set_curve_fit_attempts(-1)
        with pytest.raises(ValueError):
            analysis.set_curve_fit_max_iterations(-5)

    def test_tm_weight(self, analysis):
        analysis.set_score_tm_weight(0.5)
        assert analysis.config.tm_weight == 0.5
        with pytest.raises(ValueError):
            analysis.set_score_tm_weight(2.0)

    def test_unknown_normalization(self, analysis):
        with pytest.raises(KeyError):
            analysis.set_normalization("quantile")

    def test_n_jobs(self, analysis):
        assert analysis.n_jobs == -1
        analysis.config.n_jobs = 4
        assert analysis.n_jobs == 4
        analysis.set_multithreading(False)
        assert analysis.n_jobs == 1

    def test_empty_proteome(self, scenario_proteome):
        scenario_proteome.proteins = []
        analysis = TPAnalysis(scenario_proteome)
        assert analysis.recompute_scores() == RunStatus.COMPLETED


class TestTPAnalysis1D:
    """1D pipeline tests."""

    @pytest.fixture
    def analysis(self, shifted_1d_proteome):
        return TPAnalysis(shifted_1d_proteome, AnalysisConfig(multithreading=False))

    def test_melting_points_and_ranking(self, analysis):
        assert analysis.recompute_scores() == RunStatus.COMPLETED
        proteome = analysis.proteome
        for protein, shift in zip(sorted(proteome, key=lambda p: p.accession), [0.0, 2.0, 4.0, 6.0]):
            assert protein.tm_v1 == pytest.approx(50.0, abs=0.5)
            assert protein.tm_t1 == pytest.approx(50.0 + shift, abs=0.5)
            assert protein.tm_vt1 == pytest.approx(shift, abs=0.5)
            assert protein.tm_vv == pytest.approx(0.0, abs=0.05)
            assert protein.rmse_mean < 0.05
        assert proteome[0].accession == "S3"
        assert proteome[0].score > proteome.get("S0").score

    def test_changing_weight_rescores_without_refit(self, analysis):
        analysis.recompute_scores()
        fits = {p.accession: p.fits for p in analysis.proteome}
        analysis.set_score_tm_weight(0.0)
        analysis.recompute_scores()
        assert {p.accession: p.fits for p in analysis.proteome} == fits
        scores = {p.score for p in analysis.proteome}
        assert all(0.0 <= s <= 10.0 for s in scores)

    def test_no_attempts_leaves_curves_unfitted(self, analysis):
        analysis.set_curve_fit_attempts(0)
        analysis.recompute_scores()
        for protein in analysis.proteome:
            assert not any(protein.fits)
            assert np.isnan(protein.tm_t1)

    def test_threaded_fits_match(self, shifted_1d_proteome):
        analysis = TPAnalysis(shifted_1d_proteome, AnalysisConfig(n_jobs=2))
        analysis.recompute_scores()
        threaded = {p.accession: p.melting_temperatures for p in shifted_1d_proteome}
        analysis.set_multithreading(False)
        analysis.invalidate()
        analysis.recompute_scores()
        assert {p.accession: p.melting_temperatures for p in shifted_1d_proteome} == threaded
