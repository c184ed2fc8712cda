"""
Tests for denaturation curve fitting and melting temperatures.
"""

import numpy as np
import pytest

from tpmap.core.exceptions import InvalidShapeError
from tpmap.scoring.denaturation import (
    EMPTY_FIT,
    FitResult,
    curve_rmse,
    denaturation_curve,
    denaturation_gradient,
    fit_curve,
    melting_temperature,
)

TEMPERATURES = [40.0, 45.0, 50.0, 55.0, 60.0]
VALUES = [0.95, 0.9, 0.5, 0.1, 0.05]


def analytic_tm(a: float, b: float, p: float) -> float:
    s = (0.5 - p) / (1.0 - p)
    return a / (b - np.log(1.0 / s - 1.0))


class TestModel:
    """Tests for the curve model and its gradient."""

    def test_curve_limits(self):
        low, high = denaturation_curve([20.0, 200.0], 2500.0, 50.0, 0.2)
        assert low == pytest.approx(1.0, abs=1e-6)
        assert high == pytest.approx(0.2, abs=1e-6)

    def test_curve_scalar(self):
        value = denaturation_curve(50.0, 2500.0, 50.0, 0.0)
        assert isinstance(value, float)
        assert value == pytest.approx(0.5)

    def test_gradient_matches_finite_differences(self):
        t = np.array(TEMPERATURES)
        params = np.array([2000.0, 40.0, 0.1])
        analytic = denaturation_gradient(t, *params)

        eps = 1e-6
        for k in range(3):
            step = np.zeros(3)
            step[k] = eps * max(1.0, abs(params[k]))
            numeric = (denaturation_curve(t, *(params + step)) - denaturation_curve(t, *(params - step))) / (
                2 * step[k]
            )
            np.testing.assert_allclose(analytic[:, k], numeric, rtol=1e-4, atol=1e-8)

    def test_gradient_no_overflow(self):
        with np.errstate(all="raise"):
            gradient = denaturation_gradient([1e-3, 50.0], 1e6, 50.0, 0.0)
        assert np.all(np.isfinite(gradient))


class TestFitCurve:
    """Tests for fit_curve."""

    def test_sigmoid_fit(self):
        fit = fit_curve(TEMPERATURES, VALUES, max_attempts=10, max_iterations=1000)
        assert fit
        assert fit.rmse < 0.05
        tm = melting_temperature(fit, TEMPERATURES[0], TEMPERATURES[-1])
        assert 48.0 <= tm <= 52.0

    def test_fit_is_repeatable(self):
        first = fit_curve(TEMPERATURES, VALUES)
        second = fit_curve(TEMPERATURES, VALUES)
        assert first == second

    def test_zero_attempts_returns_empty(self):
        fit = fit_curve(TEMPERATURES, VALUES, max_attempts=0)
        assert not fit
        assert np.isnan(fit.a) and np.isnan(fit.b) and np.isnan(fit.p) and np.isnan(fit.rmse)

    def test_zero_iterations_returns_empty(self):
        assert fit_curve(TEMPERATURES, VALUES, max_iterations=0) is EMPTY_FIT

    def test_too_few_points_returns_empty(self):
        assert not fit_curve([40.0, 50.0, 60.0], [1.0, np.nan, np.nan])

    def test_missing_values_are_dropped(self):
        values = [0.95, np.nan, 0.9, 0.5, 0.1, np.nan, 0.05]
        temperatures = [40.0, 42.0, 45.0, 50.0, 55.0, 57.0, 60.0]
        assert fit_curve(temperatures, values) == fit_curve(TEMPERATURES, VALUES)

    def test_length_mismatch_raises(self):
        with pytest.raises(InvalidShapeError):
            fit_curve(TEMPERATURES, VALUES[:-1])

    def test_negative_counts_raise(self):
        with pytest.raises(ValueError, match="must not be negative"):
            fit_curve(TEMPERATURES, VALUES, max_attempts=-1)

    def test_flat_series_never_raises(self):
        fit = fit_curve(TEMPERATURES, [1.0] * 5)
        if fit:
            assert np.isfinite(fit.rmse)


class TestMeltingTemperature:
    """Tests for the bisection melting point search."""

    @pytest.mark.parametrize("p", [0.0, 0.2])
    def test_matches_analytic_value(self, p):
        fit = FitResult(2500.0, 50.0, p)
        tm = melting_temperature(fit, 40.0, 60.0)
        assert tm == pytest.approx(analytic_tm(2500.0, 50.0, p), abs=1e-4)

    def test_crossing_outside_range(self):
        assert np.isnan(melting_temperature(FitResult(2500.0, 50.0, 0.0), 55.0, 60.0))

    def test_plateau_above_half(self):
        assert np.isnan(melting_temperature(FitResult(2500.0, 50.0, 0.6), 40.0, 60.0))

    def test_empty_fit(self):
        assert np.isnan(melting_temperature(EMPTY_FIT, 40.0, 60.0))


class TestRMSE:
    """Tests for curve_rmse."""

    def test_perfect_fit(self):
        fit = FitResult(2500.0, 50.0, 0.0)
        values = denaturation_curve(TEMPERATURES, fit.a, fit.b, fit.p)
        assert curve_rmse(fit, TEMPERATURES, values) == pytest.approx(0.0, abs=1e-12)

    def test_uses_n_minus_one(self):
        fit = FitResult(2500.0, 50.0, 0.0)
        values = denaturation_curve(TEMPERATURES, fit.a, fit.b, fit.p) + 0.1
        assert curve_rmse(fit, TEMPERATURES, values) == pytest.approx(np.sqrt(5 * 0.01 / 4))

    def test_fewer_than_two_points(self):
        fit = FitResult(2500.0, 50.0, 0.0)
        assert np.isnan(curve_rmse(fit, TEMPERATURES, [0.9, np.nan, np.nan, np.nan, np.nan]))
