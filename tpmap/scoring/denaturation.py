"""
Denaturation curve fitting for 1D thermal profiles.

The melting behaviour of a protein is described by the three-parameter
sigmoid

    f(T; a, b, p) = (1 - p) / (1 + exp(-(a / T - b))) + p

which starts close to 1 at low temperatures and decays towards the plateau
``p``. Fits are multi-start Levenberg-Marquardt runs through
:func:`scipy.optimize.least_squares`; the random restarts come from a seeded
numpy generator so repeated fits of the same series are identical.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from scipy.optimize import least_squares

from tpmap.core.constants import (
    DEFAULT_CURVE_FIT_ATTEMPTS,
    DEFAULT_CURVE_FIT_MAX_ITERATIONS,
    DEFAULT_SEED,
)
from tpmap.core.exceptions import InvalidShapeError
from tpmap.core.logger import get_logger

logger = get_logger("tpmap.scoring.denaturation")

# Initial guess of the first attempt, (a, b, p).
INITIAL_PARAMETERS = (3000.0, 50.0, 0.0)
MIN_START_VALUE = 1e-4
TM_ACCURACY = 1e-4


@dataclass(frozen=True)
class FitResult:
    """
    Parameters of a fitted denaturation curve.

    An empty result has every field set to NaN and evaluates to ``False``.

    Attributes
    ----------
    a : float
        Slope parameter.
    b : float
        Offset parameter.
    p : float
        Lower plateau.
    rmse : float
        Root mean square error of the fit.
    """

    a: float = np.nan
    b: float = np.nan
    p: float = np.nan
    rmse: float = np.nan

    def __bool__(self) -> bool:
        return bool(np.isfinite(self.a) and np.isfinite(self.b) and np.isfinite(self.p))

    @property
    def parameters(self) -> np.ndarray:
        return np.array([self.a, self.b, self.p])

    def predict(self, temperatures):
        """Evaluate the fitted curve; an empty fit gives NaN everywhere."""
        return denaturation_curve(temperatures, self.a, self.b, self.p)


EMPTY_FIT = FitResult()


def _unfolded_fraction(temperatures, a: float, b: float):
    # 1 / (1 + exp(b - a / T)), the sigmoid part of the model.
    with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
        return 1.0 / (1.0 + np.exp(b - a / temperatures))


def denaturation_curve(temperatures, a: float, b: float, p: float):
    """
    Evaluate the denaturation model.

    Parameters
    ----------
    temperatures : float or array-like
        Temperatures to evaluate.
    a, b, p : float
        Model parameters.

    Returns
    -------
    float or np.ndarray
        Modelled relative abundance.
    """
    t = np.asarray(temperatures, dtype=float)
    value = (1.0 - p) * _unfolded_fraction(t, a, b) + p
    return float(value) if value.ndim == 0 else value


def denaturation_gradient(temperatures, a: float, b: float, p: float) -> np.ndarray:
    """
    Analytic gradient of the model with respect to ``(a, b, p)``.

    Returns
    -------
    np.ndarray
        Array of shape ``(len(temperatures), 3)``.
    """
    t = np.atleast_1d(np.asarray(temperatures, dtype=float))
    s = _unfolded_fraction(t, a, b)
    # e / (e + 1)^2 == s * (1 - s) with e = exp(b - a / T)
    bell = s * (1.0 - s)
    return np.column_stack(
        [
            (1.0 - p) * bell / t,
            -(1.0 - p) * bell,
            1.0 - s,
        ]
    )


def curve_rmse(fit: FitResult, temperatures, values) -> float:
    """
    Root mean square error of a fit against observed values.

    Uses ``n - 1`` in the denominator. Pairs with a missing observation are
    skipped; fewer than two usable pairs give NaN.
    """
    if not fit:
        return np.nan
    t = np.asarray(temperatures, dtype=float)
    y = np.asarray(values, dtype=float)
    mask = np.isfinite(t) & np.isfinite(y)
    if mask.sum() < 2:
        return np.nan
    residuals = y[mask] - fit.predict(t[mask])
    return float(np.sqrt(np.sum(residuals**2) / (mask.sum() - 1)))


def _least_squares_attempt(t: np.ndarray, y: np.ndarray, start: np.ndarray, max_iterations: int) -> Optional[np.ndarray]:
    """Run one solver attempt, returning the parameters or ``None`` on failure."""

    def residuals(params):
        return denaturation_curve(t, *params) - y

    def jacobian(params):
        return denaturation_gradient(t, *params)

    try:
        with np.errstate(over="ignore", divide="ignore", invalid="ignore"):
            result = least_squares(residuals, start, jac=jacobian, method="lm", max_nfev=max_iterations)
    except (ValueError, np.linalg.LinAlgError) as e:
        logger.debug("Curve fit attempt raised: %s", e)
        return None

    if result.status <= 0:
        return None
    params = result.x
    if not np.all(np.isfinite(params)) or params[1] < 0:
        return None
    return params


def fit_curve(
    temperatures: Sequence[float],
    values: Sequence[float],
    max_attempts: int = DEFAULT_CURVE_FIT_ATTEMPTS,
    max_iterations: int = DEFAULT_CURVE_FIT_MAX_ITERATIONS,
    seed: int = DEFAULT_SEED,
) -> FitResult:
    """
    Fit the denaturation model to a temperature series.

    Parameters
    ----------
    temperatures : sequence of float
        Temperatures of the series.
    values : sequence of float
        Relative abundances; NaN values are dropped together with their
        temperature.
    max_attempts : int
        Number of solver starts.
    max_iterations : int
        Function evaluation limit of each start.
    seed : int
        Seed of the restart generator.

    Returns
    -------
    FitResult
        The fit with the lowest RMSE, or the empty result when no attempt
        succeeded.

    Raises
    ------
    InvalidShapeError
        If temperatures and values differ in length.
    ValueError
        If an attempt or iteration count is negative.
    """
    t = np.asarray(temperatures, dtype=float)
    y = np.asarray(values, dtype=float)
    if t.ndim != 1 or t.shape != y.shape:
        raise InvalidShapeError(
            f"Temperatures and values must be 1D with equal length, got {t.shape} and {y.shape}"
        )
    if max_attempts < 0 or max_iterations < 0:
        raise ValueError("Curve fit attempts and iterations must not be negative")

    mask = np.isfinite(t) & np.isfinite(y)
    t, y = t[mask], y[mask]
    if max_attempts == 0 or max_iterations == 0:
        return EMPTY_FIT
    if t.size < len(INITIAL_PARAMETERS):
        logger.debug("Only %d usable points, skipping fit", t.size)
        return EMPTY_FIT

    rng = np.random.default_rng(seed)
    start = np.array(INITIAL_PARAMETERS)
    best = EMPTY_FIT

    for attempt in range(max_attempts):
        params = _least_squares_attempt(t, y, start, max_iterations)
        if params is None:
            a = 3000.0 + rng.standard_normal() * 1000.0
            b = 50.0 + rng.standard_normal() * 10.0
        else:
            candidate = FitResult(float(params[0]), float(params[1]), float(params[2]))
            error = curve_rmse(candidate, t, y)
            if np.isfinite(error) and (not best or error < best.rmse):
                best = FitResult(candidate.a, candidate.b, candidate.p, error)
            a = 1000.0 + rng.standard_normal() * 1000.0
            b = 100.0 + rng.standard_normal() * 100.0
        start = np.array([max(a, MIN_START_VALUE), max(b, MIN_START_VALUE), 0.0])

    if not best:
        logger.debug("No curve fit attempt out of %d succeeded", max_attempts)
    return best


def melting_temperature(fit: FitResult, lower_t: float, upper_t: float) -> float:
    """
    Find the temperature where the fitted curve crosses 0.5.

    Bisection between ``lower_t`` and ``upper_t``. The curve has to be above
    0.5 on the left of the bracket and below it on the right; otherwise the
    crossing is not inside the measured range and NaN is returned.

    Parameters
    ----------
    fit : FitResult
        The fitted curve.
    lower_t, upper_t : float
        Lowest and highest measured temperature.

    Returns
    -------
    float
        The melting temperature, or NaN.
    """
    if not fit or not (np.isfinite(lower_t) and np.isfinite(upper_t)):
        return np.nan

    lower, upper = float(lower_t), float(upper_t)
    while upper - lower >= TM_ACCURACY:
        mid = (lower + upper) / 2.0
        lower_y = fit.predict(lower)
        mid_y = fit.predict(mid)
        upper_y = fit.predict(upper)
        if lower_y > 0.5 and mid_y < 0.5:
            upper = mid
        elif mid_y > 0.5 and upper_y < 0.5:
            lower = mid
        elif mid_y == 0.5:
            return mid
        else:
            return np.nan
    return (lower + upper) / 2.0
