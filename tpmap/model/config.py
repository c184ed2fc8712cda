"""
Analysis configuration for the tpmap package.

The configuration collects every user-tunable setting of the scoring pipeline
and can be loaded from or saved to YAML/JSON files through
:mod:`tpmap.io.config`.
"""

from dataclasses import dataclass, asdict, fields
from typing import Optional

from tpmap.core.constants import (
    DEFAULT_CURVE_FIT_ATTEMPTS,
    DEFAULT_CURVE_FIT_MAX_ITERATIONS,
    DEFAULT_MAX_PERCENTILE,
    DEFAULT_MIN_PERCENTILE,
    DEFAULT_SEED,
    DEFAULT_TM_WEIGHT,
)
from tpmap.model.normalization import NormalizationMethod


@dataclass
class AnalysisConfig:
    """
    Settings of a thermal profiling analysis.

    Attributes
    ----------
    normalization : str
        Normalization method name, ``"none"`` or ``"median"``.
    min_percentile : float
        Percentile of the per-protein minima used as destabilisation
        threshold (0.0-1.0).
    max_percentile : float
        Percentile of the per-protein maxima used as stabilisation
        threshold (0.0-1.0).
    tm_weight : float
        Weight of melting point shifts in the 1D score (0.0-1.0).
    bootstrap_iterations : int
        Number of bootstrap samples for 2D p-values; 0 disables them.
    curve_fit_attempts : int
        Number of starts of each 1D curve fit.
    curve_fit_max_iterations : int
        Evaluation limit of each curve fit start.
    seed : int
        Seed of the curve fit restarts and bootstrap sampling.
    multithreading : bool
        Whether to run curve fits and bootstrap iterations in a thread pool.
    n_jobs : int, optional
        Number of worker threads when multithreading; ``None`` uses all cores.
    """

    normalization: str = "none"
    min_percentile: float = DEFAULT_MIN_PERCENTILE
    max_percentile: float = DEFAULT_MAX_PERCENTILE
    tm_weight: float = DEFAULT_TM_WEIGHT
    bootstrap_iterations: int = 0
    curve_fit_attempts: int = DEFAULT_CURVE_FIT_ATTEMPTS
    curve_fit_max_iterations: int = DEFAULT_CURVE_FIT_MAX_ITERATIONS
    seed: int = DEFAULT_SEED
    multithreading: bool = True
    n_jobs: Optional[int] = None

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """
        Check that every value is within its allowed range.

        Raises
        ------
        ValueError
            If a percentile or weight is outside ``[0, 1]`` or a count is
            negative.
        KeyError
            If the normalization name is unknown.
        """
        NormalizationMethod.from_str(self.normalization)
        for name in ("min_percentile", "max_percentile", "tm_weight"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")
        for name in ("bootstrap_iterations", "curve_fit_attempts", "curve_fit_max_iterations"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")
        if self.n_jobs is not None and self.n_jobs == 0:
            raise ValueError("n_jobs must not be 0")

    @property
    def normalization_method(self) -> NormalizationMethod:
        return NormalizationMethod.from_str(self.normalization)

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisConfig":
        """Create a configuration from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)

    def apply_overrides(self, overrides: dict) -> None:
        """
        Apply CLI overrides to the configuration.

        Parameters
        ----------
        overrides : dict
            Values keyed by attribute name; ``None`` values are skipped.
        """
        known = {f.name for f in fields(self)}
        for key, value in overrides.items():
            if key in known and value is not None:
                setattr(self, key, value)
        self.validate()
