"""
Scoring pipeline for thermal profiling experiments.

:class:`TPAnalysis` owns the analysis settings of one proteome and keeps the
derived state (normalized ratios, curve fits, rank lists) in step with them.
Every setter invalidates exactly the state that depends on it;
:meth:`TPAnalysis.recompute_scores` rebuilds whatever is stale and rescores
the population.

The 2D pipeline is normalization, percentile thresholds, flood-fill scores
and bootstrap p-values. The 1D pipeline is normalization, curve fits,
melting points and rank scores.
"""

import threading
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from joblib import Parallel, delayed

from tpmap.analysis.bootstrap import BootstrapAnalysis
from tpmap.core.concurrency import CancellationToken, ProgressCallback, RunStatus, report_progress
from tpmap.core.logger import get_logger, log_execution_time
from tpmap.model.config import AnalysisConfig
from tpmap.model.normalization import NormalizationMethod
from tpmap.model.protein import Protein1D, Protein2D
from tpmap.model.proteome import Proteome
from tpmap.normalization import get_normalizer
from tpmap.scoring.denaturation import FitResult, fit_curve
from tpmap.scoring.flood2d import MatrixScore, score_matrix
from tpmap.scoring.fold_change import mean_fold_change
from tpmap.scoring.rank1d import TP1DScorer, validate_tm_weight

logger = get_logger("tpmap.pipeline")


def _validate_count(value: int, name: str) -> int:
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return int(value)


def _fit_protein(
    protein: Protein1D,
    temperatures: np.ndarray,
    max_attempts: int,
    max_iterations: int,
    seed: int,
    cancel: CancellationToken,
) -> Optional[Tuple[FitResult, ...]]:
    """Fit the four replicate curves of one protein; ``None`` when cancelled."""
    if cancel.cancelled:
        return None
    return tuple(
        fit_curve(temperatures, row, max_attempts=max_attempts, max_iterations=max_iterations, seed=seed)
        for row in protein.normalized_ratio
    )


class TPAnalysis:
    """
    Analysis of one proteome.

    Parameters
    ----------
    proteome : Proteome
        The imported proteins.
    config : AnalysisConfig, optional
        Initial settings; defaults are used when omitted.

    Examples
    --------
    >>> analysis = TPAnalysis(proteome, AnalysisConfig(normalization="median"))
    >>> analysis.set_bootstrap_iterations(1000)
    >>> status = analysis.recompute_scores()
    """

    def __init__(self, proteome: Proteome, config: Optional[AnalysisConfig] = None):
        self.proteome = proteome
        self.config = config if config is not None else AnalysisConfig()
        self.config.validate()
        self.proteome.normalization_method = self.config.normalization_method
        self.proteome.set_percentiles(self.config.min_percentile, self.config.max_percentile)

        self.bootstrap: Optional[BootstrapAnalysis] = None
        self._token = CancellationToken()
        self._lock = threading.Lock()
        self._normalized = False
        self._fits_current = False
        self._scorer: Optional[TP1DScorer] = None

    # Settings

    def set_normalization(self, method: Union[NormalizationMethod, str]) -> None:
        """Change the normalization; ratios, fits and thresholds become stale."""
        method = NormalizationMethod.from_str(method)
        self.config.normalization = method.name.lower()
        self.proteome.normalization_method = method
        self._invalidate_normalization()

    def set_percentile_thresholds(self, min_percentile: float, max_percentile: float) -> None:
        """Change the percentiles the 2D thresholds are derived from."""
        self.proteome.set_percentiles(min_percentile, max_percentile)
        self.config.min_percentile = self.proteome.min_percentile
        self.config.max_percentile = self.proteome.max_percentile

    def set_score_tm_weight(self, tm_weight: float) -> None:
        """Change the weight of melting point shifts in 1D scores."""
        self.config.tm_weight = validate_tm_weight(tm_weight)
        if self._scorer is not None:
            self._scorer.tm_weight = self.config.tm_weight

    def set_bootstrap_iterations(self, iterations: int) -> None:
        self.config.bootstrap_iterations = _validate_count(iterations, "Bootstrap iterations")

    def set_curve_fit_attempts(self, attempts: int) -> None:
        self.config.curve_fit_attempts = _validate_count(attempts, "Curve fit attempts")
        self._invalidate_fits()

    def set_curve_fit_max_iterations(self, iterations: int) -> None:
        self.config.curve_fit_max_iterations = _validate_count(iterations, "Curve fit iterations")
        self._invalidate_fits()

    def set_multithreading(self, enabled: bool) -> None:
        self.config.multithreading = bool(enabled)

    @property
    def n_jobs(self) -> int:
        """Worker threads used for curve fits and bootstrap iterations."""
        if not self.config.multithreading:
            return 1
        return self.config.n_jobs if self.config.n_jobs is not None else -1

    def _invalidate_normalization(self) -> None:
        self._normalized = False
        self._invalidate_fits()

    def _invalidate_fits(self) -> None:
        self._fits_current = False
        self._scorer = None

    def invalidate(self) -> None:
        """Mark all derived state stale, e.g. after proteins were added."""
        self._invalidate_normalization()

    # Control

    def cancel(self) -> None:
        """Request cancellation of a running :meth:`recompute_scores`."""
        logger.info("Cancellation requested")
        self._token.cancel()

    def get_colour_for(self, ratio: Optional[float]) -> Tuple[float, float, float]:
        """Colour of a fold change under the current thresholds."""
        return self.proteome.get_colour(ratio)

    # Computation

    def normalize(self) -> None:
        """Recompute the normalized ratios of the whole population."""
        normalizer = get_normalizer(self.proteome.normalization_method, self.proteome.experiment_type)
        normalizer.fit_transform(self.proteome.proteins)
        self._normalized = True
        logger.info(f"Applied {normalizer.name} normalization to {len(self.proteome)} proteins")

    @log_execution_time()
    def recompute_scores(
        self,
        progress: ProgressCallback = None,
        thresholds: Optional[Sequence[float]] = None,
    ) -> RunStatus:
        """
        Bring every derived value up to date and rescore all proteins.

        Parameters
        ----------
        progress : callable, optional
            Receives the completed fraction in ``[0, 1]``.
        thresholds : (float, float), optional
            Fixed minimum and maximum thresholds for 2D scoring instead of the
            percentile-derived ones.

        Returns
        -------
        RunStatus
            ``CANCELLED`` if :meth:`cancel` was called; scores and thresholds
            are left unchanged in that case.
        """
        with self._lock:
            self._token.reset()
            if len(self.proteome) == 0:
                logger.warning("No proteins to score")
                report_progress(progress, 1.0)
                return RunStatus.COMPLETED

            if not self._normalized:
                self.normalize()
            report_progress(progress, 0.05)

            if self.proteome.is_2d:
                status = self._recompute_2d(progress, thresholds)
            else:
                status = self._recompute_1d(progress)

            if status == RunStatus.COMPLETED:
                self.proteome.sort_by_score()
                report_progress(progress, 1.0)
            return status

    def _recompute_2d(self, progress: ProgressCallback, thresholds: Optional[Sequence[float]]) -> RunStatus:
        proteome = self.proteome
        # Thresholds are stored together with the scores, never before.
        if thresholds is None:
            minima, maxima, min_threshold, max_threshold = proteome.compute_thresholds()
        else:
            min_threshold, max_threshold = (float(t) for t in thresholds)
            if min_threshold > max_threshold:
                raise ValueError(f"Minimum threshold {min_threshold} exceeds maximum {max_threshold}")
            minima, maxima = proteome.population_statistics()
        logger.info(f"Scoring {len(proteome)} proteins with thresholds {min_threshold:.4f} / {max_threshold:.4f}")

        results: List[Tuple[Protein2D, MatrixScore, float]] = []
        for k, protein in enumerate(proteome):
            if self._token.cancelled:
                logger.info("Scoring cancelled")
                return RunStatus.CANCELLED
            results.append(
                (
                    protein,
                    score_matrix(protein.normalized_ratio, min_threshold, max_threshold),
                    mean_fold_change(protein.normalized_ratio),
                )
            )
            report_progress(progress, 0.05 + 0.45 * (k + 1) / len(proteome))

        bootstrap = None
        if self.config.bootstrap_iterations > 0:
            bootstrap = BootstrapAnalysis(
                self.config.bootstrap_iterations,
                seed=self.config.seed,
                n_jobs=self.n_jobs,
            )
            status = bootstrap.run(
                proteome,
                cancel=self._token,
                progress=lambda f: report_progress(progress, 0.5 + 0.5 * f),
            )
            if status == RunStatus.CANCELLED:
                return status

        proteome.set_thresholds(min_threshold, max_threshold, minima, maxima)
        for protein, result, mean_fc in results:
            protein.reset_scores()
            protein.set_matrix_score(result, min_threshold, max_threshold)
            protein.mean_fold_change = mean_fc

        self.bootstrap = bootstrap
        if bootstrap is not None:
            min_p = bootstrap.set_p_values(proteome)
            logger.info(f"Smallest positive p-value: {min_p:.3g}")
        else:
            proteome.min_p_value = 1.0
        return RunStatus.COMPLETED

    def _recompute_1d(self, progress: ProgressCallback) -> RunStatus:
        proteome = self.proteome
        if not self._fits_current:
            status = self._fit_curves(progress)
            if status == RunStatus.CANCELLED:
                return status

        if self._scorer is None:
            self._scorer = TP1DScorer(proteome.proteins, tm_weight=self.config.tm_weight)
        self._scorer.tm_weight = self.config.tm_weight
        self._scorer.score_all(proteome.proteins)
        return RunStatus.COMPLETED

    def _fit_curves(self, progress: ProgressCallback) -> RunStatus:
        proteome = self.proteome
        temperatures = proteome.temperatures
        logger.info(
            f"Fitting curves for {len(proteome)} proteins "
            f"({self.config.curve_fit_attempts} attempts, {self.config.curve_fit_max_iterations} iterations, "
            f"n_jobs={self.n_jobs})"
        )
        tasks = Parallel(n_jobs=self.n_jobs, prefer="threads", return_as="generator")(
            delayed(_fit_protein)(
                protein,
                temperatures,
                self.config.curve_fit_attempts,
                self.config.curve_fit_max_iterations,
                self.config.seed,
                self._token,
            )
            for protein in proteome
        )

        fitted = []
        for k, fits in enumerate(tasks):
            if fits is None:
                logger.info("Curve fitting cancelled")
                return RunStatus.CANCELLED
            fitted.append(fits)
            report_progress(progress, 0.05 + 0.9 * (k + 1) / len(proteome))
        if self._token.cancelled:
            logger.info("Curve fitting cancelled")
            return RunStatus.CANCELLED

        for protein, fits in zip(proteome, fitted):
            protein.set_fits(fits, temperatures)
        self._fits_current = True
        self._scorer = None
        n_failed = sum(1 for fits in fitted for fit in fits if not fit)
        if n_failed:
            logger.info(f"{n_failed} of {sum(len(fits) for fits in fitted)} replicate curves could not be fitted")
        return RunStatus.COMPLETED
