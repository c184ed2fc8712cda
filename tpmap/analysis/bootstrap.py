"""
Bootstrap significance of 2D scores.

Synthetic fold-change matrices are assembled cell by cell from randomly
chosen proteins of the population and scored with both thresholds at 1. The
combined scores form a null distribution; a normal distribution fitted to it
turns each protein's score into a two-sided p-value.

Iterations are split into fixed-size chunks with their own child seeds, so
the distribution only depends on the seed and the iteration count, never on
the number of worker threads.
"""

import math
import threading
from typing import Iterable, List, Optional

import numpy as np
from joblib import Parallel, delayed
from scipy.stats import norm

from tpmap.core.concurrency import CancellationToken, ProgressCallback, RunStatus, report_progress
from tpmap.core.constants import BOOTSTRAP_THRESHOLD, DEFAULT_SEED
from tpmap.core.logger import get_logger
from tpmap.model.proteome import Proteome
from tpmap.scoring.flood2d import score_matrix

logger = get_logger("tpmap.analysis.bootstrap")


class RunningStatistics:
    """
    Thread-safe running mean and variance (Welford).

    Partial statistics computed by workers are combined with :meth:`merge`.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.count = 0
        self.mean = 0.0
        self._m2 = 0.0

    def add(self, value: float) -> None:
        with self._lock:
            self.count += 1
            delta = value - self.mean
            self.mean += delta / self.count
            self._m2 += delta * (value - self.mean)

    def update(self, values: Iterable[float]) -> None:
        """Merge a batch of values."""
        values = np.fromiter(values, dtype=float)
        if values.size == 0:
            return
        batch = RunningStatistics()
        batch.count = int(values.size)
        batch.mean = float(values.mean())
        batch._m2 = float(((values - batch.mean) ** 2).sum())
        self.merge(batch)

    def merge(self, other: "RunningStatistics") -> None:
        """Combine another accumulator into this one (Chan et al.)."""
        with self._lock:
            if other.count == 0:
                return
            total = self.count + other.count
            delta = other.mean - self.mean
            self.mean += delta * other.count / total
            self._m2 += other._m2 + delta**2 * self.count * other.count / total
            self.count = total

    @property
    def variance(self) -> float:
        """Sample variance; NaN with fewer than two values."""
        if self.count < 2:
            return np.nan
        return self._m2 / (self.count - 1)

    @property
    def std(self) -> float:
        return math.sqrt(self.variance) if self.count >= 2 else np.nan


def _bootstrap_chunk(
    stacked: np.ndarray,
    iterations: int,
    seed: np.random.SeedSequence,
    cancel: Optional[CancellationToken],
) -> Optional[np.ndarray]:
    """Score ``iterations`` resampled matrices; ``None`` when cancelled."""
    rng = np.random.default_rng(seed)
    n_proteins, n_rows, n_cols = stacked.shape
    rows, cols = np.indices((n_rows, n_cols))
    scores = np.empty(iterations)
    for k in range(iterations):
        if cancel is not None and cancel.cancelled:
            return None
        picks = rng.integers(0, n_proteins, size=(n_rows, n_cols))
        sample = stacked[picks, rows, cols]
        scores[k] = score_matrix(sample, BOOTSTRAP_THRESHOLD, BOOTSTRAP_THRESHOLD).score
    return scores


class BootstrapAnalysis:
    """
    Empirical null distribution of 2D scores.

    Parameters
    ----------
    iterations : int
        Number of resampled matrices.
    seed : int
        Root seed of the resampling.
    n_jobs : int
        Number of worker threads; 1 runs in the calling thread, -1 uses all
        cores.
    chunk_size : int
        Iterations per task. Part of the seeding scheme: changing it changes
        the sampled distribution.

    Attributes
    ----------
    statistics : RunningStatistics
        Running mean and variance of the sampled scores.
    scores_ : np.ndarray or None
        Sorted, read-only sampled scores after a completed run.
    mean_, std_ : float or None
        Parameters of the fitted normal distribution.
    """

    def __init__(self, iterations: int, seed: int = DEFAULT_SEED, n_jobs: int = 1, chunk_size: int = 100):
        if iterations < 0:
            raise ValueError(f"Bootstrap iterations must not be negative, got {iterations}")
        if chunk_size <= 0:
            raise ValueError(f"Chunk size must be positive, got {chunk_size}")
        self.iterations = iterations
        self.seed = seed
        self.n_jobs = n_jobs
        self.chunk_size = chunk_size
        self._reset()

    def _reset(self) -> None:
        self.statistics = RunningStatistics()
        self.scores_: Optional[np.ndarray] = None
        self.mean_: Optional[float] = None
        self.std_: Optional[float] = None

    @property
    def is_fitted(self) -> bool:
        return self.mean_ is not None

    def _chunk_sizes(self) -> List[int]:
        full, rest = divmod(self.iterations, self.chunk_size)
        return [self.chunk_size] * full + ([rest] if rest else [])

    def run(
        self,
        proteome: Proteome,
        cancel: Optional[CancellationToken] = None,
        progress: ProgressCallback = None,
    ) -> RunStatus:
        """
        Sample the null distribution from the proteome's normalized ratios.

        Parameters
        ----------
        proteome : Proteome
            2D proteome with normalized ratios.
        cancel : CancellationToken, optional
            Checked between iterations.
        progress : callable, optional
            Receives the completed fraction in ``[0, 1]``.

        Returns
        -------
        RunStatus
            ``CANCELLED`` leaves the analysis without a distribution.

        Raises
        ------
        InvalidShapeError
            If the proteins' matrices differ in shape.
        """
        self._reset()
        stacked = proteome.stacked_ratios()
        if self.iterations == 0 or stacked.shape[0] == 0:
            logger.info("Bootstrap skipped: no iterations or no proteins")
            report_progress(progress, 1.0)
            return RunStatus.COMPLETED

        chunks = self._chunk_sizes()
        seeds = np.random.SeedSequence(self.seed).spawn(len(chunks))
        logger.info(
            f"Bootstrapping {self.iterations} iterations over {stacked.shape[0]} proteins "
            f"in {len(chunks)} chunks (n_jobs={self.n_jobs})"
        )

        results = Parallel(n_jobs=self.n_jobs, prefer="threads", return_as="generator")(
            delayed(_bootstrap_chunk)(stacked, size, seed, cancel) for size, seed in zip(chunks, seeds)
        )

        statistics = RunningStatistics()
        collected = []
        done = 0
        for scores in results:
            if scores is None:
                logger.info("Bootstrap cancelled")
                return RunStatus.CANCELLED
            statistics.update(scores)
            collected.append(scores)
            done += scores.size
            report_progress(progress, done / self.iterations)

        if cancel is not None and cancel.cancelled:
            logger.info("Bootstrap cancelled")
            return RunStatus.CANCELLED

        sampled = np.sort(np.concatenate(collected))
        sampled.setflags(write=False)
        self.statistics = statistics
        self.scores_ = sampled
        self.mean_ = statistics.mean
        self.std_ = statistics.std
        logger.info(f"Bootstrap distribution: mean={self.mean_:.6f}, sd={self.std_:.6f}")
        return RunStatus.COMPLETED

    def p_value(self, score: float) -> float:
        """
        Two-sided p-value of a score under the fitted normal distribution.

        A degenerate distribution (zero or undefined spread) gives 1.0 for a
        score equal to the mean and 0.0 otherwise.

        Returns
        -------
        float
            The p-value, or NaN for a missing score or an unfitted analysis.
        """
        if not self.is_fitted or score is None or not np.isfinite(score):
            return np.nan
        if not np.isfinite(self.std_) or self.std_ == 0:
            return 1.0 if score == self.mean_ else 0.0
        cdf = norm.cdf(score, loc=self.mean_, scale=self.std_)
        if score < self.mean_:
            return float(2.0 * cdf)
        return float(2.0 * (1.0 - cdf))

    def set_p_values(self, proteome: Proteome) -> float:
        """
        Store a p-value on every protein.

        Also records the smallest strictly positive p-value on the proteome,
        starting from 1.0.

        Returns
        -------
        float
            The smallest strictly positive p-value.
        """
        min_p_value = 1.0
        for protein in proteome:
            p = self.p_value(protein.score)
            protein.p_value = p
            if np.isfinite(p) and 0.0 < p < min_p_value:
                min_p_value = p
        proteome.min_p_value = min_p_value
        return min_p_value
