"""
Protein data structures for 1D and 2D thermal profiling experiments.

Abundances are stored as float matrices with NaN for missing values. Ratios
are recomputed from the abundances and the reference vector; normalized
ratios are written by the normalization layer and scores by the pipeline.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

import numpy as np

from tpmap.core.constants import REPLICATE_LABELS
from tpmap.core.exceptions import InvalidShapeError
from tpmap.scoring.denaturation import EMPTY_FIT, FitResult, melting_temperature
from tpmap.scoring.flood2d import MatrixScore, as_score_matrix, effect


class Protein(ABC):
    """
    Base class for proteins of a thermal profiling experiment.

    Parameters
    ----------
    accession : str
        Protein accession.
    abundances : array-like
        Abundance matrix; ``None`` entries are treated as missing.
    reference : array-like, optional
        Reference abundances used to build ratios. Defaults to the
        experiment specific reference taken from ``abundances``.
    description : str, optional
        Free text description.
    organism_name, organism_identifier, gene_name : str, optional
        Annotation fields, usually parsed from a UniProt style description.
    protein_existence, sequence_version : str, optional
        UniProt evidence level and sequence version.

    Raises
    ------
    InvalidShapeError
        If the abundance matrix is ragged or the reference does not match it.
    """

    def __init__(
        self,
        accession: str,
        abundances,
        reference=None,
        description: Optional[str] = None,
        organism_name: Optional[str] = None,
        organism_identifier: Optional[str] = None,
        gene_name: Optional[str] = None,
        protein_existence: Optional[str] = None,
        sequence_version: Optional[str] = None,
    ):
        self.accession = accession
        self.description = description
        self.organism_name = organism_name
        self.organism_identifier = organism_identifier
        self.gene_name = gene_name
        self.protein_existence = protein_existence
        self.sequence_version = sequence_version

        self.abundances = np.array(as_score_matrix(abundances), dtype=float)
        self._validate_abundances()
        if reference is None:
            self.reference = self._default_reference()
        else:
            self.reference = np.array([np.nan if v is None else v for v in reference], dtype=float)
        self._validate_reference()

        self.ratio = self._compute_ratio()
        self.normalized_ratio = self.ratio.copy()
        self.score = np.nan
        self.mean_difference = np.nan
        self.selected = False

    def _validate_abundances(self) -> None:
        pass

    @abstractmethod
    def _default_reference(self) -> np.ndarray:
        """Reference abundances used when none are given."""

    @abstractmethod
    def _validate_reference(self) -> None:
        """Check the reference against the abundance matrix."""

    @abstractmethod
    def _compute_ratio(self) -> np.ndarray:
        """Abundances divided by the reference."""

    @property
    def shape(self) -> Tuple[int, int]:
        return self.abundances.shape

    def set_normalized_ratio(self, normalized) -> None:
        """Store a normalized ratio matrix of the same shape as the ratio."""
        normalized = np.asarray(normalized, dtype=float)
        if normalized.shape != self.ratio.shape:
            raise InvalidShapeError(
                f"Normalized ratio of {self.accession} has shape {normalized.shape}, expected {self.ratio.shape}"
            )
        self.normalized_ratio = normalized

    @property
    def minimum(self) -> float:
        """Smallest finite normalized ratio, never above 1."""
        finite = self.normalized_ratio[np.isfinite(self.normalized_ratio)]
        return float(min(1.0, finite.min())) if finite.size else 1.0

    @property
    def maximum(self) -> float:
        """Largest finite normalized ratio, never below 1."""
        finite = self.normalized_ratio[np.isfinite(self.normalized_ratio)]
        return float(max(1.0, finite.max())) if finite.size else 1.0

    def reset_scores(self) -> None:
        self.score = np.nan

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.accession!r}, shape={self.shape})"


class Protein2D(Protein):
    """
    Protein of a 2D experiment.

    Abundances are indexed ``[concentration][temperature]``. The reference is
    the abundance at the lowest concentration for each temperature, so the
    first row of the ratio matrix is 1 wherever it is measured.
    """

    def __init__(self, accession: str, abundances, reference=None, **annotations):
        super().__init__(accession, abundances, reference=reference, **annotations)
        self.stabilisation_score = np.nan
        self.destabilisation_score = np.nan
        self.p_value = np.nan
        self.effect: Optional[str] = None
        self.mean_fold_change = np.nan

    def _default_reference(self) -> np.ndarray:
        return self.abundances[0].copy()

    def _validate_reference(self) -> None:
        if self.reference.shape != (self.abundances.shape[1],):
            raise InvalidShapeError(
                f"Reference of {self.accession} needs one value per temperature "
                f"({self.abundances.shape[1]}), got {self.reference.size}"
            )

    def _compute_ratio(self) -> np.ndarray:
        with np.errstate(divide="ignore", invalid="ignore"):
            return self.abundances / self.reference[np.newaxis, :]

    def set_matrix_score(self, result: MatrixScore, min_threshold: float, max_threshold: float) -> None:
        """
        Store a flood-fill result together with the derived effect label.

        Parameters
        ----------
        result : MatrixScore
            Scores of the normalized ratio matrix.
        min_threshold, max_threshold : float
            Thresholds the matrix was scored with.
        """
        score = result.score
        self.stabilisation_score = result.stabilisation
        self.destabilisation_score = result.destabilisation
        self.score = score
        self.effect = effect(score, self.normalized_ratio, min_threshold, max_threshold)

    def reset_scores(self) -> None:
        super().reset_scores()
        self.stabilisation_score = np.nan
        self.destabilisation_score = np.nan
        self.p_value = np.nan
        self.effect = None


class Protein1D(Protein):
    """
    Protein of a 1D experiment.

    Abundances are indexed ``[replicate][temperature]`` with the replicate
    rows in the order treatment 1, treatment 2, vehicle 1, vehicle 2. The
    reference is the abundance at the lowest temperature of each replicate.
    """

    def __init__(self, accession: str, abundances, reference=None, **annotations):
        super().__init__(accession, abundances, reference=reference, **annotations)
        self.fits: Tuple[FitResult, ...] = (EMPTY_FIT,) * len(REPLICATE_LABELS)
        self.melting_temperatures: Tuple[float, ...] = (np.nan,) * len(REPLICATE_LABELS)

    def _validate_abundances(self) -> None:
        if self.abundances.shape[0] != len(REPLICATE_LABELS):
            raise InvalidShapeError(
                f"1D protein {self.accession} needs {len(REPLICATE_LABELS)} replicate rows "
                f"({', '.join(REPLICATE_LABELS)}), got {self.abundances.shape[0]}"
            )

    def _default_reference(self) -> np.ndarray:
        return self.abundances[:, 0].copy()

    def _validate_reference(self) -> None:
        if self.reference.shape != (self.abundances.shape[0],):
            raise InvalidShapeError(
                f"Reference of {self.accession} needs one value per replicate "
                f"({self.abundances.shape[0]}), got {self.reference.size}"
            )

    def _compute_ratio(self) -> np.ndarray:
        with np.errstate(divide="ignore", invalid="ignore"):
            return self.abundances / self.reference[:, np.newaxis]

    def set_fits(self, fits: Sequence[FitResult], temperatures: Sequence[float]) -> None:
        """
        Replace all curve fits at once and derive the melting temperatures.

        Parameters
        ----------
        fits : sequence of FitResult
            One fit per replicate row.
        temperatures : sequence of float
            Measured temperatures; the melting point is searched between the
            lowest and the highest.
        """
        fits = tuple(fits)
        if len(fits) != len(REPLICATE_LABELS):
            raise InvalidShapeError(f"Expected {len(REPLICATE_LABELS)} fits, got {len(fits)}")
        t = np.asarray(temperatures, dtype=float)
        lower, upper = float(np.nanmin(t)), float(np.nanmax(t))
        tms = tuple(melting_temperature(fit, lower, upper) for fit in fits)
        self.fits, self.melting_temperatures = fits, tms

    def reset_scores(self) -> None:
        super().reset_scores()
        self.fits = (EMPTY_FIT,) * len(REPLICATE_LABELS)
        self.melting_temperatures = (np.nan,) * len(REPLICATE_LABELS)

    # Melting temperatures and fit quality per replicate

    @property
    def tm_t1(self) -> float:
        return self.melting_temperatures[0]

    @property
    def tm_t2(self) -> float:
        return self.melting_temperatures[1]

    @property
    def tm_v1(self) -> float:
        return self.melting_temperatures[2]

    @property
    def tm_v2(self) -> float:
        return self.melting_temperatures[3]

    @property
    def rmse_t1(self) -> float:
        return self.fits[0].rmse

    @property
    def rmse_t2(self) -> float:
        return self.fits[1].rmse

    @property
    def rmse_v1(self) -> float:
        return self.fits[2].rmse

    @property
    def rmse_v2(self) -> float:
        return self.fits[3].rmse

    @property
    def rmse_mean(self) -> float:
        return float(np.mean([fit.rmse for fit in self.fits]))

    # Melting point shifts

    @property
    def tm_vt1(self) -> float:
        return self.tm_t1 - self.tm_v1

    @property
    def tm_vt2(self) -> float:
        return self.tm_t2 - self.tm_v2

    @property
    def tm_vv(self) -> float:
        return abs(self.tm_t1 - self.tm_t2)

    @property
    def mean_tm(self) -> float:
        return (self.tm_vt1 + self.tm_vt2) / 2.0

    @property
    def curve_shift_same_direction(self) -> bool:
        vt1, vt2 = self.tm_vt1, self.tm_vt2
        return bool((vt1 > 0 and vt2 > 0) or (vt1 < 0 and vt2 < 0))

    @property
    def delta_vt_gt_delta_vv(self) -> bool:
        return bool(self.tm_vt1 > self.tm_vv and self.tm_vt2 > self.tm_vv)

    # Replicate agreement, lower is better

    def _replication(self, first: int, second: int) -> float:
        return float(np.sum(np.abs(np.abs(self.ratio[first]) - np.abs(self.ratio[second]))))

    @property
    def t_rep(self) -> float:
        return self._replication(0, 1)

    @property
    def v_rep(self) -> float:
        return self._replication(2, 3)
