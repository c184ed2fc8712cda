"""
Collection of proteins measured in one thermal profiling experiment.
"""

from typing import Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from tpmap.core.constants import (
    COLOUR_DESTABILISED,
    COLOUR_MARGIN,
    COLOUR_MISSING,
    COLOUR_NEUTRAL,
    COLOUR_STABILISED,
    DEFAULT_MAX_PERCENTILE,
    DEFAULT_MAX_THRESHOLD,
    DEFAULT_MIN_PERCENTILE,
    DEFAULT_MIN_THRESHOLD,
    REPLICATE_LABELS,
    sort_concentration_labels,
    sort_temperature_labels,
)
from tpmap.core.exceptions import InvalidShapeError
from tpmap.core.logger import get_logger
from tpmap.model.normalization import ExperimentType, NormalizationMethod
from tpmap.model.protein import Protein, Protein1D, Protein2D

logger = get_logger("tpmap.model.proteome")

Colour = Tuple[float, float, float]


def validate_percentile(value: float, name: str) -> float:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be between 0 and 1, got {value}")
    return float(value)


def _interpolate(start: Colour, end: Colour, fraction: float) -> Colour:
    return tuple(s + (e - s) * fraction for s, e in zip(start, end))


def _percentile(sorted_values: Tuple[float, ...], q: float) -> float:
    if not sorted_values:
        return np.nan
    return sorted_values[int((len(sorted_values) - 1) * q)]


class Proteome:
    """
    Ordered set of proteins sharing temperature and concentration labels.

    Parameters
    ----------
    experiment_type : ExperimentType or str
        ``TP1D`` or ``TP2D``.
    temperature_labels : sequence of str
        Temperature labels; sorted ascending by numeric value.
    concentration_labels : sequence of str, optional
        Concentration labels of a 2D experiment, sorted numeric-aware. For 1D
        experiments the replicate labels are used.
    file_name : str, optional
        Name of the file the data was read from.
    """

    def __init__(
        self,
        experiment_type: Union[ExperimentType, str],
        temperature_labels: Sequence[str],
        concentration_labels: Optional[Sequence[str]] = None,
        file_name: Optional[str] = None,
    ):
        self.experiment_type = ExperimentType.from_str(experiment_type)
        self.temperature_labels: List[str] = sort_temperature_labels([str(t) for t in temperature_labels])
        if self.experiment_type == ExperimentType.TP1D:
            self.concentration_labels: List[str] = list(REPLICATE_LABELS)
        else:
            if not concentration_labels:
                raise InvalidShapeError("A 2D experiment needs concentration labels")
            self.concentration_labels = sort_concentration_labels([str(c) for c in concentration_labels])
        self.file_name = file_name

        self.proteins: List[Protein] = []
        self.normalization_method = NormalizationMethod.NONE
        self.min_percentile = DEFAULT_MIN_PERCENTILE
        self.max_percentile = DEFAULT_MAX_PERCENTILE
        self.min_threshold = DEFAULT_MIN_THRESHOLD
        self.max_threshold = DEFAULT_MAX_THRESHOLD
        self.min_p_value = 1.0
        self._sorted_minima: Tuple[float, ...] = ()
        self._sorted_maxima: Tuple[float, ...] = ()

    @property
    def is_2d(self) -> bool:
        return self.experiment_type == ExperimentType.TP2D

    @property
    def shape(self) -> Tuple[int, int]:
        """Expected abundance matrix shape of every protein."""
        return len(self.concentration_labels), len(self.temperature_labels)

    @property
    def temperatures(self) -> np.ndarray:
        return np.array([float(t) for t in self.temperature_labels])

    def add_protein(self, protein: Protein) -> None:
        """
        Append a protein after checking it matches the experiment.

        Raises
        ------
        InvalidShapeError
            If the protein type or matrix shape does not match the labels.
        """
        expected_type = Protein2D if self.is_2d else Protein1D
        if not isinstance(protein, expected_type):
            raise InvalidShapeError(
                f"{protein.accession} is a {type(protein).__name__}, expected {expected_type.__name__}"
            )
        if protein.shape != self.shape:
            raise InvalidShapeError(
                f"{protein.accession} has abundance shape {protein.shape}, expected {self.shape} "
                f"({len(self.concentration_labels)} concentrations x {len(self.temperature_labels)} temperatures)"
            )
        self.proteins.append(protein)

    def get(self, accession: str) -> Protein:
        """Return the protein with the given accession, raising ``KeyError`` if absent."""
        for protein in self.proteins:
            if protein.accession == accession:
                return protein
        raise KeyError(accession)

    def __len__(self) -> int:
        return len(self.proteins)

    def __iter__(self) -> Iterator[Protein]:
        return iter(self.proteins)

    def __getitem__(self, index: int) -> Protein:
        return self.proteins[index]

    def set_percentiles(self, min_percentile: float, max_percentile: float) -> None:
        self.min_percentile = validate_percentile(min_percentile, "Minimum percentile")
        self.max_percentile = validate_percentile(max_percentile, "Maximum percentile")

    def population_statistics(self) -> Tuple[Tuple[float, ...], Tuple[float, ...]]:
        """Sorted per-protein minima and maxima of the current normalized ratios."""
        minima = tuple(sorted(p.minimum for p in self.proteins))
        maxima = tuple(sorted(p.maximum for p in self.proteins))
        return minima, maxima

    def update_population_statistics(self) -> None:
        """Rebuild the sorted per-protein minima and maxima of the normalized ratios."""
        self._sorted_minima, self._sorted_maxima = self.population_statistics()

    @property
    def sorted_minima(self) -> Tuple[float, ...]:
        return self._sorted_minima

    @property
    def sorted_maxima(self) -> Tuple[float, ...]:
        return self._sorted_maxima

    def lower_percentile(self, q: float) -> float:
        """Value of the sorted per-protein minima at percentile ``q``."""
        return _percentile(self._sorted_minima, q)

    def upper_percentile(self, q: float) -> float:
        """Value of the sorted per-protein maxima at percentile ``q``."""
        return _percentile(self._sorted_maxima, q)

    def compute_thresholds(self) -> Tuple[Tuple[float, ...], Tuple[float, ...], float, float]:
        """
        Derive percentile thresholds from the current normalized population.

        Nothing is stored on the proteome; see :meth:`set_thresholds`.

        Returns
        -------
        tuple
            Sorted minima, sorted maxima, minimum threshold and maximum threshold.
            An empty proteome keeps its current thresholds.
        """
        minima, maxima = self.population_statistics()
        if not self.proteins:
            return minima, maxima, self.min_threshold, self.max_threshold
        return (
            minima,
            maxima,
            _percentile(minima, self.min_percentile),
            _percentile(maxima, self.max_percentile),
        )

    def set_thresholds(
        self,
        min_threshold: float,
        max_threshold: float,
        sorted_minima: Tuple[float, ...],
        sorted_maxima: Tuple[float, ...],
    ) -> None:
        """Store thresholds together with the population statistics they came from."""
        self.min_threshold = min_threshold
        self.max_threshold = max_threshold
        self._sorted_minima = sorted_minima
        self._sorted_maxima = sorted_maxima
        logger.debug("Thresholds set to %.4f / %.4f", min_threshold, max_threshold)

    def update_thresholds(self) -> Tuple[float, float]:
        """
        Recompute and store the thresholds from the current normalized population.

        Returns
        -------
        tuple of float
            The new minimum and maximum thresholds.
        """
        minima, maxima, min_threshold, max_threshold = self.compute_thresholds()
        self.set_thresholds(min_threshold, max_threshold, minima, maxima)
        return min_threshold, max_threshold

    def stacked_ratios(self) -> np.ndarray:
        """
        Stack the normalized ratios of all proteins into a read-only array.

        Returns
        -------
        np.ndarray
            Array of shape ``(n_proteins, rows, columns)``.

        Raises
        ------
        InvalidShapeError
            If proteins have inconsistent shapes.
        """
        shapes = {p.normalized_ratio.shape for p in self.proteins}
        if len(shapes) > 1:
            raise InvalidShapeError(f"Proteins have inconsistent ratio shapes: {sorted(shapes)}")
        if not self.proteins:
            stacked = np.empty((0,) + self.shape)
        else:
            stacked = np.stack([p.normalized_ratio for p in self.proteins])
        stacked.setflags(write=False)
        return stacked

    def get_colour(self, ratio: Optional[float]) -> Colour:
        """
        Map a fold change onto the destabilised, neutral and stabilised colours.

        Parameters
        ----------
        ratio : float or None
            Normalized fold change.

        Returns
        -------
        tuple of float
            RGB components in ``[0, 1]``.
        """
        if ratio is None or not np.isfinite(ratio):
            return COLOUR_MISSING

        minimum = self.min_threshold - COLOUR_MARGIN
        maximum = self.max_threshold + COLOUR_MARGIN
        if ratio < minimum:
            return COLOUR_DESTABILISED
        if ratio < 1.0:
            return _interpolate(COLOUR_DESTABILISED, COLOUR_NEUTRAL, (ratio - minimum) / (1.0 - minimum))
        if ratio < maximum:
            return _interpolate(COLOUR_NEUTRAL, COLOUR_STABILISED, (ratio - 1.0) / (maximum - 1.0))
        return COLOUR_STABILISED

    def sort_by_score(self) -> None:
        """
        Order proteins by descending score, missing scores last.

        2D proteins are ordered by mean fold change first so that equal scores
        keep descending fold-change order.
        """

        def descending(value: float) -> float:
            return -value if np.isfinite(value) else np.inf

        if self.is_2d:
            self.proteins.sort(key=lambda p: descending(p.mean_fold_change))
        self.proteins.sort(key=lambda p: descending(p.score))

    def clear(self) -> None:
        """Discard proteins, labels and derived state."""
        self.proteins = []
        self.temperature_labels = []
        self.concentration_labels = []
        self.file_name = None
        self.min_threshold = DEFAULT_MIN_THRESHOLD
        self.max_threshold = DEFAULT_MAX_THRESHOLD
        self.min_p_value = 1.0
        self._sorted_minima = ()
        self._sorted_maxima = ()
