"""
Rank-based scoring of 1D thermal profiles.

Every protein is ranked against the population on its melting point shifts,
the quality of its four curve fits and the agreement between replicates. The
normalised ranks are combined into a single score where larger values mean
stronger and more reliable shifts.
"""

from bisect import bisect_left, bisect_right
from typing import Iterable, Tuple

import numpy as np

from tpmap.core.constants import DEFAULT_TM_WEIGHT
from tpmap.core.logger import get_logger

logger = get_logger("tpmap.scoring.rank1d")

RMSE_ATTRIBUTES = ("rmse_t1", "rmse_t2", "rmse_v1", "rmse_v2")


def _sorted_finite(values: Iterable[float]) -> Tuple[float, ...]:
    return tuple(sorted(v for v in values if v is not None and np.isfinite(v)))


def validate_tm_weight(tm_weight: float) -> float:
    if not 0.0 <= tm_weight <= 1.0:
        raise ValueError(f"Tm weight must be between 0 and 1, got {tm_weight}")
    return float(tm_weight)


class RankList:
    """
    Sorted, immutable population of one metric.

    Parameters
    ----------
    values : iterable of float
        Metric values; missing values are left out.
    """

    def __init__(self, values: Iterable[float]):
        self.values = _sorted_finite(values)

    def __len__(self) -> int:
        return len(self.values)

    def rank_from_top(self, value: float) -> int:
        """1 plus the number of values strictly greater; missing values rank last."""
        if value is None or not np.isfinite(value):
            return len(self.values)
        return 1 + len(self.values) - bisect_right(self.values, value)

    def rank_from_bottom(self, value: float) -> int:
        """1 plus the number of values strictly smaller; missing values rank last."""
        if value is None or not np.isfinite(value):
            return len(self.values)
        return 1 + bisect_left(self.values, value)

    def component(self, rank: int) -> float:
        """Map a rank to ``[0, 1]``, 1 being the best rank."""
        size = len(self.values)
        if size == 0:
            return np.nan
        return abs(rank - size) / size


class TP1DScorer:
    """
    Score 1D proteins against the population they belong to.

    The rank lists are built once from the proteins passed in; rebuild the
    scorer whenever the curve fits change. Changing the weight only requires
    calling :meth:`score` again.

    Parameters
    ----------
    proteins : iterable of Protein1D
        Population with curve fits applied.
    tm_weight : float
        Weight of the melting point shifts against the quality terms, in
        ``[0, 1]``.
    """

    def __init__(self, proteins, tm_weight: float = DEFAULT_TM_WEIGHT):
        proteins = list(proteins)
        self.tm_weight = validate_tm_weight(tm_weight)
        self.mean_tm = RankList(abs(p.mean_tm) for p in proteins)
        self.tm_vt1 = RankList(p.tm_vt1 for p in proteins)
        self.tm_vt2 = RankList(p.tm_vt2 for p in proteins)
        self.rmse = {name: RankList(getattr(p, name) for p in proteins) for name in RMSE_ATTRIBUTES}
        self.v_rep = RankList(p.v_rep for p in proteins)
        self.t_rep = RankList(p.t_rep for p in proteins)
        logger.debug("Built 1D rank lists for %d proteins", len(proteins))

    def _rank(self, ranks: RankList, value: float, from_top: bool) -> int:
        return ranks.rank_from_top(value) if from_top else ranks.rank_from_bottom(value)

    def tm_shift_ranks(self, tm_vt1: float, tm_vt2: float) -> Tuple[int, int]:
        """
        Rank both melting point shifts in a common direction.

        Positive shifts are ranked from the top and negative ones from the
        bottom. When the replicates disagree in sign, the replicate with the
        worse rank decides the direction and the other one is re-ranked in it.
        """
        finite1 = tm_vt1 is not None and np.isfinite(tm_vt1)
        finite2 = tm_vt2 is not None and np.isfinite(tm_vt2)

        if finite1 and finite2:
            if tm_vt1 >= 0 and tm_vt2 >= 0:
                return self.tm_vt1.rank_from_top(tm_vt1), self.tm_vt2.rank_from_top(tm_vt2)
            if tm_vt1 <= 0 and tm_vt2 <= 0:
                return self.tm_vt1.rank_from_bottom(tm_vt1), self.tm_vt2.rank_from_bottom(tm_vt2)

            top1 = tm_vt1 > 0
            rank1 = self._rank(self.tm_vt1, tm_vt1, top1)
            rank2 = self._rank(self.tm_vt2, tm_vt2, not top1)
            if rank1 >= rank2:
                return rank1, self._rank(self.tm_vt2, tm_vt2, top1)
            return self._rank(self.tm_vt1, tm_vt1, not top1), rank2

        if finite1:
            return self._rank(self.tm_vt1, tm_vt1, tm_vt1 > 0), len(self.tm_vt2)
        if finite2:
            return len(self.tm_vt1), self._rank(self.tm_vt2, tm_vt2, tm_vt2 > 0)
        return len(self.tm_vt1), len(self.tm_vt2)

    def score(self, protein) -> float:
        """
        Compute the combined score of one protein.

        Parameters
        ----------
        protein : Protein1D
            A protein with curve fits applied.

        Returns
        -------
        float
            Score between 0 and 10, NaN when a population list is empty.
        """
        rank_vt1, rank_vt2 = self.tm_shift_ranks(protein.tm_vt1, protein.tm_vt2)
        shift = 3.0 * self.tm_vt1.component(rank_vt1) + 3.0 * self.tm_vt2.component(rank_vt2)

        quality = 0.0
        for name in RMSE_ATTRIBUTES:
            ranks = self.rmse[name]
            quality += ranks.component(ranks.rank_from_bottom(getattr(protein, name)))
        quality += self.v_rep.component(self.v_rep.rank_from_bottom(protein.v_rep))
        quality += self.t_rep.component(self.t_rep.rank_from_bottom(protein.t_rep))

        w = self.tm_weight
        return (w * shift + (1.0 - w) * quality) / 6.0 * 10.0

    def score_all(self, proteins) -> None:
        """Score every protein in place."""
        for protein in proteins:
            protein.score = self.score(protein)
