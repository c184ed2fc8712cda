"""
Profile similarity between proteins.

Proteins with a thermal profile close to a selected protein are candidates
for the same complex or pathway. Distances are computed on the normalized
ratio matrices.
"""

from typing import List

import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import leaves_list, linkage
from scipy.spatial.distance import squareform

from tpmap.core.logger import get_logger
from tpmap.model.protein import Protein
from tpmap.model.proteome import Proteome

logger = get_logger("tpmap.analysis.similarity")


def mean_difference(reference, other) -> float:
    """
    Mean absolute difference between two fold-change matrices.

    Cells where both values are finite contribute their absolute difference;
    cells where only one is finite contribute that value. Cells missing in
    both are skipped.

    Parameters
    ----------
    reference, other : array-like
        Matrices of the same shape.

    Returns
    -------
    float
        The mean difference, NaN if no cell contributes.
    """
    a = np.asarray(reference, dtype=float)
    b = np.asarray(other, dtype=float)
    if a.shape != b.shape:
        raise ValueError(f"Cannot compare matrices of shape {a.shape} and {b.shape}")

    fin_a, fin_b = np.isfinite(a), np.isfinite(b)
    both = fin_a & fin_b
    total = np.abs(a[both] - b[both]).sum() + a[fin_a & ~fin_b].sum() + b[fin_b & ~fin_a].sum()
    counter = int((fin_a | fin_b).sum())
    if counter == 0:
        return np.nan
    return float(total / counter)


def rank_by_similarity(proteome: Proteome, accession: str) -> List[Protein]:
    """
    Order proteins by similarity to a selected protein.

    The mean difference to the selected protein is stored on every protein.

    Parameters
    ----------
    proteome : Proteome
        The population.
    accession : str
        Accession of the selected protein.

    Returns
    -------
    list of Protein
        Proteins sorted by ascending mean difference; the selected protein
        comes first.

    Raises
    ------
    KeyError
        If no protein has the accession.
    """
    selected = proteome.get(accession)
    for protein in proteome:
        protein.mean_difference = mean_difference(selected.normalized_ratio, protein.normalized_ratio)
    logger.info(f"Computed mean differences to {accession} for {len(proteome)} proteins")
    return sorted(
        proteome.proteins,
        key=lambda p: p.mean_difference if np.isfinite(p.mean_difference) else np.inf,
    )


def distance_matrix(proteome: Proteome) -> pd.DataFrame:
    """
    Pairwise distances between all proteins.

    The distance is the mean absolute difference over all cells, with cells
    missing in either protein contributing 1.

    Returns
    -------
    pd.DataFrame
        Square matrix indexed by accession on both axes.
    """
    accessions = [p.accession for p in proteome]
    if not accessions:
        return pd.DataFrame()
    stacked = proteome.stacked_ratios().reshape(len(accessions), -1)
    n_cells = stacked.shape[1]

    distances = np.zeros((len(accessions), len(accessions)))
    for i in range(len(accessions)):
        diff = np.abs(stacked[i] - stacked)
        diff = np.where(np.isfinite(diff), diff, 1.0)
        distances[i] = diff.sum(axis=1) / n_cells

    return pd.DataFrame(distances, index=accessions, columns=accessions)


def cluster_order(distances: pd.DataFrame) -> List[str]:
    """
    Order accessions by average-linkage hierarchical clustering.

    Parameters
    ----------
    distances : pd.DataFrame
        Output of :func:`distance_matrix`.

    Returns
    -------
    list of str
        Accessions in dendrogram leaf order.
    """
    if len(distances) < 3:
        return list(distances.index)
    values = distances.to_numpy(copy=True)
    # Symmetrize and zero the diagonal so squareform accepts the matrix.
    values = (values + values.T) / 2.0
    np.fill_diagonal(values, 0.0)
    order = leaves_list(linkage(squareform(values, checks=False), method="average"))
    return [distances.index[i] for i in order]
