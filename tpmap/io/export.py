"""
Export of analysis results as tables.
"""

from pathlib import Path
from typing import Union

import numpy as np
import pandas as pd

from tpmap.core.constants import (
    ACCESSION,
    DESCRIPTION,
    DELTA_VT_GT_DELTA_VV,
    DESTABILISATION_SCORE,
    EFFECT,
    FOLD_CHANGE_PREFIX,
    ABUNDANCE_SEPARATOR,
    GENE_NAME,
    MEAN_FOLD_CHANGE,
    MEAN_TM,
    ORGANISM_IDENTIFIER,
    ORGANISM_NAME,
    P_VALUE,
    PROTEIN_EXISTENCE,
    RMSE_MEAN,
    RMSE_T1,
    RMSE_T2,
    RMSE_V1,
    RMSE_V2,
    SCORE,
    SEQUENCE_VERSION,
    SHIFT_SAME_DIRECTION,
    STABILISATION_SCORE,
    T_REP,
    TM_T1,
    TM_T2,
    TM_V1,
    TM_V2,
    TM_VT1,
    TM_VT2,
    TM_VV,
    V_REP,
    is_parquet,
)
from tpmap.core.logger import get_logger
from tpmap.model.proteome import Proteome

logger = get_logger("tpmap.io.export")

_ANNOTATION_COLUMNS = {
    ACCESSION: "accession",
    DESCRIPTION: "description",
    ORGANISM_NAME: "organism_name",
    ORGANISM_IDENTIFIER: "organism_identifier",
    GENE_NAME: "gene_name",
    PROTEIN_EXISTENCE: "protein_existence",
    SEQUENCE_VERSION: "sequence_version",
}

_2D_COLUMNS = {
    SCORE: "score",
    STABILISATION_SCORE: "stabilisation_score",
    DESTABILISATION_SCORE: "destabilisation_score",
    P_VALUE: "p_value",
    EFFECT: "effect",
    MEAN_FOLD_CHANGE: "mean_fold_change",
}

_1D_COLUMNS = {
    SCORE: "score",
    TM_T1: "tm_t1",
    TM_T2: "tm_t2",
    TM_V1: "tm_v1",
    TM_V2: "tm_v2",
    TM_VT1: "tm_vt1",
    TM_VT2: "tm_vt2",
    TM_VV: "tm_vv",
    MEAN_TM: "mean_tm",
    RMSE_T1: "rmse_t1",
    RMSE_T2: "rmse_t2",
    RMSE_V1: "rmse_v1",
    RMSE_V2: "rmse_v2",
    RMSE_MEAN: "rmse_mean",
    T_REP: "t_rep",
    V_REP: "v_rep",
    SHIFT_SAME_DIRECTION: "curve_shift_same_direction",
    DELTA_VT_GT_DELTA_VV: "delta_vt_gt_delta_vv",
}


def fold_change_columns(proteome: Proteome) -> list:
    """Names of the exported fold-change columns, row by row of the ratio matrix."""
    return [
        ABUNDANCE_SEPARATOR.join([FOLD_CHANGE_PREFIX, temperature, concentration])
        for concentration in proteome.concentration_labels
        for temperature in proteome.temperature_labels
    ]


def proteome_to_dataframe(proteome: Proteome) -> pd.DataFrame:
    """
    Collect the results of every protein into a DataFrame.

    Parameters
    ----------
    proteome : Proteome
        A scored proteome.

    Returns
    -------
    pd.DataFrame
        One row per protein in the proteome's current order: annotations,
        scores and the normalized fold changes.
    """
    result_columns = _2D_COLUMNS if proteome.is_2d else _1D_COLUMNS
    fc_columns = fold_change_columns(proteome)

    records = []
    for protein in proteome:
        record = {column: getattr(protein, attr) for column, attr in _ANNOTATION_COLUMNS.items()}
        record.update({column: getattr(protein, attr) for column, attr in result_columns.items()})
        record.update(zip(fc_columns, np.ravel(protein.normalized_ratio)))
        records.append(record)

    columns = list(_ANNOTATION_COLUMNS) + list(result_columns) + fc_columns
    return pd.DataFrame.from_records(records, columns=columns)


def write_results(proteome: Proteome, path: Union[str, Path]) -> pd.DataFrame:
    """
    Write the results table to ``.tsv``, ``.csv`` or ``.parquet``.

    Returns
    -------
    pd.DataFrame
        The table that was written.

    Raises
    ------
    ValueError
        If the extension is not supported.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    df = proteome_to_dataframe(proteome)
    path.parent.mkdir(parents=True, exist_ok=True)

    if is_parquet(path):
        df.to_parquet(path, index=False)
    elif suffix in (".tsv", ".txt"):
        df.to_csv(path, sep="\t", index=False)
    elif suffix == ".csv":
        df.to_csv(path, index=False)
    else:
        raise ValueError(f"Unsupported output format: {suffix}. Use .tsv, .csv or .parquet")

    logger.info(f"Wrote {len(df)} proteins to {path}")
    return df
