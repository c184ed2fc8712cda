"""
Constants and common utilities for the tpmap package.

This module defines column names, default analysis parameters, colour anchors
and utility functions used throughout the package.
"""

import os
from decimal import Decimal, InvalidOperation


# Column name constants
ACCESSION = "Accession"
DESCRIPTION = "Description"
ORGANISM_NAME = "OrganismName"
ORGANISM_IDENTIFIER = "OrganismIdentifier"
GENE_NAME = "GeneName"
PROTEIN_EXISTENCE = "ProteinExistence"
SEQUENCE_VERSION = "SequenceVersion"

SCORE = "Score"
STABILISATION_SCORE = "StabilisationScore"
DESTABILISATION_SCORE = "DestabilisationScore"
P_VALUE = "PValue"
EFFECT = "Effect"
MEAN_FOLD_CHANGE = "MeanFC"

TM_T1 = "TmT1"
TM_T2 = "TmT2"
TM_V1 = "TmV1"
TM_V2 = "TmV2"
TM_VT1 = "TmShiftVT1"
TM_VT2 = "TmShiftVT2"
TM_VV = "TmDiffT1T2"
MEAN_TM = "MeanTmShift"
RMSE_T1 = "RMSET1"
RMSE_T2 = "RMSET2"
RMSE_V1 = "RMSEV1"
RMSE_V2 = "RMSEV2"
T_REP = "TRep"
V_REP = "VRep"
SHIFT_SAME_DIRECTION = "ShiftSameDirection"
DELTA_VT_GT_DELTA_VV = "DeltaVTgtDeltaVV"
RMSE_MEAN = "RMSEMean"

# Prefix of exported normalized fold-change columns
FOLD_CHANGE_PREFIX = "fc"

# Generic table format
ABUNDANCE_PREFIX = "ref"
ABUNDANCE_SEPARATOR = "_"

# 1D replicate rows, in matrix order
REPLICATE_LABELS = ["T1", "T2", "V1", "V2"]

# Defaults
DEFAULT_MIN_THRESHOLD = 0.80
DEFAULT_MAX_THRESHOLD = 1.50
DEFAULT_MIN_PERCENTILE = 0.20
DEFAULT_MAX_PERCENTILE = 0.80
DEFAULT_TM_WEIGHT = 0.70
DEFAULT_CURVE_FIT_ATTEMPTS = 10
DEFAULT_CURVE_FIT_MAX_ITERATIONS = 1000
DEFAULT_SEED = 123

# 2D scoring
MISSING_DATA_LIMIT = 0.5
BOOTSTRAP_THRESHOLD = 1.0
MEAN_FC_MIN_CELLS = 30

# Effect labels
EFFECT_STABILISED = "Stabilized"
EFFECT_DESTABILISED = "Destabilized"
EFFECT_SOLUBILITY = "Solubility/Expression"

# Heat map colour anchors (RGB, 0-1)
COLOUR_DESTABILISED = (1.0, 0.44313725, 0.15686274509)
COLOUR_NEUTRAL = (1.0, 0.92156862745, 0.51764705882)
COLOUR_STABILISED = (0.5725490196, 0.81568627451, 0.31372549019)
COLOUR_MISSING = (1.0, 1.0, 1.0)
COLOUR_MARGIN = 0.1


def concentration_sort_key(label: str) -> tuple:
    """
    Sort key for concentration labels.

    Numeric labels sort numerically and before non-numeric labels, which sort
    alphabetically.

    Parameters
    ----------
    label : str
        Concentration label, e.g. "0.5" or "DMSO".

    Returns
    -------
    tuple
        Key usable with ``sorted``.
    """
    label = str(label).strip()
    try:
        value = Decimal(label)
    except InvalidOperation:
        return (1, Decimal(0), label)
    if not value.is_finite():
        return (1, Decimal(0), label)
    return (0, value, label)


def sort_concentration_labels(labels) -> list[str]:
    """Return concentration labels sorted numerically where possible."""
    return sorted((str(label) for label in labels), key=concentration_sort_key)


def sort_temperature_labels(labels) -> list[str]:
    """Return temperature labels sorted by their numeric value."""
    return sorted((str(label) for label in labels), key=float)


def get_accession(identifier: str) -> str:
    """
    Get protein accession from the identifier (e.g. sp|P12345|PROT_NAME).

    Parameters
    ----------
    identifier : str
        Protein identifier.

    Returns
    -------
    str
        Protein accession.
    """
    identifier_lst = identifier.split("|")
    if len(identifier_lst) == 1:
        return identifier_lst[0]
    return identifier_lst[1]


def is_parquet(path: str) -> bool:
    """Check whether the path points to a parquet file."""
    return os.path.splitext(str(path))[1].lower() == ".parquet"
