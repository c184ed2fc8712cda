"""
Core modules for the tpmap package.

This module provides fundamental utilities including constants, exceptions
and logging.
"""

from tpmap.core.constants import (
    ACCESSION,
    DESCRIPTION,
    GENE_NAME,
    SCORE,
    P_VALUE,
    EFFECT,
    REPLICATE_LABELS,
    concentration_sort_key,
    sort_concentration_labels,
    sort_temperature_labels,
    get_accession,
    is_parquet,
)
from tpmap.core.exceptions import InvalidShapeError
from tpmap.core.logger import get_logger, configure_logging, log_execution_time

__all__ = [
    # Constants
    "ACCESSION",
    "DESCRIPTION",
    "GENE_NAME",
    "SCORE",
    "P_VALUE",
    "EFFECT",
    "REPLICATE_LABELS",
    "concentration_sort_key",
    "sort_concentration_labels",
    "sort_temperature_labels",
    "get_accession",
    "is_parquet",
    # Exceptions
    "InvalidShapeError",
    # Logger
    "get_logger",
    "configure_logging",
    "log_execution_time",
]
