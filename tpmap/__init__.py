"""
tpmap - Thermal proteome profiling analysis.

This package scores thermal profiling experiments: denaturation curve fits
and rank scores for 1D temperature series, flood-fill scores and bootstrap
p-values for 2D concentration by temperature grids.
"""

__version__ = "0.1.0"

# Import logging configuration
from tpmap.core.logging_config import initialize_logging

# Initialize logging with default settings
# Users can override these settings by calling configure_logging
initialize_logging()

from tpmap.model import AnalysisConfig, ExperimentType, NormalizationMethod, Proteome
from tpmap.pipeline import RunStatus, TPAnalysis

__all__ = [
    "__version__",
    "AnalysisConfig",
    "ExperimentType",
    "NormalizationMethod",
    "Proteome",
    "RunStatus",
    "TPAnalysis",
]
