"""
Data models for the tpmap package.

This module provides:
- NormalizationMethod, ExperimentType: enumerations
- Protein, Protein1D, Protein2D: per-protein data and results
- Proteome: the protein population of one experiment
- AnalysisConfig: analysis settings
"""

from tpmap.model.normalization import NormalizationMethod, ExperimentType
from tpmap.model.protein import Protein, Protein1D, Protein2D
from tpmap.model.proteome import Proteome
from tpmap.model.config import AnalysisConfig

__all__ = [
    "NormalizationMethod",
    "ExperimentType",
    "Protein",
    "Protein1D",
    "Protein2D",
    "Proteome",
    "AnalysisConfig",
]
