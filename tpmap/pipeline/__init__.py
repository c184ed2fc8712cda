"""
Analysis pipeline for the tpmap package.

This module provides :class:`TPAnalysis`, which ties normalization, scoring
and significance testing together for one proteome.
"""

from tpmap.core.concurrency import RunStatus, CancellationToken
from tpmap.pipeline.analysis import TPAnalysis

__all__ = [
    "TPAnalysis",
    "RunStatus",
    "CancellationToken",
]
