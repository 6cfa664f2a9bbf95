"""
GeoFuite - Machine Learning Module
Generative-AI advisory for leak reports.
"""

from geofuite.ml.advisory_bridge import (
    AdvisoryBridge,
    AIAnalysisResult,
    analyze_leak_description,
    comments_are_analyzable,
)

__all__ = [
    "AdvisoryBridge",
    "AIAnalysisResult",
    "analyze_leak_description",
    "comments_are_analyzable",
]
