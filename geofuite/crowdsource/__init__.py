"""
GeoFuite - Crowdsource Module
Leak report model, photo normalization and draft validation.
The report handler is imported from geofuite.crowdsource.report_handler.
"""

from geofuite.crowdsource.report_model import (
    LeakReport,
    LeakStatus,
    Severity,
    AIAnalysis,
    ReportDraft,
    status_display,
)
from geofuite.crowdsource.photo_normalizer import (
    PhotoNormalizer,
    NormalizedPhoto,
    normalize_photo,
)
from geofuite.crowdsource.validation import (
    ReportValidationError,
    ValidationResult,
    validate_draft,
)

__all__ = [
    # Report Model
    "LeakReport",
    "LeakStatus",
    "Severity",
    "AIAnalysis",
    "ReportDraft",
    "status_display",
    # Photo Normalizer
    "PhotoNormalizer",
    "NormalizedPhoto",
    "normalize_photo",
    # Validation
    "ReportValidationError",
    "ValidationResult",
    "validate_draft",
]
