"""
Validation for leak report drafts
Checks required fields before a report is created
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List

from geofuite.core.geo_utils import is_valid_coordinate
from geofuite.crowdsource.report_model import ReportDraft

logger = logging.getLogger(__name__)

# Draft attribute -> label shown to the user
REQUIRED_FIELDS: Dict[str, str] = {
    "address": "Adresse de localisation",
    "claimant_name": "Nom du réclamant",
    "claimant_phone": "Téléphone",
}


@dataclass
class ValidationResult:
    """Result of draft validation."""
    is_valid: bool
    missing_fields: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "is_valid": self.is_valid,
            "missing_fields": self.missing_fields,
            "errors": self.errors,
        }


class ReportValidationError(ValueError):
    """Raised when a draft cannot become a report."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(result.errors) or "Invalid report")


def validate_draft(draft: ReportDraft) -> ValidationResult:
    """
    Validate a report draft.

    Args:
        draft: Form content

    Returns:
        ValidationResult listing missing fields and error messages
    """
    missing = []
    errors = []

    for attr, label in REQUIRED_FIELDS.items():
        value = getattr(draft, attr, None)
        if not isinstance(value, str) or not value.strip():
            missing.append(attr)
            errors.append(f"{label} est obligatoire")

    if draft.coordinates is not None and not is_valid_coordinate(
        draft.coordinates.latitude, draft.coordinates.longitude
    ):
        errors.append("Coordonnées GPS hors limites")

    if not isinstance(draft.identification_date, date):
        errors.append("Date d'identification invalide")

    result = ValidationResult(is_valid=not errors, missing_fields=missing, errors=errors)
    if not result.is_valid:
        logger.info(f"Draft rejected: {', '.join(errors)}")
    return result
