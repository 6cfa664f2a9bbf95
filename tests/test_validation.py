"""
Tests for report draft validation
"""
from datetime import date

import sys
sys.path.insert(0, '.')

from geofuite.core.geo_utils import Coordinates
from geofuite.crowdsource.report_model import ReportDraft
from geofuite.crowdsource.validation import ReportValidationError, validate_draft


def make_draft(**overrides):
    values = dict(address="12 Rue de la République", claimant_name="Jean Dupont",
                  claimant_phone="0612345678")
    values.update(overrides)
    return ReportDraft(**values)


class TestValidateDraft:
    """Test suite for draft validation."""

    def test_valid_draft(self):
        result = validate_draft(make_draft())
        assert result.is_valid
        assert result.errors == []

    def test_empty_form(self):
        result = validate_draft(ReportDraft())

        assert not result.is_valid
        assert result.missing_fields == ["address", "claimant_name", "claimant_phone"]
        assert "Adresse de localisation est obligatoire" in result.errors

    def test_whitespace_counts_as_missing(self):
        result = validate_draft(make_draft(claimant_name=" \t"))
        assert result.missing_fields == ["claimant_name"]

    def test_optional_fields_not_required(self):
        result = validate_draft(make_draft(comments="", coordinates=None, photo=None))
        assert result.is_valid

    def test_coordinates_accepted(self):
        assert validate_draft(make_draft(coordinates=Coordinates(45.764, 4.8357))).is_valid

    def test_bad_date(self):
        result = validate_draft(make_draft(identification_date="hier"))
        assert not result.is_valid

    def test_past_date_accepted(self):
        assert validate_draft(make_draft(identification_date=date(2020, 1, 1))).is_valid


def test_error_carries_result():
    result = validate_draft(ReportDraft())
    error = ReportValidationError(result)

    assert isinstance(error, ValueError)
    assert error.result is result
    assert "obligatoire" in str(error)
