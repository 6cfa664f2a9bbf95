"""
Leak report data model
Canonical record shape for water/gas leak incidents
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Union

from geofuite.core.constants import (
    AI_SUMMARY_PREFIX,
    NEUTRAL_STATUS_COLOR,
    NEUTRAL_STATUS_ICON,
    STATUS_COLORS,
    STATUS_ICONS,
)
from geofuite.core.geo_utils import Coordinates

logger = logging.getLogger(__name__)


class LeakStatus(str, Enum):
    """Intervention status of a leak report."""
    NEW = "Nouveau"
    IN_PROGRESS = "En cours"
    RESOLVED = "Résolu"
    URGENT = "Urgent"

    @classmethod
    def parse(cls, value: Any) -> Optional["LeakStatus"]:
        """Match a display value or member name. Returns None if unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        text = value.strip()
        for status in cls:
            if text == status.value or text.upper() == status.name:
                return status
        return None


class Severity(str, Enum):
    """Severity level suggested by the AI advisory."""
    LOW = "Faible"
    MEDIUM = "Moyenne"
    HIGH = "Élevée"
    CRITICAL = "Critique"

    @classmethod
    def parse(cls, value: Any) -> Optional["Severity"]:
        """Match a display value, member name or English label."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        text = value.strip()
        for severity in cls:
            if text.casefold() in (severity.value.casefold(), severity.name.casefold()):
                return severity
        return None

    @property
    def label(self) -> str:
        """English label (Low, Medium, High, Critical)."""
        return self.name.capitalize()


# A stored status that is not (yet) a LeakStatus member is kept verbatim
StatusValue = Union[LeakStatus, str]


@dataclass(frozen=True)
class StatusDisplay:
    """How a status is rendered in lists and on the map."""
    label: str
    color: str
    icon: str
    known: bool


def status_display(status: StatusValue) -> StatusDisplay:
    """Display attributes for a status, neutral for unknown values."""
    parsed = LeakStatus.parse(status)
    if parsed is None:
        return StatusDisplay(
            label=str(status) if status else "Inconnu",
            color=NEUTRAL_STATUS_COLOR,
            icon=NEUTRAL_STATUS_ICON,
            known=False,
        )
    return StatusDisplay(
        label=parsed.value,
        color=STATUS_COLORS[parsed.value],
        icon=STATUS_ICONS[parsed.value],
        known=True,
    )


def status_value(status: StatusValue) -> str:
    """Serialized form of a status."""
    return status.value if isinstance(status, LeakStatus) else str(status)


@dataclass
class AIAnalysis:
    """Advisory result kept on a report for display and history."""
    severity: str
    summary: str

    def to_dict(self) -> Dict[str, str]:
        return {"severity": self.severity, "summary": self.summary}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AIAnalysis":
        return cls(severity=str(data["severity"]), summary=str(data["summary"]))


@dataclass
class LeakReport:
    """
    Leak report submitted from the field.

    Created once from a validated draft and never edited in place.
    """
    id: str
    address: str
    claimant_name: str
    claimant_phone: str

    coordinates: Optional[Coordinates] = None
    identification_date: date = field(default_factory=date.today)
    status: StatusValue = LeakStatus.NEW
    comments: str = ""
    photo: Optional[str] = None  # data:image/jpeg;base64,...
    ai_analysis: Optional[AIAnalysis] = None

    @property
    def has_photo(self) -> bool:
        return bool(self.photo)

    @property
    def display(self) -> StatusDisplay:
        return status_display(self.status)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored dictionary shape (camelCase keys)."""
        data: Dict[str, Any] = {
            "id": self.id,
            "address": self.address,
            "claimantName": self.claimant_name,
            "claimantPhone": self.claimant_phone,
            "coordinates": self.coordinates.to_dict() if self.coordinates else None,
            "identificationDate": self.identification_date.isoformat(),
            "status": status_value(self.status),
            "comments": self.comments,
        }
        if self.photo:
            data["photo"] = self.photo
        if self.ai_analysis:
            data["aiAnalysis"] = self.ai_analysis.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LeakReport":
        """
        Build a report from its stored dictionary.

        Raises:
            KeyError, TypeError, ValueError: if the record is malformed
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected a report object, got {type(data).__name__}")

        raw_status = data.get("status", LeakStatus.NEW.value)
        status = LeakStatus.parse(raw_status)
        if status is None:
            logger.debug(f"Report {data.get('id')} has unknown status {raw_status!r}")

        coordinates = data.get("coordinates")
        ai_analysis = data.get("aiAnalysis")

        return cls(
            id=str(data["id"]),
            address=str(data["address"]),
            claimant_name=str(data["claimantName"]),
            claimant_phone=str(data["claimantPhone"]),
            coordinates=Coordinates.from_dict(coordinates) if coordinates else None,
            identification_date=date.fromisoformat(str(data["identificationDate"])[:10]),
            status=status if status is not None else str(raw_status),
            comments=str(data.get("comments") or ""),
            photo=data.get("photo") or None,
            ai_analysis=AIAnalysis.from_dict(ai_analysis) if ai_analysis else None,
        )


@dataclass
class ReportDraft:
    """
    Mutable record edited on the capture form before submission.

    All mutation (photo, position, advisory) happens here; the resulting
    LeakReport is never modified afterwards.
    """
    address: str = ""
    claimant_name: str = ""
    claimant_phone: str = ""
    coordinates: Optional[Coordinates] = None
    identification_date: date = field(default_factory=date.today)
    status: StatusValue = LeakStatus.NEW
    comments: str = ""
    photo: Optional[str] = None
    ai_analysis: Optional[AIAnalysis] = None

    def attach_photo(self, data_url: Optional[str]) -> bool:
        """
        Attach a normalized photo.

        A None result (decode failure) leaves the previous photo in place.
        """
        if not data_url:
            return False
        self.photo = data_url
        return True

    def remove_photo(self) -> None:
        self.photo = None

    def set_coordinates(self, coordinates: Optional[Coordinates]) -> bool:
        """Record an acquired position; None keeps the current value."""
        if coordinates is None:
            return False
        self.coordinates = coordinates
        return True

    def apply_advisory(self, result: Any) -> None:
        """
        Apply an accepted advisory: status overwrite and summary appended.

        Args:
            result: AIAnalysisResult with severity, summary, recommended_status
        """
        self.status = result.recommended_status
        self.comments = f"{self.comments}\n\n{AI_SUMMARY_PREFIX}: {result.summary}"
        self.ai_analysis = result.to_analysis()

    def to_report(self, report_id: str) -> LeakReport:
        """Freeze the draft into a report with the given identity."""
        return LeakReport(
            id=report_id,
            address=self.address.strip(),
            claimant_name=self.claimant_name.strip(),
            claimant_phone=self.claimant_phone.strip(),
            coordinates=self.coordinates,
            identification_date=self.identification_date,
            status=self.status,
            comments=self.comments,
            photo=self.photo,
            ai_analysis=self.ai_analysis,
        )
