"""
Leak report handler
Orchestrates report capture, creation, selection and view navigation
"""

import asyncio
import logging
import uuid
import webbrowser
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from geofuite.core.constants import MIN_COMMENT_LENGTH
from geofuite.core.geo_utils import google_maps_search_url
from geofuite.crowdsource.photo_normalizer import PhotoNormalizer
from geofuite.crowdsource.report_model import (
    LeakReport,
    LeakStatus,
    ReportDraft,
    status_display,
    status_value,
)
from geofuite.crowdsource.validation import (
    ReportValidationError,
    ValidationResult,
    validate_draft,
)
from geofuite.ingestion.geolocation_client import (
    GeolocationClient,
    LocationError,
    LocationResult,
)
from geofuite.ml.advisory_bridge import AdvisoryBridge, AIAnalysisResult, comments_are_analyzable
from geofuite.storage.local_store import ReportStore, StorageError, StorageQuotaExceeded

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool]
NotifyCallback = Callable[[str], None]
OpenerCallback = Callable[[str], Any]


class ViewState(str, Enum):
    """Screens of the application."""
    MAP = "map"
    LIST = "list"
    FORM = "form"


class AdvisoryDecision(str, Enum):
    """What happened to an advisory request."""
    APPLIED = "applied"
    DECLINED = "declined"
    NO_RESULT = "no_result"


@dataclass
class CreateOutcome:
    """Result of a create operation."""
    report: LeakReport
    persisted: bool = True
    storage_error: Optional[str] = None


@dataclass
class AdvisoryOutcome:
    """Result of an advisory request on a draft."""
    decision: AdvisoryDecision
    result: Optional[AIAnalysisResult] = None

    @property
    def applied(self) -> bool:
        return self.decision == AdvisoryDecision.APPLIED


@dataclass
class Selection:
    """A report opened from the list."""
    report: LeakReport
    summary: str
    maps_url: Optional[str] = None
    opened: bool = False


def _decline(message: str) -> bool:
    return False


def _log_notice(message: str) -> None:
    logger.info(f"Notice: {message}")


class ReportHandler:
    """
    Handles leak reports from capture to display.

    Holds the report store, drives the Map/List/Form view state, and
    coordinates the photo, geolocation and advisory boundaries.
    """

    def __init__(
        self,
        store: ReportStore,
        bridge: Optional[AdvisoryBridge] = None,
        normalizer: Optional[PhotoNormalizer] = None,
        geolocation: Optional[GeolocationClient] = None,
        confirm: Optional[ConfirmCallback] = None,
        notify: Optional[NotifyCallback] = None,
        opener: Optional[OpenerCallback] = None,
        id_factory: Optional[Callable[[], str]] = None
    ):
        """
        Initialize report handler.

        Args:
            store: Report store (loaded or not)
            bridge: AI advisory bridge (None disables advisories)
            normalizer: Photo normalizer
            geolocation: Geolocation client
            confirm: Asks the user a yes/no question
            notify: Shows a message to the user
            opener: Opens an external URL
            id_factory: Generates report identifiers
        """
        self.store = store
        self.bridge = bridge
        self.normalizer = normalizer or PhotoNormalizer()
        self.geolocation = geolocation
        self.confirm = confirm or _decline
        self.notify = notify or _log_notice
        self.opener = opener or webbrowser.open
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))

        self._view = ViewState.MAP

        logger.info("ReportHandler initialized")

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def view(self) -> ViewState:
        return self._view

    def _set_view(self, view: ViewState) -> None:
        if view != self._view:
            logger.debug(f"View: {self._view.value} -> {view.value}")
        self._view = view

    def show_map(self) -> ViewState:
        self._set_view(ViewState.MAP)
        return self._view

    def show_list(self) -> ViewState:
        self._set_view(ViewState.LIST)
        return self._view

    def open_form(self) -> ReportDraft:
        """Switch to the capture form with an empty draft."""
        self._set_view(ViewState.FORM)
        return ReportDraft()

    def cancel_form(self) -> ViewState:
        """Leave the form without creating anything."""
        if self._view == ViewState.FORM:
            self._set_view(ViewState.LIST)
        return self._view

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> int:
        """Load stored reports. Returns the number loaded."""
        return len(self.store.load())

    @property
    def reports(self):
        return self.store.reports

    def get_report(self, report_id: str) -> Optional[LeakReport]:
        """Get report by ID."""
        return self.store.get(report_id)

    def _new_id(self) -> str:
        report_id = self.id_factory()
        while self.store.contains_id(report_id):
            report_id = self.id_factory()
        return report_id

    def create_report(self, draft: ReportDraft) -> CreateOutcome:
        """
        Create a report from a draft.

        Args:
            draft: Completed form content

        Returns:
            CreateOutcome; persisted is False when the storage write failed

        Raises:
            ReportValidationError: if a required field is empty
        """
        validation = validate_draft(draft)
        if not validation.is_valid:
            self.notify("Veuillez remplir les champs obligatoires.")
            raise ReportValidationError(validation)

        report = draft.to_report(self._new_id())
        self.store.prepend(report)
        outcome = CreateOutcome(report=report)

        try:
            self.store.save()
        except StorageError as e:
            logger.error(f"Report {report.id} kept in memory but not saved: {e}")
            outcome.persisted = False
            outcome.storage_error = str(e)
            if isinstance(e, StorageQuotaExceeded):
                self.notify("Stockage local plein : le signalement n'a pas pu être sauvegardé.")
            else:
                self.notify("Erreur de stockage local : le signalement n'a pas pu être sauvegardé.")

        self._set_view(ViewState.LIST)

        logger.info(f"New report created: {report.id} at {report.address!r}")
        return outcome

    # ------------------------------------------------------------------
    # Draft helpers (async boundaries)
    # ------------------------------------------------------------------

    async def attach_photo(self, draft: ReportDraft, image_data: bytes) -> bool:
        """
        Normalize and attach a photo to a draft.

        Decoding runs in a worker thread. A decode failure leaves the draft's
        previous photo untouched.
        """
        normalized = await asyncio.to_thread(self.normalizer.normalize, image_data)
        return draft.attach_photo(normalized.data_url if normalized else None)

    async def locate(self, draft: ReportDraft) -> LocationResult:
        """Acquire the current position and store it on the draft."""
        if self.geolocation is None:
            self.notify("La géolocalisation n'est pas supportée.")
            return LocationResult(error=LocationError.UNAVAILABLE, message="No provider")

        result = await self.geolocation.locate(high_accuracy=True, maximum_age=0)
        if result.ok:
            draft.set_coordinates(result.coordinates)
        else:
            self.notify("Impossible de récupérer la position. Vérifiez vos permissions GPS.")
        return result

    async def request_advisory(self, draft: ReportDraft) -> AdvisoryOutcome:
        """
        Ask for an AI advisory and apply it if the user confirms.

        Raises:
            ReportValidationError: if the comments are too short to analyze
        """
        if not comments_are_analyzable(draft.comments):
            self.notify("Veuillez entrer un commentaire détaillé avant l'analyse.")
            raise ReportValidationError(ValidationResult(
                is_valid=False,
                missing_fields=["comments"],
                errors=[f"Commentaire trop court (minimum {MIN_COMMENT_LENGTH} caractères)"],
            ))

        result = None
        if self.bridge is not None:
            result = await self.bridge.analyze(draft.comments, draft.address)

        if result is None:
            self.notify("L'analyse IA a échoué. Vérifiez votre connexion.")
            return AdvisoryOutcome(decision=AdvisoryDecision.NO_RESULT)

        question = (
            "Analyse IA :\n"
            f"Sévérité : {result.severity.value}\n"
            f"Suggestion : {result.recommended_status.value}\n\n"
            "Appliquer ces changements ?"
        )
        if not self.confirm(question):
            return AdvisoryOutcome(decision=AdvisoryDecision.DECLINED, result=result)

        draft.apply_advisory(result)
        return AdvisoryOutcome(decision=AdvisoryDecision.APPLIED, result=result)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    @staticmethod
    def format_summary(report: LeakReport) -> str:
        """Human-readable multi-line summary of a report."""
        return (
            f"Détails:\n{report.address}\n\n"
            f"Statut: {status_display(report.status).label}\n"
            f"Nom: {report.claimant_name}\n"
            f"Tel: {report.claimant_phone}\n"
            f"Commentaire: {report.comments}"
        )

    def select_report(self, report: Union[LeakReport, str]) -> Selection:
        """
        Inspect a report.

        With coordinates, offers to open an external map after confirmation;
        otherwise only shows the summary.

        Raises:
            KeyError: if a report id is not found
        """
        if isinstance(report, str):
            found = self.store.get(report)
            if found is None:
                raise KeyError(f"Report not found: {report}")
            report = found

        summary = self.format_summary(report)

        if report.coordinates is None:
            self.notify(summary)
            return Selection(report=report, summary=summary)

        url = google_maps_search_url(report.coordinates)
        opened = False
        if self.confirm(f"{summary}\n\nVoir sur Google Maps ?"):
            self.opener(url)
            opened = True
        return Selection(report=report, summary=summary, maps_url=url, opened=opened)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_statistics(self) -> Dict[str, Any]:
        """Get report statistics."""
        by_status: Dict[str, int] = {s.value: 0 for s in LeakStatus}
        with_photo = 0
        with_coordinates = 0

        for report in self.store:
            key = status_value(report.status)
            by_status[key] = by_status.get(key, 0) + 1
            if report.has_photo:
                with_photo += 1
            if report.coordinates is not None:
                with_coordinates += 1

        return {
            "total_reports": len(self.store),
            "by_status": by_status,
            "with_photo": with_photo,
            "with_coordinates": with_coordinates,
        }


def create_handler(**kwargs) -> ReportHandler:
    """
    Build a handler wired from application settings and load stored reports.

    Args:
        **kwargs: Overrides for ReportHandler arguments

    Returns:
        Loaded ReportHandler
    """
    from geofuite.core.config import settings
    from geofuite.ingestion.geolocation_client import IPGeolocationProvider
    from geofuite.storage.local_store import JsonFileStorage

    store = kwargs.pop("store", None)
    if store is None:
        store = ReportStore(
            JsonFileStorage(settings.storage_path, quota_bytes=settings.storage_quota_bytes),
            key=settings.storage_key,
        )
    kwargs.setdefault("bridge", AdvisoryBridge(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        timeout=settings.ai_timeout_seconds,
    ))
    kwargs.setdefault("normalizer", PhotoNormalizer(
        max_width=settings.photo_max_width,
        quality=settings.photo_jpeg_quality,
    ))
    kwargs.setdefault("geolocation", GeolocationClient(
        IPGeolocationProvider(settings.geolocation_url),
        timeout=settings.geolocation_timeout_seconds,
    ))

    handler = ReportHandler(store, **kwargs)
    handler.load()
    return handler
