"""
Tests for the leak report handler
"""
import asyncio
import json
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

import sys
sys.path.insert(0, '.')

from geofuite.core.geo_utils import Coordinates
from geofuite.crowdsource.photo_normalizer import PhotoNormalizer
from geofuite.crowdsource.report_handler import (
    AdvisoryDecision,
    ReportHandler,
    ViewState,
    create_handler,
)
from geofuite.crowdsource.report_model import LeakStatus, ReportDraft, Severity
from geofuite.crowdsource.validation import ReportValidationError
from geofuite.ingestion.geolocation_client import (
    GeolocationClient,
    LocationError,
    StaticPositionProvider,
)
from geofuite.ml.advisory_bridge import AIAnalysisResult
from geofuite.storage.local_store import JsonFileStorage, MemoryStorage, ReportStore, StorageError


class Recorder:
    """Collects confirm/notify/opener calls."""

    def __init__(self, answer=True):
        self.answer = answer
        self.questions = []
        self.notices = []
        self.opened = []

    def confirm(self, message):
        self.questions.append(message)
        return self.answer

    def notify(self, message):
        self.notices.append(message)

    def opener(self, url):
        self.opened.append(url)


def filled_draft(**overrides) -> ReportDraft:
    values = dict(
        address="12 Rue de la République",
        claimant_name="Jean Dupont",
        claimant_phone="0612345678",
    )
    values.update(overrides)
    return ReportDraft(**values)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def handler(report_store, recorder):
    return ReportHandler(
        report_store,
        confirm=recorder.confirm,
        notify=recorder.notify,
        opener=recorder.opener,
    )


class TestViews:
    """Test view navigation."""

    def test_starts_on_map(self, handler):
        assert handler.view == ViewState.MAP

    def test_navigation(self, handler):
        assert handler.show_list() == ViewState.LIST
        handler.open_form()
        assert handler.view == ViewState.FORM
        assert handler.show_map() == ViewState.MAP

    def test_cancel_form_returns_to_list(self, handler):
        handler.open_form()
        assert handler.cancel_form() == ViewState.LIST

    def test_open_form_gives_fresh_draft(self, handler):
        draft = handler.open_form()
        assert draft.status == LeakStatus.NEW
        assert draft.identification_date == date.today()


class TestCreateReport:
    """Test report creation."""

    def test_create_defaults(self, handler, report_store):
        handler.open_form()
        outcome = handler.create_report(filled_draft())

        report = outcome.report
        assert outcome.persisted
        assert report.status == LeakStatus.NEW
        assert report.identification_date == date.today()
        assert report.address == "12 Rue de la République"
        assert handler.view == ViewState.LIST

        stored = ReportStore(report_store.storage).load()
        assert [r.id for r in stored] == [report.id]

    def test_new_report_is_first(self, handler):
        first = handler.create_report(filled_draft()).report
        before = len(handler.reports)
        second = handler.create_report(filled_draft(address="3 Place Bellecour")).report

        assert len(handler.reports) == before + 1
        assert handler.reports[0] is second
        assert handler.reports[1] is first

    def test_ids_are_distinct(self, handler):
        ids = {handler.create_report(filled_draft()).report.id for _ in range(20)}
        assert len(ids) == 20

    def test_colliding_id_factory_regenerates(self, report_store):
        ids = iter(["same", "same", "other"])
        handler = ReportHandler(report_store, id_factory=lambda: next(ids))

        assert handler.create_report(filled_draft()).report.id == "same"
        assert handler.create_report(filled_draft()).report.id == "other"

    @pytest.mark.parametrize("field", ["address", "claimant_name", "claimant_phone"])
    def test_missing_required_field(self, handler, recorder, field):
        handler.open_form()

        with pytest.raises(ReportValidationError) as exc_info:
            handler.create_report(filled_draft(**{field: "   "}))

        assert exc_info.value.result.missing_fields == [field]
        assert len(handler.reports) == 0
        assert handler.view == ViewState.FORM
        assert recorder.notices

    def test_quota_failure_keeps_report_in_memory(self, recorder):
        store = ReportStore(MemoryStorage(quota_bytes=10))
        handler = ReportHandler(store, notify=recorder.notify)

        outcome = handler.create_report(filled_draft())

        assert not outcome.persisted
        assert outcome.storage_error
        assert handler.reports[0] is outcome.report
        assert handler.view == ViewState.LIST
        assert store.storage.get_item("geo_fuite_data") is None
        assert recorder.notices

    def test_quota_failure_notice_mentions_full_storage(self, recorder):
        handler = ReportHandler(ReportStore(MemoryStorage(quota_bytes=10)), notify=recorder.notify)
        handler.create_report(filled_draft())

        assert "plein" in recorder.notices[-1]

    def test_write_error_notice_is_generic(self, recorder):
        class FailingStorage(MemoryStorage):
            def _write_all(self, entries):
                raise StorageError("disk unavailable")

        handler = ReportHandler(ReportStore(FailingStorage()), notify=recorder.notify)
        outcome = handler.create_report(filled_draft())

        assert not outcome.persisted
        assert outcome.storage_error == "disk unavailable"
        assert "plein" not in recorder.notices[-1]
        assert recorder.notices[-1].startswith("Erreur de stockage local")

    def test_corrupt_file_is_replaced_on_next_save(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("garbage", encoding="utf-8")
        handler = ReportHandler(ReportStore(JsonFileStorage(path)))

        assert handler.load() == 0
        outcome = handler.create_report(filled_draft())

        assert outcome.persisted is True
        reloaded = ReportStore(JsonFileStorage(path)).load()
        assert [r.id for r in reloaded] == [outcome.report.id]

    def test_load_existing(self, memory_storage, sample_reports):
        seed = ReportStore(memory_storage)
        for report in reversed(sample_reports):
            seed.prepend(report)
        seed.save()

        handler = ReportHandler(ReportStore(memory_storage))
        assert handler.load() == 2
        assert handler.get_report(sample_reports[0].id) == sample_reports[0]


class TestDraftHelpers:
    """Test photo and geolocation on drafts."""

    def test_attach_photo(self, handler, image_factory):
        draft = filled_draft()
        assert asyncio.run(handler.attach_photo(draft, image_factory(1600, 900)))
        assert draft.photo.startswith("data:image/jpeg;base64,")

    def test_failed_photo_keeps_previous(self, handler):
        draft = filled_draft(photo="data:image/jpeg;base64,AAAA")
        assert not asyncio.run(handler.attach_photo(draft, b"garbage"))
        assert draft.photo == "data:image/jpeg;base64,AAAA"

    def test_locate_sets_coordinates(self, report_store):
        geolocation = GeolocationClient(StaticPositionProvider(Coordinates(45.764, 4.8357)))
        handler = ReportHandler(report_store, geolocation=geolocation)
        draft = filled_draft()

        result = asyncio.run(handler.locate(draft))

        assert result.ok
        assert draft.coordinates == Coordinates(45.764, 4.8357)

    def test_locate_failure_keeps_draft(self, report_store, recorder):
        handler = ReportHandler(
            report_store,
            geolocation=GeolocationClient(StaticPositionProvider()),
            notify=recorder.notify,
        )
        draft = filled_draft()

        result = asyncio.run(handler.locate(draft))

        assert result.error == LocationError.UNAVAILABLE
        assert draft.coordinates is None
        assert recorder.notices

    def test_locate_without_provider(self, handler, recorder):
        result = asyncio.run(handler.locate(filled_draft()))
        assert result.error == LocationError.UNAVAILABLE
        assert recorder.notices


class TestAdvisory:
    """Test the advisory confirmation flow."""

    @staticmethod
    def make_bridge(result):
        bridge = MagicMock()
        bridge.analyze = AsyncMock(return_value=result)
        return bridge

    @staticmethod
    def urgent_result():
        return AIAnalysisResult(
            severity=Severity.CRITICAL,
            summary="Rupture de conduite principale.",
            recommended_status=LeakStatus.URGENT,
        )

    def test_short_comments_never_call_bridge(self, report_store, recorder):
        bridge = self.make_bridge(self.urgent_result())
        handler = ReportHandler(report_store, bridge=bridge, notify=recorder.notify)

        with pytest.raises(ReportValidationError):
            asyncio.run(handler.request_advisory(filled_draft(comments="abcd")))

        bridge.analyze.assert_not_called()

    def test_accepted_advisory_applied(self, report_store, recorder):
        bridge = self.make_bridge(self.urgent_result())
        handler = ReportHandler(report_store, bridge=bridge, confirm=recorder.confirm)
        draft = filled_draft(comments="Fuite importante sous la chaussée")

        outcome = asyncio.run(handler.request_advisory(draft))

        assert outcome.applied
        bridge.analyze.assert_awaited_once_with(
            "Fuite importante sous la chaussée", "12 Rue de la République"
        )
        assert "Critique" in recorder.questions[0]
        assert "Urgent" in recorder.questions[0]
        assert draft.status == LeakStatus.URGENT
        assert draft.comments.endswith("\n\n[IA Résumé]: Rupture de conduite principale.")
        assert draft.ai_analysis.severity == "Critique"

    def test_declined_advisory_leaves_draft(self, report_store):
        recorder = Recorder(answer=False)
        handler = ReportHandler(
            report_store, bridge=self.make_bridge(self.urgent_result()), confirm=recorder.confirm
        )
        draft = filled_draft(comments="Fuite importante sous la chaussée")

        outcome = asyncio.run(handler.request_advisory(draft))

        assert outcome.decision == AdvisoryDecision.DECLINED
        assert draft.status == LeakStatus.NEW
        assert draft.comments == "Fuite importante sous la chaussée"
        assert draft.ai_analysis is None

    def test_no_result_leaves_draft(self, report_store, recorder):
        handler = ReportHandler(
            report_store,
            bridge=self.make_bridge(None),
            confirm=recorder.confirm,
            notify=recorder.notify,
        )
        draft = filled_draft(comments="Fuite importante sous la chaussée")

        outcome = asyncio.run(handler.request_advisory(draft))

        assert outcome.decision == AdvisoryDecision.NO_RESULT
        assert recorder.questions == []
        assert recorder.notices
        assert draft.status == LeakStatus.NEW

    def test_applied_advisory_survives_creation(self, report_store):
        handler = ReportHandler(
            report_store, bridge=self.make_bridge(self.urgent_result()), confirm=lambda m: True
        )
        draft = filled_draft(comments="Fuite importante sous la chaussée")
        asyncio.run(handler.request_advisory(draft))

        report = handler.create_report(draft).report

        assert report.status == LeakStatus.URGENT
        assert report.ai_analysis.summary == "Rupture de conduite principale."


class TestSelection:
    """Test selecting reports from the list."""

    def test_located_report_confirmed(self, handler, recorder, sample_reports):
        selection = handler.select_report(sample_reports[0])

        assert recorder.questions[0].endswith("Voir sur Google Maps ?")
        assert "Statut: Urgent" in recorder.questions[0]
        assert selection.opened
        assert recorder.opened == [
            "https://www.google.com/maps/search/?api=1&query=45.764,4.8357"
        ]

    def test_located_report_declined(self, report_store, sample_reports):
        recorder = Recorder(answer=False)
        handler = ReportHandler(report_store, confirm=recorder.confirm, opener=recorder.opener)

        selection = handler.select_report(sample_reports[0])

        assert not selection.opened
        assert selection.maps_url is not None
        assert recorder.opened == []

    def test_report_without_coordinates(self, handler, recorder, sample_reports):
        selection = handler.select_report(sample_reports[1])

        assert selection.maps_url is None
        assert recorder.questions == []
        assert recorder.opened == []
        assert recorder.notices == [selection.summary]

    def test_summary_format(self, sample_reports):
        summary = ReportHandler.format_summary(sample_reports[1])
        assert summary == (
            "Détails:\n3 Place Bellecour, Lyon\n\n"
            "Statut: Résolu\n"
            "Nom: Marie Curie\n"
            "Tel: 0698765432\n"
            "Commentaire: Petit suintement au compteur"
        )

    def test_select_by_id(self, handler):
        report = handler.create_report(filled_draft()).report
        assert handler.select_report(report.id).report is report

    def test_select_unknown_id(self, handler):
        with pytest.raises(KeyError):
            handler.select_report("missing")


class TestStatistics:
    """Test report statistics."""

    def test_statistics(self, memory_storage, sample_report_dicts):
        records = sample_report_dicts + [dict(sample_report_dicts[1], id="a2", status="Archivé")]
        memory_storage.set_item("geo_fuite_data", json.dumps(records))
        handler = ReportHandler(ReportStore(memory_storage))
        handler.load()

        stats = handler.get_statistics()

        assert stats["total_reports"] == 3
        assert stats["by_status"]["En cours"] == 1
        assert stats["by_status"]["Nouveau"] == 1
        assert stats["by_status"]["Archivé"] == 1
        assert stats["with_coordinates"] == 1
        assert stats["with_photo"] == 0


def test_create_handler_uses_given_store(report_store):
    handler = create_handler(store=report_store, normalizer=PhotoNormalizer(max_width=400))

    assert handler.store is report_store
    assert handler.normalizer.max_width == 400
