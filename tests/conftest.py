"""
Pytest configuration and fixtures
"""
import pytest
import sys
from datetime import date
from pathlib import Path

import cv2
import numpy as np

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from geofuite.core.geo_utils import Coordinates
from geofuite.crowdsource.report_model import AIAnalysis, LeakReport, LeakStatus
from geofuite.storage.local_store import MemoryStorage, ReportStore


def make_image_bytes(width: int, height: int, ext: str = ".png") -> bytes:
    """Encode a synthetic gradient image of the given size."""
    x = np.linspace(0, 255, width, dtype=np.uint8)
    y = np.linspace(0, 255, height, dtype=np.uint8)
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:, :, 0] = x[np.newaxis, :]
    image[:, :, 1] = y[:, np.newaxis]
    image[:, :, 2] = 128
    ok, buffer = cv2.imencode(ext, image)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def image_factory():
    """Build encoded test images."""
    return make_image_bytes


@pytest.fixture
def sample_reports():
    """Two stored reports, most recent first."""
    return [
        LeakReport(
            id="b5f3c7e2-0000-4000-8000-000000000002",
            address="12 Rue de la République, Lyon",
            claimant_name="Jean Dupont",
            claimant_phone="0612345678",
            coordinates=Coordinates(latitude=45.7640, longitude=4.8357),
            identification_date=date(2026, 10, 17),
            status=LeakStatus.URGENT,
            comments="Fuite importante sous la chaussée",
            ai_analysis=AIAnalysis(severity="Élevée", summary="Rupture probable de canalisation."),
        ),
        LeakReport(
            id="b5f3c7e2-0000-4000-8000-000000000001",
            address="3 Place Bellecour, Lyon",
            claimant_name="Marie Curie",
            claimant_phone="0698765432",
            identification_date=date(2026, 10, 15),
            status=LeakStatus.RESOLVED,
            comments="Petit suintement au compteur",
        ),
    ]


@pytest.fixture
def sample_report_dicts():
    """Stored records as written by the mobile client."""
    return [
        {
            "id": "a1",
            "address": "8 Avenue Foch, Paris",
            "claimantName": "Paul Martin",
            "claimantPhone": "0700000000",
            "coordinates": {"latitude": 48.8718, "longitude": 2.2876},
            "identificationDate": "2026-10-01",
            "status": "En cours",
            "comments": "Odeur de gaz",
            "photo": "",
        },
        {
            "id": "a0",
            "address": "1 Rue de Rivoli, Paris",
            "claimantName": "Lucie Bernard",
            "claimantPhone": "0711111111",
            "coordinates": None,
            "identificationDate": "2026-09-30",
            "status": "Nouveau",
            "comments": "",
        },
    ]


@pytest.fixture
def memory_storage():
    """Empty in-memory key-value storage."""
    return MemoryStorage()


@pytest.fixture
def report_store(memory_storage):
    """Empty report store on in-memory storage."""
    return ReportStore(memory_storage)
