"""
GeoFuite - REST API

FastAPI application exposing leak report capture, listing, photo
normalization, AI advisories and maps.

Run with: uvicorn geofuite.api.main:app --reload
"""

from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from geofuite import __version__
from geofuite.core.config import settings
from geofuite.core.geo_utils import embed_map_url, google_maps_search_url, parse_coordinates
from geofuite.core.logging import setup_logging
from geofuite.crowdsource.photo_normalizer import decode_data_url
from geofuite.crowdsource.report_handler import ReportHandler, create_handler
from geofuite.crowdsource.report_model import (
    AIAnalysis,
    LeakReport,
    LeakStatus,
    ReportDraft,
    Severity,
    status_display,
    status_value,
)
from geofuite.crowdsource.validation import ReportValidationError
from geofuite.ml.advisory_bridge import comments_are_analyzable
from geofuite.visualization.map_generator import create_leak_map

logger = setup_logging()

# FastAPI app
app = FastAPI(
    title="GeoFuite",
    description="Field tracker for water and gas leak interventions",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    """API health status."""
    status: str
    version: str
    timestamp: str
    ai_enabled: bool
    report_count: int


class ReportResponse(BaseModel):
    """Leak report."""
    id: str
    address: str
    claimant_name: str
    claimant_phone: str
    latitude: Optional[float]
    longitude: Optional[float]
    identification_date: str
    status: str
    status_color: str
    comments: str
    has_photo: bool
    ai_severity: Optional[str] = None
    ai_summary: Optional[str] = None


class ReportListResponse(BaseModel):
    """List of leak reports, most recent first."""
    count: int
    total: int
    reports: List[ReportResponse]


class ReportDetailResponse(BaseModel):
    """Report with its human-readable summary."""
    report: ReportResponse
    summary: str
    maps_url: Optional[str] = None


class ReportCreateResponse(BaseModel):
    """Result of report creation."""
    report: ReportResponse
    persisted: bool
    storage_error: Optional[str] = None
    photo_attached: bool = False


class PhotoResponse(BaseModel):
    """Normalized photo."""
    photo: str
    width: int
    height: int
    original_width: int
    original_height: int
    size_bytes: int


class AdvisoryRequest(BaseModel):
    """Request for an AI advisory."""
    comments: str
    address: str = ""


class AdvisoryResponse(BaseModel):
    """AI advisory, or available=False when none could be produced."""
    available: bool
    severity: Optional[str] = None
    severity_label: Optional[str] = None
    summary: Optional[str] = None
    recommended_status: Optional[str] = None


class MapEmbedResponse(BaseModel):
    """Embeddable map location."""
    url: str
    latitude: float
    longitude: float
    zoom: int
    default_location: bool


# ============================================================================
# Helper Functions
# ============================================================================

_report_handler: Optional[ReportHandler] = None


def get_handler() -> ReportHandler:
    """Get the shared report handler, loading stored reports on first use."""
    global _report_handler
    if _report_handler is None:
        _report_handler = create_handler()
    return _report_handler


def to_response(report: LeakReport) -> ReportResponse:
    """Convert a report to its API shape."""
    coords = report.coordinates
    return ReportResponse(
        id=report.id,
        address=report.address,
        claimant_name=report.claimant_name,
        claimant_phone=report.claimant_phone,
        latitude=coords.latitude if coords else None,
        longitude=coords.longitude if coords else None,
        identification_date=report.identification_date.isoformat(),
        status=status_value(report.status),
        status_color=status_display(report.status).color,
        comments=report.comments,
        has_photo=report.has_photo,
        ai_severity=report.ai_analysis.severity if report.ai_analysis else None,
        ai_summary=report.ai_analysis.summary if report.ai_analysis else None,
    )


def _validation_detail(error: ReportValidationError) -> dict:
    return {"message": str(error), **error.result.to_dict()}


# ============================================================================
# System Routes
# ============================================================================

@app.get("/", response_class=HTMLResponse)
async def root():
    """Welcome page."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <title>GeoFuite</title>
        <style>
            body { font-family: Arial; max-width: 900px; margin: 50px auto; padding: 20px; background: #f8fafc; color: #1e293b; }
            h1 { color: #1d4ed8; }
            h3 { color: #0e7490; margin-top: 30px; }
            a { color: #1d4ed8; }
            code { background: #e2e8f0; padding: 2px 8px; border-radius: 4px; }
            .endpoint { background: #fff; padding: 10px; margin: 5px 0; border-radius: 4px; border-left: 3px solid #1d4ed8; }
            .tag { display: inline-block; background: #1d4ed8; color: white; padding: 2px 8px; border-radius: 3px; font-size: 12px; margin-right: 5px; }
        </style>
    </head>
    <body>
        <h1>💧 GeoFuite</h1>
        <p>Tracker d'interventions pour les fuites d'eau et de gaz.</p>

        <h3>📚 Documentation</h3>
        <ul>
            <li><a href="/docs">Swagger UI</a></li>
            <li><a href="/redoc">ReDoc</a></li>
            <li><a href="/health">Health Check</a></li>
        </ul>

        <h3>📋 Signalements</h3>
        <div class="endpoint"><span class="tag">POST</span> <code>/api/v1/reports</code> - Nouveau signalement</div>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/reports</code> - Liste des signalements</div>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/reports/{id}</code> - Détails</div>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/reports/{id}/photo</code> - Photo</div>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/stats</code> - Statistiques</div>

        <h3>🛠️ Outils</h3>
        <div class="endpoint"><span class="tag">POST</span> <code>/api/v1/photos/normalize</code> - Compression photo</div>
        <div class="endpoint"><span class="tag">POST</span> <code>/api/v1/advisory</code> - Analyse IA</div>

        <h3>🗺️ Carte</h3>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/map</code> - Carte des incidents</div>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/map/embed</code> - URL de carte intégrée</div>
    </body>
    </html>
    """


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(handler: ReportHandler = Depends(get_handler)):
    """Check API health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
        ai_enabled=bool(handler.bridge and handler.bridge.enabled),
        report_count=len(handler.store),
    )


# ============================================================================
# Report Routes
# ============================================================================

@app.post("/api/v1/reports", response_model=ReportCreateResponse, status_code=201, tags=["Reports"])
async def create_report(
    address: str = Form(""),
    claimant_name: str = Form(""),
    claimant_phone: str = Form(""),
    latitude: Optional[float] = Form(None, ge=-90, le=90),
    longitude: Optional[float] = Form(None, ge=-180, le=180),
    identification_date: Optional[date] = Form(None),
    status: Optional[str] = Form(None),
    comments: str = Form(""),
    ai_severity: Optional[str] = Form(None),
    ai_summary: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    handler: ReportHandler = Depends(get_handler),
):
    """
    Create a leak report.

    Address, claimant name and phone are required. An undecodable photo is
    ignored and the report is created without it.
    """
    draft = ReportDraft(
        address=address,
        claimant_name=claimant_name,
        claimant_phone=claimant_phone,
        coordinates=parse_coordinates(latitude, longitude),
        comments=comments,
    )
    if identification_date is not None:
        draft.identification_date = identification_date

    if status:
        parsed = LeakStatus.parse(status)
        if parsed is None:
            raise HTTPException(status_code=422, detail=f"Unknown status: {status}")
        draft.status = parsed

    if ai_severity and ai_summary:
        severity = Severity.parse(ai_severity)
        if severity is None:
            raise HTTPException(status_code=422, detail=f"Unknown severity: {ai_severity}")
        draft.ai_analysis = AIAnalysis(severity=severity.value, summary=ai_summary)

    photo_attached = False
    if photo is not None:
        photo_attached = await handler.attach_photo(draft, await photo.read())

    try:
        outcome = handler.create_report(draft)
    except ReportValidationError as e:
        raise HTTPException(status_code=422, detail=_validation_detail(e))

    return ReportCreateResponse(
        report=to_response(outcome.report),
        persisted=outcome.persisted,
        storage_error=outcome.storage_error,
        photo_attached=photo_attached,
    )


@app.get("/api/v1/reports", response_model=ReportListResponse, tags=["Reports"])
async def list_reports(
    status: Optional[str] = Query(None, description="Filter by status"),
    limit: int = Query(default=50, ge=1, le=500),
    handler: ReportHandler = Depends(get_handler),
):
    """List reports, most recent first."""
    reports = list(handler.reports)
    if status:
        wanted = LeakStatus.parse(status)
        key = wanted.value if wanted else status
        reports = [r for r in reports if status_value(r.status) == key]

    page = reports[:limit]
    return ReportListResponse(
        count=len(page),
        total=len(reports),
        reports=[to_response(r) for r in page],
    )


@app.get("/api/v1/reports/{report_id}", response_model=ReportDetailResponse, tags=["Reports"])
async def get_report(report_id: str, handler: ReportHandler = Depends(get_handler)):
    """Get a report with its summary and external map link."""
    report = handler.get_report(report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")

    return ReportDetailResponse(
        report=to_response(report),
        summary=handler.format_summary(report),
        maps_url=google_maps_search_url(report.coordinates) if report.coordinates else None,
    )


@app.get("/api/v1/reports/{report_id}/photo", tags=["Reports"])
async def get_report_photo(report_id: str, handler: ReportHandler = Depends(get_handler)):
    """Get the stored JPEG of a report."""
    report = handler.get_report(report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    if not report.photo:
        raise HTTPException(status_code=404, detail="Report has no photo")

    try:
        content = decode_data_url(report.photo)
    except ValueError:
        raise HTTPException(status_code=404, detail="Stored photo is unreadable")
    return Response(content=content, media_type="image/jpeg")


@app.get("/api/v1/stats", tags=["Reports"])
async def get_stats(handler: ReportHandler = Depends(get_handler)):
    """Report counts by status."""
    return handler.get_statistics()


# ============================================================================
# Tools
# ============================================================================

@app.post("/api/v1/photos/normalize", response_model=PhotoResponse, tags=["Tools"])
async def normalize_photo_upload(
    photo: UploadFile = File(...),
    handler: ReportHandler = Depends(get_handler),
):
    """Downscale and re-encode a photo as a JPEG data URL."""
    result = handler.normalizer.normalize(await photo.read())
    if result is None:
        raise HTTPException(status_code=422, detail="Image could not be decoded")
    return PhotoResponse(**result.to_dict())


@app.post("/api/v1/advisory", response_model=AdvisoryResponse, tags=["Tools"])
async def request_advisory(
    request: AdvisoryRequest,
    handler: ReportHandler = Depends(get_handler),
):
    """
    Ask the AI for a severity, summary and status suggestion.

    The suggestion is only returned; applying it is up to the client after
    the user confirms.
    """
    if not comments_are_analyzable(request.comments):
        raise HTTPException(
            status_code=422,
            detail="Veuillez entrer un commentaire détaillé avant l'analyse.",
        )

    result = None
    if handler.bridge is not None:
        result = await handler.bridge.analyze(request.comments, request.address)

    if result is None:
        return AdvisoryResponse(available=False)

    return AdvisoryResponse(
        available=True,
        severity=result.severity.value,
        severity_label=result.severity.label,
        summary=result.summary,
        recommended_status=result.recommended_status.value,
    )


# ============================================================================
# Map Routes
# ============================================================================

@app.get("/api/v1/map", response_class=HTMLResponse, tags=["Map"])
async def get_reports_map(
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    handler: ReportHandler = Depends(get_handler),
):
    """Map of all reports, centred on the given position or the default one."""
    leak_map = create_leak_map(
        list(handler.reports),
        current_location=parse_coordinates(latitude, longitude),
        zoom=settings.map_zoom,
        default_center=(settings.default_latitude, settings.default_longitude),
    )
    return leak_map.get_root().render()


@app.get("/api/v1/map/embed", response_model=MapEmbedResponse, tags=["Map"])
async def get_map_embed(
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
):
    """Embeddable map URL, falling back to the default location."""
    use_default = latitude is None or longitude is None
    lat = settings.default_latitude if use_default else latitude
    lon = settings.default_longitude if use_default else longitude

    return MapEmbedResponse(
        url=embed_map_url(lat, lon, settings.map_zoom),
        latitude=lat,
        longitude=lon,
        zoom=settings.map_zoom,
        default_location=use_default,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
