"""
Map Visualization Module for GeoFuite

Generates interactive maps using Folium to display leak reports,
centred on the current position or on a default location.
"""

import html
import logging
from typing import Optional, Sequence, Tuple

import folium
from folium.plugins import MarkerCluster

from geofuite.core.constants import DEFAULT_MAP_CENTER, DEFAULT_MAP_ZOOM, STATUS_COLORS
from geofuite.core.geo_utils import Coordinates, google_maps_search_url
from geofuite.crowdsource.report_model import LeakReport, status_display

logger = logging.getLogger(__name__)


def get_status_color(status) -> str:
    """Get marker color for a report status (gray when unknown)."""
    return status_display(status).color


def resolve_center(
    current_location: Optional[Coordinates],
    default_center: Tuple[float, float] = DEFAULT_MAP_CENTER
) -> Tuple[float, float]:
    """Map centre: current position when known, default location otherwise."""
    if current_location is None:
        return default_center
    return current_location.to_tuple()


def _escape(text: str) -> str:
    """Escape text for HTML embedded in a generated JS template literal."""
    return html.escape(text).replace("`", "&#96;").replace("$", "&#36;")


def _popup_html(report: LeakReport) -> str:
    display = status_display(report.status)
    url = google_maps_search_url(report.coordinates)
    photo = ""
    if report.photo:
        photo = f'<img src="{_escape(report.photo)}" style="width: 100%; margin-top: 5px;">'
    return f"""
    <div style="font-family: Arial; min-width: 200px;">
        <h4 style="margin: 0; color: {display.color};">{_escape(report.address)}</h4>
        <hr style="margin: 5px 0;">
        <b>Statut:</b> {_escape(display.label)}<br>
        <b>Date:</b> {report.identification_date.isoformat()}<br>
        <b>Nom:</b> {_escape(report.claimant_name)}<br>
        <b>Tel:</b> {_escape(report.claimant_phone)}<br>
        <b>Position:</b> {report.coordinates.format(4)}<br>
        <a href="{_escape(url)}" target="_blank">Voir sur Google Maps</a>
        {photo}
    </div>
    """


def create_leak_map(
    reports: Sequence[LeakReport],
    current_location: Optional[Coordinates] = None,
    zoom: int = DEFAULT_MAP_ZOOM,
    title: str = "Carte des incidents",
    cluster_markers: bool = True,
    default_center: Tuple[float, float] = DEFAULT_MAP_CENTER,
) -> folium.Map:
    """
    Create an interactive map with leak reports.

    Args:
        reports: Reports to plot (those without coordinates are skipped)
        current_location: Map centre; default location when None
        zoom: Initial zoom level (1-18)
        title: Map title
        cluster_markers: Cluster markers when zoomed out
        default_center: Centre used when there is no current location

    Returns:
        Folium Map object
    """
    center = resolve_center(current_location, default_center)
    leak_map = folium.Map(location=list(center), zoom_start=zoom, tiles="OpenStreetMap")

    if current_location is not None:
        folium.CircleMarker(
            location=list(center),
            radius=8,
            color="#2563eb",
            fill=True,
            fill_color="#2563eb",
            fill_opacity=0.9,
            tooltip="Votre position",
        ).add_to(leak_map)

    located = [r for r in reports if r.coordinates is not None]

    if cluster_markers:
        marker_group = MarkerCluster(name="Fuites")
    else:
        marker_group = folium.FeatureGroup(name="Fuites")

    for report in located:
        display = status_display(report.status)
        folium.Marker(
            location=list(report.coordinates.to_tuple()),
            popup=folium.Popup(_popup_html(report), max_width=300),
            tooltip=_escape(f"{report.address} ({display.label})"),
            icon=folium.Icon(color=display.color, icon=display.icon, prefix="fa"),
        ).add_to(marker_group)

    marker_group.add_to(leak_map)

    title_html = f'''
    <div style="position: fixed;
                bottom: 20px; left: 20px; right: 20px;
                background-color: rgba(255,255,255,0.9);
                padding: 10px 20px;
                border-radius: 10px;
                z-index: 9999;
                font-family: Arial;">
        <h3 style="margin: 0; color: #1e293b;">{_escape(title)}</h3>
        <p style="margin: 5px 0 0 0; color: #475569; font-size: 13px;">
            {len(reports)} fuites signalées dans la base de données.
        </p>
        <p style="margin: 5px 0 0 0; color: #94a3b8; font-size: 11px;">
            {"Centré sur votre position actuelle." if current_location else "Position par défaut."}
        </p>
    </div>
    '''
    leak_map.get_root().html.add_child(folium.Element(title_html))

    legend_items = "".join(
        f'<span style="color: {color};">●</span> {label}<br>'
        for label, color in STATUS_COLORS.items()
    )
    legend_html = f'''
    <div style="position: fixed;
                top: 10px; right: 10px;
                background-color: rgba(255,255,255,0.9);
                padding: 10px;
                border-radius: 5px;
                z-index: 9999;
                font-family: Arial;
                font-size: 12px;">
        <b>Statut</b><br>
        {legend_items}
    </div>
    '''
    leak_map.get_root().html.add_child(folium.Element(legend_html))

    logger.info(f"Created map with {len(located)} of {len(reports)} reports located")
    return leak_map


def save_leak_map(
    reports: Sequence[LeakReport],
    output_path: str = "geofuite_map.html",
    current_location: Optional[Coordinates] = None,
) -> str:
    """
    Generate and save a leak map.

    Args:
        reports: Reports to plot
        output_path: Path to save HTML file
        current_location: Optional map centre

    Returns:
        Path to saved file
    """
    leak_map = create_leak_map(reports, current_location=current_location)
    leak_map.save(output_path)
    logger.info(f"Map saved to {output_path}")

    return output_path
