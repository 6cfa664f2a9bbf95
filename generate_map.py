#!/usr/bin/env python3
"""
GeoFuite - Generate Interactive Leak Map
Loads the locally stored reports and writes an interactive HTML map.
"""
import os
import sys
from datetime import datetime

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from geofuite.core.config import settings
from geofuite.crowdsource.report_model import LeakStatus, status_value
from geofuite.storage.local_store import open_report_store
from geofuite.visualization.map_generator import create_leak_map


def main():
    store_path = settings.storage_path

    print("=" * 60)
    print("GeoFuite - Generating Leak Map")
    print("=" * 60)

    if not os.path.exists(store_path):
        print(f"\nNo local data found at {store_path}, the map will be empty.")

    store = open_report_store(
        store_path,
        key=settings.storage_key,
        quota_bytes=settings.storage_quota_bytes,
    )
    reports = list(store.reports)

    print(f"\nTotal reports: {len(reports)}")

    # Statistics
    located = sum(1 for r in reports if r.coordinates is not None)
    with_photo = sum(1 for r in reports if r.has_photo)

    print("\nStatistics:")
    for status in LeakStatus:
        count = sum(1 for r in reports if status_value(r.status) == status.value)
        print(f"  - {status.value + ':':<12}{count}")
    print(f"  - {'Located:':<12}{located}")
    print(f"  - {'With photo:':<12}{with_photo}")

    print("\nGenerating interactive map...")

    leak_map = create_leak_map(
        reports,
        zoom=settings.map_zoom,
        title=f"GeoFuite - Carte des incidents ({datetime.now().strftime('%Y-%m-%d %H:%M')})",
        default_center=(settings.default_latitude, settings.default_longitude),
    )

    output_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), "geofuite_map.html")
    leak_map.save(output_path)

    print(f"\nMap saved to: {output_path}")
    print("\nOpen the file in your browser to view the interactive map!")
    print("=" * 60)


if __name__ == "__main__":
    main()
