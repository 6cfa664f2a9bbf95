"""
GeoFuite - Vercel Serverless Entry Point
Exposes the FastAPI application: reports, photos, advisories, maps
"""

import os
import sys

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from geofuite.api.main import app

# Vercel serverless handler
handler = app
