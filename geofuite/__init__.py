"""
GeoFuite - Leak intervention tracker
Field capture of water/gas leak reports with local storage, maps and AI advisories.
"""

__version__ = "0.1.0"
