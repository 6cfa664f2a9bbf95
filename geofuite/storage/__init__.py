"""
GeoFuite - Storage Module
Local key-value persistence for the report collection.
"""

from geofuite.storage.local_store import (
    KeyValueStorage,
    MemoryStorage,
    JsonFileStorage,
    ReportStore,
    StorageError,
    StorageQuotaExceeded,
    open_report_store,
)

__all__ = [
    "KeyValueStorage",
    "MemoryStorage",
    "JsonFileStorage",
    "ReportStore",
    "StorageError",
    "StorageQuotaExceeded",
    "open_report_store",
]
