"""
Local key-value storage for GeoFuite
Mirrors the in-memory report collection into a single stored blob
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from geofuite.core.constants import DEFAULT_STORAGE_QUOTA_BYTES, LOCAL_STORAGE_KEY
from geofuite.crowdsource.report_model import LeakReport

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the local store cannot be read or written."""


class StorageQuotaExceeded(StorageError):
    """Raised when a write would exceed the storage quota."""

    def __init__(self, required_bytes: int, quota_bytes: int):
        self.required_bytes = required_bytes
        self.quota_bytes = quota_bytes
        super().__init__(
            f"Storage quota exceeded: {required_bytes} bytes needed, quota is {quota_bytes}"
        )


def _entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class KeyValueStorage(ABC):
    """
    String key-value storage with a fixed byte quota.

    Mirrors the browser localStorage contract: getItem/setItem of text values.
    """

    def __init__(self, quota_bytes: int = DEFAULT_STORAGE_QUOTA_BYTES):
        self.quota_bytes = quota_bytes

    @abstractmethod
    def _read_all(self) -> Dict[str, str]:
        """Return every stored entry."""

    @abstractmethod
    def _write_all(self, entries: Dict[str, str]) -> None:
        """Replace every stored entry."""

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        """
        Store a value, replacing any previous one.

        Raises:
            StorageQuotaExceeded: if the new total exceeds the quota
        """
        try:
            entries = self._read_all()
        except StorageError as e:
            logger.warning(f"Existing storage unreadable, overwriting it: {e}")
            entries = {}
        entries[key] = value
        used = sum(_entry_size(k, v) for k, v in entries.items())
        if used > self.quota_bytes:
            raise StorageQuotaExceeded(used, self.quota_bytes)
        self._write_all(entries)

    def remove_item(self, key: str) -> None:
        entries = self._read_all()
        if entries.pop(key, None) is not None:
            self._write_all(entries)


class MemoryStorage(KeyValueStorage):
    """In-process storage, used for tests and ephemeral sessions."""

    def __init__(
        self,
        quota_bytes: int = DEFAULT_STORAGE_QUOTA_BYTES,
        initial: Optional[Dict[str, str]] = None
    ):
        super().__init__(quota_bytes)
        self._entries: Dict[str, str] = dict(initial or {})

    def _read_all(self) -> Dict[str, str]:
        return dict(self._entries)

    def _write_all(self, entries: Dict[str, str]) -> None:
        self._entries = dict(entries)


class JsonFileStorage(KeyValueStorage):
    """
    Storage backed by a JSON object on disk.

    Writes go to a temporary file in the same directory and are moved into
    place with os.replace, so a reader never sees a half-written file.
    """

    def __init__(
        self,
        path: Union[str, Path],
        quota_bytes: int = DEFAULT_STORAGE_QUOTA_BYTES
    ):
        super().__init__(quota_bytes)
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(f"Unexpected content in {self.path}")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, entries: Dict[str, str]) -> None:
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".geofuite-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(entries, f, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e


class ReportStore:
    """
    Owns the report collection and mirrors it to local storage.

    In-memory state is the source of truth; storage is a mirror written
    in full after every change. Display order is most recent first.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = LOCAL_STORAGE_KEY
    ):
        """
        Initialize report store.

        Args:
            storage: Key-value backend
            key: Storage key holding the serialized collection
        """
        self.storage = storage
        self.key = key
        self._reports: List[LeakReport] = []

    @property
    def reports(self) -> Tuple[LeakReport, ...]:
        return tuple(self._reports)

    def __len__(self) -> int:
        return len(self._reports)

    def __iter__(self) -> Iterator[LeakReport]:
        return iter(tuple(self._reports))

    def get(self, report_id: str) -> Optional[LeakReport]:
        """Get report by ID."""
        for report in self._reports:
            if report.id == report_id:
                return report
        return None

    def contains_id(self, report_id: str) -> bool:
        return self.get(report_id) is not None

    def prepend(self, report: LeakReport) -> None:
        """Add a report at the head of the collection (in memory only)."""
        if self.contains_id(report.id):
            raise ValueError(f"Duplicate report id: {report.id}")
        self._reports.insert(0, report)

    def load(self) -> List[LeakReport]:
        """
        Load the collection from storage.

        Missing, unreadable or corrupt data yields an empty collection.
        Never raises.
        """
        try:
            blob = self.storage.get_item(self.key)
        except StorageError as e:
            logger.error(f"Failed to read local data: {e}")
            blob = None

        if blob is None:
            self._reports = []
            return []

        try:
            self._reports = self.deserialize(blob)
        except (ValueError, TypeError, KeyError) as e:
            logger.error(f"Failed to load local data, starting empty: {e}")
            self._reports = []

        logger.info(f"Loaded {len(self._reports)} reports from '{self.key}'")
        return list(self._reports)

    def save(self) -> str:
        """
        Serialize the full collection and overwrite the stored blob.

        Returns:
            The serialized blob

        Raises:
            StorageError: if the write fails (in-memory state is kept)
        """
        blob = self.serialize(self._reports)
        self.storage.set_item(self.key, blob)
        logger.debug(f"Saved {len(self._reports)} reports ({len(blob)} chars)")
        return blob

    @staticmethod
    def serialize(reports: Sequence[LeakReport]) -> str:
        """Serialize reports to the stored text form."""
        return json.dumps(
            [r.to_dict() for r in reports],
            ensure_ascii=False,
            separators=(",", ":"),
        )

    @staticmethod
    def deserialize(blob: str) -> List[LeakReport]:
        """
        Parse the stored text form.

        Raises:
            ValueError, TypeError, KeyError: if the blob is not a report list
        """
        data = json.loads(blob)
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of reports, got {type(data).__name__}")

        reports = [LeakReport.from_dict(item) for item in data]

        ids = [r.id for r in reports]
        if len(set(ids)) != len(ids):
            raise ValueError("Duplicate report ids in stored data")
        return reports


def open_report_store(
    path: Union[str, Path],
    key: str = LOCAL_STORAGE_KEY,
    quota_bytes: int = DEFAULT_STORAGE_QUOTA_BYTES
) -> ReportStore:
    """
    Convenience function to open and load a file-backed store.

    Args:
        path: JSON storage file
        key: Storage key
        quota_bytes: Storage quota

    Returns:
        Loaded ReportStore
    """
    store = ReportStore(JsonFileStorage(path, quota_bytes=quota_bytes), key=key)
    store.load()
    return store
