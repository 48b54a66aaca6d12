"""Persistence layer for measurement records."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union
import json
import logging

from .exceptions import MeasurementNotFoundError
from .models import Measurement

logger = logging.getLogger(__name__)


class MeasurementStore(ABC):
    """
    Abstract record store.

    Implementations keep whole ``Measurement`` records keyed by id. Deletion
    is soft: records get a ``deleted_at`` timestamp and drop out of ``list``.
    """

    @abstractmethod
    def add(self, record: Measurement) -> Measurement:
        """Insert a new record. Raises ValueError if the id already exists."""
        pass

    @abstractmethod
    def get(self, record_id: str) -> Optional[Measurement]:
        """Return a record by id (deleted ones included), or None."""
        pass

    @abstractmethod
    def replace(self, record: Measurement) -> Measurement:
        """Overwrite an existing record. Raises MeasurementNotFoundError."""
        pass

    @abstractmethod
    def list(self, include_deleted: bool = False) -> List[Measurement]:
        """Return records in insertion order."""
        pass

    @abstractmethod
    def soft_delete(
        self, record_id: str, when: Optional[datetime] = None
    ) -> Measurement:
        """Mark a record deleted. Raises MeasurementNotFoundError."""
        pass


class InMemoryStore(MeasurementStore):
    """Dictionary-backed store. Not thread-safe."""

    def __init__(self) -> None:
        self._records: Dict[str, Measurement] = {}

    def add(self, record: Measurement) -> Measurement:
        if record.id in self._records:
            raise ValueError(f"Measurement {record.id} already exists")
        self._records[record.id] = record.model_copy(deep=True)
        return record

    def get(self, record_id: str) -> Optional[Measurement]:
        record = self._records.get(record_id)
        return record.model_copy(deep=True) if record is not None else None

    def replace(self, record: Measurement) -> Measurement:
        if record.id not in self._records:
            raise MeasurementNotFoundError(record.id)
        self._records[record.id] = record.model_copy(deep=True)
        return record

    def list(self, include_deleted: bool = False) -> List[Measurement]:
        return [
            record.model_copy(deep=True)
            for record in self._records.values()
            if include_deleted or not record.is_deleted
        ]

    def soft_delete(
        self, record_id: str, when: Optional[datetime] = None
    ) -> Measurement:
        record = self._records.get(record_id)
        if record is None:
            raise MeasurementNotFoundError(record_id)
        deleted = record.model_copy(
            update={"deleted_at": when or datetime.now(timezone.utc)}
        )
        self._records[record_id] = deleted
        return deleted.model_copy(deep=True)


class JsonFileStore(InMemoryStore):
    """
    In-memory store mirrored to a single JSON file.

    Every mutation rewrites the file: data goes to a temporary file first,
    which is then renamed over the target. A failed write leaves the
    in-memory records as they were before the mutation.

    Parameters
    ----------
    path : Path or str
        JSON file holding a list of measurement records. Loaded if it exists.

    Raises
    ------
    IOError
        If the file cannot be read or written
    """

    def __init__(self, path: Union[Path, str]) -> None:
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self._load()

    def _load(self) -> None:
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            for item in data:
                record = Measurement.model_validate(item)
                self._records[record.id] = record
        except Exception as e:
            raise IOError(f"Failed to load measurements from {self.path}: {str(e)}")
        logger.info(f"Loaded {len(self._records)} measurements from {self.path}")

    def _flush(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            data = [record.model_dump(mode="json") for record in self._records.values()]

            # Write to temporary file first, then rename (atomic operation)
            temp_path = self.path.with_suffix(".tmp")
            with open(temp_path, "w") as f:
                json.dump(data, f, indent=2)
            temp_path.replace(self.path)
        except Exception as e:
            raise IOError(f"Failed to save measurements to {self.path}: {str(e)}")

    def _flush_or_restore(self, previous: Dict[str, Measurement]) -> None:
        """Write the current records; put ``previous`` back if the write fails."""
        try:
            self._flush()
        except IOError:
            self._records = previous
            raise

    def add(self, record: Measurement) -> Measurement:
        previous = dict(self._records)
        result = super().add(record)
        self._flush_or_restore(previous)
        return result

    def replace(self, record: Measurement) -> Measurement:
        previous = dict(self._records)
        result = super().replace(record)
        self._flush_or_restore(previous)
        return result

    def soft_delete(
        self, record_id: str, when: Optional[datetime] = None
    ) -> Measurement:
        previous = dict(self._records)
        result = super().soft_delete(record_id, when=when)
        self._flush_or_restore(previous)
        return result
