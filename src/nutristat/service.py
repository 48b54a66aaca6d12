"""
Nutrition history service.

Creates, updates and lists measurements through a ``MeasurementStore`` while
keeping every derived field (child_id, bmi, categories) consistent with the
classification engine.
"""

from typing import Any, Dict, List, Optional, Union
import logging

from .age import format_age_months
from .children import ChildSummary, derive_child_id, summarize_child
from .exceptions import ChildNotFoundError, MeasurementNotFoundError
from .indicators import evaluate_measurement
from .models import (
    ChildUpdate,
    Measurement,
    MeasurementCreate,
    MeasurementUpdate,
    Sex,
)
from .pagination import Page, paginate, summarize_and_paginate
from .reference import ReferenceDataset
from .store import InMemoryStore, MeasurementStore

logger = logging.getLogger(__name__)

CATEGORY_FIELDS = ("height_category", "weight_category", "mass_category")


class NutritionService:
    """
    Measurement CRUD and child views over a record store.

    Usage:
        service = NutritionService()
        record = service.create_measurement(
            {"child_name": "Budi", "age_text": "1 tahun 2 bulan",
             "height": 76.5, "weight": 9.8, "gender": "Laki-laki"},
            creator_id="user-1",
        )
        page = service.list_children(offset=0, limit=10)
    """

    def __init__(
        self,
        store: Optional[MeasurementStore] = None,
        dataset: Optional[ReferenceDataset] = None,
    ) -> None:
        self.store = store if store is not None else InMemoryStore()
        self.dataset = dataset

    def _derived_fields(
        self, height: float, weight: float, gender: Sex, age_text: str
    ) -> Dict[str, Any]:
        result = evaluate_measurement(
            height, weight, gender, age_text, dataset=self.dataset
        )
        return {
            "bmi": result.bmi,
            "height_category": result.height_category,
            "weight_category": result.weight_category,
            "mass_category": result.bmi_category,
        }

    def _live_records(self) -> List[Measurement]:
        """Non-deleted records, newest first."""
        return sorted(
            self.store.list(),
            key=lambda record: record.created_at.timestamp(),
            reverse=True,
        )

    def _child_records(self, child_id: str) -> List[Measurement]:
        records = [r for r in self._live_records() if r.child_id == child_id]
        if not records:
            raise ChildNotFoundError(child_id)
        return records

    # Measurements

    def create_measurement(
        self,
        payload: Union[MeasurementCreate, Dict[str, Any]],
        creator_id: str,
    ) -> Measurement:
        """
        Record a new measurement.

        Args:
            payload: Child name, age text, height, weight and sex
            creator_id: Id of the submitting user

        Returns:
            The stored measurement with child_id, bmi and categories set

        Raises:
            pydantic.ValidationError: If the payload is invalid
        """
        data = MeasurementCreate.model_validate(payload)
        derived = self._derived_fields(
            data.height, data.weight, data.gender, data.age_text
        )
        record = Measurement(
            child_id=derive_child_id(creator_id, data.child_name, data.gender),
            child_name=data.child_name,
            age_text=data.age_text,
            height=data.height,
            weight=data.weight,
            gender=data.gender,
            creator_id=creator_id,
            **derived,
        )
        self.store.add(record)
        logger.info(f"Created measurement {record.id} for child {record.child_id}")
        return record

    def get_measurement(self, measurement_id: str) -> Measurement:
        """
        Raises:
            MeasurementNotFoundError: If the id is unknown or deleted
        """
        record = self.store.get(measurement_id)
        if record is None or record.is_deleted:
            raise MeasurementNotFoundError(measurement_id)
        return record

    def update_measurement(
        self,
        measurement_id: str,
        payload: Union[MeasurementUpdate, Dict[str, Any]],
    ) -> Measurement:
        """
        Correct height, weight and age of a measurement.

        The age arrives in months and is stored back as age text. BMI and all
        categories are recomputed using the stored sex.

        Raises:
            MeasurementNotFoundError: If the id is unknown or deleted
            pydantic.ValidationError: If the payload is invalid
        """
        data = MeasurementUpdate.model_validate(payload)
        existing = self.get_measurement(measurement_id)
        age_text = format_age_months(data.age_in_month)

        updated = existing.model_copy(
            update={
                "height": data.height,
                "weight": data.weight,
                "age_text": age_text,
                **self._derived_fields(
                    data.height, data.weight, existing.gender, age_text
                ),
            }
        )
        self.store.replace(updated)
        return updated

    def delete_measurement(self, measurement_id: str) -> None:
        """
        Raises:
            MeasurementNotFoundError: If the id is unknown or already deleted
        """
        self.get_measurement(measurement_id)
        self.store.soft_delete(measurement_id)
        logger.info(f"Deleted measurement {measurement_id}")

    def list_measurements(
        self,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        category_filter: Optional[str] = None,
    ) -> Page[Measurement]:
        """
        List raw measurements, newest first.

        Args:
            offset: Window start (requires limit)
            limit: Window size (requires offset)
            category_filter: Case-insensitive substring matched against the
                height, weight and BMI categories

        Returns:
            Page of measurements; meta counts raw rows
        """
        records = self._live_records()
        if category_filter:
            needle = category_filter.lower()
            records = [
                record
                for record in records
                if any(needle in getattr(record, f).lower() for f in CATEGORY_FIELDS)
            ]
        return paginate(records, offset=offset, limit=limit)

    def list_by_creator(self, creator_id: str) -> List[Measurement]:
        return [r for r in self._live_records() if r.creator_id == creator_id]

    # Children

    def list_children(
        self,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        name_filter: Optional[str] = None,
    ) -> Page[ChildSummary]:
        """
        List child summaries, most recently measured child first.

        Args:
            offset: Window start (requires limit)
            limit: Window size (requires offset)
            name_filter: Case-insensitive substring of the child name

        Returns:
            Page of ChildSummary; meta counts distinct children
        """
        records = self._live_records()
        if name_filter:
            needle = name_filter.lower()
            records = [r for r in records if needle in r.child_name.lower()]
        return summarize_and_paginate(records, offset=offset, limit=limit)

    def get_child(self, child_id: str) -> ChildSummary:
        """
        Raises:
            ChildNotFoundError: If the child has no live measurements
        """
        return summarize_child(self._child_records(child_id))

    def update_child(
        self, child_id: str, payload: Union[ChildUpdate, Dict[str, Any]]
    ) -> str:
        """
        Rename a child or correct its sex.

        Every measurement of the child moves to the recomputed child_id and is
        re-evaluated, since a sex change selects different reference tables.

        Returns:
            The new child_id

        Raises:
            ChildNotFoundError: If the child has no live measurements
        """
        data = ChildUpdate.model_validate(payload)
        records = self._child_records(child_id)
        new_child_id = derive_child_id(
            records[0].creator_id, data.child_name, data.gender
        )

        for record in records:
            updated = record.model_copy(
                update={
                    "child_id": new_child_id,
                    "child_name": data.child_name,
                    "gender": data.gender,
                    **self._derived_fields(
                        record.height, record.weight, data.gender, record.age_text
                    ),
                }
            )
            self.store.replace(updated)

        if new_child_id != child_id:
            logger.info(
                f"Moved {len(records)} measurements from child {child_id} to {new_child_id}"
            )
        return new_child_id

    def delete_child(self, child_id: str) -> None:
        """
        Raises:
            ChildNotFoundError: If the child has no live measurements
        """
        for record in self._child_records(child_id):
            self.store.soft_delete(record.id)
        logger.info(f"Deleted child {child_id}")
