"""
Aggregation of measurement histories into per-child summaries.

A child is not stored on its own: its identity is derived from the creator,
the child's name (whitespace removed) and the sex letter, and every
measurement carrying that ``child_id`` belongs to the same child.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple, Union
import re

from pydantic import BaseModel

from .age import parse_age_text
from .exceptions import ChildNotFoundError
from .models import Measurement, Sex, coerce_sex

_WHITESPACE = re.compile(r"\s")


class HistoryEntry(BaseModel):
    """One measurement as listed in a child's history."""

    id: str
    child_id: str
    age_text: str
    age_in_month: Optional[int] = None
    height: float
    weight: float
    bmi: float
    height_category: str
    weight_category: str
    mass_category: str
    created_at: datetime


class ChildSummary(BaseModel):
    """
    Current status of one child.

    Identity fields, the snapshot of the latest measurement and the full
    history ordered by age.
    """

    id: str
    child_name: str
    gender: Sex
    creator_id: str
    latest_age: str
    latest_age_in_month: Optional[int] = None
    latest_height: float
    latest_weight: float
    latest_bmi: float
    latest_height_category: str
    latest_weight_category: str
    latest_mass_category: str
    created_at: datetime
    nutrition_histories: List[HistoryEntry]

    @property
    def child_id(self) -> str:
        return self.id


def derive_child_id(creator_id: str, child_name: str, sex: Union[Sex, str]) -> str:
    """
    Build the child identity for a measurement.

    Args:
        creator_id: Id of the user who records the child's measurements
        child_name: Child name; all whitespace is removed
        sex: Child sex

    Returns:
        "<creator_id>-<name>-<L|P>"
    """
    name = _WHITESPACE.sub("", child_name)
    return f"{creator_id}-{name}-{coerce_sex(sex).code}"


def group_by_child(records: Iterable[Measurement]) -> Dict[str, List[Measurement]]:
    """
    Partition records by their stored child_id.

    Groups appear in order of each child's first record; records keep their
    input order within a group.
    """
    groups: Dict[str, List[Measurement]] = {}
    for record in records:
        groups.setdefault(record.child_id, []).append(record)
    return groups


def _order_key(record: Measurement) -> Tuple[int, float]:
    # Unparsable ages rank below every parsable one
    months = parse_age_text(record.age_text)
    return (-1 if months is None else months, record.created_at.timestamp())


def pick_latest(records: Iterable[Measurement]) -> Measurement:
    """
    Select the most recent measurement of a child.

    The record with the greatest parsed age wins. Ties on age go to the most
    recently created record; remaining ties keep the earliest record in input
    order.

    Raises:
        ChildNotFoundError: If records is empty
    """
    records = list(records)
    if not records:
        raise ChildNotFoundError()
    return max(records, key=_order_key)


def _history_entry(record: Measurement) -> HistoryEntry:
    return HistoryEntry(
        id=record.id,
        child_id=record.child_id,
        age_text=record.age_text,
        age_in_month=record.age_in_month,
        height=record.height,
        weight=record.weight,
        bmi=record.bmi,
        height_category=record.height_category,
        weight_category=record.weight_category,
        mass_category=record.mass_category,
        created_at=record.created_at,
    )


def summarize_child(records: Iterable[Measurement]) -> ChildSummary:
    """
    Summarize one child's measurements.

    Args:
        records: Every measurement of a single child

    Returns:
        ChildSummary with the latest snapshot and the history ascending by
        age (ties by creation time)

    Raises:
        ChildNotFoundError: If records is empty
        ValueError: If records belong to more than one child
    """
    records = list(records)
    if not records:
        raise ChildNotFoundError()

    child_ids = {record.child_id for record in records}
    if len(child_ids) > 1:
        raise ValueError(
            f"Records belong to more than one child: {sorted(child_ids)}"
        )

    latest = pick_latest(records)
    history = sorted(records, key=_order_key)

    return ChildSummary(
        id=latest.child_id,
        child_name=latest.child_name,
        gender=latest.gender,
        creator_id=latest.creator_id,
        latest_age=latest.age_text,
        latest_age_in_month=latest.age_in_month,
        latest_height=latest.height,
        latest_weight=latest.weight,
        latest_bmi=latest.bmi,
        latest_height_category=latest.height_category,
        latest_weight_category=latest.weight_category,
        latest_mass_category=latest.mass_category,
        created_at=latest.created_at,
        nutrition_histories=[_history_entry(record) for record in history],
    )


def summarize_all(records: Iterable[Measurement]) -> List[ChildSummary]:
    """Group records by child and summarize each group, in first-appearance order."""
    return [summarize_child(group) for group in group_by_child(records).values()]
