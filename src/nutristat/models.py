"""
Domain models for child anthropometric measurements.

The field names of ``Measurement`` are the persisted/external contract shared
with the storage and API layers.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveFloat,
    computed_field,
    field_validator,
)

from .age import parse_age_text
from .config import SEX_ALIASES, SEX_CODES, SEX_FEMALE, SEX_MALE


class Sex(str, Enum):
    """Child sex, stored with the external Indonesian labels."""

    MALE = SEX_MALE
    FEMALE = SEX_FEMALE

    @classmethod
    def _missing_(cls, value: object) -> Optional["Sex"]:
        # Accept M/F, L/P and English names in any case
        if isinstance(value, str):
            canonical = SEX_ALIASES.get(value.strip().upper())
            if canonical is not None:
                return cls(canonical)
        return None

    @property
    def code(self) -> str:
        """Letter used in child identities ("L" or "P")."""
        return SEX_CODES[self.value]

    @property
    def table_key(self) -> str:
        """Suffix of the reference table file for this sex."""
        return "male" if self is Sex.MALE else "female"


def coerce_sex(value: object) -> Sex:
    """Normalise a sex value (enum, external label or alias) to ``Sex``."""
    if isinstance(value, Sex):
        return value
    return Sex(value)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class IndicatorResult(BaseModel):
    """Derived indicators for one measurement."""

    model_config = ConfigDict(frozen=True)

    bmi: float
    height_category: str
    weight_category: str
    bmi_category: str
    age_in_month: Optional[int] = None


class Measurement(BaseModel):
    """
    One persisted anthropometric measurement.

    ``mass_category`` holds the BMI-for-age category. ``bmi`` and the three
    categories are derived values and are only ever assigned from
    ``evaluate_measurement`` output.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=_new_id)
    child_id: str
    child_name: str
    age_text: str
    height: PositiveFloat
    weight: PositiveFloat
    gender: Sex
    bmi: float
    height_category: str
    weight_category: str
    mass_category: str
    creator_id: str
    created_at: datetime = Field(default_factory=_utcnow)
    deleted_at: Optional[datetime] = None

    @field_validator("gender", mode="before")
    @classmethod
    def normalise_gender(cls, v: object) -> Sex:
        return coerce_sex(v)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def age_in_month(self) -> Optional[int]:
        return parse_age_text(self.age_text)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class MeasurementCreate(BaseModel):
    """Payload for submitting a new measurement."""

    child_name: str
    age_text: str
    height: PositiveFloat
    weight: PositiveFloat
    gender: Sex

    @field_validator("child_name")
    @classmethod
    def validate_child_name(cls, v: str) -> str:
        """Ensure child name is a non-empty string."""
        if not v.strip():
            raise ValueError("Child name must be a non-empty string")
        return v

    @field_validator("gender", mode="before")
    @classmethod
    def normalise_gender(cls, v: object) -> Sex:
        return coerce_sex(v)


class MeasurementUpdate(BaseModel):
    """Corrected height, weight and age (in months) for an existing measurement."""

    height: PositiveFloat
    weight: PositiveFloat
    age_in_month: int = Field(..., ge=0)


class ChildUpdate(BaseModel):
    """Rename a child or correct its sex across all of its measurements."""

    child_name: str
    gender: Sex

    @field_validator("child_name")
    @classmethod
    def validate_child_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Child name must be a non-empty string")
        return v

    @field_validator("gender", mode="before")
    @classmethod
    def normalise_gender(cls, v: object) -> Sex:
        return coerce_sex(v)
