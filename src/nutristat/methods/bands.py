from typing import Any, Dict, Optional, Union

import numpy as np
import pandas as pd
from pydantic import BaseModel, field_validator

from ..config import NO_DATA
from ..reference import Indicator, ReferenceRow
from .base import BaseClassifier


class BandLabels(BaseModel):
    """
    Label vocabulary for the six SD bands.

    ``high`` is used for both (SD1, SD2] and (SD2, SD3].
    """

    severe_low: str  # v <= SD3neg
    low: str  # SD3neg < v <= SD2neg
    normal: str  # SD2neg < v <= SD1
    high: str  # SD1 < v <= SD3
    extreme: str  # v > SD3

    @field_validator("*")
    @classmethod
    def label_not_empty(cls, v: str) -> str:
        """Labels must be non-empty and must not shadow the no-data outcome."""
        if not v.strip():
            raise ValueError("Band label must be a non-empty string")
        if v == NO_DATA:
            raise ValueError(f"'{NO_DATA}' is reserved for missing reference data")
        return v


class BandClassifier(BaseClassifier):
    """
    Classifier using ascending, closed-upper-bound SD bands.

    Bands:
        v <= SD3neg            -> severe_low
        SD3neg < v <= SD2neg   -> low
        SD2neg < v <= SD1      -> normal
        SD1 < v <= SD2         -> high
        SD2 < v <= SD3         -> high
        v > SD3                -> extreme

    A value equal to a threshold always falls in the lower band.

    Usage:
        classifier = BandClassifier({"severe_low": "Very Low", ...})
        label = classifier.classify(12.3, dataset.row("weight", "F", 24))
    """

    default_labels: Optional[BandLabels] = None

    def __init__(
        self, labels: Optional[Union[BandLabels, Dict[str, Any]]] = None
    ) -> None:
        """
        Initialize with a label vocabulary.

        Args:
            labels: BandLabels or dict; defaults to the class vocabulary

        Raises:
            ValueError: If no labels are given and the class has none
        """
        if labels is None:
            labels = self.default_labels
        if labels is None:
            raise ValueError(f"{type(self).__name__} requires band labels")
        self.labels = BandLabels.model_validate(labels)
        self.validate_config()

    def validate_config(self) -> None:
        """Validate the classifier configuration."""
        pass  # Validation done by BandLabels

    def classify(self, value: Optional[float], row: Optional[ReferenceRow]) -> str:
        if row is None or value is None or np.isnan(value):
            return NO_DATA

        if value <= row.sd3neg:
            return self.labels.severe_low
        elif value <= row.sd2neg:
            return self.labels.low
        elif value <= row.sd1:
            return self.labels.normal
        elif value <= row.sd2:
            return self.labels.high
        elif value <= row.sd3:
            return self.labels.high
        return self.labels.extreme

    def classify_many(self, values: pd.Series, rows: pd.DataFrame) -> pd.Series:
        self._validate_threshold_columns(rows)
        if len(values) != len(rows):
            raise ValueError("values and rows must have the same length")

        v = values.to_numpy(dtype=np.float64)
        sd3neg = rows["sd3neg"].to_numpy(dtype=np.float64)
        sd2neg = rows["sd2neg"].to_numpy(dtype=np.float64)
        sd1 = rows["sd1"].to_numpy(dtype=np.float64)
        sd2 = rows["sd2"].to_numpy(dtype=np.float64)
        sd3 = rows["sd3"].to_numpy(dtype=np.float64)

        # Comparisons against NaN are False; those entries are masked below
        with np.errstate(invalid="ignore"):
            labels = np.select(
                [v <= sd3neg, v <= sd2neg, v <= sd1, v <= sd2, v <= sd3],
                [
                    self.labels.severe_low,
                    self.labels.low,
                    self.labels.normal,
                    self.labels.high,
                    self.labels.high,
                ],
                default=self.labels.extreme,
            )

        available = np.isfinite(v) & np.isfinite(sd3neg)
        labels = np.where(available, labels, NO_DATA)
        return pd.Series(labels, index=values.index, dtype=object)


class WeightForAgeClassifier(BandClassifier):
    """Weight-for-age: wasting through obesity."""

    indicator = Indicator.WEIGHT
    default_labels = BandLabels(
        severe_low="Severely Wasted",
        low="Wasted",
        normal="Normal",
        high="Overweight",
        extreme="Obese",
    )


class LengthForAgeClassifier(BandClassifier):
    """Length/height-for-age: stunting; every band up to +3SD is Normal."""

    indicator = Indicator.LENGTH
    default_labels = BandLabels(
        severe_low="Severely Stunted",
        low="Stunted",
        normal="Normal",
        high="Normal",
        extreme="Tall",
    )


class BmiForAgeClassifier(BandClassifier):
    """BMI-for-age, same vocabulary as weight-for-age."""

    indicator = Indicator.BMI
    default_labels = WeightForAgeClassifier.default_labels
