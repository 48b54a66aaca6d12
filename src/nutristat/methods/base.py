"""
Base classifier class for all nutritional-status classification methods.
"""

from abc import ABC, abstractmethod
from typing import ClassVar, Optional

import pandas as pd

from ..reference import THRESHOLD_FIELDS, Indicator, ReferenceRow


class BaseClassifier(ABC):
    """
    Abstract base class for reference-table classifiers.

    Each classifier maps a measured value and the reference row for the
    child's sex and age to a category label. Subclasses bound to an indicator
    set the ``indicator`` class attribute, which the methods registry uses
    for discovery.

    Example subclass implementation:
        class WeightForAgeClassifier(BandClassifier):
            indicator = Indicator.WEIGHT
            default_labels = BandLabels(
                severe_low="Severely Wasted",
                low="Wasted",
                normal="Normal",
                high="Overweight",
                extreme="Obese",
            )
    """

    indicator: ClassVar[Optional[Indicator]] = None

    @abstractmethod
    def classify(self, value: Optional[float], row: Optional[ReferenceRow]) -> str:
        """
        Classify a single measured value.

        Args:
            value: Measured value (cm, kg or kg/m²)
            row: Reference row for the child's sex and age, or None

        Returns:
            Category label, "No Data" when no row is available
        """
        pass

    @abstractmethod
    def classify_many(self, values: pd.Series, rows: pd.DataFrame) -> pd.Series:
        """
        Classify many values at once.

        Args:
            values: Measured values
            rows: Threshold columns (sd3neg .. sd3) aligned with ``values``;
                all-NaN rows mark missing reference data

        Returns:
            Series of labels indexed like ``values``
        """
        pass

    @abstractmethod
    def validate_config(self) -> None:
        """
        Validate classifier-specific configuration.

        Raises:
            ValueError: If configuration is invalid.
        """
        pass

    def _validate_threshold_columns(self, rows: pd.DataFrame) -> None:
        """
        Validate that a threshold frame carries every SD column.

        Raises:
            ValueError: If a column does not exist.
        """
        missing = [name for name in THRESHOLD_FIELDS if name not in rows.columns]
        if missing:
            raise ValueError(f"Threshold columns {missing} do not exist in DataFrame")
