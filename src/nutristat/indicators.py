"""
Indicator Calculation for Child Measurements

This module derives BMI from height and weight and classifies a measurement
against the length/height-for-age, weight-for-age and BMI-for-age reference
tables. ``evaluate_measurement`` handles one measurement; ``evaluate_frame``
is the vectorized equivalent for a DataFrame of measurements.

Ages that cannot be parsed or fall outside 0-60 months are not errors: all
three categories become "No Data" while BMI is still reported.
"""

from typing import Optional, Union
import logging

import numpy as np
import pandas as pd

from .age import parse_age_text
from .config import (
    BMI_DECIMALS,
    HEIGHT_METRES_MEAN,
    HEIGHT_NON_CM_P95,
    MAX_AGE_MONTHS,
    MIN_AGE_MONTHS,
    NO_DATA,
    WEIGHT_POUNDS_P99,
)
from .methods import get_classifier
from .models import IndicatorResult, Sex, coerce_sex
from .reference import (
    THRESHOLD_FIELDS,
    Indicator,
    ReferenceDataset,
    get_default_dataset,
)


def _raw_bmi(height: float, weight: float) -> float:
    if height <= 0:
        raise ValueError("Height must be positive to compute BMI")
    # Height in cm, convert to m²
    return weight / (height / 100.0) ** 2


def compute_bmi(height: float, weight: float) -> float:
    """
    Compute BMI rounded to storage precision.

    Args:
        height: Height in cm
        weight: Weight in kg

    Returns:
        weight / (height/100)², rounded to 2 decimals

    Raises:
        ValueError: If height is not positive
    """
    return round(_raw_bmi(height, weight), BMI_DECIMALS)


def _in_reference_range(months: Optional[int]) -> bool:
    return months is not None and MIN_AGE_MONTHS <= months <= MAX_AGE_MONTHS


def evaluate_measurement(
    height: float,
    weight: float,
    sex: Union[Sex, str],
    age_text: str,
    dataset: Optional[ReferenceDataset] = None,
) -> IndicatorResult:
    """
    Compute BMI and the three nutritional-status categories for one measurement.

    BMI is always computed. Categories come from the reference tables for the
    child's sex and exact age in months; BMI is classified before rounding.

    Args:
        height: Height or length in cm
        weight: Weight in kg
        sex: Child sex ("Laki-laki"/"Perempuan", "M"/"F" or ``Sex``)
        age_text: Free-text age, e.g. "1 tahun 11 bulan"
        dataset: Reference tables; defaults to the packaged WHO tables

    Returns:
        IndicatorResult with bmi, height_category, weight_category,
        bmi_category and the parsed age_in_month

    Raises:
        ValueError: If height is not positive or sex is unknown
    """
    if dataset is None:
        dataset = get_default_dataset()
    sex = coerce_sex(sex)
    months = parse_age_text(age_text)
    bmi = _raw_bmi(height, weight)

    categories = {indicator: NO_DATA for indicator in Indicator}
    if _in_reference_range(months):
        values = {
            Indicator.LENGTH: height,
            Indicator.WEIGHT: weight,
            Indicator.BMI: bmi,
        }
        for indicator, value in values.items():
            row = dataset.row(indicator, sex, months)
            categories[indicator] = get_classifier(indicator).classify(value, row)
    else:
        logging.warning(
            f"Age '{age_text}' unparsable or outside 0-60 months - "
            "setting categories to 'No Data'"
        )

    return IndicatorResult(
        bmi=round(bmi, BMI_DECIMALS),
        height_category=categories[Indicator.LENGTH],
        weight_category=categories[Indicator.WEIGHT],
        bmi_category=categories[Indicator.BMI],
        age_in_month=months,
    )


def _log_unit_warnings(height: pd.Series, weight: pd.Series) -> None:
    """Log warnings for potential unit mismatches."""
    if height.notna().any() and height.mean() < HEIGHT_METRES_MEAN:
        logging.warning(
            "Height values have mean <3 - heights suggest metres instead of cm"
        )
    elif height.quantile(0.95) > HEIGHT_NON_CM_P95:
        logging.warning(
            "Height values >140 cm detected for under-fives - units may not be cm"
        )
    if weight.quantile(0.99) > WEIGHT_POUNDS_P99:
        logging.warning(
            "Weight values >40 kg detected for under-fives - may be lbs instead of kg"
        )


def _lookup_rows(
    dataset: ReferenceDataset,
    indicator: Indicator,
    sex: pd.Series,
    months: pd.Series,
) -> pd.DataFrame:
    """Gather the threshold row for every entry; NaN where no row applies."""
    columns = list(THRESHOLD_FIELDS)
    rows = pd.DataFrame(np.nan, index=months.index, columns=columns)
    for sex_value in Sex:
        mask = (sex == sex_value.value) & months.notna()
        if not mask.any():
            continue
        table = dataset.frame(indicator, sex_value)
        matched = table.reindex(months[mask].astype(int).to_numpy())
        rows.loc[mask, columns] = matched[columns].to_numpy(dtype=np.float64)
    return rows


def evaluate_frame(
    df: pd.DataFrame,
    dataset: Optional[ReferenceDataset] = None,
    height_col: str = "height",
    weight_col: str = "weight",
    sex_col: str = "gender",
    age_col: str = "age_text",
) -> pd.DataFrame:
    """
    Vectorized ``evaluate_measurement`` over a DataFrame.

    Args:
        df: Measurements with height, weight, sex and age text columns
        dataset: Reference tables; defaults to the packaged WHO tables
        height_col: Column with height in cm
        weight_col: Column with weight in kg
        sex_col: Column with sex values
        age_col: Column with free-text age

    Returns:
        DataFrame indexed like ``df`` with columns age_in_month, bmi,
        height_category, weight_category, mass_category

    Raises:
        ValueError: If a column is missing, a height is not positive or a
            sex value is unknown
    """
    for col in (height_col, weight_col, sex_col, age_col):
        if col not in df.columns:
            raise ValueError(f"Column '{col}' does not exist in DataFrame")

    output_columns = [
        "age_in_month",
        "bmi",
        "height_category",
        "weight_category",
        "mass_category",
    ]
    if df.empty:
        return pd.DataFrame(columns=output_columns, index=df.index)

    if dataset is None:
        dataset = get_default_dataset()

    height = pd.to_numeric(df[height_col], errors="coerce").astype(np.float64)
    weight = pd.to_numeric(df[weight_col], errors="coerce").astype(np.float64)
    if (height <= 0).any():
        raise ValueError("Height values must be positive to compute BMI")
    sex = df[sex_col].map(lambda value: coerce_sex(value).value)
    months = pd.to_numeric(df[age_col].map(parse_age_text), errors="coerce")

    _log_unit_warnings(height, weight)

    in_range = months.between(MIN_AGE_MONTHS, MAX_AGE_MONTHS)
    out_of_range = int((~in_range).sum())
    if out_of_range:
        logging.warning(
            f"{out_of_range} ages unparsable or outside 0-60 months - "
            "setting categories to 'No Data' for these entries"
        )
    lookup_months = months.where(in_range)

    bmi = weight / (height / 100.0) ** 2

    result = pd.DataFrame(index=df.index)
    result["age_in_month"] = months.astype("Int64")
    result["bmi"] = bmi.round(BMI_DECIMALS)
    for indicator, values, column in (
        (Indicator.LENGTH, height, "height_category"),
        (Indicator.WEIGHT, weight, "weight_category"),
        (Indicator.BMI, bmi, "mass_category"),
    ):
        rows = _lookup_rows(dataset, indicator, sex, lookup_months)
        result[column] = get_classifier(indicator).classify_many(values, rows)

    return result[output_columns]
