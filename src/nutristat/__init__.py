"""
nutristat - child nutritional-status classification.

Classifies height, weight and BMI of children aged 0-60 months against WHO
growth reference tables and aggregates measurement histories per child.
"""

from .age import format_age_months, parse_age_text
from .children import (
    ChildSummary,
    derive_child_id,
    group_by_child,
    pick_latest,
    summarize_all,
    summarize_child,
)
from .exceptions import (
    ChildNotFoundError,
    MeasurementNotFoundError,
    NotFoundError,
    NutristatError,
    ReferenceDataError,
)
from .indicators import compute_bmi, evaluate_frame, evaluate_measurement
from .models import IndicatorResult, Measurement, Sex
from .pagination import Page, PageMeta, paginate, summarize_and_paginate
from .reference import (
    Indicator,
    ReferenceDataset,
    ReferenceRow,
    get_default_dataset,
    load_reference_dataset,
)
from .service import NutritionService

__all__ = [
    "ChildNotFoundError",
    "ChildSummary",
    "Indicator",
    "IndicatorResult",
    "Measurement",
    "MeasurementNotFoundError",
    "NotFoundError",
    "NutristatError",
    "NutritionService",
    "Page",
    "PageMeta",
    "ReferenceDataError",
    "ReferenceDataset",
    "ReferenceRow",
    "Sex",
    "compute_bmi",
    "derive_child_id",
    "evaluate_frame",
    "evaluate_measurement",
    "format_age_months",
    "get_default_dataset",
    "group_by_child",
    "load_reference_dataset",
    "paginate",
    "parse_age_text",
    "pick_latest",
    "summarize_all",
    "summarize_and_paginate",
    "summarize_child",
]
