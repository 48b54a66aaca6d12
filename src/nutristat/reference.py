"""
WHO Growth Reference Tables

This module loads the WHO child growth standard z-score tables used for
classification: length/height-for-age, weight-for-age and BMI-for-age, for
boys and girls aged 0-60 months. Each table row holds the seven SD cut points
(-3SD .. +3SD) for one exact month; lookups never interpolate between months.

The tables are exposed through an immutable ``ReferenceDataset`` which is
built once per process (``get_default_dataset``) or injected by the caller.
"""

from dataclasses import dataclass, field
from enum import Enum
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union
import functools
import logging

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .config import (
    MAX_AGE_MONTHS,
    MIN_AGE_MONTHS,
    REFERENCE_COLUMNS,
    REFERENCE_DATA_PACKAGE,
    REFERENCE_FILE_PATTERN,
)
from .exceptions import ReferenceDataError
from .models import Sex, coerce_sex


class Indicator(str, Enum):
    """Anthropometric indicator classified against a reference table."""

    LENGTH = "length"  # length/height-for-age
    WEIGHT = "weight"  # weight-for-age
    BMI = "bmi"  # BMI-for-age


THRESHOLD_FIELDS = ("sd3neg", "sd2neg", "sd1neg", "sd0", "sd1", "sd2", "sd3")

# CSV header -> ReferenceRow field
_COLUMN_FIELDS = dict(zip(REFERENCE_COLUMNS, ("month",) + THRESHOLD_FIELDS))


class ReferenceRow(BaseModel):
    """
    SD cut points for one month of one indicator table.

    Attributes:
        month: Age in completed months (0-60)
        sd3neg .. sd3: Measurement values at -3SD .. +3SD, non-decreasing
    """

    model_config = ConfigDict(frozen=True)

    month: int = Field(..., ge=0)
    sd3neg: float
    sd2neg: float
    sd1neg: float
    sd0: float
    sd1: float
    sd2: float
    sd3: float

    @model_validator(mode="after")
    def thresholds_non_decreasing(self) -> "ReferenceRow":
        """Validate that SD3neg <= SD2neg <= ... <= SD3."""
        values = self.thresholds
        if any(lower > upper for lower, upper in zip(values, values[1:])):
            raise ValueError(
                f"Thresholds for month {self.month} are not non-decreasing: {values}"
            )
        return self

    @property
    def thresholds(self) -> Tuple[float, ...]:
        return tuple(getattr(self, name) for name in THRESHOLD_FIELDS)


TableKey = Tuple[Indicator, Sex]


@dataclass(frozen=True, eq=False)
class ReferenceDataset:
    """
    Read-only container of the six reference tables.

    Tables are keyed by (indicator, sex) and map an exact month to its row.
    The mappings are wrapped in MappingProxyType so neither the container nor
    its tables can be mutated after construction.
    """

    tables: Mapping[TableKey, Mapping[int, ReferenceRow]] = field(
        default_factory=dict
    )

    def __post_init__(self) -> None:
        frozen = {
            key: MappingProxyType(dict(rows)) for key, rows in self.tables.items()
        }
        object.__setattr__(self, "tables", MappingProxyType(frozen))

    @classmethod
    def from_frames(
        cls, frames: Mapping[TableKey, pd.DataFrame]
    ) -> "ReferenceDataset":
        """
        Build a dataset from DataFrames with the WHO column layout.

        Args:
            frames: Mapping of (indicator, sex) to DataFrame with columns
                Month, SD3neg, SD2neg, SD1neg, SD0, SD1, SD2, SD3

        Returns:
            ReferenceDataset

        Raises:
            ReferenceDataError: If a frame lacks columns or holds invalid rows
        """
        tables: Dict[TableKey, Dict[int, ReferenceRow]] = {}
        for (indicator, sex), df in frames.items():
            key = (Indicator(indicator), coerce_sex(sex))
            tables[key] = _rows_from_frame(df, f"{key[0].value}_{key[1].table_key}")
        return cls(tables=tables)

    def row(
        self,
        indicator: Union[Indicator, str],
        sex: Union[Sex, str],
        months: Optional[float],
    ) -> Optional[ReferenceRow]:
        """
        Look up the reference row for an exact month.

        Args:
            indicator: Indicator table to search
            sex: Child sex
            months: Age in months

        Returns:
            The row, or None if months is missing, fractional, outside
            0-60, or absent from the table
        """
        if months is None or pd.isna(months):
            return None
        if float(months) != int(months):
            return None
        months = int(months)
        if not MIN_AGE_MONTHS <= months <= MAX_AGE_MONTHS:
            return None

        table = self.tables.get((Indicator(indicator), coerce_sex(sex)))
        if table is None:
            return None
        return table.get(months)

    def frame(
        self, indicator: Union[Indicator, str], sex: Union[Sex, str]
    ) -> pd.DataFrame:
        """Return one table as a DataFrame indexed by month (empty if absent)."""
        table = self.tables.get((Indicator(indicator), coerce_sex(sex)), {})
        records = [row.model_dump() for row in table.values()]
        if not records:
            return pd.DataFrame(
                columns=list(THRESHOLD_FIELDS), index=pd.Index([], name="month")
            )
        return pd.DataFrame.from_records(records).set_index("month").sort_index()


def _rows_from_frame(df: pd.DataFrame, name: str) -> Dict[int, ReferenceRow]:
    """Convert one WHO-layout DataFrame into month -> ReferenceRow."""
    missing = [col for col in REFERENCE_COLUMNS if col not in df.columns]
    if missing:
        raise ReferenceDataError(f"{name}: missing columns {missing}")

    renamed = df[REFERENCE_COLUMNS].rename(columns=_COLUMN_FIELDS)
    if renamed.isna().any().any():
        raise ReferenceDataError(f"{name}: empty cells in reference table")

    rows: Dict[int, ReferenceRow] = {}
    for record in renamed.to_dict(orient="records"):
        try:
            row = ReferenceRow(**record)
        except ValidationError as e:
            raise ReferenceDataError(f"{name}: invalid row {record}: {e}") from e
        if row.month in rows:
            raise ReferenceDataError(f"{name}: duplicate month {row.month}")
        rows[row.month] = row
    return rows


def _read_table(
    file_name: str, package: str, directory: Optional[Path]
) -> pd.DataFrame:
    if directory is not None:
        return pd.read_csv(Path(directory) / file_name)
    with resources.files(package).joinpath(file_name).open("rb") as f:
        return pd.read_csv(f)


def load_reference_dataset(
    package: str = REFERENCE_DATA_PACKAGE, directory: Optional[Path] = None
) -> ReferenceDataset:
    """
    Load the WHO reference tables.

    Reads ``{indicator}_{sex}.csv`` for every indicator and sex from package
    resources, or from ``directory`` when given.

    Args:
        package: Package holding the CSV resources
        directory: Optional filesystem directory overriding the package

    Returns:
        ReferenceDataset with six tables

    Raises:
        FileNotFoundError: If a table file cannot be found
        ReferenceDataError: If a table cannot be parsed or has invalid content
    """
    frames: Dict[TableKey, pd.DataFrame] = {}
    for indicator in Indicator:
        for sex in Sex:
            file_name = REFERENCE_FILE_PATTERN.format(
                indicator=indicator.value, sex=sex.table_key
            )
            try:
                frames[(indicator, sex)] = _read_table(file_name, package, directory)
            except FileNotFoundError:
                raise FileNotFoundError(
                    f"Growth reference table {file_name} not found. "
                    "Ensure nutristat is properly installed or run "
                    "'scripts/download_reference.py' to regenerate reference data."
                ) from None
            except (
                pd.errors.ParserError,
                pd.errors.EmptyDataError,
                UnicodeDecodeError,
            ) as e:
                raise ReferenceDataError(
                    f"Failed to parse growth reference table {file_name}: {e}"
                ) from e
    return ReferenceDataset.from_frames(frames)


def validate_reference_integrity(dataset: ReferenceDataset) -> bool:
    """
    Validate completeness of a reference dataset.

    Checks that all six tables are present and that each covers every month
    from 0 to 60. Logs warnings for any issues found but doesn't raise.

    Args:
        dataset: Dataset to check

    Returns:
        True if the dataset passes all checks, False otherwise
    """
    if not dataset.tables:
        logging.warning("Loaded reference dataset is empty")
        return False

    ok = True
    expected_months = set(range(MIN_AGE_MONTHS, MAX_AGE_MONTHS + 1))
    for indicator in Indicator:
        for sex in Sex:
            table = dataset.tables.get((indicator, sex))
            name = f"{indicator.value}_{sex.table_key}"
            if table is None:
                logging.warning(f"Missing reference table: {name}")
                ok = False
                continue
            missing_months = sorted(expected_months - set(table))
            if missing_months:
                logging.warning(f"{name}: missing months {missing_months}")
                ok = False
    return ok


@functools.lru_cache(maxsize=None)
def get_default_dataset() -> ReferenceDataset:
    """Return the packaged reference dataset, loading it on first use."""
    dataset = load_reference_dataset()
    if not validate_reference_integrity(dataset):
        logging.warning("Packaged reference dataset failed integrity checks")
    return dataset
