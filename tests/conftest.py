from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest

from nutristat.config import REFERENCE_COLUMNS
from nutristat.models import Measurement, Sex
from nutristat.reference import Indicator, ReferenceDataset, get_default_dataset

FLAT_THRESHOLDS = [10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 70.0]


def flat_frame(months=range(0, 61), thresholds=FLAT_THRESHOLDS) -> pd.DataFrame:
    """WHO-layout frame with the same thresholds for every month."""
    return pd.DataFrame(
        [[month, *thresholds] for month in months], columns=REFERENCE_COLUMNS
    )


@pytest.fixture
def reference_frame():
    """Factory for WHO-layout frames."""
    return flat_frame


@pytest.fixture
def flat_dataset() -> ReferenceDataset:
    """All six tables with thresholds 10, 20, ..., 70 for months 0-60."""
    return ReferenceDataset.from_frames(
        {(indicator, sex): flat_frame() for indicator in Indicator for sex in Sex}
    )


@pytest.fixture(scope="session")
def who_dataset() -> ReferenceDataset:
    """The packaged WHO reference tables."""
    return get_default_dataset()


@pytest.fixture
def make_measurement():
    """Factory for Measurement records with sensible defaults."""
    base_time = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _make(**overrides) -> Measurement:
        fields = {
            "child_id": "u1-Budi-L",
            "child_name": "Budi",
            "age_text": "1 tahun 2 bulan",
            "height": 76.0,
            "weight": 9.5,
            "gender": Sex.MALE,
            "bmi": 16.45,
            "height_category": "Normal",
            "weight_category": "Normal",
            "mass_category": "Normal",
            "creator_id": "u1",
            "created_at": base_time,
        }
        offset = overrides.pop("minutes", None)
        if offset is not None:
            fields["created_at"] = base_time + timedelta(minutes=offset)
        fields.update(overrides)
        return Measurement(**fields)

    return _make
