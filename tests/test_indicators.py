import logging

import numpy as np
import pandas as pd
import pytest

from nutristat.indicators import compute_bmi, evaluate_frame, evaluate_measurement
from nutristat.models import Sex

CATEGORY_LABELS = {
    "height": {"Severely Stunted", "Stunted", "Normal", "Tall"},
    "weight": {"Severely Wasted", "Wasted", "Normal", "Overweight", "Obese"},
}


class TestComputeBMI:
    """Tests for compute_bmi"""

    def test_tc001_basic(self):
        assert compute_bmi(100, 20) == 20.0
        assert compute_bmi(76.5, 9.8) == 16.75

    def test_tc002_rounded_to_two_decimals(self):
        assert compute_bmi(87.3, 12.1) == round(12.1 / 0.873**2, 2)

    @pytest.mark.parametrize("height", [0, -5])
    def test_tc003_non_positive_height(self, height: float):
        with pytest.raises(ValueError):
            compute_bmi(height, 10)


class TestEvaluateMeasurement:
    """Tests for evaluate_measurement against the packaged WHO tables"""

    def test_tc004_girl_23_months(self, who_dataset):
        result = evaluate_measurement(100, 20, "F", "1 tahun 11 bulan", who_dataset)
        assert result.age_in_month == 23
        assert result.bmi == 20.0
        assert result.height_category == "Tall"
        assert result.weight_category == "Obese"
        assert result.bmi_category == "Overweight"
        assert result.height_category in CATEGORY_LABELS["height"]
        assert result.weight_category in CATEGORY_LABELS["weight"]

    def test_tc005_default_dataset_used(self):
        result = evaluate_measurement(100, 20, Sex.FEMALE, "1 tahun 11 bulan")
        assert result.height_category == "Tall"

    def test_tc006_boy_typical_values(self, who_dataset):
        # Median-ish boy at 23 months
        result = evaluate_measurement(86.0, 12.0, "L", "1 tahun 11 bulan", who_dataset)
        assert result.height_category == "Normal"
        assert result.weight_category == "Normal"
        assert result.bmi_category == "Normal"

    def test_tc007_sex_selects_table(self, who_dataset):
        # 9.0 kg at 23 months: Wasted for a boy (SD2neg 9.5), Normal for a girl
        boy = evaluate_measurement(85, 9.0, "M", "1 tahun 11 bulan", who_dataset)
        girl = evaluate_measurement(85, 9.0, "P", "1 tahun 11 bulan", who_dataset)
        assert boy.weight_category == "Wasted"
        assert girl.weight_category == "Normal"

    def test_tc008_age_outside_range(self, who_dataset, caplog):
        caplog.set_level(logging.WARNING)
        result = evaluate_measurement(100, 20, "F", "10 tahun", who_dataset)
        assert result.bmi == 20.0
        assert result.age_in_month is None
        assert result.height_category == "No Data"
        assert result.weight_category == "No Data"
        assert result.bmi_category == "No Data"
        assert any("outside 0-60 months" in r.message for r in caplog.records)

    def test_tc009_month_61_is_no_data(self, flat_dataset):
        result = evaluate_measurement(50, 30, "M", "5 tahun 1 bulan", flat_dataset)
        assert result.age_in_month == 61
        assert result.weight_category == "No Data"

    def test_tc010_boundaries_inclusive(self, flat_dataset):
        result = evaluate_measurement(60, 60, "M", "0 bulan", flat_dataset)
        assert result.age_in_month == 0
        assert result.height_category == "Normal"
        assert result.weight_category == "Overweight"
        result = evaluate_measurement(20, 20, "M", "5 tahun 0 bulan", flat_dataset)
        assert result.height_category == "Stunted"
        assert result.weight_category == "Wasted"

    def test_tc011_unrounded_bmi_is_classified(self, reference_frame):
        from nutristat.reference import Indicator, ReferenceDataset

        # BMI 20.004 rounds to 20.0 but lies above an SD3 of 20.0
        frames = {
            (indicator, sex): reference_frame()
            for indicator in Indicator
            for sex in Sex
        }
        frames[(Indicator.BMI, Sex.MALE)] = reference_frame(
            thresholds=[14.0, 15.0, 16.0, 17.0, 18.0, 19.0, 20.0]
        )
        dataset = ReferenceDataset.from_frames(frames)
        result = evaluate_measurement(100, 20.004, "M", "7 bulan", dataset)
        assert result.bmi == 20.0
        assert result.bmi_category == "Obese"

    def test_tc012_unknown_sex(self, flat_dataset):
        with pytest.raises(ValueError):
            evaluate_measurement(80, 10, "X", "7 bulan", flat_dataset)

    def test_tc023_unparsable_age_warning(self, flat_dataset, caplog):
        caplog.set_level(logging.WARNING)
        result = evaluate_measurement(50, 4, "F", "baru lahir", flat_dataset)
        assert result.age_in_month is None
        assert result.height_category == "No Data"
        assert any(
            "Age 'baru lahir' unparsable or outside 0-60 months" in r.message
            for r in caplog.records
        )


class TestEvaluateFrame:
    """Tests for evaluate_frame"""

    @pytest.fixture
    def measurements(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "height": [100.0, 86.0, 85.0, 100.0],
                "weight": [20.0, 12.0, 9.0, 20.0],
                "gender": ["F", "Laki-laki", "M", "Perempuan"],
                "age_text": [
                    "1 tahun 11 bulan",
                    "1 tahun 11 bulan",
                    "1 tahun 11 bulan",
                    "10 tahun",
                ],
            },
            index=[10, 11, 12, 13],
        )

    def test_tc013_matches_scalar(self, measurements, who_dataset):
        result = evaluate_frame(measurements, who_dataset)
        assert list(result.index) == [10, 11, 12, 13]
        for idx, row in measurements.iterrows():
            expected = evaluate_measurement(
                row["height"],
                row["weight"],
                row["gender"],
                row["age_text"],
                who_dataset,
            )
            assert result.loc[idx, "bmi"] == pytest.approx(expected.bmi)
            assert result.loc[idx, "height_category"] == expected.height_category
            assert result.loc[idx, "weight_category"] == expected.weight_category
            assert result.loc[idx, "mass_category"] == expected.bmi_category

    def test_tc014_age_in_month_nullable(self, measurements, who_dataset):
        result = evaluate_frame(measurements, who_dataset)
        assert result["age_in_month"].dtype == "Int64"
        assert result.loc[10, "age_in_month"] == 23
        assert pd.isna(result.loc[13, "age_in_month"])

    def test_tc015_out_of_range_warning(self, measurements, who_dataset, caplog):
        caplog.set_level(logging.WARNING)
        evaluate_frame(measurements, who_dataset)
        assert any(
            "1 ages unparsable or outside 0-60 months" in r.message
            for r in caplog.records
        )

    def test_tc016_missing_column(self, measurements):
        with pytest.raises(ValueError, match="does not exist"):
            evaluate_frame(measurements.drop(columns=["gender"]))

    def test_tc017_non_positive_height(self, measurements, who_dataset):
        measurements.loc[11, "height"] = 0.0
        with pytest.raises(ValueError):
            evaluate_frame(measurements, who_dataset)

    def test_tc018_empty_frame(self):
        df = pd.DataFrame(columns=["height", "weight", "gender", "age_text"])
        result = evaluate_frame(df)
        assert result.empty
        assert "mass_category" in result.columns

    def test_tc019_custom_columns(self, flat_dataset):
        df = pd.DataFrame(
            {"tb": [15.0], "bb": [65.0], "jk": ["M"], "umur": ["7 bulan"]}
        )
        result = evaluate_frame(
            df,
            flat_dataset,
            height_col="tb",
            weight_col="bb",
            sex_col="jk",
            age_col="umur",
        )
        assert result.loc[0, "height_category"] == "Stunted"
        assert result.loc[0, "weight_category"] == "Overweight"

    def test_tc020_metres_warning(self, flat_dataset, caplog):
        caplog.set_level(logging.WARNING)
        df = pd.DataFrame(
            {
                "height": [0.8, 0.9],
                "weight": [10.0, 11.0],
                "gender": ["M", "F"],
                "age_text": ["1 tahun 0 bulan", "1 tahun 1 bulan"],
            }
        )
        evaluate_frame(df, flat_dataset)
        assert any("metres" in r.message for r in caplog.records)

    def test_tc021_pounds_warning(self, flat_dataset, caplog):
        caplog.set_level(logging.WARNING)
        df = pd.DataFrame(
            {
                "height": [80.0, 90.0],
                "weight": [10.0, 55.0],
                "gender": ["M", "F"],
                "age_text": ["1 tahun 0 bulan", "1 tahun 1 bulan"],
            }
        )
        evaluate_frame(df, flat_dataset)
        assert any("lbs" in r.message for r in caplog.records)

    def test_tc022_nan_weight_is_no_data(self, flat_dataset):
        df = pd.DataFrame(
            {
                "height": [80.0],
                "weight": [np.nan],
                "gender": ["M"],
                "age_text": ["7 bulan"],
            }
        )
        result = evaluate_frame(df, flat_dataset)
        assert result.loc[0, "weight_category"] == "No Data"
        assert result.loc[0, "height_category"] == "Tall"

    @pytest.mark.parametrize("dtype", ["string", "category", object])
    def test_tc024_sex_column_dtype(self, who_dataset, dtype):
        df = pd.DataFrame(
            {
                "height": [86.0, 85.0],
                "weight": [12.0, 9.0],
                "gender": pd.Series(["M", "Perempuan"], dtype=dtype),
                "age_text": ["1 tahun 11 bulan", "1 tahun 11 bulan"],
            }
        )
        result = evaluate_frame(df, who_dataset)
        boy = evaluate_measurement(86.0, 12.0, "M", "1 tahun 11 bulan", who_dataset)
        assert result.loc[0, "height_category"] == boy.height_category == "Normal"
        assert result.loc[0, "weight_category"] == boy.weight_category == "Normal"
        assert result.loc[0, "mass_category"] == boy.bmi_category == "Normal"
        assert result.loc[1, "weight_category"] == "Normal"
