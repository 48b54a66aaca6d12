import pytest
from pydantic import ValidationError

from nutristat.models import (
    ChildUpdate,
    MeasurementCreate,
    MeasurementUpdate,
    Sex,
    coerce_sex,
)


class TestSex:
    """Tests for Sex normalisation"""

    @pytest.mark.parametrize("value", ["Laki-laki", "M", "m", "L", "male", "MALE"])
    def test_tc001_male_aliases(self, value: str):
        assert coerce_sex(value) is Sex.MALE

    @pytest.mark.parametrize("value", ["Perempuan", "F", "p", "female", " Female "])
    def test_tc002_female_aliases(self, value: str):
        assert coerce_sex(value) is Sex.FEMALE

    def test_tc003_unknown_raises(self):
        with pytest.raises(ValueError):
            coerce_sex("X")

    def test_tc004_codes(self):
        assert Sex.MALE.code == "L"
        assert Sex.FEMALE.code == "P"
        assert Sex.FEMALE.table_key == "female"

    def test_tc005_external_value(self):
        assert Sex.MALE.value == "Laki-laki"
        assert Sex.FEMALE == "Perempuan"


class TestMeasurement:
    """Tests for Measurement and payload models"""

    def test_tc006_age_in_month_derived(self, make_measurement):
        record = make_measurement(age_text="1 tahun 11 bulan")
        assert record.age_in_month == 23

    def test_tc007_age_in_month_none_for_unparsable(self, make_measurement):
        assert make_measurement(age_text="10 tahun").age_in_month is None

    def test_tc008_gender_alias_normalised(self, make_measurement):
        assert make_measurement(gender="F").gender is Sex.FEMALE

    def test_tc009_non_positive_height_rejected(self, make_measurement):
        with pytest.raises(ValidationError):
            make_measurement(height=0)

    def test_tc010_dump_includes_age_in_month(self, make_measurement):
        data = make_measurement().model_dump(mode="json")
        assert data["age_in_month"] == 14
        assert data["gender"] == "Laki-laki"

    def test_tc011_create_payload_rejects_blank_name(self):
        with pytest.raises(ValidationError):
            MeasurementCreate(
                child_name="  ", age_text="7 bulan", height=60, weight=7, gender="M"
            )

    def test_tc012_update_payload_rejects_negative_age(self):
        with pytest.raises(ValidationError):
            MeasurementUpdate(height=60, weight=7, age_in_month=-1)

    def test_tc013_child_update_normalises_gender(self):
        assert ChildUpdate(child_name="Ani", gender="P").gender is Sex.FEMALE
