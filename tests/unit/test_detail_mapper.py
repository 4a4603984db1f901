"""Unit tests for health detail mapping between the API and the form."""

from pathlib import Path

import pytest

from patient_records.models import (
    CardiacDetail,
    DiabeticDetail,
    HealthType,
    MaternityDetail,
    TriState,
    attach_report,
)
from patient_records.records.detail_mapper import (
    detail_from_api,
    detail_to_api,
    format_date_for_input,
    select_detail_payload,
    to_iso_datetime,
)


class TestDateConversion:
    """Tests for date normalisation helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2024-03-05", "2024-03-05"),
            ("2024-03-05T00:00:00.000Z", "2024-03-05"),
            ("2024-03-05T10:30:00", "2024-03-05"),
            # Offset-aware values are taken in UTC
            ("2024-03-05T23:30:00-02:00", "2024-03-06"),
            ("2024-03-06T01:00:00+05:00", "2024-03-05"),
            # Seven-digit fractions as sent by .NET serialisers
            ("2024-03-05T10:30:00.1234567", "2024-03-05"),
            ("2024-03-05T23:59:59.9999999Z", "2024-03-05"),
            ("2024-03-05T10:30:00.5+01:00", "2024-03-05"),
        ],
    )
    def test_format_date_for_input(self, value, expected):
        assert format_date_for_input(value) == expected

    @pytest.mark.parametrize("value", [None, "", "not a date", "2024-13-40", 20240305])
    def test_format_date_for_input_invalid(self, value):
        """Test absent or unparseable values become an empty string."""
        assert format_date_for_input(value) == ""

    def test_to_iso_datetime(self):
        assert to_iso_datetime("2024-03-05") == "2024-03-05T00:00:00.000Z"

    @pytest.mark.parametrize("value", ["", "garbage"])
    def test_to_iso_datetime_empty(self, value):
        assert to_iso_datetime(value) is None


class TestSelectDetailPayload:
    """Tests for choosing the detail record from a lookup response."""

    def test_list_picks_matching_patient(self):
        payload = [{"patientId": 1, "weight": 1}, {"patientId": 2, "weight": 2}]
        assert select_detail_payload(payload, 2) == {"patientId": 2, "weight": 2}

    def test_list_without_match_falls_back_to_first(self):
        payload = [{"patientId": 1}, {"patientId": 3}]
        assert select_detail_payload(payload, 2) == {"patientId": 1}

    def test_single_object_is_used(self):
        assert select_detail_payload({"patientId": 2}, 2) == {"patientId": 2}

    @pytest.mark.parametrize("payload", [[], None, "text"])
    def test_nothing_usable(self, payload):
        assert select_detail_payload(payload, 2) == {}


class TestDetailFromApi:
    """Tests for inbound mapping."""

    def test_maternity_fields(self):
        """Test maternity payload is normalised to form values."""
        # Arrange
        payload = {
            "detailId": 9,
            "maternityId": 4,
            "bloodPressure": "120/80",
            "weight": 68.0,
            "description": "First pregnancy",
            "report": "scan.pdf",
            "lastMenstrualPeriod": "2024-01-10T00:00:00.000Z",
            "numberOfWeeks": 12,
            "significantHistory": True,
        }

        # Act
        detail = detail_from_api(payload, HealthType.MATERNITY)

        # Assert
        assert isinstance(detail, MaternityDetail)
        assert detail.blood_pressure == "120/80"
        assert detail.weight == "68"
        assert detail.description == "First pregnancy"
        assert detail.report_name == "scan.pdf"
        assert detail.report is None
        assert detail.last_menstrual_period == "2024-01-10"
        assert detail.weeks == "12"
        assert detail.significant_history is TriState.YES
        assert detail.detail_id == 9
        assert detail.maternity_id == 4

    @pytest.mark.parametrize(
        "health_type,cls,id_key",
        [
            (HealthType.DIABETIC, DiabeticDetail, "diabeticId"),
            (HealthType.CARDIAC, CardiacDetail, "cardiacId"),
        ],
    )
    def test_clinical_history_fields(self, health_type, cls, id_key):
        """Test diabetic/cardiac payloads share the clinical history mapping."""
        # Arrange
        payload = {
            id_key: 7,
            "bloodPressure": "130/85",
            "weight": "82.5",
            "heartRate": 72,
            "currentSymptoms": "Fatigue",
            "treatmentDate": "2023-11-02T00:00:00Z",
            "familyHistory": "Mother",
            "medicalHistory": False,
            "previousDoctor": None,
            "hospitalDetails": None,
            "lastDiagnosedDate": None,
        }

        # Act
        detail = detail_from_api(payload, health_type)

        # Assert
        assert isinstance(detail, cls)
        assert detail.weight == "82.5"
        assert detail.heart_rate == "72"
        assert detail.treatment_date == "2023-11-02"
        assert detail.has_medical_history is TriState.NO
        assert detail.previous_doctor == ""
        assert detail.last_diagnosed_date == ""
        # Variant identity doubles as the detail identity
        assert detail.detail_id == 7

    def test_empty_payload_gives_blank_detail(self):
        detail = detail_from_api({}, HealthType.DIABETIC)
        assert detail == DiabeticDetail()

    def test_null_tri_state_is_unset(self):
        detail = detail_from_api({"significantHistory": None}, HealthType.MATERNITY)
        assert detail.significant_history is TriState.UNSET

    @pytest.mark.parametrize("weight", ["heavy", float("inf"), True])
    def test_malformed_numbers_become_blank(self, weight):
        detail = detail_from_api({"weight": weight}, HealthType.CARDIAC)
        assert detail.weight == ""


class TestDetailToApi:
    """Tests for outbound mapping."""

    def test_maternity_payload(self):
        """Test maternity form values are converted to wire types."""
        # Arrange
        detail = MaternityDetail(
            blood_pressure="120/80",
            weight="68.5",
            last_menstrual_period="2024-01-10",
            weeks="12",
            significant_history=TriState.NO,
        )

        # Act
        payload = detail_to_api(detail, HealthType.MATERNITY, patient_id=3)

        # Assert
        assert payload == {
            "patientId": 3,
            "healthType": "Maternity",
            "report": None,
            "bloodPressure": "120/80",
            "weight": 68.5,
            "description": None,
            "detailId": None,
            "lastMenstrualPeriod": "2024-01-10T00:00:00.000Z",
            "numberOfWeeks": 12,
            "significantHistory": False,
        }

    def test_clinical_payload(self):
        detail = CardiacDetail(
            blood_pressure="140/90",
            weight="90",
            heart_rate="88",
            current_symptoms="Chest tightness",
            family_history="None known",
            has_medical_history=TriState.YES,
            previous_doctor="Dr Hale",
            hospital_details="St James",
            last_diagnosed_date="2022-06-01",
            detail_id=11,
        )

        payload = detail_to_api(detail, HealthType.CARDIAC, patient_id=5)

        assert payload["heartRate"] == 88
        assert payload["weight"] == 90.0
        assert payload["medicalHistory"] is True
        assert payload["previousDoctor"] == "Dr Hale"
        assert payload["lastDiagnosedDate"] == "2022-06-01T00:00:00.000Z"
        assert payload["treatmentDate"] is None
        assert payload["detailId"] == 11

    def test_unset_tri_state_is_null(self):
        payload = detail_to_api(DiabeticDetail(), HealthType.DIABETIC, patient_id=1)
        assert payload["medicalHistory"] is None

    def test_non_integer_counts_are_null(self):
        """Test fractional weeks and heart rate are not submitted."""
        maternity = detail_to_api(MaternityDetail(weeks="12.5"), HealthType.MATERNITY, 1)
        diabetic = detail_to_api(DiabeticDetail(heart_rate="fast"), HealthType.DIABETIC, 1)
        assert maternity["numberOfWeeks"] is None
        assert diabetic["heartRate"] is None

    def test_variant_identity_used_when_no_detail_id(self):
        payload = detail_to_api(DiabeticDetail(diabetic_id=21), HealthType.DIABETIC, 1)
        assert payload["detailId"] == 21

    def test_attached_report_submits_file_name_only(self, tmp_path: Path):
        # Arrange
        report = tmp_path / "ecg.pdf"
        report.write_bytes(b"%PDF-1.4")
        detail = CardiacDetail(report_url="http://files/old.pdf")
        attach_report(detail, report)

        # Act
        payload = detail_to_api(detail, HealthType.CARDIAC, patient_id=1)

        # Assert
        assert payload["report"] == "ecg.pdf"

    def test_report_url_used_without_attachment(self):
        detail = MaternityDetail(report_url="http://files/scan.pdf")
        payload = detail_to_api(detail, HealthType.MATERNITY, patient_id=1)
        assert payload["report"] == "http://files/scan.pdf"

    def test_mismatched_detail_type_raises(self):
        with pytest.raises(TypeError):
            detail_to_api(MaternityDetail(), HealthType.CARDIAC, patient_id=1)


class TestRoundTrip:
    """Mapping a normalised form detail out and back in yields the same detail."""

    @pytest.mark.parametrize("health_type", list(HealthType))
    def test_round_trip(self, make_valid_form, health_type):
        # Arrange
        detail = make_valid_form(health_type).active_detail
        detail.description = "Notes"
        detail.detail_id = 42

        # Act
        restored = detail_from_api(detail_to_api(detail, health_type, 8), health_type)

        # Assert
        assert restored == detail

    def test_round_trip_with_history_answers(self):
        detail = DiabeticDetail(
            blood_pressure="130/85",
            weight="82",
            heart_rate="72",
            current_symptoms="Thirst",
            treatment_date="2024-02-01",
            family_history="Father",
            has_medical_history=TriState.YES,
            previous_doctor="Dr Ng",
            hospital_details="General",
            last_diagnosed_date="2019-07-15",
        )

        restored = detail_from_api(
            detail_to_api(detail, HealthType.DIABETIC, 2), HealthType.DIABETIC
        )

        assert restored == detail


CLINICAL_WIRE = {
    "report": "ecg.pdf",
    "bloodPressure": "140/90",
    "weight": 91.5,
    "description": "Follow-up",
    "detailId": 31,
    "heartRate": 88,
    "currentSymptoms": "Breathless",
    "treatmentDate": "2024-02-01T00:00:00.000Z",
    "familyHistory": "Father",
    "medicalHistory": False,
    "previousDoctor": "Dr Ng",
    "hospitalDetails": "General",
    "lastDiagnosedDate": "2019-07-15T00:00:00.000Z",
}

WIRE_DETAILS = {
    HealthType.MATERNITY: {
        "report": "scan.pdf",
        "bloodPressure": "120/80",
        "weight": 68.5,
        "description": "First pregnancy",
        "detailId": 9,
        "lastMenstrualPeriod": "2024-01-10T00:00:00.000Z",
        "numberOfWeeks": 12,
        "significantHistory": False,
    },
    HealthType.DIABETIC: CLINICAL_WIRE,
    HealthType.CARDIAC: {**CLINICAL_WIRE, "medicalHistory": True},
}


class TestWireRoundTrip:
    """Mapping an API detail into the form and back out keeps every value."""

    @pytest.mark.parametrize("health_type", list(HealthType))
    def test_wire_fields_survive(self, health_type):
        # Arrange
        wire = {"patientId": 8, "healthType": health_type.value, **WIRE_DETAILS[health_type]}

        # Act
        outbound = detail_to_api(detail_from_api(wire, health_type), health_type, 8)

        # Assert
        for key, value in wire.items():
            assert outbound[key] == value, key

    def test_long_fraction_date_is_kept(self):
        """Test a .NET style timestamp is not dropped on the next save."""
        wire = {"treatmentDate": "2024-02-01T09:15:00.1234567Z"}

        outbound = detail_to_api(
            detail_from_api(wire, HealthType.DIABETIC), HealthType.DIABETIC, 1
        )

        assert outbound["treatmentDate"] == "2024-02-01T00:00:00.000Z"
