"""
Shared pytest configuration and fixtures.

This module provides fixtures used across the unit and integration suites:
configuration pointing at temporary files and fully valid record forms.
"""

import json
from pathlib import Path

import pytest

from patient_records.config.schema import Config
from patient_records.models import (
    Address,
    CardiacDetail,
    DiabeticDetail,
    HealthType,
    MaternityDetail,
    PersonalInfo,
    RecordForm,
    TriState,
)


@pytest.fixture
def project_root() -> Path:
    """
    Return the project root directory.

    Returns:
        Path: Absolute path to the project root directory.
    """
    return Path(__file__).parent.parent


@pytest.fixture
def app_config(tmp_path: Path) -> Config:
    """Configuration whose token and log files live in a temporary directory."""
    return Config(**{
        "api": {"base_url": "http://testserver/api"},
        "logging": {"log_file": str(tmp_path / "logs" / "test.log")},
        "session": {"token_file": str(tmp_path / "session.json")},
    })


@pytest.fixture
def config_file(tmp_path: Path, app_config: Config) -> Path:
    """The app_config fixture written to a JSON file."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps(app_config.model_dump(mode="json")), encoding="utf-8")
    return path


def build_valid_form(health_type: HealthType = HealthType.MATERNITY) -> RecordForm:
    """Return a new-patient form that passes validation for the given type."""
    form = RecordForm(
        personal=PersonalInfo(
            first_name="Ada",
            last_name="Shaw",
            father_name="Tom Shaw",
            age=34,
            gender="Female",
            dob="1990-04-12",
        ),
        address=Address(
            home_flat_no="12B",
            street_no="Mill Lane",
            town="Leeds",
            full_address="12B Mill Lane, Leeds LS1 4AB",
        ),
        health_type=health_type,
    )
    form.details[HealthType.MATERNITY] = MaternityDetail(
        blood_pressure="120/80",
        weight="68.5",
        last_menstrual_period="2024-01-10",
        weeks="12",
        significant_history=TriState.NO,
    )
    form.details[HealthType.DIABETIC] = DiabeticDetail(
        blood_pressure="130/85",
        weight="82",
        heart_rate="72",
        current_symptoms="Fatigue",
        family_history="Mother type 2",
        has_medical_history=TriState.UNSET,
    )
    form.details[HealthType.CARDIAC] = CardiacDetail(
        blood_pressure="140/90",
        weight="90",
        heart_rate="88",
        current_symptoms="Chest tightness",
        family_history="None known",
        has_medical_history=TriState.UNSET,
    )
    return form


@pytest.fixture
def valid_form() -> RecordForm:
    """A complete Maternity record form for a new patient."""
    return build_valid_form()


@pytest.fixture
def make_valid_form():
    """Factory for valid new-patient forms of any health type."""
    return build_valid_form
