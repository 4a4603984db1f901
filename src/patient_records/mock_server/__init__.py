"""Flask mock of the patient-records REST API for local development and tests."""

from patient_records.mock_server.app import create_app, run_server
from patient_records.mock_server.config import MockServerConfig, load_config
from patient_records.mock_server.store import RecordStore

__all__ = ["MockServerConfig", "RecordStore", "create_app", "load_config", "run_server"]
