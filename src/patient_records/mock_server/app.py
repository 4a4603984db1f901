"""Flask application mocking the patient-records REST API.

Routes mirror the real API under ``config.url_prefix`` (default ``/api``):
``/Auth/login``, ``/Patients``, ``/Addresses`` and ``/PatientDetails``.
Everything except login and ``/health`` requires a bearer token issued by
login.
"""

import logging
import time
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from flask import Blueprint, Flask, Response, current_app, jsonify, request

from .config import MockServerConfig, load_config
from .store import RecordStore

logger = logging.getLogger("patient_records.mock_server")

api_bp = Blueprint("api", __name__)

STORE_KEY = "RECORD_STORE"
CONFIG_KEY = "MOCK_SERVER_CONFIG"


def setup_logging(config: MockServerConfig) -> logging.Logger:
    """Configure logging for mock server with rotation.

    Args:
        config: Mock server configuration

    Returns:
        Configured logger instance
    """
    logger.setLevel(config.log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_path = Path(config.log_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger


def _store() -> RecordStore:
    return current_app.config[STORE_KEY]


def _config() -> MockServerConfig:
    return current_app.config[CONFIG_KEY]


def _error(message: str, status: int) -> tuple[Response, int]:
    return jsonify({"message": message}), status


def _json_body() -> Optional[dict[str, Any]]:
    body = request.get_json(silent=True, force=True)
    return body if isinstance(body, dict) else None


@api_bp.before_request
def authenticate_request():
    """Delay the response if configured and enforce the bearer token."""
    delay_ms = _config().response_delay_ms
    if delay_ms > 0:
        time.sleep(delay_ms / 1000.0)

    if request.endpoint == "api.login":
        return None

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not _store().is_valid_token(token.strip()):
        logger.warning(f"Rejected unauthenticated request: {request.method} {request.path}")
        return _error("Unauthorized", 401)
    return None


@api_bp.route("/Auth/login", methods=["POST"])
def login():
    body = _json_body() or {}
    username = body.get("username") or ""
    password = body.get("password") or ""

    users = _config().users
    if username not in users or users[username] != password:
        logger.info(f"Login failed for '{username}'")
        return _error("Invalid username or password", 401)

    logger.info(f"Login succeeded for '{username}'")
    return jsonify({"token": _store().issue_token(username)}), 200


@api_bp.route("/Patients", methods=["GET"])
def list_patients():
    return jsonify(_store().list_patients()), 200


@api_bp.route("/Patients/<int:patient_id>", methods=["GET"])
def get_patient(patient_id: int):
    patient = _store().get_patient(patient_id)
    if patient is None:
        return _error(f"Patient {patient_id} not found", 404)
    return jsonify(patient), 200


@api_bp.route("/Patients", methods=["POST"])
def create_patient():
    body = _json_body()
    if body is None:
        return _error("Request body must be a JSON object", 400)
    if not body.get("firstName") or not body.get("lastName"):
        return _error("firstName and lastName are required", 400)

    patient = _store().create_patient(body)
    logger.info(f"Created patient {patient['patientId']}")
    return jsonify(patient), 201


@api_bp.route("/Patients/<int:patient_id>", methods=["PUT"])
def update_patient(patient_id: int):
    body = _json_body()
    if body is None:
        return _error("Request body must be a JSON object", 400)

    patient = _store().update_patient(patient_id, body)
    if patient is None:
        return _error(f"Patient {patient_id} not found", 404)
    logger.info(f"Updated patient {patient_id}")
    return jsonify(patient), 200


@api_bp.route("/Patients/<int:patient_id>", methods=["DELETE"])
def delete_patient(patient_id: int):
    if not _store().delete_patient(patient_id):
        return _error(f"Patient {patient_id} not found", 404)
    logger.info(f"Deleted patient {patient_id} with its addresses and details")
    return Response(status=204)


@api_bp.route("/Addresses", methods=["GET"])
def list_addresses():
    patient_id = request.args.get("patientId", type=int)
    return jsonify(_store().list_addresses(patient_id)), 200


@api_bp.route("/Addresses", methods=["POST"])
def create_address():
    body = _json_body()
    if body is None:
        return _error("Request body must be a JSON object", 400)
    if not _store().has_patient(body.get("patientId")):
        return _error(f"Unknown patientId: {body.get('patientId')}", 400)

    address = _store().create_address(body)
    logger.info(f"Created address {address['addressId']} for patient {body['patientId']}")
    return jsonify(address), 201


@api_bp.route("/Addresses/<int:address_id>", methods=["PUT"])
def update_address(address_id: int):
    body = _json_body()
    if body is None:
        return _error("Request body must be a JSON object", 400)

    address = _store().update_address(address_id, body)
    if address is None:
        return _error(f"Address {address_id} not found", 404)
    return jsonify(address), 200


@api_bp.route("/PatientDetails", methods=["GET"])
def list_details():
    patient_id = request.args.get("patientId", type=int)
    return jsonify(_store().list_details(patient_id)), 200


@api_bp.route("/PatientDetails", methods=["POST"])
def create_detail():
    body = _json_body()
    if body is None:
        return _error("Request body must be a JSON object", 400)
    if not _store().has_patient(body.get("patientId")):
        return _error(f"Unknown patientId: {body.get('patientId')}", 400)

    detail = _store().create_detail(body)
    logger.info(f"Created health detail {detail['detailId']} for patient {body['patientId']}")
    return jsonify(detail), 201


@api_bp.route("/PatientDetails/<int:detail_id>", methods=["PUT"])
def update_detail(detail_id: int):
    body = _json_body()
    if body is None:
        return _error("Request body must be a JSON object", 400)

    detail = _store().update_detail(detail_id, body)
    if detail is None:
        return _error(f"Health detail {detail_id} not found", 404)
    return jsonify(detail), 200


def create_app(
    config: Optional[MockServerConfig] = None,
    store: Optional[RecordStore] = None,
) -> Flask:
    """Build the mock API application.

    Args:
        config: Mock server configuration (defaults if not provided)
        store: Record store to serve (a fresh empty store if not provided)

    Returns:
        Configured Flask application
    """
    config = config or MockServerConfig()
    app = Flask(__name__)
    app.config[CONFIG_KEY] = config
    app.config[STORE_KEY] = store or RecordStore()
    started_at = datetime.now(timezone.utc)

    app.register_blueprint(api_bp, url_prefix=config.url_prefix or None)

    @app.before_request
    def log_request():
        logger.info(
            f"{request.method} {request.path} "
            f"(Content-Length: {request.content_length or 0})"
        )

    @app.route("/health", methods=["GET"])
    def health_check():
        uptime_seconds = int((datetime.now(timezone.utc) - started_at).total_seconds())
        return jsonify({
            "status": "healthy",
            "version": "1.0.0",
            "url_prefix": config.url_prefix,
            "uptime_seconds": uptime_seconds,
            "patients": len(app.config[STORE_KEY].list_patients()),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }), 200

    @app.errorhandler(404)
    def not_found(error):
        return _error("Not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return _error("Method not allowed", 405)

    @app.errorhandler(500)
    def internal_error(error):
        return _error("Internal Server Error", 500)

    return app


def run_server(
    config: Optional[MockServerConfig] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    debug: bool = False,
) -> None:
    """Run the mock API with Flask's development server.

    Args:
        config: Mock server configuration (loads from file if not provided)
        host: Overrides config.host
        port: Overrides config.port
        debug: Enable Flask debug mode
    """
    if config is None:
        config = load_config()

    setup_logging(config)
    host = host or config.host
    port = port or config.port
    app = create_app(config)

    logger.info(f"Starting patient-records mock API on http://{host}:{port}{config.url_prefix}")
    logger.info(f"Health check available at: http://{host}:{port}/health")

    app.run(host=host, port=port, debug=debug, use_reloader=False)
