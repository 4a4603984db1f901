"""Fixtures for tests that talk HTTP to the Flask mock API.

One mock server process is started per test session on a free port and
terminated when the session ends. Every test gets its own token and log files.
"""

import multiprocessing
import socket
import time
from pathlib import Path
from typing import Generator

import pytest
import requests

from patient_records.config.schema import Config
from patient_records.mock_server.config import MockServerConfig
from patient_records.transport import PatientRecordsClient, SessionGate, TokenStore

STARTUP_TIMEOUT = 10.0


def _free_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def _health_ok(url: str) -> bool:
    try:
        return requests.get(url, timeout=1).status_code == 200
    except requests.exceptions.RequestException:
        return False


def _serve(config: MockServerConfig) -> None:
    from patient_records.mock_server.app import create_app

    create_app(config).run(host=config.host, port=config.port, use_reloader=False)


@pytest.fixture(scope="session")
def mock_server_config(tmp_path_factory: pytest.TempPathFactory) -> MockServerConfig:
    return MockServerConfig(
        host="127.0.0.1",
        port=_free_port(),
        log_level="WARNING",
        log_path=str(tmp_path_factory.mktemp("mock-logs") / "mock-server.log"),
        users={"admin": "admin123", "nurse": "nurse-pw"},
    )


@pytest.fixture(scope="session")
def mock_server_process(
    mock_server_config: MockServerConfig,
) -> Generator[tuple[str, int], None, None]:
    """Run the mock API for the whole session and yield its (host, port)."""
    host, port = mock_server_config.host, mock_server_config.port
    process = multiprocessing.Process(target=_serve, args=(mock_server_config,), daemon=True)
    process.start()

    health_url = f"http://{host}:{port}/health"
    deadline = time.monotonic() + STARTUP_TIMEOUT
    while not _health_ok(health_url):
        if time.monotonic() > deadline or not process.is_alive():
            process.kill()
            pytest.fail(f"Mock API did not come up at {health_url}")
        time.sleep(0.1)

    yield host, port

    process.terminate()
    process.join(timeout=5)
    if process.is_alive():
        process.kill()


@pytest.fixture
def api_base_url(mock_server_process: tuple[str, int], mock_server_config: MockServerConfig) -> str:
    """Base URL of the running mock API (e.g., "http://127.0.0.1:5123/api")."""
    host, port = mock_server_process
    return f"http://{host}:{port}{mock_server_config.url_prefix}"


@pytest.fixture
def live_config(tmp_path: Path, api_base_url: str) -> Config:
    """Client configuration pointing at the running mock API."""
    return Config(**{
        "api": {"base_url": api_base_url},
        "logging": {"log_file": str(tmp_path / "logs" / "integration.log")},
        "session": {"token_file": str(tmp_path / "session.json")},
    })


@pytest.fixture
def live_client(live_config: Config) -> Generator[PatientRecordsClient, None, None]:
    """Logged-in client for the running mock API."""
    store = TokenStore(Path(live_config.session.token_file))
    with PatientRecordsClient(live_config, SessionGate(store=store)) as client:
        client.login("admin", "admin123")
        yield client
