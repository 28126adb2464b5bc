"""
Pytest configuration and shared fixtures.

Every test runs with ``BERTH_HOME`` pointing into its own temporary directory
and with the config and runtime caches cleared, so nothing leaks from the
developer's real ``~/.berth`` or between tests.
"""

from pathlib import Path

import httpx
import pytest

from berth.bundles.catalog import CatalogClient
from berth.bundles.exceptions import StrategyError
from berth.bundles.store import COMPOSE_FILE_NAME, BundleStore
from berth.bundles.strategies import FetchStrategy
from berth.deployment import runtime_helper
from berth.utils.config import reset_config_cache

API_URL = "https://api.catalog.test/repos/acme/services"
RAW_URL = "https://raw.catalog.test/acme/services/main"

REDIS_DESCRIPTOR = """version: '3.8'
services:
  redis:
    image: redis:7-alpine
    ports:
      - "6379:6379"
"""


@pytest.fixture(autouse=True)
def berth_home(tmp_path, monkeypatch) -> Path:
    """Isolated BERTH_HOME with caches reset around the test."""
    home = tmp_path / "berth-home"
    monkeypatch.setenv("BERTH_HOME", str(home))
    monkeypatch.delenv("BERTH_CONFIG", raising=False)
    monkeypatch.delenv("CONTAINER_RUNTIME", raising=False)
    reset_config_cache()
    runtime_helper.reset_runtime_cache()
    yield home
    reset_config_cache()
    runtime_helper.reset_runtime_cache()


@pytest.fixture
def store(tmp_path) -> BundleStore:
    return BundleStore(tmp_path / "services")


@pytest.fixture
def make_bundle():
    """Factory writing a bundle directory: ``make_bundle(root, name, descriptor=..., files=...)``."""

    def _make(root: Path, name: str, descriptor: str | None = REDIS_DESCRIPTOR, files: dict | None = None) -> Path:
        path = Path(root) / name
        path.mkdir(parents=True, exist_ok=True)
        if descriptor is not None:
            (path / COMPOSE_FILE_NAME).write_text(descriptor)
        for filename, text in (files or {}).items():
            (path / filename).write_text(text)
        return path

    return _make


@pytest.fixture
def make_catalog():
    """Factory building a CatalogClient whose requests go to ``handler``."""
    clients = []

    def _make(handler) -> CatalogClient:
        client = CatalogClient(
            api_url=API_URL,
            raw_url=RAW_URL,
            client=httpx.Client(transport=httpx.MockTransport(handler)),
        )
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


class RecordingStrategy(FetchStrategy):
    """Test double: records calls, then either fails or writes ``files``."""

    def __init__(self, name: str, files: dict[str, str] | None = None, error: Exception | None = None):
        self.name = name
        self.files = files
        self.error = error
        self.calls: list[str] = []

    def attempt(self, service: str, staging: Path) -> Path:
        self.calls.append(service)
        if self.error is not None:
            raise self.error
        if self.files is None:
            raise StrategyError(self.name, service, "nothing to provide")
        for filename, text in self.files.items():
            (staging / filename).write_text(text)
        return staging


@pytest.fixture
def recording_strategy():
    """Factory for :class:`RecordingStrategy` instances."""
    return RecordingStrategy
