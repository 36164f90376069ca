# Storefront Test Suite - Shared Configuration and Fixtures
#
# This module provides:
# - Ephemeral data file / uploads directory per test (tmp_path)
# - A controllable clock for session and rate-limit expiry
# - Store, upload and catalog fixtures wired like the server wires them
# - An HTTP client over the real FastAPI app plus an authenticated variant

import asyncio
from pathlib import Path
from typing import Dict, Generator

import pytest
from fastapi.testclient import TestClient

from configs.settings import Settings
from core.auth.passwords import hash_password
from runtime.api.server import create_app
from runtime.services.catalog_service import CatalogService
from runtime.store.document_store import DocumentStore
from runtime.store.upload_gc import UploadGarbageCollector
from runtime.store.upload_store import UploadStore


ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"

# Smallest valid PNG header; the server checks content type, not pixels.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def run(coro):
    """Drive an async store/catalog call from a synchronous test."""
    return asyncio.run(coro)


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# COMPONENT FIXTURES
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "data" / "database.json"


@pytest.fixture
def uploads_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads" / "products"


@pytest.fixture
def store(data_file: Path) -> DocumentStore:
    store = DocumentStore(
        data_file,
        admin_username=ADMIN_USERNAME,
        admin_password_hash=hash_password(ADMIN_PASSWORD),
        lock_timeout=5.0,
    )
    store.load()
    return store


@pytest.fixture
def uploads(uploads_dir: Path) -> UploadStore:
    return UploadStore(uploads_dir, max_bytes=1024)


@pytest.fixture
def gc(store: DocumentStore, uploads: UploadStore) -> UploadGarbageCollector:
    return UploadGarbageCollector(store, uploads)


@pytest.fixture
def catalog(store: DocumentStore, uploads: UploadStore) -> CatalogService:
    return CatalogService(store, uploads)


# =============================================================================
# HTTP FIXTURES
# =============================================================================

@pytest.fixture
def app_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    monkeypatch.setenv("STOREFRONT_DATA_FILE", str(tmp_path / "data" / "database.json"))
    monkeypatch.setenv("STOREFRONT_UPLOADS_DIR", str(tmp_path / "uploads" / "products"))
    monkeypatch.setenv("STOREFRONT_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("STOREFRONT_LOGIN_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("ADMIN_USERNAME", ADMIN_USERNAME)
    monkeypatch.delenv("ADMIN_PASSWORD_HASH", raising=False)
    return Settings()


@pytest.fixture
def client(app_settings: Settings) -> Generator[TestClient, None, None]:
    app = create_app(app_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client: TestClient) -> Dict[str, str]:
    response = client.post(
        "/api/admin/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}
