"""Shared fixtures for integration tests.

Every client wraps a fresh application instance so environment changes made
by a test are honored by both the settings dependency and the exception
handlers.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from src.api.main import create_app


@pytest.fixture
def upload_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Direct every upload of the application under a temporary directory."""
    monkeypatch.setenv("REQUEST_CONFIG__UPLOAD_DIR", str(tmp_path))
    monkeypatch.setenv("REQUEST_CONFIG__MAX_MEMORY_FILE_SIZE", "0")
    return tmp_path


@pytest.fixture
async def client(upload_dir: Path) -> AsyncGenerator[AsyncClient]:
    """Create a test client over a freshly configured application."""
    _ = upload_dir  # Ensure fixture runs first
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def client_production(
    upload_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> AsyncGenerator[AsyncClient]:
    """Create a test client with production environment settings."""
    _ = upload_dir
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("DEBUG", "false")
    app = create_app()
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
