"""
Shared fixtures.

Settings are read when the application modules are imported, so the
environment is prepared before anything from gallery_api is loaded.
"""
import os
import tempfile

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "1000")
os.environ.setdefault("TRASH_PURGE_INTERVAL_SECONDS", "0")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="gallery-logs-"))

import pytest
from fastapi.testclient import TestClient

from gallery_api.config import get_settings
from gallery_api.services.media_files import MediaFileStorage
from gallery_api.store import JsonDocumentStore, get_store

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def data_dirs(tmp_path, monkeypatch):
    """Point DATA_DIR and UPLOADS_DIR at a fresh temporary directory."""
    data_dir = tmp_path / "data"
    uploads_dir = tmp_path / "uploads"
    monkeypatch.setenv("DATA_DIR", str(data_dir))
    monkeypatch.setenv("UPLOADS_DIR", str(uploads_dir))
    get_settings.cache_clear()
    get_store.cache_clear()
    yield data_dir, uploads_dir
    get_settings.cache_clear()
    get_store.cache_clear()


@pytest.fixture
def store(data_dirs) -> JsonDocumentStore:
    data_dir, _ = data_dirs
    return JsonDocumentStore(data_dir)


@pytest.fixture
def files(data_dirs) -> MediaFileStorage:
    _, uploads_dir = data_dirs
    return MediaFileStorage(uploads_dir)


@pytest.fixture
def client(data_dirs):
    from gallery_api.main import app

    with TestClient(app) as c:
        yield c


def register(client, username, name=None, password="secret123"):
    response = client.post(
        "/auth/register",
        json={
            "name": name or username.title(),
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def login(client, identifier, password="secret123", user_agent=None):
    headers = {"User-Agent": user_agent} if user_agent else {}
    response = client.post(
        "/auth/login",
        json={"identifier": identifier, "password": password},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def upload(client, headers, *names, content_type="image/png", adult_content=False):
    response = client.post(
        "/gallery/upload",
        files=[("files", (name, PNG_BYTES, content_type)) for name in names],
        data={"adultContent": "true" if adult_content else "false"},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["items"]


@pytest.fixture
def alice(client):
    """Registered and logged-in user: (user, headers)."""
    user = register(client, "alice")
    token = login(client, "alice")["access_token"]
    return user, auth_headers(token)


@pytest.fixture
def bob(client):
    user = register(client, "bob")
    token = login(client, "bob")["access_token"]
    return user, auth_headers(token)


def media(item_id, owner="1", uploaded="2024-01-01T10:00:00.000Z", **extra):
    """Stored media document in its on-disk (camelCase) form."""
    doc = {
        "id": item_id,
        "ownerUserId": owner,
        "originalFilename": f"{item_id}.png",
        "filename": f"{item_id}-stored.png",
        "filePath": f"/uploads/{item_id}-stored.png",
        "uploadTimestamp": uploaded,
        "type": "image",
        "adultContent": False,
    }
    doc.update(extra)
    return doc
