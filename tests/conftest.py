from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture()
def client(tmp_path, monkeypatch):
    pytest.importorskip("httpx")
    from fastapi.testclient import TestClient
    from sqlmodel import SQLModel, create_engine

    from teachassist import db
    from teachassist.main import app
    from teachassist.settings import settings

    settings.data_dir = str(tmp_path / "data")
    settings.sqlite_path = str(tmp_path / "test.db")
    monkeypatch.setattr(settings, "bulk_grade_delay_seconds", 0.0)
    monkeypatch.setenv("OPENAI_MOCK", "1")
    monkeypatch.delenv("BACKEND_API_KEY", raising=False)

    db.engine = create_engine(settings.sqlite_url, connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(db.engine)

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth(user_id: int) -> dict[str, str]:
    return {"X-User-Id": str(user_id)}


def make_user(client, name: str, role: str) -> int:
    response = client.post(
        "/api/users",
        json={"name": name, "email": f"{name.lower().replace(' ', '.')}@school.test", "role": role},
    )
    assert response.status_code == 201
    return response.json()["id"]
