import os
from datetime import datetime, timedelta

# Быстрый bcrypt для тестов, до импорта приложения
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import httpx
import pytest
from fastapi.testclient import TestClient

from subcatalog.config import Config
from subcatalog.core.models import Subtitle
from subcatalog.main import create_app
from subcatalog.services.metadata_service import MetadataService

PASSWORD = "password123"


class FakeTmdb:
    """Подмена TMDB: ответы по пути запроса + журнал запросов"""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, path, payload=None, status_code=200):
        self.routes[path] = (status_code, payload)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.split("/3/", 1)[-1]
        if path not in self.routes:
            return httpx.Response(404, json={"status_message": "The resource you requested could not be found."})
        status_code, payload = self.routes[path]
        return httpx.Response(status_code, json=payload)


@pytest.fixture
def test_config(tmp_path):
    return Config(
        ENVIRONMENT="test",
        SECRET_KEY="test-secret-key",
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        DATA_DIR=tmp_path / "data",
        LOGS_DIR=tmp_path / "logs",
        UPLOADS_DIR=tmp_path / "uploads",
        TMDB_API_KEY="tmdb-test-key",
        TMDB_BASE_URL="https://tmdb.test/3",
        CORS_ORIGINS=["http://testserver"],
    )


@pytest.fixture
def fake_tmdb():
    return FakeTmdb()


@pytest.fixture
def metadata_service(test_config, fake_tmdb):
    return MetadataService.from_config(test_config, transport=httpx.MockTransport(fake_tmdb))


@pytest.fixture
def app(test_config, metadata_service):
    return create_app(test_config, metadata_service=metadata_service)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def database(client):
    return client.app.state.db


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


def register(client, username, email=None, password=PASSWORD, **extra):
    payload = {"username": username, "email": email or f"{username}@example.com", "password": password}
    payload.update(extra)
    return client.post("/auth/register", json=payload)


def login(client, username, password=PASSWORD):
    """Вход, возвращает токен. Cookie сразу убираем, чтобы явно передавать Bearer"""
    response = client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    token = response.cookies["token"]
    client.cookies.clear()
    return token


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_token(client):
    register(client, "alice")
    return login(client, "alice")


def add_subtitles(database, rows):
    """Заполняет каталог. rows - список dict с полями Subtitle"""
    base_date = datetime(2024, 1, 1)
    with database.session() as session:
        for index, row in enumerate(rows):
            values = {
                "title": f"Subtitle {index}",
                "lang": "english",
                "author_name": "someone",
                "date": base_date + timedelta(days=index),
            }
            values.update(row)
            session.add(Subtitle(**values))
        session.commit()
