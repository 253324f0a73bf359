import httpx
import pytest
from fastapi.testclient import TestClient

from fittrack.config.settings import Settings
from fittrack.database.sqlite import SQLite
from fittrack.main import create_app


class FakeGateway:
    """AI 게이트웨이 대역 - 받은 요청을 기록하고 지정된 응답을 돌려준다"""

    def __init__(self):
        self.requests = []
        self.status_code = 200
        self.content = "Eat more protein."
        self.json_body = None
        self.error = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.json_body is not None:
            return httpx.Response(self.status_code, json=self.json_body)
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="upstream internal detail")
        return httpx.Response(200, json={
            "id": "chatcmpl-test",
            "choices": [{"index": 0, "message": {"role": "assistant", "content": self.content}}],
        })


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_PATH=str(tmp_path / "fittrack-test.db"),
        AI_GATEWAY_URL="https://gateway.test/v1/chat/completions",
        AI_GATEWAY_API_KEY="test-gateway-key",
        JWT_SECRET_KEY="test-jwt-secret",
        EXPIRED_PURGE_INTERVAL_MINUTES=0,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def db(settings):
    store = SQLite(settings.DATABASE_PATH)
    yield store
    store.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def make_client(db, gateway):
    """설정을 바꿔서 클라이언트를 만들 수 있는 팩토리"""
    clients = []

    def _make(app_settings):
        app = create_app(app_settings, db=db, transport=httpx.MockTransport(gateway))
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, settings):
    return make_client(settings)


@pytest.fixture
def signup(client):
    def _signup(email="runner@example.com", password="secret123"):
        response = client.post("/auth/signup", json={"email": email, "password": password})
        assert response.status_code == 201, response.text
        body = response.json()
        body["headers"] = {"Authorization": f"Bearer {body['access_token']}"}
        return body
    return _signup


@pytest.fixture
def user(signup):
    return signup()


@pytest.fixture
def auth_headers(user):
    return user["headers"]
