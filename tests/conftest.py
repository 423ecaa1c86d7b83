import json
from types import SimpleNamespace

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from chattyagent.api import deps
from chattyagent.core.config import settings
from chattyagent.db import models  # noqa: F401
from chattyagent.db.database import get_session
from chattyagent.main import app
from chattyagent.services.file_relay import FileRelay
from chattyagent.services.llm_gateway import LLMGateway
from chattyagent.services.token_service import TokenService

TEST_SECRET = "test-secret-key"
FILES_BASE_URL = "https://files.test/v1"


class FakeCompletions:
    """Stands in for ``OpenAI().chat.completions``"""

    def __init__(self):
        self.calls = []
        self.reply = "hello!"
        self.error = None

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.reply))]
        )


class FakeFilesAPI:
    """In-memory files endpoint served through ``httpx.MockTransport``"""

    def __init__(self):
        self.files = {}
        self.requests = []
        self.fail_upload = False
        self.fail_delete = False
        self._next = 1

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path == "/v1/files":
            if self.fail_upload:
                return httpx.Response(400, json={"error": {"message": "Invalid file format"}})
            file_id = f"file-{self._next}"
            self._next += 1
            meta = {
                "id": file_id,
                "object": "file",
                "filename": "notes.txt",
                "bytes": len(request.content),
                "created_at": 1700000000,
                "purpose": "assistants",
            }
            self.files[file_id] = meta
            return httpx.Response(200, json=meta)

        file_id = path.rsplit("/", 1)[-1]
        if request.method == "GET":
            if file_id not in self.files:
                return httpx.Response(404, json={"error": {"message": "No such file"}})
            return httpx.Response(200, json=self.files[file_id])

        if request.method == "DELETE":
            if self.fail_delete:
                return httpx.Response(500, json={"error": {"message": "boom"}})
            self.files.pop(file_id, None)
            return httpx.Response(200, content=json.dumps({"id": file_id, "deleted": True}))

        return httpx.Response(405)


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 10)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def tokens():
    return TokenService(TEST_SECRET)


@pytest.fixture
def completions():
    return FakeCompletions()


@pytest.fixture
def gateway(completions):
    return LLMGateway(api_key="", client=SimpleNamespace(chat=SimpleNamespace(completions=completions)))


@pytest.fixture
def files_api():
    return FakeFilesAPI()


@pytest.fixture
def relay(files_api):
    return FileRelay("sk-test", base_url=FILES_BASE_URL, transport=httpx.MockTransport(files_api.handler))


@pytest.fixture
def client(engine, tokens, gateway, relay):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[deps.get_token_service] = lambda: tokens
    app.dependency_overrides[deps.get_llm_gateway] = lambda: gateway
    app.dependency_overrides[deps.get_file_relay] = lambda: relay
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(client, email="alice@example.com", password="secret1"):
    response = client.post("/api/auth/register", json={"email": email, "password": password})
    if response.status_code == 409:
        response = client.post("/api/auth/login", json={"email": email, "password": password})
    token = response.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


def create_project(client, headers, name="Support Bot", **fields):
    response = client.post("/api/projects", json={"name": name, **fields}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]["project"]


def create_chat(client, headers, project_id, title=None):
    body = {"projectId": project_id}
    if title:
        body["title"] = title
    response = client.post("/api/chat", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]["chat"]
