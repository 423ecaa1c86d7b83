import asyncio

import pytest
from sqlmodel import Session
from starlette.datastructures import UploadFile as StarletteUploadFile

from chattyagent.core.errors import InvalidInput
from chattyagent.db import models
from chattyagent.services import auth_service, project_files, project_store
from chattyagent.services.file_relay import FileRelay
from conftest import auth_headers, create_project


def _upload(client, headers, project_id, content=b"hello world", mime="text/plain", name="notes.txt"):
    return client.post(
        f"/api/files/{project_id}",
        files={"file": (name, content, mime)},
        headers=headers,
    )


def test_upload_relays_file_and_records_id(client, files_api) -> None:
    headers = auth_headers(client)
    project = create_project(client, headers)

    response = _upload(client, headers, project["id"])
    assert response.status_code == 200
    meta = response.json()["data"]["file"]
    assert meta["id"] == "file-1"
    assert meta["purpose"] == "assistants"
    assert meta["createdAt"] == "2023-11-14T22:13:20+00:00"

    request = files_api.requests[0]
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert b'name="purpose"' in request.content
    assert b"assistants" in request.content
    assert b"hello world" in request.content

    stored = client.get(f"/api/projects/{project['id']}", headers=headers).json()["data"]["project"]
    assert stored["fileIds"] == ["file-1"]


def test_upload_rejects_unsupported_type_before_relaying(client, files_api) -> None:
    headers = auth_headers(client)
    project = create_project(client, headers)

    response = _upload(client, headers, project["id"], content=b"\x89PNG", mime="image/png", name="a.png")
    assert response.status_code == 400
    assert response.json()["message"] == "File type not supported"
    assert files_api.requests == []


def test_upload_without_file_is_rejected(client) -> None:
    headers = auth_headers(client)
    project = create_project(client, headers)
    response = client.post(f"/api/files/{project['id']}", headers=headers)
    assert response.status_code == 400
    assert response.json()["message"] == "No file provided"


def test_oversized_declared_upload_never_reaches_provider(session, relay, files_api) -> None:
    user = auth_service.register(session, "big@example.com", "secret1")
    project = project_store.create(session, user.id, "Big")

    with pytest.raises(InvalidInput) as exc_info:
        asyncio.run(project_files.upload(
            session, relay, user.id, project.id, b"small", "big.pdf", "application/pdf",
            declared_size=project_files.MAX_FILE_SIZE + 1,
        ))

    assert "10MB" in exc_info.value.message
    assert files_api.requests == []
    assert project_store.get(session, user.id, project.id).file_ids == []


def test_oversized_upload_is_refused_before_body_is_read(client, files_api, monkeypatch) -> None:
    headers = auth_headers(client)
    project = create_project(client, headers)

    async def unexpected_read(self, size=-1):
        raise AssertionError("upload body read before validation")

    monkeypatch.setattr(StarletteUploadFile, "read", unexpected_read)

    content = b"x" * (project_files.MAX_FILE_SIZE + 1)
    response = _upload(client, headers, project["id"], content=content)
    assert response.status_code == 400
    assert response.json()["message"] == "File too large. Maximum size is 10MB."
    assert files_api.requests == []

    unsupported = _upload(client, headers, project["id"], content=b"\x89PNG", mime="image/png", name="a.png")
    assert unsupported.status_code == 400
    assert files_api.requests == []


def test_provider_failure_surfaces_and_leaves_project_untouched(client, files_api) -> None:
    headers = auth_headers(client)
    project = create_project(client, headers)
    files_api.fail_upload = True

    response = _upload(client, headers, project["id"])
    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "Error uploading file",
        "errors": ["Invalid file format"],
    }
    stored = client.get(f"/api/projects/{project['id']}", headers=headers).json()["data"]["project"]
    assert stored["fileIds"] == []


def test_upload_without_api_key_is_a_server_error(client, engine) -> None:
    headers = auth_headers(client)
    project = create_project(client, headers)
    from chattyagent.api import deps
    from chattyagent.main import app

    app.dependency_overrides[deps.get_file_relay] = lambda: FileRelay("")
    response = _upload(client, headers, project["id"])
    assert response.status_code == 500
    assert response.json()["message"] == "File storage API key not configured"


def test_list_files_skips_ids_that_fail_to_resolve(client, files_api, engine) -> None:
    headers = auth_headers(client)
    project = create_project(client, headers)
    _upload(client, headers, project["id"])
    _upload(client, headers, project["id"])

    # An id the provider no longer knows about
    with Session(engine) as session:
        session.add(models.ProjectFile(project_id=project["id"], file_id="file-gone"))
        session.commit()

    response = client.get(f"/api/files/{project['id']}", headers=headers)
    assert response.status_code == 200
    assert [f["id"] for f in response.json()["data"]["files"]] == ["file-1", "file-2"]


def test_list_files_is_empty_without_api_key(client, engine) -> None:
    headers = auth_headers(client)
    project = create_project(client, headers)
    with Session(engine) as session:
        session.add(models.ProjectFile(project_id=project["id"], file_id="file-1"))
        session.commit()

    from chattyagent.api import deps
    from chattyagent.main import app

    app.dependency_overrides[deps.get_file_relay] = lambda: FileRelay("")
    response = client.get(f"/api/files/{project['id']}", headers=headers)
    assert response.json() == {"success": True, "data": {"files": []}}


def test_delete_unknown_file_id_is_not_found(client, files_api) -> None:
    headers = auth_headers(client)
    project = create_project(client, headers)
    _upload(client, headers, project["id"])

    response = client.delete(f"/api/files/{project['id']}/file-999", headers=headers)
    assert response.status_code == 404
    assert response.json()["message"] == "File not found in project"
    assert [r.method for r in files_api.requests] == ["POST"]
    stored = client.get(f"/api/projects/{project['id']}", headers=headers).json()["data"]["project"]
    assert stored["fileIds"] == ["file-1"]


def test_delete_removes_id_even_if_provider_delete_fails(client, files_api) -> None:
    headers = auth_headers(client)
    project = create_project(client, headers)
    _upload(client, headers, project["id"])
    _upload(client, headers, project["id"])
    files_api.fail_delete = True

    response = client.delete(f"/api/files/{project['id']}/file-1", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "File deleted successfully"}
    stored = client.get(f"/api/projects/{project['id']}", headers=headers).json()["data"]["project"]
    assert stored["fileIds"] == ["file-2"]


def test_files_of_other_owners_project_are_not_found(client) -> None:
    alice = auth_headers(client, "alice@example.com")
    mallory = auth_headers(client, "mallory@example.com")
    project = create_project(client, alice)

    assert _upload(client, mallory, project["id"]).status_code == 404
    assert client.get(f"/api/files/{project['id']}", headers=mallory).status_code == 404
    assert client.delete(f"/api/files/{project['id']}/file-1", headers=mallory).status_code == 404
