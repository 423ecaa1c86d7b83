import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlmodel import Session

from chattyagent.api.deps import envelope, get_current_user, get_file_relay
from chattyagent.core.errors import InvalidInput
from chattyagent.db.database import get_session
from chattyagent.services import project_files, project_store
from chattyagent.services.file_relay import FileRelay
from chattyagent.services.token_service import TokenIdentity

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/{project_id}")
async def upload_file(
    project_id: int,
    file: Optional[UploadFile] = File(None),
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
    relay: FileRelay = Depends(get_file_relay),
):
    """Relay an uploaded file (multipart field ``file``) to the files API"""
    if file is None:
        raise InvalidInput("No file provided")

    # Ownership, type and size are settled before the body is read into memory
    project_store.get(session, current_user.id, project_id)
    project_files.validate_upload(file.content_type, file.size)

    content = await file.read()
    meta = await project_files.upload(
        session,
        relay,
        current_user.id,
        project_id,
        content,
        file.filename or "upload",
        file.content_type,
        declared_size=file.size,
    )
    return envelope({"file": meta.to_dict()}, message="File uploaded successfully")


@router.get("/{project_id}")
async def list_files(
    project_id: int,
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
    relay: FileRelay = Depends(get_file_relay),
):
    files = await project_files.list_files(session, relay, current_user.id, project_id)
    return envelope({"files": [f.to_dict() for f in files]})


@router.delete("/{project_id}/{file_id}")
async def delete_file(
    project_id: int,
    file_id: str,
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
    relay: FileRelay = Depends(get_file_relay),
):
    await project_files.delete_file(session, relay, current_user.id, project_id, file_id)
    return envelope(message="File deleted successfully")
