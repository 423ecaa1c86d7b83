# chattyagent/services/project_files.py
import asyncio
import logging
from typing import List, Optional

from sqlmodel import Session

from chattyagent.core.errors import InvalidInput, NotFound, UpstreamFailure
from chattyagent.services import project_store
from chattyagent.services.file_relay import FileMeta, FileRelay

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB

ALLOWED_MIME_TYPES = {
    "text/plain",
    "text/csv",
    "application/json",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

# Concurrent metadata lookups per listing
MAX_CONCURRENT_FETCHES = 5


def validate_upload(mime_type: Optional[str], size: Optional[int]) -> None:
    if mime_type not in ALLOWED_MIME_TYPES:
        raise InvalidInput("File type not supported")
    if size is not None and size > MAX_FILE_SIZE:
        raise InvalidInput("File too large. Maximum size is 10MB.")


async def upload(
    session: Session,
    relay: FileRelay,
    owner_id: int,
    project_id: int,
    content: bytes,
    filename: str,
    mime_type: Optional[str],
    declared_size: Optional[int] = None,
) -> FileMeta:
    """Relay a file to the provider and attach its id to the project.

    Type and size are checked before any network call; a provider failure
    leaves the project untouched.
    """
    project = project_store.get(session, owner_id, project_id)

    validate_upload(mime_type, declared_size)
    validate_upload(mime_type, len(content))

    if not relay.configured:
        raise UpstreamFailure("File storage API key not configured")

    meta = await relay.upload(content, filename, mime_type)
    project_store.add_file_id(session, project, meta.id)

    logger.info(f"Attached file {meta.id} to project {project.id}")
    return meta


async def list_files(session: Session, relay: FileRelay, owner_id: int, project_id: int) -> List[FileMeta]:
    project = project_store.get(session, owner_id, project_id)
    file_ids = project.file_ids

    if not relay.configured or not file_ids:
        return []

    semaphore = asyncio.Semaphore(MAX_CONCURRENT_FETCHES)

    async def fetch(file_id: str) -> Optional[FileMeta]:
        async with semaphore:
            try:
                return await relay.retrieve(file_id)
            except UpstreamFailure as e:
                logger.error(f"Skipping file {file_id}: {e.message}")
                return None

    results = await asyncio.gather(*(fetch(file_id) for file_id in file_ids))
    return [meta for meta in results if meta is not None]


async def delete_file(session: Session, relay: FileRelay, owner_id: int, project_id: int, file_id: str) -> None:
    project = project_store.get(session, owner_id, project_id)

    if file_id not in project.file_ids:
        raise NotFound("File not found in project")

    if relay.configured:
        try:
            await relay.delete(file_id)
        except UpstreamFailure as e:
            # Local removal goes ahead regardless
            logger.error(f"Remote delete of file {file_id} failed: {e.message}")

    project_store.remove_file_id(session, project, file_id)
    logger.info(f"Removed file {file_id} from project {project.id}")
