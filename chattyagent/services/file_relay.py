# chattyagent/services/file_relay.py
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

import httpx

from chattyagent.core.errors import UpstreamFailure

logger = logging.getLogger(__name__)

FILE_PURPOSE = "assistants"


@dataclass
class FileMeta:
    id: str
    filename: str
    bytes: int
    created_at: datetime
    purpose: str

    @classmethod
    def from_provider(cls, data: Dict) -> "FileMeta":
        return cls(
            id=data["id"],
            filename=data.get("filename", ""),
            bytes=data.get("bytes", 0),
            created_at=datetime.fromtimestamp(data.get("created_at", 0), tz=timezone.utc),
            purpose=data.get("purpose", FILE_PURPOSE),
        )

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "filename": self.filename,
            "bytes": self.bytes,
            "createdAt": self.created_at.isoformat(),
            "purpose": self.purpose,
        }


def _provider_error(response: httpx.Response) -> str:
    try:
        return response.json().get("error", {}).get("message") or f"HTTP {response.status_code}"
    except (ValueError, AttributeError):
        return f"HTTP {response.status_code}"


class FileRelay:
    """Relays file bytes to the provider's files endpoint and reads them back"""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
            transport=self.transport,
        )

    async def upload(self, content: bytes, filename: str, mime_type: str) -> FileMeta:
        try:
            async with self._client() as client:
                response = await client.post(
                    "/files",
                    files={"file": (filename, content, mime_type)},
                    data={"purpose": FILE_PURPOSE},
                )
        except httpx.HTTPError as e:
            logger.error(f"File upload request failed: {e}")
            raise UpstreamFailure("Error uploading file", errors=[str(e)])

        if response.status_code >= 400:
            detail = _provider_error(response)
            logger.error(f"File upload rejected by provider: {response.status_code} {detail}")
            raise UpstreamFailure("Error uploading file", errors=[detail])

        return FileMeta.from_provider(response.json())

    async def retrieve(self, file_id: str) -> FileMeta:
        try:
            async with self._client() as client:
                response = await client.get(f"/files/{file_id}")
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"Error fetching file {file_id}", errors=[str(e)])

        return FileMeta.from_provider(response.json())

    async def delete(self, file_id: str) -> None:
        try:
            async with self._client() as client:
                response = await client.delete(f"/files/{file_id}")
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"Error deleting file {file_id}", errors=[str(e)])
