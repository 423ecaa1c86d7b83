# chattyagent/api/deps.py
from datetime import timedelta
from typing import Dict, Optional

from fastapi import Depends, Header

from chattyagent.core.config import settings
from chattyagent.core.errors import Unauthorized
from chattyagent.services.file_relay import FileRelay
from chattyagent.services.llm_gateway import LLMGateway
from chattyagent.services.token_service import TokenIdentity, TokenService


def get_token_service() -> TokenService:
    return TokenService(
        settings.SECRET_KEY,
        expires_in=timedelta(days=settings.JWT_EXPIRE_DAYS),
        algorithm=settings.JWT_ALGORITHM,
    )


def get_llm_gateway() -> LLMGateway:
    return LLMGateway(
        api_key=settings.OPENAI_API_KEY,
        model=settings.OPENAI_MODEL,
        base_url=settings.OPENAI_BASE_URL,
        timeout=settings.OPENAI_TIMEOUT,
    )


def get_file_relay() -> FileRelay:
    return FileRelay(
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.OPENAI_BASE_URL,
        timeout=settings.OPENAI_TIMEOUT,
    )


def get_current_user(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> TokenIdentity:
    """Resolve the caller from ``Authorization: Bearer <token>``"""
    if not authorization:
        raise Unauthorized()

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Unauthorized()

    return tokens.verify(parts[1])


def envelope(data: Optional[Dict] = None, message: Optional[str] = None) -> Dict:
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body
