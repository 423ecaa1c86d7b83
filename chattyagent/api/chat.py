import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from chattyagent.api.deps import envelope, get_current_user, get_llm_gateway
from chattyagent.db import models
from chattyagent.db.database import get_session
from chattyagent.services import chat_store
from chattyagent.services.llm_gateway import LLMGateway
from chattyagent.services.token_service import TokenIdentity

logger = logging.getLogger(__name__)
router = APIRouter()


class ChatCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: Optional[int] = Field(default=None, alias="projectId")
    title: Optional[str] = None


class ChatRename(BaseModel):
    title: Optional[str] = None


class MessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_id: Optional[int] = Field(default=None, alias="chatId")
    message: Optional[str] = None


def _new_chat_payload(chat):
    return {
        "id": chat.id,
        "title": chat.title,
        "projectId": chat.project_id,
        "messages": [],
        "createdAt": models.utc_isoformat(chat.created_at),
        "updatedAt": models.utc_isoformat(chat.updated_at),
    }


@router.post("", status_code=201)
def create_chat(
    request: ChatCreate,
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    chat = chat_store.create(session, current_user.id, request.project_id, request.title)
    return envelope({"chat": _new_chat_payload(chat)}, message="Chat created successfully")


@router.get("")
def list_chats(
    project_id: Optional[int] = Query(None, alias="projectId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    rows, pagination = chat_store.list_chats(session, current_user.id, project_id=project_id, page=page, limit=limit)
    return envelope({
        "chats": [chat_store.chat_summary_payload(chat, count) for chat, count in rows],
        "pagination": pagination,
    })


# Declared before /{chat_id} so "message" is never parsed as an id
@router.post("/message")
async def send_message(
    request: MessageRequest,
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
    gateway: LLMGateway = Depends(get_llm_gateway),
):
    """Send a user message and store the assistant's reply"""
    user_message, assistant_message = await chat_store.send_message(
        session, gateway, current_user.id, request.chat_id, request.message
    )
    return envelope({
        "userMessage": chat_store.message_payload(user_message),
        "assistantMessage": chat_store.message_payload(assistant_message),
    })


@router.get("/{chat_id}")
def get_chat(
    chat_id: int,
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    chat = chat_store.get(session, current_user.id, chat_id)
    return envelope({"chat": chat_store.chat_detail_payload(chat)})


@router.patch("/{chat_id}")
def rename_chat(
    chat_id: int,
    request: ChatRename,
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    chat = chat_store.rename(session, current_user.id, chat_id, request.title)
    return envelope(
        {"chat": chat_store.chat_summary_payload(chat, len(chat.messages))},
        message="Chat updated successfully",
    )


@router.delete("/{chat_id}")
def delete_chat(
    chat_id: int,
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    chat_store.soft_delete(session, current_user.id, chat_id)
    return envelope(message="Chat deleted successfully")
