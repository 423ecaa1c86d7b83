# chattyagent/services/chat_store.py
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlmodel import Session, select

from chattyagent.core.errors import ChatNotFound, InvalidInput, ProjectNotFound, UpstreamFailure
from chattyagent.db import models
from chattyagent.services import project_store
from chattyagent.services.llm_gateway import LLMGateway

logger = logging.getLogger(__name__)

# Messages of history sent to the provider, including the new user message
HISTORY_WINDOW = 10

FALLBACK_REPLY = "I apologize, but I encountered an error while processing your request. Please try again."


def default_title(now: Optional[datetime] = None) -> str:
    now = now or models.utcnow()
    return f"Chat {now.month}/{now.day}/{now.year}"


def message_payload(message: models.Message) -> Dict:
    return {
        "id": message.id,
        "role": message.role.value,
        "content": message.content,
        "timestamp": models.utc_isoformat(message.timestamp),
    }


def chat_summary_payload(chat: models.Chat, message_count: int = 0) -> Dict:
    return {
        "id": chat.id,
        "title": chat.title,
        "projectId": chat.project_id,
        "projectName": chat.project.name if chat.project else None,
        "messageCount": message_count,
        "createdAt": models.utc_isoformat(chat.created_at),
        "updatedAt": models.utc_isoformat(chat.updated_at),
    }


def chat_detail_payload(chat: models.Chat) -> Dict:
    return {
        "id": chat.id,
        "title": chat.title,
        "project": {
            "id": chat.project.id,
            "name": chat.project.name,
            "systemPrompt": chat.project.system_prompt,
        },
        "messages": [message_payload(m) for m in chat.messages],
        "createdAt": models.utc_isoformat(chat.created_at),
        "updatedAt": models.utc_isoformat(chat.updated_at),
    }


def create(session: Session, owner_id: int, project_id: Optional[int], title: Optional[str] = None) -> models.Chat:
    if not project_id:
        raise InvalidInput("Project ID is required")

    try:
        project = project_store.get(session, owner_id, project_id)
    except ProjectNotFound:
        logger.info(f"User {owner_id} tried to open a chat in unknown project {project_id}")
        raise

    chat = models.Chat(
        owner_id=owner_id,
        project_id=project.id,
        title=(title or "").strip() or default_title(),
    )
    session.add(chat)
    session.commit()
    session.refresh(chat)

    logger.info(f"Created chat {chat.id} in project {project.id}")
    return chat


def list_chats(
    session: Session,
    owner_id: int,
    project_id: Optional[int] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[Tuple[models.Chat, int]], Dict]:
    """Page of chats with their message counts; message bodies are not loaded"""
    query = models.active_chats(owner_id)
    if project_id is not None:
        query = query.where(models.Chat.project_id == project_id)

    total = session.exec(select(func.count()).select_from(query.subquery())).one()
    chats = session.exec(
        query.order_by(models.Chat.updated_at.desc(), models.Chat.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    counts = {}
    if chats:
        rows = session.exec(
            select(models.Message.chat_id, func.count(models.Message.id))
            .where(models.Message.chat_id.in_([c.id for c in chats]))
            .group_by(models.Message.chat_id)
        ).all()
        counts = {chat_id: count for chat_id, count in rows}

    return [(c, counts.get(c.id, 0)) for c in chats], project_store.paginate(total, page, limit)


def get(session: Session, owner_id: int, chat_id: int) -> models.Chat:
    chat = session.exec(
        models.active_chats(owner_id).where(models.Chat.id == chat_id)
    ).first()
    if not chat:
        raise ChatNotFound()
    return chat


def rename(session: Session, owner_id: int, chat_id: int, title: Optional[str]) -> models.Chat:
    title = (title or "").strip()
    if not title:
        raise InvalidInput("Chat title is required")

    chat = get(session, owner_id, chat_id)
    chat.title = title
    chat.updated_at = models.utcnow()
    session.add(chat)
    session.commit()
    session.refresh(chat)

    logger.info(f"Renamed chat {chat.id}")
    return chat


def recent_history(messages: List[models.Message]) -> List[Dict]:
    return [{"role": m.role.value, "content": m.content} for m in messages[-HISTORY_WINDOW:]]


async def send_message(
    session: Session,
    gateway: LLMGateway,
    owner_id: int,
    chat_id: Optional[int],
    text: Optional[str],
) -> Tuple[models.Message, models.Message]:
    """Append the user's message and the assistant's reply to a chat.

    A gateway failure never escapes: the reply becomes ``FALLBACK_REPLY`` and
    both messages are stored either way.
    """
    text = (text or "").strip()
    if not chat_id or not text:
        raise InvalidInput("Chat ID and message are required")

    chat = get(session, owner_id, chat_id)
    system_prompt = chat.project.system_prompt or models.DEFAULT_SYSTEM_PROMPT

    user_message = models.Message(
        chat_id=chat.id,
        role=models.MessageRole.USER,
        content=text,
        timestamp=models.utcnow(),
    )
    history = list(chat.messages) + [user_message]

    try:
        reply = await gateway.complete(system_prompt, recent_history(history))
        answered = True
    except UpstreamFailure as e:
        logger.warning(f"Chat {chat.id}: gateway failed, storing fallback reply ({e.message})")
        reply = FALLBACK_REPLY
        answered = False

    assistant_message = models.Message(
        chat_id=chat.id,
        role=models.MessageRole.ASSISTANT,
        content=reply,
        timestamp=models.utcnow(),
    )

    # Insert order fixes message order
    session.add(user_message)
    session.flush()
    session.add(assistant_message)
    chat.updated_at = models.utcnow()
    session.add(chat)
    session.commit()
    session.refresh(user_message)
    session.refresh(assistant_message)

    logger.info(f"Chat {chat.id}: stored 2 messages (gateway answered={answered})")
    return user_message, assistant_message


def soft_delete(session: Session, owner_id: int, chat_id: int) -> None:
    chat = get(session, owner_id, chat_id)
    chat.status = models.RecordStatus.DELETED
    chat.updated_at = models.utcnow()
    session.add(chat)
    session.commit()

    logger.info(f"Deleted chat {chat_id}")
