# chattyagent/db/models.py
from sqlmodel import SQLModel, Field, Relationship, select
from sqlalchemy import Column, DateTime, Text, Enum as SQLEnum
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utc_isoformat(value: datetime) -> str:
    """ISO string with an explicit UTC offset.

    SQLite hands timezone-aware columns back without tzinfo, so naive
    values read from the database are treated as UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def timestamp_column(index: bool = False) -> Column:
    # A Column can only belong to one table, so build a fresh one per field
    return Column(DateTime(timezone=True), nullable=False, index=index)


class RecordStatus(str, Enum):
    ACTIVE = "active"
    DELETED = "deleted"    # Soft delete, terminal


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)    # Stored lower-cased
    password_hash: str
    name: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())


class Project(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="user.id", index=True)
    name: str = Field(index=True)
    description: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT,
        sa_column=Column(Text, nullable=False, default=DEFAULT_SYSTEM_PROMPT),
    )
    status: RecordStatus = Field(
        default=RecordStatus.ACTIVE,
        sa_column=Column(SQLEnum(RecordStatus), nullable=False, index=True, default=RecordStatus.ACTIVE),
    )
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())

    files: List["ProjectFile"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"order_by": "ProjectFile.id"},
    )
    chats: List["Chat"] = Relationship(back_populates="project")

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatus.ACTIVE

    @property
    def file_ids(self) -> List[str]:
        return [f.file_id for f in self.files]


class ProjectFile(SQLModel, table=True):
    """External file id attached to a project, in upload order"""
    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True)
    file_id: str = Field(index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())

    project: Optional[Project] = Relationship(back_populates="files")


class Chat(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_id: int = Field(foreign_key="user.id", index=True)
    project_id: int = Field(foreign_key="project.id", index=True)
    title: str
    status: RecordStatus = Field(
        default=RecordStatus.ACTIVE,
        sa_column=Column(SQLEnum(RecordStatus), nullable=False, index=True, default=RecordStatus.ACTIVE),
    )
    created_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())
    updated_at: datetime = Field(default_factory=utcnow, sa_column=timestamp_column(index=True))

    project: Optional[Project] = Relationship(back_populates="chats")
    messages: List["Message"] = Relationship(
        back_populates="chat",
        sa_relationship_kwargs={"order_by": "Message.id"},
    )

    @property
    def is_active(self) -> bool:
        return self.status == RecordStatus.ACTIVE


class Message(SQLModel, table=True):
    """One utterance in a chat. Rows are only ever appended."""
    id: Optional[int] = Field(default=None, primary_key=True)
    chat_id: int = Field(foreign_key="chat.id", index=True)
    role: MessageRole = Field(sa_column=Column(SQLEnum(MessageRole), nullable=False))
    content: str = Field(sa_column=Column(Text, nullable=False))
    timestamp: datetime = Field(default_factory=utcnow, sa_column=timestamp_column())

    chat: Optional[Chat] = Relationship(back_populates="messages")


# ==================== ACTIVE-ONLY ACCESSORS ====================
# Every project/chat query starts here so deleted rows never leak.

def active_projects(owner_id: int):
    return (
        select(Project)
        .where(Project.owner_id == owner_id)
        .where(Project.status == RecordStatus.ACTIVE)
    )


def active_chats(owner_id: int):
    return (
        select(Chat)
        .where(Chat.owner_id == owner_id)
        .where(Chat.status == RecordStatus.ACTIVE)
    )
