# chattyagent/services/project_store.py
import logging
import math
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_, update
from sqlmodel import Session, select

from chattyagent.core.errors import DuplicateName, InvalidInput, ProjectNotFound
from chattyagent.db import models

logger = logging.getLogger(__name__)


def paginate(total: int, page: int, limit: int) -> Dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def project_payload(project: models.Project) -> Dict:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "systemPrompt": project.system_prompt,
        "fileIds": project.file_ids,
        "isActive": project.is_active,
        "createdAt": models.utc_isoformat(project.created_at),
        "updatedAt": models.utc_isoformat(project.updated_at),
    }


def _name_taken(session: Session, owner_id: int, name: str, exclude_id: Optional[int] = None) -> bool:
    query = models.active_projects(owner_id).where(models.Project.name == name)
    if exclude_id is not None:
        query = query.where(models.Project.id != exclude_id)
    return session.exec(query).first() is not None


def create(
    session: Session,
    owner_id: int,
    name: Optional[str],
    description: Optional[str] = None,
    system_prompt: Optional[str] = None,
) -> models.Project:
    name = (name or "").strip()
    if not name:
        raise InvalidInput("Project name is required")

    if _name_taken(session, owner_id, name):
        raise DuplicateName()

    project = models.Project(
        owner_id=owner_id,
        name=name,
        description=(description or "").strip(),
        system_prompt=(system_prompt or "").strip() or models.DEFAULT_SYSTEM_PROMPT,
    )
    session.add(project)
    session.commit()
    session.refresh(project)

    logger.info(f"Created project {project.id} for user {owner_id}")
    return project


def list_projects(
    session: Session,
    owner_id: int,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[models.Project], Dict]:
    query = models.active_projects(owner_id)

    term = (search or "").strip()
    if term:
        query = query.where(
            or_(
                models.Project.name.icontains(term, autoescape=True),
                models.Project.description.icontains(term, autoescape=True),
            )
        )

    total = session.exec(select(func.count()).select_from(query.subquery())).one()
    projects = session.exec(
        query.order_by(models.Project.updated_at.desc(), models.Project.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    return projects, paginate(total, page, limit)


def get(session: Session, owner_id: int, project_id: int) -> models.Project:
    project = session.exec(
        models.active_projects(owner_id).where(models.Project.id == project_id)
    ).first()
    if not project:
        raise ProjectNotFound()
    return project


def update_project(
    session: Session,
    owner_id: int,
    project_id: int,
    name: Optional[str] = None,
    description: Optional[str] = None,
    system_prompt: Optional[str] = None,
) -> models.Project:
    """Apply a partial update; ``None`` leaves a field untouched"""
    if name is not None and not name.strip():
        raise InvalidInput("Project name cannot be empty")

    project = get(session, owner_id, project_id)

    if name is not None:
        name = name.strip()
        if name != project.name and _name_taken(session, owner_id, name, exclude_id=project.id):
            raise DuplicateName()
        project.name = name
    if description is not None:
        project.description = description.strip()
    if system_prompt is not None:
        project.system_prompt = system_prompt.strip() or models.DEFAULT_SYSTEM_PROMPT

    project.updated_at = models.utcnow()
    session.add(project)
    session.commit()
    session.refresh(project)

    logger.info(f"Updated project {project.id}")
    return project


def soft_delete(session: Session, owner_id: int, project_id: int) -> None:
    """Mark the project and every chat of this owner under it as deleted.

    Both updates are committed together.
    """
    project = get(session, owner_id, project_id)

    now = models.utcnow()
    project.status = models.RecordStatus.DELETED
    project.updated_at = now
    session.add(project)

    result = session.exec(
        update(models.Chat)
        .where(models.Chat.project_id == project.id)
        .where(models.Chat.owner_id == owner_id)
        .where(models.Chat.status == models.RecordStatus.ACTIVE)
        .values(status=models.RecordStatus.DELETED, updated_at=now)
    )
    session.commit()

    logger.info(f"Deleted project {project_id} and {result.rowcount} chat(s)")


# ==================== FILE IDS ====================

def add_file_id(session: Session, project: models.Project, file_id: str) -> models.Project:
    session.add(models.ProjectFile(project_id=project.id, file_id=file_id))
    project.updated_at = models.utcnow()
    session.add(project)
    session.commit()
    session.refresh(project)
    return project


def remove_file_id(session: Session, project: models.Project, file_id: str) -> None:
    rows = session.exec(
        select(models.ProjectFile)
        .where(models.ProjectFile.project_id == project.id)
        .where(models.ProjectFile.file_id == file_id)
    ).all()
    for row in rows:
        session.delete(row)
    project.updated_at = models.utcnow()
    session.add(project)
    session.commit()
