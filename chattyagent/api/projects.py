import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from chattyagent.api.deps import envelope, get_current_user
from chattyagent.db.database import get_session
from chattyagent.services import project_store
from chattyagent.services.token_service import TokenIdentity

logger = logging.getLogger(__name__)
router = APIRouter()


class ProjectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")


@router.post("", status_code=201)
def create_project(
    request: ProjectRequest,
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project = project_store.create(
        session,
        current_user.id,
        request.name,
        description=request.description,
        system_prompt=request.system_prompt,
    )
    return envelope({"project": project_store.project_payload(project)}, message="Project created successfully")


@router.get("")
def list_projects(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Active projects of the caller, most recently updated first"""
    projects, pagination = project_store.list_projects(session, current_user.id, search=search, page=page, limit=limit)
    return envelope({
        "projects": [project_store.project_payload(p) for p in projects],
        "pagination": pagination,
    })


@router.get("/{project_id}")
def get_project(
    project_id: int,
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project = project_store.get(session, current_user.id, project_id)
    return envelope({"project": project_store.project_payload(project)})


@router.put("/{project_id}")
def update_project(
    project_id: int,
    request: ProjectRequest,
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    project = project_store.update_project(
        session,
        current_user.id,
        project_id,
        name=request.name,
        description=request.description,
        system_prompt=request.system_prompt,
    )
    return envelope({"project": project_store.project_payload(project)}, message="Project updated successfully")


@router.delete("/{project_id}")
def delete_project(
    project_id: int,
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Soft delete the project together with its chats"""
    project_store.soft_delete(session, current_user.id, project_id)
    return envelope(message="Project deleted successfully")
