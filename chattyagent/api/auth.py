import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from chattyagent.api.deps import envelope, get_current_user, get_token_service
from chattyagent.db.database import get_session
from chattyagent.services import auth_service
from chattyagent.services.token_service import TokenIdentity, TokenService

logger = logging.getLogger(__name__)
router = APIRouter()


class RegisterRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = None


@router.post("/register", status_code=201)
def register(
    request: RegisterRequest,
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
):
    """Create an account and sign it in"""
    user = auth_service.register(session, request.email, request.password, request.name)
    token = tokens.issue(user.id, user.email)
    return envelope(
        {"token": token, "user": auth_service.user_payload(user)},
        message="User registered successfully",
    )


@router.post("/login")
def login(
    request: LoginRequest,
    session: Session = Depends(get_session),
    tokens: TokenService = Depends(get_token_service),
):
    token, user = auth_service.login(session, tokens, request.email, request.password)
    return envelope(
        {"token": token, "user": auth_service.user_payload(user)},
        message="Login successful",
    )


@router.get("/profile")
def get_profile(
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    user = auth_service.get_profile(session, current_user.id)
    return envelope({"user": auth_service.user_payload(user, include_updated=True)})


@router.put("/profile")
def update_profile(
    request: ProfileUpdate,
    current_user: TokenIdentity = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    user = auth_service.update_profile(session, current_user.id, request.name)
    return envelope(
        {"user": auth_service.user_payload(user, include_updated=True)},
        message="Profile updated successfully",
    )
