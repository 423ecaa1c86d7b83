# chattyagent/services/auth_service.py
import logging
from functools import lru_cache
from typing import Dict, Optional, Tuple

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from chattyagent.core.config import settings
from chattyagent.core.errors import (
    DuplicateEmail,
    InvalidCredentials,
    InvalidInput,
    PasswordTooLong,
    UserNotFound,
    WeakPassword,
)
from chattyagent.db import models
from chattyagent.services.token_service import TokenService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def normalize_email(email: str) -> str:
    return email.strip().lower()


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


@lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> str:
    return hash_password("dummy-password", rounds=rounds)


def verify_password(password: str, password_hash: str) -> bool:
    if password_too_long(password):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Corrupt stored hash
        return False


def user_payload(user: models.User, include_updated: bool = False) -> Dict:
    """Public view of a user; the password hash never leaves this module"""
    data = {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "createdAt": models.utc_isoformat(user.created_at),
    }
    if include_updated:
        data["updatedAt"] = models.utc_isoformat(user.updated_at)
    return data


def register(
    session: Session,
    email: Optional[str],
    password: Optional[str],
    name: Optional[str] = None,
) -> models.User:
    if not email or not email.strip() or not password:
        raise InvalidInput("Email and password are required")

    if len(password) < MIN_PASSWORD_LENGTH:
        raise WeakPassword()
    if password_too_long(password):
        raise PasswordTooLong()

    email = normalize_email(email)
    existing = session.exec(select(models.User).where(models.User.email == email)).first()
    if existing:
        raise DuplicateEmail()

    user = models.User(
        email=email,
        password_hash=hash_password(password),
        name=(name or "").strip() or email.split("@")[0],
    )
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration
        session.rollback()
        raise DuplicateEmail()
    session.refresh(user)

    logger.info(f"Registered user {user.id}")
    return user


def login(
    session: Session,
    tokens: TokenService,
    email: Optional[str],
    password: Optional[str],
) -> Tuple[str, models.User]:
    if not email or not password:
        raise InvalidInput("Email and password are required")

    user = session.exec(
        select(models.User).where(models.User.email == normalize_email(email))
    ).first()

    # Same error, and the same bcrypt cost, for unknown email and wrong password
    if not user:
        verify_password(password, _dummy_hash(settings.BCRYPT_ROUNDS))
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentials()

    logger.info(f"User {user.id} logged in")
    return tokens.issue(user.id, user.email), user


def get_profile(session: Session, user_id: int) -> models.User:
    user = session.get(models.User, user_id)
    if not user:
        raise UserNotFound()
    return user


def update_profile(session: Session, user_id: int, name: Optional[str]) -> models.User:
    user = get_profile(session, user_id)

    if name is not None:
        user.name = name.strip() or None
    user.updated_at = models.utcnow()
    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info(f"Updated profile for user {user.id}")
    return user
