# chattyagent/services/token_service.py
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

from chattyagent.core.errors import InvalidToken


@dataclass(frozen=True)
class TokenIdentity:
    id: int
    email: str


class TokenService:
    """Issues and verifies signed bearer tokens carrying ``{id, email}``.

    The secret is handed in at construction; rotating it invalidates every
    outstanding token.
    """

    def __init__(self, secret: str, expires_in: timedelta = timedelta(days=7), algorithm: str = "HS256"):
        if not secret:
            raise ValueError("Token secret must not be empty")
        self.secret = secret
        self.expires_in = expires_in
        self.algorithm = algorithm

    def issue(self, user_id: int, email: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "id": user_id,
            "email": email,
            "iat": issued_at,
            "exp": issued_at + self.expires_in,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenIdentity:
        # Expired, malformed and badly signed tokens all collapse to InvalidToken
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError:
            raise InvalidToken()

        user_id = payload.get("id")
        email = payload.get("email")
        if not isinstance(user_id, int) or not isinstance(email, str):
            raise InvalidToken()

        return TokenIdentity(id=user_id, email=email)
