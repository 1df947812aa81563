from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Request

from .application.errors import Forbidden, Unauthorized
from .core_settings import get_settings
from shared.core import set_request_context

BEARER_PREFIX = "Bearer "
ROLES = ("customer", "supplier", "admin")


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: str = "customer"
    name: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def create_access_token(subject: str, role: str = "customer", expires_minutes: int = 60, **claims) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {"sub": subject, "role": role, "iat": now, "exp": now + timedelta(minutes=expires_minutes)}
    payload.update(claims)
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_access_token(token: str) -> Optional[dict]:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except jwt.PyJWTError:
        return None


def get_current_user(request: Request) -> CurrentUser:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise Unauthorized("Authentication required")
    token_data = decode_access_token(auth_header.split(" ", 1)[1])
    if not token_data or not token_data.get("sub"):
        raise Unauthorized("Invalid token")

    role = token_data.get("role", "customer")
    if role not in ROLES:
        raise Unauthorized("Invalid token")

    set_request_context(user_id=token_data["sub"])
    return CurrentUser(
        id=token_data["sub"],
        role=role,
        name=token_data.get("name"),
        email=token_data.get("email"),
    )


def require_roles(user: CurrentUser, *roles: str) -> None:
    if user.role not in roles:
        raise Forbidden("You are not allowed to perform this action")
