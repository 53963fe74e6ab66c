from __future__ import annotations

from dataclasses import dataclass

from fastapi import Header

from skillsense.core.errors import AuthenticationError, PermissionDeniedError
from skillsense.db.store import get_session_user


@dataclass(frozen=True)
class Session:
    user_id: str
    token: str

    def ensure_owner(self, user_id: str) -> None:
        if user_id != self.user_id:
            raise PermissionDeniedError("You can only access your own data.")


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def resolve_session(token: str | None) -> Session:
    if not token:
        raise AuthenticationError("Missing authorization header.")
    user_id = get_session_user(token)
    if not user_id:
        raise AuthenticationError("Invalid or expired session.")
    return Session(user_id=user_id, token=token)


def require_session(authorization: str | None = Header(default=None)) -> Session:
    return resolve_session(_bearer_token(authorization))
