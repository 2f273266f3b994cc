"""FastAPI dependencies resolving the calling user from a bearer token."""

from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from app.auth.security import decode_token
from app.config import get_settings
from app.exceptions import AuthError

bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Caller identity. id is None only when auth is disabled."""

    id: Optional[UUID] = None


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    if get_settings().disable_auth:
        return CurrentUser()
    if credentials is None or not credentials.credentials:
        raise AuthError("Unauthorized")
    payload = decode_token(credentials.credentials)
    subject = payload.get("sub")
    try:
        return CurrentUser(id=UUID(str(subject)))
    except ValueError as e:
        raise AuthError("Invalid token subject") from e
