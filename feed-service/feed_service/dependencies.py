"""
FastAPI dependencies for Feed Service
"""
from fastapi import Depends, Header, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from typing import Optional
import logging

from .config import settings
from .controller import FeedController
from .schemas import Reader
from .sessions import FeedSessions

logger = logging.getLogger(__name__)

optional_security = HTTPBearer(auto_error=False)


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)
) -> Optional[str]:
    """Raw session token, forwarded to the backend as-is"""
    if not credentials:
        return None
    return credentials.credentials


async def get_current_reader_optional(
    token: Optional[str] = Depends(get_bearer_token)
) -> Optional[Reader]:
    """
    Identify the reader from their JWT

    Returns None when there is no token, no secret to verify it with, or
    the token is invalid. The backend still enforces its own access rules.
    """
    if not token or not settings.SUPABASE_JWT_SECRET:
        return None

    try:
        payload = jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except JWTError as e:
        logger.info(f"Ignoring invalid bearer token: {e}")
        return None

    reader_id = payload.get("sub")
    if reader_id is None:
        return None

    return Reader(id=str(reader_id), email=payload.get("email"), role=payload.get("role"))


def get_sessions(request: Request) -> FeedSessions:
    return request.app.state.sessions


async def get_feed_controller(
    request: Request,
    reader: Optional[Reader] = Depends(get_current_reader_optional),
    x_feed_session: Optional[str] = Header(None),
    sessions: FeedSessions = Depends(get_sessions),
) -> FeedController:
    """Session controller: by reader id, else session header, else client host"""
    if reader:
        key = f"reader:{reader.id}"
    elif x_feed_session:
        key = f"session:{x_feed_session}"
    else:
        host = request.client.host if request.client else "unknown"
        key = f"anonymous:{host}"

    return await sessions.get(key)
