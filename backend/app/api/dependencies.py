"""Request Dependencies — session token extraction, identity resolution, lenient JSON bodies.

Invariants:
    - Token read from the session header first, then the session cookie
    - Identity resolved at most once per request (cached on request.state)
    - Routes declare get_current_player BEFORE read_json_body: FastAPI solves
      dependencies in declaration order, so auth failures win over body errors
    - read_json_body never raises: malformed or non-object JSON becomes {}
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.domain_types import PlayerIdentity
from app.infrastructure.database import get_db
from app.services.identity import resolve_identity


def get_session_token(request: Request) -> str | None:
    settings = get_settings()
    token = request.headers.get(settings.session_header_name)
    if token:
        return token.strip()
    return request.cookies.get(settings.session_cookie_name)


async def get_current_player(
    request: Request, db: AsyncSession = Depends(get_db),
) -> PlayerIdentity:
    cached = getattr(request.state, "identity", None)
    if cached is not None:
        return cached
    identity = await resolve_identity(db, get_session_token(request))
    request.state.identity = identity
    return identity


async def read_json_body(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
