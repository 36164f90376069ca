"""
Shared wiring for the HTTP routes.

The application builds one AppContext in create_app() and stores it on
`app.state.context`; route handlers receive it (and the authenticated
user) through FastAPI dependencies instead of module-level globals.

Dependencies and route handlers are coroutines: FastAPI would run plain
functions in a threadpool, and the shared components are only touched
from the event loop thread.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request

from configs.settings import Settings
from exceptions.exceptions import AuthenticationError
from ..models.session_models import SessionUser
from ..services.catalog_service import CatalogService
from ..store.document_store import DocumentStore
from ..store.rate_limiter import LoginRateLimiter
from ..store.session_store import SessionRegistry
from ..store.upload_gc import UploadGarbageCollector
from ..store.upload_store import UploadStore


@dataclass
class AppContext:
    settings: Settings
    store: DocumentStore
    sessions: SessionRegistry
    rate_limiter: LoginRateLimiter
    uploads: UploadStore
    gc: UploadGarbageCollector
    catalog: CatalogService


async def get_context(request: Request) -> AppContext:
    return request.app.state.context


def token_from_header(authorization: Optional[str]) -> Optional[str]:
    """Accept both "Bearer <token>" and a bare token."""
    if not authorization:
        return None
    parts = authorization.split(" ")
    if len(parts) == 2 and parts[0] == "Bearer":
        return parts[1]
    return authorization


async def get_token(request: Request) -> Optional[str]:
    return token_from_header(request.headers.get("authorization"))


async def require_user(
    token: Optional[str] = Depends(get_token),
    ctx: AppContext = Depends(get_context),
) -> SessionUser:
    """Resolve the session user or fail with AuthenticationError (401)."""
    user = ctx.sessions.validate(token)
    if user is None:
        raise AuthenticationError("Unauthorized")
    return user
