"""Shared FastAPI dependencies and error translation."""

from typing import Annotated

from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from cakeout.database import get_db
from cakeout.errors import APIError, AuthError, NotFoundError, ValidationError
from cakeout.services.session import SessionStore


async def get_session_store(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SessionStore:
    """Provide the persisted session, loaded from local storage."""
    store = SessionStore(db)
    await store.load()
    return store


async def require_token(
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> str:
    """Provide the session token, rejecting anonymous requests."""
    if store.token is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return store.token


def api_error_to_http(error: APIError, not_found: str = "Not found") -> HTTPException:
    """Translate a backend failure into an HTTP error for our own callers."""
    if isinstance(error, AuthError):
        return HTTPException(status_code=401, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=not_found)
    return HTTPException(status_code=502, detail=f"Invoicing backend error: {error}")


def validation_error_to_http(error: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={
            "kind": error.kind.value,
            "message": error.message,
            "field": error.field,
        },
    )
