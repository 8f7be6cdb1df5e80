"""FastAPI routes for signing in and out."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from cakeout.api.deps import api_error_to_http, get_session_store
from cakeout.errors import APIError, AuthError
from cakeout.schemas import User
from cakeout.services.api_client import CakeOutClient
from cakeout.services.session import SessionStore, sign_in, sign_out

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    """Request schema for a login."""

    email: str = Field(description="Account email address")
    password: str = Field(description="Account password")


class LogoutResponse(BaseModel):
    status: str = "logged_out"


@router.post("/login", response_model=User)
async def login(
    request: LoginRequest,
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> User:
    """Sign in against the invoicing backend and persist the session.

    Raises:
        HTTPException: 401 if the credentials are rejected.
        HTTPException: 502 if the backend call fails.
    """
    try:
        async with CakeOutClient() as client:
            return await sign_in(client, store, request.email, request.password)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except APIError as e:
        raise api_error_to_http(e) from e


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> LogoutResponse:
    """Sign out; the local session is cleared even if the backend call fails."""
    async with CakeOutClient(token=store.token) as client:
        await sign_out(client, store)
    return LogoutResponse()


@router.get("/me", response_model=User)
async def current_user(
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> User:
    """Return the signed-in user."""
    if not store.is_authenticated or store.user is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    return store.user
