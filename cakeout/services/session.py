"""Session state: the auth token and user profile kept between restarts.

The token and user are read from local storage once at startup, written on
login and removed on logout. Local data is removed even when the server-side
logout call fails.
"""

import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from cakeout.errors import APIError
from cakeout.models import StoredValue
from cakeout.schemas import User
from cakeout.services.api_client import CakeOutClient

logger = logging.getLogger(__name__)

AUTH_TOKEN_KEY = "auth_token"
AUTH_USER_KEY = "auth_user"


class SessionStore:
    """Auth token and user profile backed by the StoredValue table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.token: str | None = None
        self.user: User | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    async def load(self) -> None:
        """Read the persisted token and user profile."""
        result = await self.db.execute(
            select(StoredValue).where(StoredValue.key.in_([AUTH_TOKEN_KEY, AUTH_USER_KEY]))
        )
        values = {row.key: row.value for row in result.scalars().all()}

        self.token = values.get(AUTH_TOKEN_KEY)
        self.user = None
        raw_user = values.get(AUTH_USER_KEY)
        if self.token and raw_user:
            try:
                self.user = User.model_validate_json(raw_user)
            except PydanticValidationError as e:
                logger.warning("Stored user profile is unreadable, ignoring it: %s", e)

    async def save(self, token: str, user: User) -> None:
        """Persist a new session."""
        await self.db.merge(StoredValue(key=AUTH_TOKEN_KEY, value=token))
        await self.db.merge(StoredValue(key=AUTH_USER_KEY, value=user.model_dump_json()))
        await self.db.flush()
        self.token = token
        self.user = user

    async def clear(self) -> None:
        """Remove the persisted session."""
        await self.db.execute(
            delete(StoredValue).where(StoredValue.key.in_([AUTH_TOKEN_KEY, AUTH_USER_KEY]))
        )
        await self.db.flush()
        self.token = None
        self.user = None


async def sign_in(
    client: CakeOutClient,
    store: SessionStore,
    email: str,
    password: str,
) -> User:
    """Log in against the backend and persist the session.

    Raises:
        AuthError: If the credentials are rejected.
        NetworkError: If the backend cannot be reached.
    """
    result = await client.login(email, password)
    await store.save(result.access_token, result.user)
    return result.user


async def sign_out(client: CakeOutClient, store: SessionStore) -> None:
    """Log out on the server, then drop the local session regardless."""
    try:
        await client.logout()
    except APIError as e:
        logger.warning("Server logout failed, clearing local session anyway: %s", e)
    finally:
        await store.clear()
