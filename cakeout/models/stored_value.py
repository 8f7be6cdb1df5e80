"""StoredValue model for keyed client-side storage."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cakeout.database import Base


class StoredValue(Base):
    """A single key/value entry persisted on the client.

    Holds the session token and the signed-in user profile between restarts.

    Attributes:
        key: Storage key (e.g. 'auth_token')
        value: Stored text (JSON for structured values)
        updated_at: When the entry was last written
    """

    __tablename__ = "stored_values"

    key: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
    )
    value: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    def __repr__(self) -> str:
        return f"<StoredValue(key={self.key!r})>"
