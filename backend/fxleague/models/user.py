"""Profile and Admin models.

Profiles mirror identities owned by the external auth provider; the id is the
token's ``sub`` claim. A row in ``admins`` makes the identity an operator.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from fxleague.models.base import Base


class Profile(Base):
    """Public profile of a participant."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
    )
    full_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    username: Mapped[str | None] = mapped_column(
        String(50),
        unique=True,
        nullable=True,
    )

    # Moderation / verification flags read by the identity gate
    is_banned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    @property
    def display_name(self) -> str:
        return self.full_name or self.username or self.email or f"User-{self.id[:6]}"

    def __repr__(self) -> str:
        return f"<Profile {self.id}>"


class Admin(Base):
    """Operator membership."""

    __tablename__ = "admins"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
