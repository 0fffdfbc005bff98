"""
SubletConnect: Account model.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from subletconnect.database import Base, JSONDocument, utcnow
from subletconnect.models.enums import AccountMode


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    identity_ref: Mapped[str | None] = mapped_column(
        String, unique=True, index=True, nullable=True,
        comment="Subject id issued by the external identity provider",
    )
    username: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    gender: Mapped[str | None] = mapped_column(String, nullable=True)
    mode: Mapped[str] = mapped_column(
        String, nullable=False, index=True, default=AccountMode.LOOKING.value,
        comment="looking / offering",
    )
    search_location: Mapped[str] = mapped_column(String, nullable=False, index=True)
    profile_picture: Mapped[str] = mapped_column(String, nullable=False, default="")
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="")
    lifestyle_tags: Mapped[list] = mapped_column(
        JSONDocument, nullable=False, default=list
    )
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Account {self.username!r} id={self.id} mode={self.mode}>"
