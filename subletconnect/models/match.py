"""
SubletConnect: Swipe, Match and Message models.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from subletconnect.database import Base, utcnow


class Swipe(Base):
    __tablename__ = "swipes"
    __table_args__ = (
        UniqueConstraint("swiper_id", "swiped_id", name="uq_swipe_pair"),
        Index("ix_swipes_reverse_lookup", "swiped_id", "swiper_id", "direction"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    swiper_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    # Account or listing id depending on swiped_type; no FK for that reason.
    swiped_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    swiped_type: Mapped[str] = mapped_column(
        String, nullable=False, comment="user / listing"
    )
    direction: Mapped[str] = mapped_column(
        String, nullable=False, comment="like / pass / superlike"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<Swipe {self.swiper_id} -> {self.swiped_type}:{self.swiped_id} "
            f"dir={self.direction!r}>"
        )


class Match(Base):
    __tablename__ = "matches"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    kind: Mapped[str] = mapped_column(
        String, nullable=False, comment="user_user / user_listing"
    )
    # Sorted participant pair: participant_lo < participant_hi by string form.
    participant_lo: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    participant_hi: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    listing_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("listings.id", ondelete="SET NULL"), nullable=True
    )
    dedupe_key: Mapped[str] = mapped_column(
        String, unique=True, nullable=False,
        comment="lo:hi:listing, target of the insert-if-absent write",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    last_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_message_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def participant_ids(self) -> list[uuid.UUID]:
        return [self.participant_lo, self.participant_hi]

    def other_participant(self, user_id: uuid.UUID) -> uuid.UUID:
        return self.participant_hi if self.participant_lo == user_id else self.participant_lo

    def __repr__(self) -> str:
        return (
            f"<Match {self.kind} {self.participant_lo} <-> {self.participant_hi} "
            f"listing={self.listing_id}>"
        )


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    match_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("matches.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Message match={self.match_id} sender={self.sender_id}>"
