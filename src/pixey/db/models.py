"""ORM models for the Pixey tables.

All tables carry the ``pixey_`` prefix. The schema is created from these
models at startup (see ``pixey.database.create_schema``).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from pixey.db.base import Base

# Base58 Solana public keys are 32-44 characters.
WALLET_LENGTH = 44

GLOBAL_RECIPIENT = "global"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """A wallet holder. Created on first signature login."""

    __tablename__ = "pixey_users"
    __mapper_args__ = {"eager_defaults": True}

    wallet_address: Mapped[str] = mapped_column(String(WALLET_LENGTH), primary_key=True)
    username: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    profile_picture: Mapped[str | None] = mapped_column(Text, nullable=True)
    free_pixels: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_pixels_placed: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    total_tokens_burned: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default="0")
    auth_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    auth_signature: Mapped[str | None] = mapped_column(String(128), nullable=True)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


# ---------------------------------------------------------------------------
# Board
# ---------------------------------------------------------------------------


class Pixel(Base):
    """Current color of one board cell. Overwritten in place, never versioned."""

    __tablename__ = "pixey_pixels"
    __table_args__ = (
        UniqueConstraint("x_coordinate", "y_coordinate", name="uq_pixey_pixels_coordinate"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    x_coordinate: Mapped[int] = mapped_column(Integer, nullable=False)
    y_coordinate: Mapped[int] = mapped_column(Integer, nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False)
    wallet_address: Mapped[str] = mapped_column(
        String(WALLET_LENGTH), ForeignKey("pixey_users.wallet_address"), nullable=False
    )
    placed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PixelHistory(Base):
    """Append-only audit log, one row per placement or overwrite."""

    __tablename__ = "pixey_pixel_history"
    __table_args__ = (
        Index("ix_pixey_pixel_history_coordinate", "x_coordinate", "y_coordinate"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    x_coordinate: Mapped[int] = mapped_column(Integer, nullable=False)
    y_coordinate: Mapped[int] = mapped_column(Integer, nullable=False)
    new_color: Mapped[str] = mapped_column(String(7), nullable=False)
    wallet_address: Mapped[str] = mapped_column(String(WALLET_LENGTH), nullable=False, index=True)
    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class EasterEgg(Base):
    """Pre-seeded coordinate that pays a bonus to the first placer."""

    __tablename__ = "pixey_easter_eggs"
    __table_args__ = (
        UniqueConstraint("x_coordinate", "y_coordinate", name="uq_pixey_easter_eggs_coordinate"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    x_coordinate: Mapped[int] = mapped_column(Integer, nullable=False)
    y_coordinate: Mapped[int] = mapped_column(Integer, nullable=False)
    reward: Mapped[int] = mapped_column(Integer, nullable=False)
    is_claimed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    claimed_by: Mapped[str | None] = mapped_column(String(WALLET_LENGTH), nullable=True)
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Burns and game state
# ---------------------------------------------------------------------------


class BurnTransaction(Base):
    """Credited token burn. The unique signature prevents double credit."""

    __tablename__ = "pixey_burn_transactions"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    signature: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    wallet_address: Mapped[str] = mapped_column(
        String(WALLET_LENGTH), ForeignKey("pixey_users.wallet_address"), nullable=False, index=True
    )
    tokens_burned: Mapped[int] = mapped_column(BigInteger, nullable=False)
    pixels_received: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="confirmed", server_default="confirmed")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class GameSettings(Base):
    """Singleton (id=1) board configuration, mutated under a row lock."""

    __tablename__ = "pixey_game_settings"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        CheckConstraint("id = 1", name="singleton"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    current_stage: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_tokens_burned: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    board_width: Mapped[int] = mapped_column(Integer, nullable=False)
    board_height: Mapped[int] = mapped_column(Integer, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


# ---------------------------------------------------------------------------
# Social
# ---------------------------------------------------------------------------


class Notification(Base):
    """Notification row. recipient_wallet='global' is seen by every client."""

    __tablename__ = "pixey_notifications"
    __table_args__ = (
        Index("ix_pixey_notifications_type_created", "type", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    recipient_wallet: Mapped[str] = mapped_column(String(WALLET_LENGTH), nullable=False, index=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ChatMessage(Base):
    """Board comment. Deleted comments are flagged, never removed."""

    __tablename__ = "pixey_chat_messages"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    wallet_address: Mapped[str] = mapped_column(
        String(WALLET_LENGTH), ForeignKey("pixey_users.wallet_address"), nullable=False
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), index=True
    )
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class FeaturedArtwork(Base):
    """Curated board snapshot shown in the gallery."""

    __tablename__ = "pixey_featured_artworks"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    creator_wallet: Mapped[str | None] = mapped_column(String(WALLET_LENGTH), nullable=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
