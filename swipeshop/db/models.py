"""SQLAlchemy ORM models for the outfit catalog and per-user wishlists.

The ``outfits`` table is the catalog snapshot source shown in the swipe deck,
while ``wishlist`` stores one row per (user, outfit) pair.  Users are opaque
string identifiers handed over by the auth provider so no user table exists.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class CatalogItemRecord(Base):
    """A single outfit card available in the swipe deck."""

    __tablename__ = "outfits"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    image: Mapped[str] = mapped_column(String(1024), nullable=False)
    purchase_link: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    description: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(16), nullable=True, index=True)
    category: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    color: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
        doc="Insertion timestamp; the deck lists the newest outfits first.",
    )


class WishlistEntryRecord(Base):
    """Association row recording that a user hearted an outfit."""

    __tablename__ = "wishlist"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "outfit_id",
            name="uq_wishlist_user_outfit",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(128),
        index=True,
        nullable=False,
        doc=(
            "Opaque identifier for the owning user as reported by the auth"
            " provider (UUID, email or OAuth subject)."
        ),
    )
    outfit_id: Mapped[str] = mapped_column(
        ForeignKey("outfits.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    outfit: Mapped[CatalogItemRecord] = relationship("CatalogItemRecord")


__all__ = ["Base", "CatalogItemRecord", "WishlistEntryRecord", "utcnow"]
