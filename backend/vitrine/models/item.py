"""
Vitrine Backend — Item & Stats SQLAlchemy Models
=================================================

What:  ORM models for the `items` and `stats` tables.
Who:   Used by the repositories in services/record_store.py and by Alembic.

Table Design:
    items
        - id: database-assigned integer, opaque to clients
        - image_url: public URL of the image in the blob store (API contract)
        - image_path: blob path of the image, stored at creation time so
          deletion never has to re-derive it from image_url
        - description: the only column mutable after creation
        - created_at: UTC timestamp assigned at insert; list order key

    stats
        - single row with id = 1 holding the visit counter
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from vitrine.database import Base

VISIT_COUNTER_ID = 1


class Item(Base):
    """
    A catalog entry: one image in the blob store plus its metadata row.

    Lifecycle:
        1. Created after its image has been written to the blob store
        2. Only `description` changes afterwards (the image is immutable)
        3. Deleted together with its blob; the row deletion is the
           operation of record
    """

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Database-assigned identifier",
    )

    image_url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Public URL of the image in the blob store",
    )

    # Nullable: rows written before this column existed only carry image_url
    image_path: Mapped[str | None] = mapped_column(
        String(1024),
        nullable=True,
        default=None,
        comment="Blob path of the image (items/<epoch-millis>-<name>)",
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        default=None,
        comment="Free-text description, the only mutable column",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this item was created (UTC)",
    )

    __table_args__ = (
        Index("idx_items_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, image_path='{self.image_path}', created_at='{self.created_at}')>"


class Stats(Base):
    """Singleton row (id = 1) holding the site visit counter."""

    __tablename__ = "stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    visits: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        default=0,
        server_default=text("0"),
        comment="Number of recorded visits",
    )

    def __repr__(self) -> str:
        return f"<Stats(id={self.id}, visits={self.visits})>"
