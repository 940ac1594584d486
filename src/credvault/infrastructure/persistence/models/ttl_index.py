"""SQLAlchemy model for the ttl_indexes table.

Rows describe time-to-live rules over a collection: documents matching
``partial_filter`` are removed once ``key`` is older than
``expire_after_seconds``.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from credvault.infrastructure.persistence.database import Base


class TTLIndexModel(Base):
    """SQLAlchemy model for the ttl_indexes table.

    Attributes:
        id: Auto-incrementing primary key.
        collection: Table the rule applies to.
        name: Index name, unique per collection.
        key: Timestamp field the TTL is measured from.
        expire_after_seconds: Age after which matching documents are removed.
        partial_filter: JSON filter selecting the documents the rule applies to.
        created_at: Timestamp when the rule was created.
    """

    __tablename__ = "ttl_indexes"
    __table_args__ = (UniqueConstraint("collection", "name", name="uq_ttl_indexes_collection_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    key: Mapped[str] = mapped_column(String(64), nullable=False)
    expire_after_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    partial_filter: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return (
            f"<TTLIndex(collection={self.collection}, name={self.name}, "
            f"expire_after_seconds={self.expire_after_seconds})>"
        )
