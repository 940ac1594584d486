"""Time-to-live indexes over stored documents.

A TTL index removes the documents of a collection that match its partial
filter once their timestamp ``key`` is older than ``expire_after_seconds``.
Index management is idempotent: creating an index that already exists
with the same options, or dropping one that is gone, is a no-op. That
lets several processes reconcile indexes at startup concurrently.

Filters use dotted paths. A path that crosses a list matches when any
element matches; ``{"field": {"$elemMatch": {...}}}`` requires a single
list element to match every condition.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from credvault.core.logging import get_logger
from credvault.infrastructure.persistence.database import Base
from credvault.infrastructure.persistence.models import TTLIndexModel, UserModel
from credvault.infrastructure.persistence.repositories.user_repository import to_naive_utc

logger = get_logger(__name__)

_COLLECTIONS: dict[str, type[Base]] = {"users": UserModel}


class IndexOptionsConflict(Exception):
    """Raised when an index exists under the same name with different options."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Index '{name}' already exists with different options")


@dataclass(frozen=True)
class IndexSpec:
    """Description of a TTL index."""

    name: str
    key: str
    expire_after_seconds: int
    partial_filter: dict[str, Any] | None = None

    def same_options(self, other: "IndexSpec") -> bool:
        return (
            self.key == other.key
            and self.expire_after_seconds == other.expire_after_seconds
            and self.partial_filter == other.partial_filter
        )


def _values(document: Any, path: list[str]) -> list[Any]:
    if not path:
        return [document]
    if isinstance(document, list):
        return [v for item in document for v in _values(item, path)]
    if isinstance(document, dict) and path[0] in document:
        return _values(document[path[0]], path[1:])
    return []


def _equals(value: Any, expected: Any) -> bool:
    # bool is an int subclass; keep False from matching 0
    return type(value) is type(expected) and value == expected


def matches_filter(document: dict[str, Any], partial_filter: dict[str, Any]) -> bool:
    """Check whether a document matches a partial filter."""
    for path, expected in partial_filter.items():
        values = _values(document, path.split("."))
        flat = values + [i for v in values if isinstance(v, list) for i in v]

        if isinstance(expected, dict) and "$elemMatch" in expected:
            condition = expected["$elemMatch"]
            if not any(isinstance(i, dict) and matches_filter(i, condition) for i in flat):
                return False
        elif not any(_equals(v, expected) for v in flat):
            return False
    return True


class IndexStore(ABC):
    """Index management capability of a document store."""

    @abstractmethod
    async def list_indexes(self) -> list[IndexSpec]:
        """List the TTL indexes of the collection."""

    @abstractmethod
    async def create_index(
        self,
        key: str,
        expire_after_seconds: int,
        partial_filter: dict[str, Any] | None = None,
        name: str | None = None,
    ) -> str:
        """Create an index unless an identical one exists.

        Returns:
            The index name.

        Raises:
            IndexOptionsConflict: If the name is taken by an index with other options.
        """

    @abstractmethod
    async def drop_index(self, name: str) -> bool:
        """Drop an index.

        Returns:
            True if an index was dropped, False if it did not exist.
        """

    @abstractmethod
    async def purge_expired(self, now: datetime | None = None) -> int:
        """Remove the documents the TTL indexes say have expired.

        Returns:
            Number of documents removed.
        """


class SQLAlchemyIndexStore(IndexStore):
    """TTL indexes kept in the ttl_indexes table.

    The sweep (``purge_expired``) is run by the store's owner, e.g. a
    scheduled ``credvault purge-expired``. Every operation commits.
    """

    def __init__(self, session: AsyncSession, collection: str = "users") -> None:
        """Initialize the store.

        Args:
            session: SQLAlchemy async session.
            collection: Table the indexes apply to.
        """
        if collection not in _COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        self.session = session
        self.collection = collection
        self.model = _COLLECTIONS[collection]

    @staticmethod
    def _to_spec(model: TTLIndexModel) -> IndexSpec:
        return IndexSpec(
            name=model.name,
            key=model.key,
            expire_after_seconds=model.expire_after_seconds,
            partial_filter=model.partial_filter,
        )

    async def _get(self, name: str) -> IndexSpec | None:
        result = await self.session.execute(
            select(TTLIndexModel).where(
                TTLIndexModel.collection == self.collection,
                TTLIndexModel.name == name,
            )
        )
        model = result.scalar_one_or_none()
        return self._to_spec(model) if model is not None else None

    async def list_indexes(self) -> list[IndexSpec]:
        result = await self.session.execute(
            select(TTLIndexModel)
            .where(TTLIndexModel.collection == self.collection)
            .order_by(TTLIndexModel.name)
        )
        return [self._to_spec(m) for m in result.scalars().all()]

    async def create_index(
        self,
        key: str,
        expire_after_seconds: int,
        partial_filter: dict[str, Any] | None = None,
        name: str | None = None,
    ) -> str:
        if key not in self.model.__table__.columns:
            raise ValueError(f"Unknown field for collection '{self.collection}': {key}")

        spec = IndexSpec(
            name=name or f"{key}_1",
            key=key,
            expire_after_seconds=expire_after_seconds,
            partial_filter=partial_filter,
        )

        existing = await self._get(spec.name)
        if existing is None:
            self.session.add(
                TTLIndexModel(
                    collection=self.collection,
                    name=spec.name,
                    key=spec.key,
                    expire_after_seconds=spec.expire_after_seconds,
                    partial_filter=spec.partial_filter,
                )
            )
            try:
                await self.session.commit()
                logger.info(
                    "TTL index created",
                    collection=self.collection,
                    index=spec.name,
                    expire_after_seconds=spec.expire_after_seconds,
                )
                return spec.name
            except IntegrityError:
                # Another process created it first
                await self.session.rollback()
                existing = await self._get(spec.name)
                if existing is None:
                    raise

        if not existing.same_options(spec):
            raise IndexOptionsConflict(spec.name)
        return spec.name

    async def drop_index(self, name: str) -> bool:
        result = await self.session.execute(
            delete(TTLIndexModel).where(
                TTLIndexModel.collection == self.collection,
                TTLIndexModel.name == name,
            )
        )
        await self.session.commit()
        dropped = result.rowcount > 0
        if dropped:
            logger.info("TTL index dropped", collection=self.collection, index=name)
        return dropped

    def _document(self, model: Base) -> dict[str, Any]:
        return {c.key: getattr(model, c.key) for c in self.model.__table__.columns}

    async def purge_expired(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        removed = 0

        for spec in await self.list_indexes():
            column = getattr(self.model, spec.key)
            cutoff = to_naive_utc(now - timedelta(seconds=spec.expire_after_seconds))
            result = await self.session.execute(select(self.model).where(column < cutoff))
            expired_ids = [
                m.id
                for m in result.scalars().all()
                if spec.partial_filter is None or matches_filter(self._document(m), spec.partial_filter)
            ]
            if expired_ids:
                await self.session.execute(delete(self.model).where(self.model.id.in_(expired_ids)))
                removed += len(expired_ids)
                logger.info("Expired documents removed", index=spec.name, count=len(expired_ids))

        await self.session.commit()
        return removed
