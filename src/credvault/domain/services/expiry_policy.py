"""Expiry of records whose contact details were never validated.

The engine does not delete anything itself. It keeps one TTL index per
contact channel with expiry enabled, and the store's own sweep removes the
records those indexes select. Reconciliation runs at every startup:

1. List the existing indexes.
2. Drop indexes on the creation timestamp that select the same records
   but carry a different TTL than configured.
3. Create the index for the configured TTL unless it already exists.

Both store operations are idempotent, so concurrent startups converge on
a single index per channel.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from credvault.core.config import ValidationSettings
from credvault.core.logging import get_logger
from credvault.domain.entities import ContactType
from credvault.infrastructure.persistence.index_store import IndexSpec, IndexStore

logger = get_logger(__name__)

TTL_INDEX_KEY = "created_at"


def unvalidated_filter(contact_type: str) -> dict[str, Any]:
    """Filter selecting records with an unvalidated attempt for a channel."""
    return {"validations": {"$elemMatch": {"type": contact_type, "validated": False}}}


def ttl_index_name(contact_type: str) -> str:
    return f"{TTL_INDEX_KEY}_{contact_type}_ttl"


class ExpiryState(str, Enum):
    """Per-deployment state of the expiry rules."""

    UNINITIALIZED = "uninitialized"
    RECONCILED = "reconciled"
    DISABLED = "disabled"


@dataclass
class ReconcileOutcome:
    """What a reconciliation changed."""

    enabled: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)


class ExpiryPolicyEngine:
    """Keeps the store-level expiry rules in line with configuration."""

    channels = (ContactType.EMAIL, ContactType.PHONE)

    def __init__(self, store: IndexStore, settings: ValidationSettings) -> None:
        """Initialize the engine.

        Args:
            store: Index management capability of the record store.
            settings: Contact validation settings (enablement and TTL per channel).
        """
        self.store = store
        self.settings = settings
        self.state = ExpiryState.UNINITIALIZED

    def configured_ttl(self, contact_type: ContactType) -> int | None:
        """TTL in seconds for a channel, or None when expiry is disabled for it."""
        channel = getattr(self.settings, contact_type.value)
        if channel.validate_contact and channel.ttl > 0:
            return channel.ttl
        return None

    @staticmethod
    def _is_rule_for(index: IndexSpec, contact_type: ContactType) -> bool:
        return index.name.startswith(TTL_INDEX_KEY) and index.partial_filter == unvalidated_filter(
            contact_type.value
        )

    async def reconcile(self) -> ReconcileOutcome:
        """Bring the expiry rules in line with configuration.

        Returns:
            The channels with expiry enabled and the indexes created or dropped.
        """
        outcome = ReconcileOutcome()
        indexes = await self.store.list_indexes()

        for contact_type in self.channels:
            ttl = self.configured_ttl(contact_type)
            rules = [i for i in indexes if self._is_rule_for(i, contact_type)]

            if ttl is None:
                if rules:
                    logger.warning(
                        "Expiry is disabled but an expiry rule is still present",
                        contact_type=contact_type.value,
                        indexes=[i.name for i in rules],
                    )
                continue

            outcome.enabled.append(contact_type.value)

            for index in rules:
                if index.expire_after_seconds != ttl:
                    logger.info(
                        "Dropping outdated expiry rule",
                        contact_type=contact_type.value,
                        index=index.name,
                        old_ttl=index.expire_after_seconds,
                        new_ttl=ttl,
                    )
                    if await self.store.drop_index(index.name):
                        outcome.dropped.append(index.name)

            current = [i for i in rules if i.expire_after_seconds == ttl]
            name = await self.store.create_index(
                TTL_INDEX_KEY,
                expire_after_seconds=ttl,
                partial_filter=unvalidated_filter(contact_type.value),
                name=current[0].name if current else ttl_index_name(contact_type.value),
            )
            if not current:
                outcome.created.append(name)

        self.state = ExpiryState.RECONCILED if outcome.enabled else ExpiryState.DISABLED
        logger.info(
            "Expiry rules reconciled",
            enabled=outcome.enabled,
            created=outcome.created,
            dropped=outcome.dropped,
        )
        return outcome
