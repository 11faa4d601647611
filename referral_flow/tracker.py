"""Tracker session: store + codec + storage wired the way the UI uses them.

On ``load()`` the stored blob is decoded into the store; an unreadable blob
means "no prior data". After every successful mutation the full list is
encoded and written back, except that an empty list is not written unless
``persist_empty`` is set (deleting the last contact leaves the previous blob
in place).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from .config import DEFAULT_STORAGE_KEY, Settings
from .contacts.codec import ContactCodec
from .contacts.filters import FilterCriteria, filter_contacts
from .contacts.models import Contact
from .contacts.store import ContactStore, Snapshot
from .storage import BlobStorage, FileStorage, MemoryStorage


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ContactRow:
    """A contact as shown in a list view, with its position in the full list."""

    position: int
    contact: Contact


class ReferralTracker:
    """Owns a ContactStore for the lifetime of one session."""

    def __init__(
        self,
        storage: BlobStorage,
        codec: Optional[ContactCodec] = None,
        *,
        storage_key: str = DEFAULT_STORAGE_KEY,
        persist_empty: bool = False,
    ) -> None:
        self.storage = storage
        self.codec = codec or ContactCodec()
        self.storage_key = storage_key
        self.persist_empty = persist_empty
        self.store = ContactStore()
        self._loading = False
        self._unsubscribe = self.store.subscribe(self._on_change)

    @classmethod
    def from_settings(cls, settings: Settings) -> ReferralTracker:
        storage: BlobStorage
        if settings.force_memory:
            storage = MemoryStorage()
        else:
            storage = FileStorage(settings.storage_dir)
        return cls(
            storage,
            ContactCodec(settings.encryption_key),
            storage_key=settings.storage_key,
            persist_empty=settings.persist_empty,
        )

    def load(self) -> Snapshot:
        """Hydrate the store from storage. Corrupt data yields an empty store."""
        contacts = self.codec.decode_or_empty(self.storage.get(self.storage_key))
        self._loading = True
        try:
            self.store.replace_all(contacts)
        finally:
            self._loading = False
        logger.debug("Loaded %d contacts from %r", len(contacts), self.storage_key)
        return self.store.all()

    def close(self) -> None:
        self._unsubscribe()

    # --- mutations (delegate to the store; persistence follows via observer) ---

    def add(self, record: Any) -> Contact:
        return self.store.add(record)

    def update(self, position: int, record: Any) -> Contact:
        return self.store.update(position, record)

    def remove(self, position: int) -> Contact:
        return self.store.remove(position)

    def update_by_id(self, contact_id: str, record: Any) -> Contact:
        return self.store.update_by_id(contact_id, record)

    def remove_by_id(self, contact_id: str) -> Contact:
        return self.store.remove_by_id(contact_id)

    # --- views ---

    def contacts(self) -> Snapshot:
        return self.store.all()

    def visible(self, criteria: Optional[FilterCriteria] = None) -> List[Contact]:
        return filter_contacts(self.store.all(), criteria)

    def rows(self, criteria: Optional[FilterCriteria] = None) -> List[ContactRow]:
        """Filtered contacts paired with their position in the full list.

        Edits made from a filtered view must use these positions (or the
        contact id), never the index within the filtered result.
        """
        return [
            ContactRow(position=position, contact=contact)
            for position, contact in enumerate(self.store.all())
            if criteria is None or criteria.matches(contact)
        ]

    # --- persistence ---

    def save(self) -> bool:
        """Write the current list. Returns False when skipped (empty list)."""
        snapshot = self.store.all()
        if not snapshot and not self.persist_empty:
            logger.debug("Skipping persist of empty contact list")
            return False
        self.storage.set(self.storage_key, self.codec.encode(snapshot))
        logger.debug("Persisted %d contacts to %r", len(snapshot), self.storage_key)
        return True

    def _on_change(self, snapshot: Snapshot) -> None:
        if self._loading:
            return
        self.save()
