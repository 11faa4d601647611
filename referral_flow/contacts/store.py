"""In-memory contact store with positional and id-based access."""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Iterator, List, Tuple

from .models import (
    Contact,
    ValidationError,
    coerce_contact,
    new_contact_id,
    validate_required,
)


logger = logging.getLogger(__name__)

Snapshot = Tuple[Contact, ...]
Observer = Callable[[Snapshot], None]


class ContactNotFoundError(KeyError):
    """Raised when no contact carries the requested id."""


class ContactStore:
    """Owns the ordered list of contacts.

    Every mutation validates first and swaps state only once validation has
    passed, so a rejected call leaves ``all()`` untouched. Observers are told
    about each successful mutation with the new snapshot.
    """

    def __init__(self, contacts: Iterable[Any] = ()) -> None:
        self._contacts: List[Contact] = []
        self._observers: List[Observer] = []
        initial = list(contacts)
        if initial:
            self._contacts = self._prepare_all(initial)

    # --- read access ---

    def all(self) -> Snapshot:
        """Return the contacts in insertion order as an immutable snapshot."""
        return tuple(self._contacts)

    def get(self, position: int) -> Contact:
        return self._contacts[self._check_position(position)]

    def get_by_id(self, contact_id: str) -> Contact:
        return self._contacts[self.position_of(contact_id)]

    def position_of(self, contact_id: str) -> int:
        for position, contact in enumerate(self._contacts):
            if contact.id == contact_id:
                return position
        raise ContactNotFoundError(contact_id)

    def __len__(self) -> int:
        return len(self._contacts)

    def __iter__(self) -> Iterator[Contact]:
        return iter(self.all())

    # --- mutations ---

    def add(self, record: Any) -> Contact:
        """Append a validated contact and return it with its id assigned.

        Raises:
            ValidationError: if name or company is empty, or the id is taken.
        """
        contact = self._prepare(record)
        if not contact.id:
            contact = contact.with_changes(id=new_contact_id())
        elif any(existing.id == contact.id for existing in self._contacts):
            raise ValidationError(f"Duplicate contact id: {contact.id}")

        self._contacts.append(contact)
        logger.info("Added contact %s (%s)", contact.id, contact.company)
        self._notify()
        return contact

    def update(self, position: int, record: Any) -> Contact:
        """Replace the contact at ``position`` wholesale, keeping its id.

        Raises:
            IndexError: if ``position`` is out of bounds.
            ValidationError: if name or company is empty.
        """
        index = self._check_position(position)
        contact = self._prepare(record).with_changes(id=self._contacts[index].id)
        self._contacts[index] = contact
        logger.info("Updated contact %s at position %d", contact.id, index)
        self._notify()
        return contact

    def update_by_id(self, contact_id: str, record: Any) -> Contact:
        return self.update(self.position_of(contact_id), record)

    def remove(self, position: int) -> Contact:
        """Delete the contact at ``position``; later contacts shift down by one.

        Raises:
            IndexError: if ``position`` is out of bounds.
        """
        index = self._check_position(position)
        removed = self._contacts.pop(index)
        logger.info("Removed contact %s from position %d", removed.id, index)
        self._notify()
        return removed

    def remove_by_id(self, contact_id: str) -> Contact:
        return self.remove(self.position_of(contact_id))

    def replace_all(self, records: Iterable[Any]) -> Snapshot:
        """Swap in a whole new list (hydration). All-or-nothing."""
        self._contacts = self._prepare_all(list(records))
        self._notify()
        return self.all()

    # --- observers ---

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer``; returns a callable that unregisters it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # --- helpers ---

    def _check_position(self, position: int) -> int:
        if not isinstance(position, int) or isinstance(position, bool):
            raise TypeError(f"Position must be an int, got {type(position).__name__}")
        if position < 0 or position >= len(self._contacts):
            raise IndexError(
                f"Position {position} out of range for {len(self._contacts)} contacts"
            )
        return position

    @staticmethod
    def _prepare(record: Any) -> Contact:
        contact = coerce_contact(record)
        validate_required(contact)
        return contact

    def _prepare_all(self, records: List[Any]) -> List[Contact]:
        prepared: List[Contact] = []
        seen = set()
        for record in records:
            contact = self._prepare(record)
            if not contact.id:
                contact = contact.with_changes(id=new_contact_id())
            if contact.id in seen:
                raise ValidationError(f"Duplicate contact id: {contact.id}")
            seen.add(contact.id)
            prepared.append(contact)
        return prepared

    def _notify(self) -> None:
        snapshot = self.all()
        for observer in list(self._observers):
            observer(snapshot)
