"""Persistence codec: contact list <-> single opaque blob.

The blob is a JSON array of contact objects (camelCase keys, the same shape
the browser widget kept in local storage). When a key is configured the JSON
text is encrypted with Fernet and the URL-safe token is the blob instead.

Key management is the caller's job: pass a key generated with
``generate_key()`` (or ``Fernet.generate_key()``) at construction time.
"""
from __future__ import annotations

import json
import logging
from typing import Iterable, List, Optional, Union

from cryptography.fernet import Fernet, InvalidToken

from .models import Contact, ValidationError, validate_required


logger = logging.getLogger(__name__)

KeyType = Union[str, bytes]


class DecodeError(ValueError):
    """Raised when a blob cannot be decrypted or parsed into contacts."""


def generate_key() -> str:
    """Return a fresh Fernet key as text."""
    return Fernet.generate_key().decode("ascii")


class ContactCodec:
    """Encode/decode the full contact list, optionally encrypted."""

    def __init__(self, key: Optional[KeyType] = None) -> None:
        self._fernet: Optional[Fernet] = None
        if key:
            raw = key.encode("ascii") if isinstance(key, str) else key
            try:
                self._fernet = Fernet(raw)
            except (ValueError, TypeError) as exc:
                raise ValueError(
                    "Encryption key must be 32 url-safe base64-encoded bytes"
                ) from exc

    @property
    def encrypted(self) -> bool:
        return self._fernet is not None

    def encode(self, contacts: Iterable[Contact]) -> str:
        payload = json.dumps(
            [contact.to_dict() for contact in contacts],
            ensure_ascii=False,
        )
        if self._fernet is None:
            return payload
        return self._fernet.encrypt(payload.encode("utf-8")).decode("ascii")

    def decode(self, blob: Union[str, bytes]) -> List[Contact]:
        """Reverse ``encode``.

        Raises:
            DecodeError: for anything that is not a blob this codec produced
                (wrong key, tampered token, invalid JSON, invalid records).
        """
        text = self._decrypt(blob)
        try:
            data = json.loads(text)
        except (ValueError, TypeError, RecursionError) as exc:
            raise DecodeError(f"Stored contacts are not valid JSON: {exc}") from exc

        if not isinstance(data, list):
            raise DecodeError(
                f"Stored contacts must be a JSON array, got {type(data).__name__}"
            )

        contacts: List[Contact] = []
        seen_ids = set()
        for index, item in enumerate(data):
            try:
                contact = Contact.from_dict(item)
                validate_required(contact)
            except ValidationError as exc:
                raise DecodeError(f"Invalid contact at index {index}: {exc}") from exc
            if contact.id and contact.id in seen_ids:
                raise DecodeError(f"Duplicate contact id at index {index}: {contact.id}")
            seen_ids.add(contact.id)
            contacts.append(contact)
        return contacts

    def decode_or_empty(self, blob: Union[str, bytes, None]) -> List[Contact]:
        """Decode ``blob``; treat a missing or corrupt blob as "no prior data"."""
        if not blob:
            return []
        try:
            return self.decode(blob)
        except DecodeError as exc:
            logger.warning("Ignoring unreadable stored contacts: %s", exc)
            return []

    def _decrypt(self, blob: Union[str, bytes]) -> str:
        if not isinstance(blob, (str, bytes)):
            raise DecodeError(f"Blob must be text or bytes, got {type(blob).__name__}")

        if self._fernet is None:
            if isinstance(blob, str):
                return blob
            try:
                return blob.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise DecodeError("Stored contacts are not UTF-8 text") from exc

        try:
            token = blob.encode("utf-8") if isinstance(blob, str) else blob
            plaintext = self._fernet.decrypt(token)
        except (InvalidToken, ValueError, TypeError) as exc:
            raise DecodeError("Stored contacts could not be decrypted") from exc
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError("Decrypted contacts are not UTF-8 text") from exc
