"""Contact record model for referral outreach tracking."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class ValidationError(ValueError):
    """Raised when a contact fails validation; no mutation happens."""


class Stage(str, Enum):
    """Where the connection request currently stands."""

    CONNECTION_SENT = "Connection Sent"
    ACCEPTED = "Accepted"
    REFERRAL_ASKED = "Referral Asked"


class ReferralStatus(str, Enum):
    """Whether the contact has committed to a referral."""

    PENDING = "Pending"
    WILL_REFER = "Will Refer"
    WONT_REFER = "Won't Refer"


TAGS: Tuple[str, ...] = (
    "SJSU Alum",
    "Hiring Manager",
    "Fast Responder",
    "High Priority",
    "Tech Lead",
    "Referred Before",
)

DEFAULT_REFERRAL_MESSAGE = """Hi [Hiring Manager],

I'd like to refer [Name] for [Position] at [Company]. They have demonstrated strong skills in [Skills] and I believe they would be a great addition to the team.

[Name] has [X] years of experience in [Field] and has previously worked at [Previous Companies].

You can reach them at [Contact Details].

Best regards,
[Your Name]"""


def new_contact_id() -> str:
    """Generate a stable opaque contact identifier."""
    return uuid.uuid4().hex


def parse_stage(value: Any) -> Stage:
    try:
        return Stage(value)
    except (ValueError, TypeError):
        raise ValidationError(f"Unknown stage: {value!r}") from None


def parse_referral_status(value: Any) -> ReferralStatus:
    try:
        return ReferralStatus(value)
    except (ValueError, TypeError):
        raise ValidationError(f"Unknown referral status: {value!r}") from None


def normalize_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    """Return tags deduplicated and in vocabulary order.

    Raises:
        ValidationError: if a label is not part of TAGS.
    """
    if isinstance(tags, str):
        raise ValidationError("Tags must be a collection of labels, not a string")
    selected = set()
    for tag in tags:
        if tag not in TAGS:
            raise ValidationError(f"Unknown tag: {tag!r}")
        selected.add(tag)
    return tuple(tag for tag in TAGS if tag in selected)


@dataclass(frozen=True, slots=True)
class Contact:
    """One outreach target.

    Contacts are immutable; edits produce a new value (see ``with_changes``)
    that is handed back to the store. Empty ``name``/``company`` are allowed
    here so a blank form can be represented; the store rejects them.
    """

    name: str = ""
    company: str = ""
    stage: Stage = Stage.CONNECTION_SENT
    referral_status: ReferralStatus = ReferralStatus.PENDING
    contact_details: str = ""
    referral_message: str = DEFAULT_REFERRAL_MESSAGE
    tags: Tuple[str, ...] = field(default_factory=tuple)
    id: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "stage", parse_stage(self.stage))
        object.__setattr__(
            self, "referral_status", parse_referral_status(self.referral_status)
        )
        object.__setattr__(self, "tags", normalize_tags(self.tags))

    def with_changes(self, **changes: Any) -> Contact:
        return replace(self, **changes)

    def with_tag_toggled(self, tag: str) -> Contact:
        return replace(self, tags=toggle_tag(self.tags, tag))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire representation (camelCase keys)."""
        return {
            "id": self.id,
            "name": self.name,
            "company": self.company,
            "stage": self.stage.value,
            "referralStatus": self.referral_status.value,
            "contactDetails": self.contact_details,
            "referralMessage": self.referral_message,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Contact:
        """Create from the wire representation.

        Missing optional fields take their defaults. Records written without
        an ``id`` key get a fresh one; an empty ``id`` is kept as is.

        Raises:
            ValidationError: on wrong field types or values outside the
                enumerations / tag vocabulary.
        """
        if not isinstance(data, dict):
            raise ValidationError(f"Contact must be an object, got {type(data).__name__}")

        text_fields = {
            "name": data.get("name", ""),
            "company": data.get("company", ""),
            "contact_details": data.get("contactDetails", ""),
            "referral_message": data.get("referralMessage", DEFAULT_REFERRAL_MESSAGE),
            "id": data["id"] if "id" in data else new_contact_id(),
        }
        for key, value in text_fields.items():
            if not isinstance(value, str):
                raise ValidationError(f"Field {key!r} must be text")

        tags = data.get("tags", [])
        if not isinstance(tags, list):
            raise ValidationError("Field 'tags' must be a list")

        return cls(
            stage=data.get("stage", Stage.CONNECTION_SENT.value),
            referral_status=data.get("referralStatus", ReferralStatus.PENDING.value),
            tags=tuple(tags),
            **text_fields,
        )


def blank_contact() -> Contact:
    """Return the empty form state: defaults everywhere, no tags."""
    return Contact()


def toggle_tag(tags: Iterable[str], tag: str) -> Tuple[str, ...]:
    """Add ``tag`` if absent, remove it if present."""
    current = set(tags)
    if tag in current:
        current.discard(tag)
    else:
        current.add(tag)
    return normalize_tags(current)


def validate_required(contact: Contact) -> None:
    """Raise ValidationError unless name and company are filled in."""
    missing = []
    if not contact.name.strip():
        missing.append("name")
    if not contact.company.strip():
        missing.append("company")
    if missing:
        raise ValidationError(
            "Please enter both name and company "
            f"(missing: {', '.join(missing)})."
        )


def coerce_contact(record: Any) -> Contact:
    """Accept a Contact or a wire-format dict."""
    if isinstance(record, Contact):
        return record
    if isinstance(record, dict):
        return Contact.from_dict(record)
    raise ValidationError(f"Unsupported contact value: {type(record).__name__}")


def find_tag(label: str) -> Optional[str]:
    """Case-insensitive lookup of a tag label in the vocabulary."""
    lowered = label.strip().lower()
    return next((tag for tag in TAGS if tag.lower() == lowered), None)
