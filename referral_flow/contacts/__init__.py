"""Contact records, storage, filtering and persistence codec."""
from .codec import (
    ContactCodec,
    DecodeError,
    generate_key,
)
from .filters import (
    FilterCriteria,
    filter_contacts,
)
from .models import (
    DEFAULT_REFERRAL_MESSAGE,
    TAGS,
    Contact,
    ReferralStatus,
    Stage,
    ValidationError,
    blank_contact,
    toggle_tag,
)
from .store import (
    ContactNotFoundError,
    ContactStore,
)

__all__ = [
    # Model
    "Contact",
    "Stage",
    "ReferralStatus",
    "TAGS",
    "DEFAULT_REFERRAL_MESSAGE",
    "ValidationError",
    "blank_contact",
    "toggle_tag",
    # Store
    "ContactStore",
    "ContactNotFoundError",
    # Filtering
    "FilterCriteria",
    "filter_contacts",
    # Persistence
    "ContactCodec",
    "DecodeError",
    "generate_key",
]
