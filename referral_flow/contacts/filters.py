"""Client-side contact filtering."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Union

from .models import Contact, ReferralStatus, Stage


def _value(criterion: Union[str, Stage, ReferralStatus]) -> str:
    if isinstance(criterion, (Stage, ReferralStatus)):
        return criterion.value
    return criterion or ""


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """Five independent predicates, ANDed. Empty string means "unset"."""

    name: str = ""
    company: str = ""
    stage: Union[str, Stage] = ""
    referral_status: Union[str, ReferralStatus] = ""
    tag: str = ""

    def is_empty(self) -> bool:
        return not any(
            (self.name, self.company, _value(self.stage), _value(self.referral_status), self.tag)
        )

    def matches(self, contact: Contact) -> bool:
        if self.name and self.name.lower() not in contact.name.lower():
            return False
        if self.company and self.company.lower() not in contact.company.lower():
            return False
        stage = _value(self.stage)
        if stage and contact.stage.value != stage:
            return False
        status = _value(self.referral_status)
        if status and contact.referral_status.value != status:
            return False
        if self.tag and self.tag not in contact.tags:
            return False
        return True


def filter_contacts(
    contacts: Iterable[Contact],
    criteria: FilterCriteria | None = None,
) -> List[Contact]:
    """Return the contacts matching ``criteria`` in their original order.

    Pure: the input is never modified. With no criteria set every contact is
    returned.
    """
    if criteria is None or criteria.is_empty():
        return list(contacts)
    return [contact for contact in contacts if criteria.matches(contact)]
