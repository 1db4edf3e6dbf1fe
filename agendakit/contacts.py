"""List model of e-mail contacts used when editing attendees."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Optional

USER_ROLE = 0x0100


@dataclass(frozen=True)
class EmailContact:
    """A name with an e-mail address."""

    name: str
    email: str


class ContactRole(IntEnum):
    NAME = USER_ROLE
    EMAIL = USER_ROLE + 1


class ContactModel:
    """Ordered contacts; out-of-range indexes are ignored or yield empty values."""

    def __init__(self) -> None:
        self._contacts: List[EmailContact] = []

    def __len__(self) -> int:
        return len(self._contacts)

    def _valid(self, index: int) -> bool:
        return 0 <= index < len(self._contacts)

    def append(self, name: str, email: str) -> None:
        self._contacts.append(EmailContact(name, email))

    def prepend(self, name: str, email: str) -> None:
        self._contacts.insert(0, EmailContact(name, email))

    def remove(self, index: int) -> None:
        if self._valid(index):
            del self._contacts[index]

    def has_email(self, email: str) -> bool:
        return any(contact.email == email for contact in self._contacts)

    def name(self, index: int) -> str:
        return self._contacts[index].name if self._valid(index) else ""

    def email(self, index: int) -> str:
        return self._contacts[index].email if self._valid(index) else ""

    def contacts(self) -> List[EmailContact]:
        return list(self._contacts)

    def data(self, row: int, role: int) -> Optional[str]:
        if not self._valid(row):
            return None
        contact = self._contacts[row]
        if role == ContactRole.NAME:
            return contact.name
        if role == ContactRole.EMAIL:
            return contact.email
        return None

    def role_names(self) -> Dict[ContactRole, str]:
        return {ContactRole.NAME: "name", ContactRole.EMAIL: "email"}