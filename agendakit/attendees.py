"""Attendees of an event and a model that groups them by participation."""

from __future__ import annotations

import locale
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterable, List, Union

USER_ROLE = 0x0100


class AttendeeRole(IntEnum):
    REQUIRED = 0
    OPTIONAL = 1
    NON = 2
    CHAIR = 3


class ParticipationStatus(IntEnum):
    UNKNOWN = 0
    ACCEPTED = 1
    DECLINED = 2
    TENTATIVE = 3


class SectionRole(IntEnum):
    REQUIRED = AttendeeRole.REQUIRED
    OPTIONAL = AttendeeRole.OPTIONAL
    NON = AttendeeRole.NON
    CHAIR = AttendeeRole.CHAIR
    ORGANIZER = 4


class AttendeeDataRole(IntEnum):
    NAME = USER_ROLE
    EMAIL = USER_ROLE + 1
    IS_ORGANIZER = USER_ROLE + 2
    PARTICIPATION_ROLE = USER_ROLE + 3
    PARTICIPATION_STATUS = USER_ROLE + 4
    PARTICIPATION_SECTION = USER_ROLE + 5


# Display order of sections: organizer, required, chair, optional, non.
_SECTION_RANK = {
    SectionRole.REQUIRED: 1,
    SectionRole.OPTIONAL: 3,
    SectionRole.NON: 4,
    SectionRole.CHAIR: 2,
    SectionRole.ORGANIZER: 0,
}


@dataclass(frozen=True)
class Person:
    """An attendee or organizer of an event."""

    name: str
    email: str
    is_organizer: bool = False
    participation_role: int = AttendeeRole.REQUIRED
    participation_status: int = ParticipationStatus.UNKNOWN

    def section(self) -> SectionRole:
        """The section this person is listed under."""
        if self.is_organizer:
            return SectionRole.ORGANIZER
        return SectionRole(min(max(int(self.participation_role), 0), 3))


def _sort_key(person: Person):
    return (_SECTION_RANK[person.section()], locale.strxfrm(person.name))


class AttendeeModel:
    """Attendees sorted by section, then by name in locale order."""

    def __init__(self) -> None:
        self._people: List[Person] = []

    def __len__(self) -> int:
        return len(self._people)

    def fill(self, people: Iterable[Person]) -> None:
        """Add people to the model and re-sort it."""
        added = list(people)
        for person in added:
            if not isinstance(person, Person):
                raise TypeError(
                    f"expected Person, not {type(person).__name__}"
                )
        self._people.extend(added)
        self._people.sort(key=_sort_key)

    def data(self, row: int, role: int) -> Union[str, bool, int, None]:
        if not 0 <= row < len(self._people):
            return None
        person = self._people[row]
        if role == AttendeeDataRole.NAME:
            return person.name
        if role == AttendeeDataRole.EMAIL:
            return person.email
        if role == AttendeeDataRole.IS_ORGANIZER:
            return person.is_organizer
        if role == AttendeeDataRole.PARTICIPATION_ROLE:
            return int(person.participation_role)
        if role == AttendeeDataRole.PARTICIPATION_STATUS:
            return int(person.participation_status)
        if role == AttendeeDataRole.PARTICIPATION_SECTION:
            return person.section()
        return None

    def role_names(self) -> Dict[AttendeeDataRole, str]:
        return {
            AttendeeDataRole.NAME: "name",
            AttendeeDataRole.EMAIL: "email",
            AttendeeDataRole.IS_ORGANIZER: "isOrganizer",
            AttendeeDataRole.PARTICIPATION_ROLE: "participationRole",
            AttendeeDataRole.PARTICIPATION_STATUS: "participationStatus",
            AttendeeDataRole.PARTICIPATION_SECTION: "participationSection",
        }