"""Calendar events: the plain record and the observable event objects."""

from __future__ import annotations

import copy
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import IntEnum, IntFlag
from typing import Any, Callable, DefaultDict, FrozenSet, List, Optional, Protocol, Union

_log = logging.getLogger(__name__)


class Recur(IntEnum):
    ONCE = 0
    DAILY = 1
    WEEKLY = 2
    BIWEEKLY = 3
    WEEKLY_BY_DAYS = 4
    MONTHLY = 5
    MONTHLY_BY_DAY_OF_WEEK = 6
    MONTHLY_BY_LAST_DAY_OF_WEEK = 7
    YEARLY = 8
    CUSTOM = 9


class Day(IntFlag):
    NO_DAYS = 0x00
    MONDAY = 0x01
    TUESDAY = 0x02
    WEDNESDAY = 0x04
    THURSDAY = 0x08
    FRIDAY = 0x10
    SATURDAY = 0x20
    SUNDAY = 0x40


class Secrecy(IntEnum):
    PUBLIC = 0
    PRIVATE = 1
    CONFIDENTIAL = 2


class Response(IntEnum):
    UNSPECIFIED = 0
    ACCEPT = 1
    TENTATIVE = 2
    DECLINE = 3


class SyncFailure(IntEnum):
    NONE = 0
    CREATION = 1
    UPLOAD = 2
    UPDATE = 3
    DELETE = 4


class SyncFailureResolution(IntEnum):
    RETRY_SYNC = 0
    KEEP_OUT_OF_SYNC = 1
    PUSH_DEVICE_DATA = 2
    PULL_SERVER_DATA = 3


class Status(IntEnum):
    NONE = 0
    TENTATIVE = 1
    CONFIRMED = 2
    CANCELLED = 3


class TimeSpec(IntEnum):
    """How a date time relates to a time zone."""

    LOCAL_TIME = 0
    UTC = 1
    OFFSET_FROM_UTC = 2
    TIME_ZONE = 3


@dataclass
class EventRecord:
    """Plain data of one stored calendar event."""

    display_label: str = ""
    description: str = ""
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    all_day: bool = False
    recur: Recur = Recur.ONCE
    recur_end_date: Optional[date] = None
    recur_weekly_days: Day = Day.NO_DAYS
    reminder: int = -1
    reminder_date_time: Optional[datetime] = None
    instance_id: str = ""
    incidence_uid: str = ""
    recurrence_id: Optional[datetime] = None
    read_only: bool = False
    calendar_uid: str = ""
    location: str = ""
    secrecy: Secrecy = Secrecy.PUBLIC
    status: Status = Status.NONE
    sync_failure: SyncFailure = SyncFailure.NONE
    sync_failure_resolution: SyncFailureResolution = SyncFailureResolution.RETRY_SYNC
    owner_status: Response = Response.UNSPECIFIED
    rsvp: bool = False
    external_invitation: bool = False

    def is_valid(self) -> bool:
        """True when the record refers to an event instance."""
        return bool(self.instance_id)


def _is_utc(zone: Optional[tzinfo]) -> bool:
    return zone is timezone.utc or getattr(zone, "key", None) == "UTC"


def _time_spec(value: Optional[datetime]) -> TimeSpec:
    if value is None or value.tzinfo is None:
        return TimeSpec.LOCAL_TIME
    if _is_utc(value.tzinfo):
        return TimeSpec.UTC
    if isinstance(value.tzinfo, timezone):
        return TimeSpec.OFFSET_FROM_UTC
    return TimeSpec.TIME_ZONE


def _zone_id(value: Optional[datetime]) -> str:
    if value is None or value.tzinfo is None:
        return ""
    zone = value.tzinfo
    if _is_utc(zone):
        return "UTC"
    key = getattr(zone, "key", None)
    if key:
        return str(key)
    offset = zone.utcoffset(value)
    if offset is None:
        return ""
    if isinstance(zone, timezone):
        sign = "-" if offset < timedelta(0) else "+"
        minutes = abs(int(offset.total_seconds())) // 60
        return f"UTC{sign}{minutes // 60:02d}:{minutes % 60:02d}"
    return zone.tzname(value) or ""


def _wall_clock(value: Optional[datetime]) -> Optional[datetime]:
    return None if value is None else value.replace(tzinfo=None)


_END_OF_DAY = time(23, 59, 59, 999000)


class CalendarEvent:
    """Read-only view of an event that notifies observers of changes."""

    SIGNALS: FrozenSet[str] = frozenset(
        {
            "display_label_changed",
            "description_changed",
            "start_time_changed",
            "end_time_changed",
            "all_day_changed",
            "recur_changed",
            "reminder_changed",
            "reminder_date_time_changed",
            "instance_id_changed",
            "calendar_uid_changed",
            "location_changed",
            "recur_end_date_changed",
            "has_recur_end_date_changed",
            "recur_weekly_days_changed",
            "secrecy_changed",
            "status_changed",
            "sync_failure_changed",
            "sync_failure_resolution_changed",
            "owner_status_changed",
            "rsvp_changed",
            "external_invitation_changed",
        }
    )

    def __init__(self, data: Union[EventRecord, "CalendarEvent", None] = None) -> None:
        if isinstance(data, CalendarEvent):
            self._data = copy.copy(data._data)
        elif isinstance(data, EventRecord):
            self._data = copy.copy(data)
        elif data is None:
            self._data = EventRecord()
        else:
            raise TypeError(f"cannot build an event from {type(data).__name__}")
        self._observers: DefaultDict[str, List[Callable[[], Any]]] = defaultdict(list)

    def connect(self, signal: str, callback: Callable[[], Any]) -> None:
        """Call ``callback`` with no arguments whenever ``signal`` is emitted."""
        if signal not in self.SIGNALS:
            raise ValueError(f"unknown signal: {signal}")
        self._observers[signal].append(callback)

    def _emit(self, signal: str) -> None:
        for callback in list(self._observers.get(signal, ())):
            callback()

    @property
    def record(self) -> EventRecord:
        """A copy of the underlying record."""
        return copy.copy(self._data)

    @property
    def display_label(self) -> str:
        return self._data.display_label

    @property
    def description(self) -> str:
        return self._data.description

    @property
    def start_time(self) -> Optional[datetime]:
        """Start as wall-clock time, without its zone."""
        return _wall_clock(self._data.start_time)

    @property
    def end_time(self) -> Optional[datetime]:
        """End as wall-clock time, without its zone."""
        return _wall_clock(self._data.end_time)

    @property
    def start_time_spec(self) -> TimeSpec:
        return _time_spec(self._data.start_time)

    @property
    def end_time_spec(self) -> TimeSpec:
        return _time_spec(self._data.end_time)

    @property
    def start_time_zone(self) -> str:
        return _zone_id(self._data.start_time)

    @property
    def end_time_zone(self) -> str:
        return _zone_id(self._data.end_time)

    @property
    def all_day(self) -> bool:
        return self._data.all_day

    @property
    def recur(self) -> Recur:
        return self._data.recur

    @property
    def recur_end_date(self) -> Optional[datetime]:
        """Last moment of the recurrence end day, or None."""
        end = self._data.recur_end_date
        return None if end is None else datetime.combine(end, _END_OF_DAY)

    @property
    def has_recur_end_date(self) -> bool:
        return self._data.recur_end_date is not None

    @property
    def recur_weekly_days(self) -> Day:
        return Day(self._data.recur_weekly_days)

    @property
    def reminder(self) -> int:
        return self._data.reminder

    @property
    def reminder_date_time(self) -> Optional[datetime]:
        return self._data.reminder_date_time

    @property
    def instance_id(self) -> str:
        return self._data.instance_id

    @property
    def is_exception(self) -> bool:
        return self._data.recurrence_id is not None

    @property
    def read_only(self) -> bool:
        return self._data.read_only

    @property
    def calendar_uid(self) -> str:
        return self._data.calendar_uid

    @property
    def location(self) -> str:
        return self._data.location

    @property
    def secrecy(self) -> Secrecy:
        return self._data.secrecy

    @property
    def status(self) -> Status:
        return self._data.status

    @property
    def sync_failure(self) -> SyncFailure:
        return self._data.sync_failure

    @property
    def sync_failure_resolution(self) -> SyncFailureResolution:
        return self._data.sync_failure_resolution

    @property
    def owner_status(self) -> Response:
        return self._data.owner_status

    @property
    def rsvp(self) -> bool:
        return self._data.rsvp

    @property
    def external_invitation(self) -> bool:
        return self._data.external_invitation


class _Backend(Protocol):
    def send_response(self, instance_id: str, response: Response) -> bool: ...

    def save(self) -> None: ...

    def delete_event(self, instance_id: str, time: Optional[datetime]) -> None: ...

    def convert_event_to_icalendar(self, instance_id: str, prod_id: str) -> str: ...

    def event_object(self, instance_id: str) -> Optional["StoredEvent"]: ...

    def notebook_color(self, notebook_uid: str) -> str: ...

    def dissociate_single_occurrence(
        self, instance_id: str, start_time: Optional[datetime]
    ) -> EventRecord: ...


# Fields compared by set_event, in the order their signals are emitted.
_TRACKED_FIELDS = (
    ("all_day", "all_day_changed"),
    ("display_label", "display_label_changed"),
    ("description", "description_changed"),
    ("end_time", "end_time_changed"),
    ("location", "location_changed"),
    ("secrecy", "secrecy_changed"),
    ("status", "status_changed"),
    ("recur", "recur_changed"),
    ("reminder", "reminder_changed"),
    ("reminder_date_time", "reminder_date_time_changed"),
    ("start_time", "start_time_changed"),
    ("rsvp", "rsvp_changed"),
    ("external_invitation", "external_invitation_changed"),
    ("owner_status", "owner_status_changed"),
    ("sync_failure", "sync_failure_changed"),
)


class StoredEvent(CalendarEvent):
    """An event kept in storage and managed through a backend."""

    SIGNALS = CalendarEvent.SIGNALS | {"color_changed"}

    def __init__(self, backend: _Backend, data: Optional[EventRecord] = None) -> None:
        super().__init__(data)
        self._backend = backend

    def notebook_color_changed(self, notebook_uid: str) -> None:
        if self._data.calendar_uid == notebook_uid:
            self._emit("color_changed")

    def instance_id_notified(self, old_id: str, new_id: str, notebook_uid: str) -> None:
        """Follow the event when it gets a new id, e.g. after moving notebooks."""
        if self._data.instance_id != old_id:
            return
        self._data.instance_id = new_id
        self._emit("instance_id_changed")
        self._data.calendar_uid = notebook_uid
        self._emit("calendar_uid_changed")
        self._emit("color_changed")

    def send_response(self, response: int) -> bool:
        if self._backend.send_response(self._data.instance_id, Response(response)):
            self._backend.save()
            return True
        return False

    def delete_event(self) -> None:
        self._backend.delete_event(self._data.instance_id, None)
        self._backend.save()

    def icalendar(self, prod_id: str = "") -> str:
        """The event as an iCalendar string; empty if it was never saved."""
        if not self._data.instance_id:
            _log.warning(
                "Event has no uid, returning empty iCalendar string. "
                "Save event before calling this function"
            )
            return ""
        return self._backend.convert_event_to_icalendar(self._data.instance_id, prod_id)

    def recurring_parent(self) -> Optional["StoredEvent"]:
        """The recurring series this exception belongs to, if any."""
        if not self.is_exception:
            return None
        return self._backend.event_object(self._data.incidence_uid)

    def color(self) -> str:
        return self._backend.notebook_color(self._data.calendar_uid)

    def set_event(self, data: Optional[EventRecord]) -> None:
        """Replace the data, emitting a signal for each tracked change."""
        if data is None:
            return
        old = self._data
        self._data = copy.copy(data)
        for name, signal in _TRACKED_FIELDS:
            if getattr(self._data, name) != getattr(old, name):
                self._emit(signal)

    def dissociate_single_occurrence(self, occurrence: Any) -> EventRecord:
        if occurrence is None:
            return EventRecord()
        return self._backend.dissociate_single_occurrence(
            self._data.instance_id, occurrence.start_time
        )