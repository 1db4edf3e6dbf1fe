"""Editable copy of an event, saved back through a callback."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .contacts import ContactModel, EmailContact
from .event import (
    CalendarEvent,
    Day,
    EventRecord,
    Recur,
    StoredEvent,
    SyncFailureResolution,
    TimeSpec,
    _time_spec,
    _zone_id,
)

_log = logging.getLogger(__name__)

Saver = Callable[[EventRecord, bool, List[EmailContact], List[EmailContact]], Any]


def _apply_spec(value: Optional[datetime], spec: TimeSpec, timezone_id: str) -> Optional[datetime]:
    """Attach the zone given by ``spec`` to the wall-clock time ``value``."""
    if value is None:
        return None
    if spec == TimeSpec.TIME_ZONE:
        try:
            zone = ZoneInfo(timezone_id)
        except (ZoneInfoNotFoundError, ValueError):
            _log.warning("Cannot find time zone: %s", timezone_id)
            return value
        return value.replace(tzinfo=zone)
    if spec in (TimeSpec.UTC, TimeSpec.OFFSET_FROM_UTC):
        return value.replace(tzinfo=timezone.utc)
    return value.replace(tzinfo=None)


def _same_time(old: Optional[datetime], new: Optional[datetime]) -> bool:
    if old is None or new is None:
        return old is new
    if (old.tzinfo is None) != (new.tzinfo is None):
        return False
    if old != new or _time_spec(old) != _time_spec(new):
        return False
    if _time_spec(old) == TimeSpec.TIME_ZONE:
        return _zone_id(old) == _zone_id(new)
    return True


class EventModification(CalendarEvent):
    """A writable event; ``save`` hands the result to the saver."""

    def __init__(
        self,
        saver: Saver,
        source: Optional[StoredEvent] = None,
        occurrence: Any = None,
    ) -> None:
        super().__init__(source)
        self._saver = saver
        self._attendees_set = False
        self._required: List[EmailContact] = []
        self._optional: List[EmailContact] = []
        if source is not None and occurrence is not None:
            self._data = source.dissociate_single_occurrence(occurrence)

    def _update(self, name: str, value: Any, signal: str) -> None:
        if getattr(self._data, name) != value:
            setattr(self._data, name, value)
            self._emit(signal)

    @property
    def display_label(self) -> str:
        return self._data.display_label

    @display_label.setter
    def display_label(self, value: str) -> None:
        self._update("display_label", value, "display_label_changed")

    @property
    def description(self) -> str:
        return self._data.description

    @description.setter
    def description(self, value: str) -> None:
        self._update("description", value, "description_changed")

    @property
    def start_time(self) -> Optional[datetime]:
        """Start with its zone attached."""
        return self._data.start_time

    @property
    def end_time(self) -> Optional[datetime]:
        """End with its zone attached."""
        return self._data.end_time

    def set_start_time(
        self, start_time: Optional[datetime], spec: TimeSpec, timezone: str = ""
    ) -> None:
        new = _apply_spec(start_time, TimeSpec(spec), timezone)
        if not _same_time(self._data.start_time, new):
            self._data.start_time = new
            self._emit("start_time_changed")

    def set_end_time(
        self, end_time: Optional[datetime], spec: TimeSpec, timezone: str = ""
    ) -> None:
        new = _apply_spec(end_time, TimeSpec(spec), timezone)
        if not _same_time(self._data.end_time, new):
            self._data.end_time = new
            self._emit("end_time_changed")

    @property
    def all_day(self) -> bool:
        return self._data.all_day

    @all_day.setter
    def all_day(self, value: bool) -> None:
        self._update("all_day", bool(value), "all_day_changed")

    @property
    def recur(self) -> Recur:
        return self._data.recur

    @recur.setter
    def recur(self, value: Recur) -> None:
        self._update("recur", Recur(value), "recur_changed")

    def set_recur_end_date(self, value: Union[datetime, date, None]) -> None:
        was_set = self._data.recur_end_date is not None
        new = value.date() if isinstance(value, datetime) else value
        if self._data.recur_end_date != new:
            self._data.recur_end_date = new
            self._emit("recur_end_date_changed")
            if (new is not None) != was_set:
                self._emit("has_recur_end_date_changed")

    def unset_recur_end_date(self) -> None:
        self.set_recur_end_date(None)

    @property
    def recur_weekly_days(self) -> Day:
        return Day(self._data.recur_weekly_days)

    @recur_weekly_days.setter
    def recur_weekly_days(self, value: Day) -> None:
        self._update("recur_weekly_days", Day(value), "recur_weekly_days_changed")

    @property
    def reminder(self) -> int:
        return self._data.reminder

    @reminder.setter
    def reminder(self, seconds: int) -> None:
        self._update("reminder", seconds, "reminder_changed")

    @property
    def reminder_date_time(self) -> Optional[datetime]:
        return self._data.reminder_date_time

    @reminder_date_time.setter
    def reminder_date_time(self, value: Optional[datetime]) -> None:
        self._update("reminder_date_time", value, "reminder_date_time_changed")

    @property
    def location(self) -> str:
        return self._data.location

    @location.setter
    def location(self, value: str) -> None:
        self._update("location", value, "location_changed")

    @property
    def calendar_uid(self) -> str:
        return self._data.calendar_uid

    @calendar_uid.setter
    def calendar_uid(self, value: str) -> None:
        self._update("calendar_uid", value, "calendar_uid_changed")

    @property
    def sync_failure_resolution(self) -> SyncFailureResolution:
        return self._data.sync_failure_resolution

    @sync_failure_resolution.setter
    def sync_failure_resolution(self, value: SyncFailureResolution) -> None:
        self._update(
            "sync_failure_resolution",
            SyncFailureResolution(value),
            "sync_failure_resolution_changed",
        )

    def set_attendees(
        self, required: Optional[ContactModel], optional: Optional[ContactModel]
    ) -> None:
        """Replace the attendee lists; both models must be given."""
        if required is None or optional is None:
            _log.warning("Missing attendeeList")
            return
        self._attendees_set = True
        self._required = required.contacts()
        self._optional = optional.contacts()

    def save(self) -> None:
        self._saver(
            self.record, self._attendees_set, list(self._required), list(self._optional)
        )