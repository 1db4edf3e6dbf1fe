"""Lightweight list of upcoming events fetched from the calendar data service."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from enum import IntEnum
from typing import (
    Any,
    Callable,
    DefaultDict,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Union,
)

from .eventdata import EventData

_log = logging.getLogger(__name__)

USER_ROLE = 0x0100

DEFAULT_EVENT_LIMIT = 1000
UPDATE_DELAY_MS = 500

RequestEvents = Callable[[str, str], Optional[str]]


class EventsFilter(IntEnum):
    NONE = 0
    PAST = 1
    PAST_AND_CURRENT = 2


class ContentType(IntEnum):
    ALL_DAY = 0
    EVENTS = 1
    ALL = 2


class EventsRole(IntEnum):
    DISPLAY_LABEL = USER_ROLE
    DESCRIPTION = USER_ROLE + 1
    START_TIME = USER_ROLE + 2
    END_TIME = USER_ROLE + 3
    ALL_DAY = USER_ROLE + 4
    LOCATION = USER_ROLE + 5
    CALENDAR_UID = USER_ROLE + 6
    INSTANCE_ID = USER_ROLE + 7
    COLOR = USER_ROLE + 8
    CANCELLED = USER_ROLE + 9


def _parse_date(text: str) -> Optional[date]:
    try:
        return date.fromisoformat(text)
    except (TypeError, ValueError):
        return None


def _parse_datetime(text: str) -> Optional[datetime]:
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except (TypeError, ValueError):
        return None


def _midnight(day: Optional[date]) -> Optional[datetime]:
    return None if day is None else datetime.combine(day, time())


def _instant(value: datetime) -> datetime:
    # Naive values are local time; make everything comparable.
    return value if value.tzinfo is not None else value.astimezone()


def _before(first: Optional[datetime], second: Optional[datetime]) -> bool:
    if first is None or second is None:
        return False
    return _instant(first) < _instant(second)


class EventsModel:
    """Events between two dates, filtered by time, kind and count.

    ``request_events`` is called with the start and end dates as ISO
    strings. It may return the transaction id at once, or the caller may
    report it later through :meth:`update_finished`. Results arrive through
    :meth:`get_events_result`. Changing a property schedules an update,
    which :meth:`update_pending` carries out.
    """

    SIGNALS: FrozenSet[str] = frozenset(
        {
            "start_date_changed",
            "end_date_changed",
            "count_changed",
            "filter_mode_changed",
            "content_type_changed",
            "creation_date_changed",
            "expiry_date_changed",
            "event_limit_changed",
            "total_count_changed",
            "event_display_time_changed",
            "model_reset",
        }
    )

    def __init__(self, request_events: RequestEvents) -> None:
        self._request_events = request_events
        self._events: List[EventData] = []
        self._start_date: Optional[datetime] = None
        self._end_date: Optional[datetime] = None
        self._creation_date: Optional[datetime] = None
        self._expiry_date: Optional[datetime] = None
        self._filter_mode = EventsFilter.NONE
        self._content_type = ContentType.ALL
        self._event_limit = DEFAULT_EVENT_LIMIT
        self._total_count = 0
        self._event_display_time = 0
        self._transaction_id = ""
        self._update_scheduled = False
        self._observers: DefaultDict[str, List[Callable[[], Any]]] = defaultdict(list)

    def connect(self, signal: str, callback: Callable[[], Any]) -> None:
        """Call ``callback`` with no arguments whenever ``signal`` is emitted."""
        if signal not in self.SIGNALS:
            raise ValueError(f"unknown signal: {signal}")
        self._observers[signal].append(callback)

    def _emit(self, signal: str) -> None:
        for callback in list(self._observers.get(signal, ())):
            callback()

    def __len__(self) -> int:
        return min(len(self._events), self._event_limit)

    @property
    def row_count(self) -> int:
        return len(self._events)

    @property
    def total_count(self) -> int:
        return self._total_count

    @property
    def creation_date(self) -> Optional[datetime]:
        return self._creation_date

    @property
    def expiry_date(self) -> Optional[datetime]:
        return self._expiry_date

    @property
    def transaction_id(self) -> str:
        return self._transaction_id

    @property
    def update_scheduled(self) -> bool:
        return self._update_scheduled

    def _set(self, name: str, value: Any, signal: str) -> None:
        if getattr(self, name) == value:
            return
        setattr(self, name, value)
        self._emit(signal)
        self._restart_update_timer()

    @property
    def start_date(self) -> Optional[datetime]:
        return self._start_date

    @start_date.setter
    def start_date(self, value: Optional[datetime]) -> None:
        self._set("_start_date", value, "start_date_changed")

    @property
    def end_date(self) -> Optional[datetime]:
        return self._end_date

    @end_date.setter
    def end_date(self, value: Optional[datetime]) -> None:
        self._set("_end_date", value, "end_date_changed")

    @property
    def filter_mode(self) -> EventsFilter:
        return self._filter_mode

    @filter_mode.setter
    def filter_mode(self, mode: int) -> None:
        self._set("_filter_mode", EventsFilter(mode), "filter_mode_changed")

    @property
    def content_type(self) -> ContentType:
        return self._content_type

    @content_type.setter
    def content_type(self, value: int) -> None:
        self._set("_content_type", ContentType(value), "content_type_changed")

    @property
    def event_limit(self) -> int:
        return self._event_limit

    @event_limit.setter
    def event_limit(self, limit: int) -> None:
        if limit <= 0:
            return
        self._set("_event_limit", limit, "event_limit_changed")

    @property
    def event_display_time(self) -> int:
        return self._event_display_time

    @event_display_time.setter
    def event_display_time(self, seconds: int) -> None:
        self._set("_event_display_time", seconds, "event_display_time_changed")

    def _restart_update_timer(self) -> None:
        self._update_scheduled = self._start_date is not None

    def update_pending(self) -> bool:
        """Run a scheduled update; return whether one was run."""
        if not self._update_scheduled:
            return False
        self._update_scheduled = False
        self.update()
        return True

    def update(self) -> None:
        """Request events for the current date range."""
        self._transaction_id = ""
        end = self._end_date if self._end_date is not None else self._start_date
        start_text = "" if self._start_date is None else self._start_date.date().isoformat()
        end_text = "" if end is None else end.date().isoformat()
        result = self._request_events(start_text, end_text)
        if result is not None:
            self.update_finished(result)

    def update_finished(self, transaction_id: Union[str, BaseException]) -> None:
        """Record the id of the pending request, or log its failure."""
        if isinstance(transaction_id, BaseException):
            _log.warning("request error: %s", transaction_id)
            return
        self._transaction_id = transaction_id

    def _times(self, event: EventData):
        if event.all_day:
            start_day = _parse_date(event.start_time)
            end_day = _parse_date(event.end_time)
            start = _midnight(start_day)
            # The end day is inclusive; the event is over when the next day begins.
            end = _midnight(end_day + timedelta(days=1)) if end_day is not None else None
            return start, end
        start = _parse_datetime(event.start_time)
        if self._event_display_time > 0:
            end = start + timedelta(seconds=self._event_display_time) if start else None
        else:
            end = _parse_datetime(event.end_time)
        return start, end

    def get_events_result(
        self,
        transaction_id: str,
        events: Iterable[EventData],
        now: Optional[datetime] = None,
    ) -> None:
        """Replace the contents with the answer to the pending request."""
        if self._transaction_id != transaction_id:
            return
        if now is None:
            now = datetime.now()

        old_count = len(self)
        old_total = self._total_count
        self._events = []
        self._total_count = 0
        expiry: Optional[datetime] = None
        mode = self._filter_mode

        for event in events:
            if (event.all_day and self._content_type == ContentType.EVENTS) or (
                not event.all_day and self._content_type == ContentType.ALL_DAY
            ):
                continue
            start, end = self._times(event)
            if not (
                (mode == EventsFilter.PAST and _before(now, end))
                or (mode == EventsFilter.PAST_AND_CURRENT and _before(now, start))
                or mode == EventsFilter.NONE
            ):
                continue
            if len(self._events) < self._event_limit:
                self._events.append(event)
                if mode == EventsFilter.PAST and (expiry is None or _before(end, expiry)):
                    expiry = end
                elif mode == EventsFilter.PAST_AND_CURRENT and (
                    expiry is None or _before(start, expiry)
                ):
                    expiry = start
            self._total_count += 1

        self._creation_date = now
        self._emit("creation_date_changed")

        if expiry is None:
            if self._end_date is not None:
                expiry = self._end_date
            elif self._start_date is not None:
                next_day = self._start_date + timedelta(days=1)
                expiry = next_day.replace(hour=0, minute=0, second=0, microsecond=1000)

        if self._expiry_date != expiry:
            self._expiry_date = expiry
            self._emit("expiry_date_changed")

        self._emit("model_reset")
        if len(self) != old_count:
            self._emit("count_changed")
        if self._total_count != old_total:
            self._emit("total_count_changed")

    def data(self, row: int, role: int) -> Any:
        """Value of ``role`` for ``row``; None when either is invalid."""
        if not 0 <= row < len(self._events):
            return None
        event = self._events[row]
        if role == EventsRole.DISPLAY_LABEL:
            return event.display_label
        if role == EventsRole.DESCRIPTION:
            return event.description
        if role in (EventsRole.START_TIME, EventsRole.END_TIME):
            text = event.start_time if role == EventsRole.START_TIME else event.end_time
            if event.all_day:
                return _midnight(_parse_date(text))
            return _parse_datetime(text)
        if role == EventsRole.ALL_DAY:
            return event.all_day
        if role == EventsRole.LOCATION:
            return event.location
        if role == EventsRole.CALENDAR_UID:
            return event.calendar_uid
        if role == EventsRole.INSTANCE_ID:
            return event.instance_id
        if role == EventsRole.COLOR:
            return event.color
        if role == EventsRole.CANCELLED:
            return event.cancelled
        return None

    def role_names(self) -> Dict[EventsRole, str]:
        return {
            EventsRole.DISPLAY_LABEL: "displayLabel",
            EventsRole.DESCRIPTION: "description",
            EventsRole.START_TIME: "startTime",
            EventsRole.END_TIME: "endTime",
            EventsRole.ALL_DAY: "allDay",
            EventsRole.LOCATION: "location",
            EventsRole.CALENDAR_UID: "calendarUid",
            EventsRole.INSTANCE_ID: "instanceId",
            EventsRole.COLOR: "color",
            EventsRole.CANCELLED: "cancelled",
        }