"""Sorted list of event occurrences within a date range, updated by merging."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime
from enum import IntEnum, IntFlag
from typing import Any, Callable, DefaultDict, Dict, FrozenSet, Iterable, List, Optional, Tuple

from .occurrence import EventOccurrence

_log = logging.getLogger(__name__)

USER_ROLE = 0x0100

Scheduler = Callable[["AgendaModel"], Any]


class FilterMode(IntFlag):
    NONE = 0x0
    NON_ALL_DAY = 0x1
    MULTIPLE_EVENTS_PER_NOTEBOOK = 0x2
    ALL_DAY = 0x4


class AgendaRole(IntEnum):
    EVENT_OBJECT = USER_ROLE
    OCCURRENCE_OBJECT = USER_ROLE + 1
    SECTION_BUCKET = USER_ROLE + 2


def _time_key(value: Optional[datetime]) -> Tuple[int, Any]:
    # A missing time sorts before any real one.
    return (0, 0) if value is None else (1, value)


def _sort_key(occurrence: EventOccurrence) -> Tuple[Tuple[int, Any], str, str]:
    event = occurrence.event()
    label = event.display_label if event is not None else ""
    instance_id = event.instance_id if event is not None else ""
    return (_time_key(occurrence.start_time), label.casefold(), instance_id)


def events_equal(first: EventOccurrence, second: EventOccurrence) -> bool:
    """True when both occurrences cover the same time of the same event instance."""
    if first.start_time != second.start_time or first.end_time != second.end_time:
        return False
    first_event = first.event()
    second_event = second.event()
    return (
        first_event is not None
        and second_event is not None
        and first_event.instance_id == second_event.instance_id
    )


def events_less_than(first: EventOccurrence, second: EventOccurrence) -> bool:
    """Order by start, then label ignoring case, then instance id."""
    return _sort_key(first) < _sort_key(second)


class AgendaModel:
    """Occurrences between a start and end date, kept sorted.

    Refreshes are requested from ``scheduler``, which is called with the
    model and is expected to answer later through :meth:`do_refresh`.
    Signals ``rows_inserted`` and ``rows_removed`` pass the first and last
    row affected; all other signals pass nothing.
    """

    SIGNALS: FrozenSet[str] = frozenset(
        {
            "count_changed",
            "start_date_changed",
            "end_date_changed",
            "updated",
            "filter_mode_changed",
            "rows_inserted",
            "rows_removed",
        }
    )

    def __init__(self, scheduler: Optional[Scheduler] = None) -> None:
        self._scheduler = scheduler
        self._start_date: Optional[date] = None
        self._end_date: Optional[date] = None
        self._events: List[EventOccurrence] = []
        self._is_complete = True
        self._filter_mode = FilterMode.NONE
        self._observers: DefaultDict[str, List[Callable[..., Any]]] = defaultdict(list)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(list(self._events))

    def connect(self, signal: str, callback: Callable[..., Any]) -> None:
        """Call ``callback`` whenever ``signal`` is emitted."""
        if signal not in self.SIGNALS:
            raise ValueError(f"unknown signal: {signal}")
        self._observers[signal].append(callback)

    def _emit(self, signal: str, *args: Any) -> None:
        for callback in list(self._observers.get(signal, ())):
            callback(*args)

    @property
    def start_date(self) -> Optional[date]:
        return self._start_date

    @start_date.setter
    def start_date(self, value: Optional[date]) -> None:
        if self._start_date == value:
            return
        self._start_date = value
        self._emit("start_date_changed")
        self.refresh()

    @property
    def end_date(self) -> Optional[date]:
        return self._end_date

    @end_date.setter
    def end_date(self, value: Optional[date]) -> None:
        if self._end_date == value:
            return
        self._end_date = value
        self._emit("end_date_changed")
        self.refresh()

    @property
    def filter_mode(self) -> FilterMode:
        return self._filter_mode

    @filter_mode.setter
    def filter_mode(self, mode: int) -> None:
        mode = FilterMode(mode)
        if mode != self._filter_mode:
            self._filter_mode = mode
            self._emit("filter_mode_changed")
            self.refresh()

    def refresh(self) -> None:
        """Ask the scheduler for fresh data unless construction is in progress."""
        if not self._is_complete:
            return
        if self._scheduler is not None:
            self._scheduler(self)

    def _filtered(self, new_events: Iterable[EventOccurrence]) -> List[EventOccurrence]:
        mode = self._filter_mode
        if mode == FilterMode.NONE:
            return list(new_events)
        seen_calendars = set()
        kept = []
        for occurrence in new_events:
            event = occurrence.event()
            all_day = event.all_day if event is not None else False
            skip = False
            if mode & FilterMode.NON_ALL_DAY and not all_day:
                skip = True
            if mode & FilterMode.ALL_DAY and all_day:
                skip = True
            if mode & FilterMode.MULTIPLE_EVENTS_PER_NOTEBOOK:
                uid = event.calendar_uid if event is not None else ""
                if uid in seen_calendars:
                    skip = True
                else:
                    seen_calendars.add(uid)
            if not skip:
                kept.append(occurrence)
        return kept

    def do_refresh(self, new_events: Iterable[EventOccurrence]) -> None:
        """Merge ``new_events`` into the model, keeping unchanged rows in place."""
        old = list(self._events)
        new = sorted(self._filtered(new_events), key=_sort_key)
        old_count = len(self._events)

        i = j = row = 0
        while j < len(new) or i < len(old):
            remove = 0
            while i + remove < len(old) and (
                j >= len(new) or events_less_than(old[i + remove], new[j])
            ):
                remove += 1
            if remove:
                del self._events[row:row + remove]
                self._emit("rows_removed", row, row + remove - 1)
                i += remove

            while i < len(old) and j < len(new) and events_equal(new[j], old[i]):
                i += 1
                j += 1
                row += 1

            insert = 0
            while j + insert < len(new) and (
                i >= len(old) or not events_less_than(old[i], new[j + insert])
            ):
                insert += 1
            if insert:
                self._events[row:row] = new[j:j + insert]
                self._emit("rows_inserted", row, row + insert - 1)
                row += insert
                j += insert

        if old_count != len(self._events):
            self._emit("count_changed")
        self._emit("updated")

    def get(self, index: int, role: int) -> Any:
        """Value of ``role`` for the row ``index``; None when invalid."""
        if not 0 <= index < len(self._events):
            _log.warning("AgendaModel: Invalid index")
            return None
        occurrence = self._events[index]
        if role == AgendaRole.EVENT_OBJECT:
            return occurrence.event()
        if role == AgendaRole.OCCURRENCE_OBJECT:
            return occurrence
        if role == AgendaRole.SECTION_BUCKET:
            start = occurrence.start_time
            return None if start is None else start.date()
        _log.warning("AgendaModel: Unknown role asked")
        return None

    def role_names(self) -> Dict[AgendaRole, str]:
        return {
            AgendaRole.EVENT_OBJECT: "event",
            AgendaRole.OCCURRENCE_OBJECT: "occurrence",
            AgendaRole.SECTION_BUCKET: "sectionBucket",
        }

    def on_timezone_changed(self) -> None:
        """The times are unchanged, but their local representation is not."""
        for occurrence in list(self._events):
            occurrence.notify_timezone_changed()

    def class_begin(self) -> None:
        self._is_complete = False

    def component_complete(self) -> None:
        self._is_complete = True
        self.refresh()