"""A single occurrence of a (possibly recurring) calendar event."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from datetime import timezone as _dt_timezone
from typing import Any, Callable, DefaultDict, FrozenSet, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .event import StoredEvent, TimeSpec

Resolver = Callable[[str], Optional[StoredEvent]]


def to_event_datetime(
    value: Optional[datetime], spec: TimeSpec, timezone: str = ""
) -> Optional[datetime]:
    """Express ``value`` as wall-clock time in the event's own zone.

    For zone and UTC specs the result is naive; otherwise ``value`` is
    returned unchanged. An unknown zone name gives None.
    """
    if value is None:
        return None
    if spec == TimeSpec.TIME_ZONE:
        try:
            zone = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            return None
        return value.astimezone(zone).replace(tzinfo=None)
    if spec == TimeSpec.UTC:
        return value.astimezone(_dt_timezone.utc).replace(tzinfo=None)
    return value


def _order_key(value: Optional[datetime]) -> Tuple[int, Any]:
    # A missing time sorts before any real one.
    return (0, 0) if value is None else (1, value)


class EventOccurrence:
    """The start and end of one occurrence, bound to its event by id."""

    SIGNALS: FrozenSet[str] = frozenset({"start_time_changed", "end_time_changed"})

    def __init__(
        self,
        instance_id: str = "",
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        resolver: Optional[Resolver] = None,
    ) -> None:
        self._instance_id = instance_id
        self._start_time = start_time
        self._end_time = end_time
        self._resolver = resolver
        self._observers: DefaultDict[str, List[Callable[[], Any]]] = defaultdict(list)

    def connect(self, signal: str, callback: Callable[[], Any]) -> None:
        """Call ``callback`` with no arguments whenever ``signal`` is emitted."""
        if signal not in self.SIGNALS:
            raise ValueError(f"unknown signal: {signal}")
        self._observers[signal].append(callback)

    def _emit(self, signal: str) -> None:
        for callback in list(self._observers.get(signal, ())):
            callback()

    def notify_timezone_changed(self) -> None:
        """Tell observers that the local representation of the times changed."""
        self._emit("start_time_changed")
        self._emit("end_time_changed")

    def __lt__(self, other: "EventOccurrence") -> bool:
        if not isinstance(other, EventOccurrence):
            return NotImplemented
        if _order_key(self._start_time) == _order_key(other._start_time):
            return _order_key(self._end_time) < _order_key(other._end_time)
        return _order_key(self._start_time) < _order_key(other._start_time)

    @property
    def instance_id(self) -> str:
        return self._instance_id

    @property
    def start_time(self) -> Optional[datetime]:
        return self._start_time

    @property
    def end_time(self) -> Optional[datetime]:
        return self._end_time

    def event(self) -> Optional[StoredEvent]:
        """The event this occurrence belongs to, if it can be found."""
        if self._resolver is None:
            return None
        return self._resolver(self._instance_id)

    def instance_id_changed(self, old_id: str, new_id: str, notebook_uid: str) -> None:
        if self._instance_id == old_id:
            self._instance_id = new_id

    def start_time_in_tz(self) -> Optional[datetime]:
        """Start time in the zone of the event's start."""
        event = self.event()
        if event is None:
            return self._start_time
        return to_event_datetime(
            self._start_time, event.start_time_spec, event.start_time_zone
        )

    def end_time_in_tz(self) -> Optional[datetime]:
        """End time in the zone of the event's end."""
        event = self.event()
        if event is None:
            return self._end_time
        return to_event_datetime(self._end_time, event.end_time_spec, event.end_time_zone)