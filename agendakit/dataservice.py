"""Service answering date-range event requests from a shared agenda model."""

from __future__ import annotations

import logging
import os
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, DefaultDict, FrozenSet, List, Optional

from .agenda import AgendaModel, AgendaRole
from .event import Status
from .eventdata import EventData

_log = logging.getLogger(__name__)

SERVICE_NAME = "org.nemomobile.calendardataservice"
OBJECT_PATH = "/org/nemomobile/calendardataservice"
KILL_TIMEOUT_MS = 2000

AgendaFactory = Callable[[], AgendaModel]


@dataclass
class DataRequest:
    """A pending request for the events between two dates."""

    start: Optional[date] = None
    end: Optional[date] = None
    transaction_id: str = ""


def _parse_date(text: str) -> Optional[date]:
    try:
        return date.fromisoformat(text)
    except (TypeError, ValueError):
        return None


def _iso_datetime(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    if value.tzinfo is not None and value.utcoffset() == timezone.utc.utcoffset(None):
        return value.replace(tzinfo=None).isoformat(timespec="seconds") + "Z"
    return value.isoformat(timespec="seconds")


def _iso_date(value: Optional[datetime]) -> str:
    return "" if value is None else value.date().isoformat()


class DataService:
    """Queues event requests and answers them one at a time.

    :meth:`get_events` hands out a transaction id at once; the caller runs
    :meth:`process_queue` afterwards, and the answer is emitted through the
    ``get_events_result`` signal with the transaction id and a list of
    :class:`EventData`. While no request is outstanding the service is
    ``idle``, which is when it may be shut down.
    """

    SIGNALS: FrozenSet[str] = frozenset({"get_events_result", "shut_down"})

    def __init__(
        self, agenda_factory: Optional[AgendaFactory] = None, pid: Optional[int] = None
    ) -> None:
        self._agenda_factory: AgendaFactory = agenda_factory or AgendaModel
        self._pid = os.getpid() if pid is None else pid
        self._agenda: Optional[AgendaModel] = None
        self._transaction_counter = 0
        self._queue: List[DataRequest] = []
        self._current = DataRequest()
        self._idle = True
        self._running = True
        self._observers: DefaultDict[str, List[Callable[..., Any]]] = defaultdict(list)

    def connect(self, signal: str, callback: Callable[..., Any]) -> None:
        """Call ``callback`` whenever ``signal`` is emitted."""
        if signal not in self.SIGNALS:
            raise ValueError(f"unknown signal: {signal}")
        self._observers[signal].append(callback)

    def _emit(self, signal: str, *args: Any) -> None:
        for callback in list(self._observers.get(signal, ())):
            callback(*args)

    @property
    def idle(self) -> bool:
        """True while the shutdown timer would be running."""
        return self._idle

    @property
    def running(self) -> bool:
        return self._running

    @property
    def agenda(self) -> Optional[AgendaModel]:
        return self._agenda

    @property
    def pending(self) -> List[DataRequest]:
        """Queued requests, oldest first."""
        return list(reversed(self._queue))

    @property
    def current_request(self) -> DataRequest:
        return self._current

    def get_events(self, start_date: str, end_date: str) -> str:
        """Queue a request; return its transaction id, or "" for bad dates."""
        self._idle = False
        start = _parse_date(start_date)
        end = _parse_date(end_date)
        if start is None or end is None:
            _log.warning("Invalid date parameter(s): %s, %s", start_date, end_date)
            return ""
        self._transaction_counter += 1
        transaction_id = f"{self._pid}-{self._transaction_counter}"
        self._queue.insert(0, DataRequest(start, end, transaction_id))
        return transaction_id

    def _initialize(self) -> None:
        if self._agenda is None:
            self._agenda = self._agenda_factory()
            self._agenda.connect("updated", self.updated)

    def process_queue(self) -> None:
        """Start on the oldest request unless one is already in progress."""
        if not self._queue:
            self._idle = True
            return
        if self._current.transaction_id:
            return
        self._initialize()
        agenda = self._agenda
        self._current = self._queue.pop()
        if (
            agenda.start_date == self._current.start
            and agenda.end_date == self._current.end
        ):
            self.updated()
        else:
            agenda.start_date = self._current.start
            agenda.end_date = self._current.end

    def _collect(self) -> List[EventData]:
        agenda = self._agenda
        reply: List[EventData] = []
        if agenda is None:
            return reply
        for index in range(len(agenda)):
            event = agenda.get(index, AgendaRole.EVENT_OBJECT)
            occurrence = agenda.get(index, AgendaRole.OCCURRENCE_OBJECT)
            if event is None or occurrence is None:
                continue
            if event.all_day:
                start = _iso_date(occurrence.start_time)
                end = _iso_date(occurrence.end_time)
            else:
                start = _iso_datetime(occurrence.start_time)
                end = _iso_datetime(occurrence.end_time)
            reply.append(
                EventData(
                    instance_id=event.instance_id,
                    start_time=start,
                    end_time=end,
                    all_day=event.all_day,
                    color=event.color(),
                    display_label=event.display_label,
                    description=event.description,
                    cancelled=event.status == Status.CANCELLED,
                )
            )
        return reply

    def updated(self) -> None:
        """Answer the current request from the agenda, then continue the queue."""
        reply = self._collect()
        agenda = self._agenda
        if (
            self._current.transaction_id
            and agenda is not None
            and self._current.start == agenda.start_date
            and self._current.end == agenda.end_date
        ):
            self._emit("get_events_result", self._current.transaction_id, reply)
            self._current = DataRequest()
        else:
            _log.warning("No transactionId, discarding results")
        self.process_queue()

    def shutdown(self) -> None:
        """Release the agenda and stop the service."""
        self._agenda = None
        self._idle = False
        self._running = False
        self._emit("shut_down")