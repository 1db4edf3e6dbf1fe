from datetime import date, datetime

import pytest

from agendakit.agenda import AgendaModel
from agendakit.dataservice import DataRequest, DataService
from agendakit.event import EventRecord, Status, StoredEvent
from agendakit.occurrence import EventOccurrence


class _Backend:
    def notebook_color(self, notebook_uid):
        return "#ff0000"


class _Harness:
    def __init__(self):
        self.scheduled = []
        self.models = []
        self.results = []
        self.events = {}

    def factory(self):
        model = AgendaModel(self.scheduled.append)
        self.models.append(model)
        return model

    def add_event(self, instance_id, label, all_day=False, status=Status.NONE):
        self.events[instance_id] = StoredEvent(
            _Backend(),
            EventRecord(
                instance_id=instance_id,
                display_label=label,
                description="desc " + label,
                all_day=all_day,
                status=status,
                calendar_uid="nb1",
            ),
        )

    def occurrence(self, instance_id, start, end):
        return EventOccurrence(instance_id, start, end, resolver=self.events.get)


@pytest.fixture
def harness():
    return _Harness()


@pytest.fixture
def service(harness):
    svc = DataService(harness.factory, pid=123)
    svc.connect("get_events_result", lambda tid, items: harness.results.append((tid, items)))
    return svc


def test_transaction_ids_follow_pid_and_counter(service):
    assert service.get_events("2024-01-01", "2024-01-02") == "123-1"
    assert service.get_events("2024-01-03", "2024-01-04") == "123-2"
    assert [r.transaction_id for r in service.pending] == ["123-1", "123-2"]


def test_invalid_date_gives_empty_id_and_no_request(service, harness):
    assert service.get_events("not-a-date", "2024-01-02") == ""
    assert service.idle is False
    assert service.pending == []
    service.process_queue()
    assert service.idle is True
    assert harness.models == []


def test_process_queue_sets_agenda_range(service, harness):
    service.get_events("2024-01-01", "2024-01-02")
    service.process_queue()
    assert len(harness.models) == 1
    model = harness.models[0]
    assert model.start_date == date(2024, 1, 1)
    assert model.end_date == date(2024, 1, 2)
    assert service.current_request == DataRequest(date(2024, 1, 1), date(2024, 1, 2), "123-1")
    assert harness.scheduled == [model, model]


def test_result_is_emitted_with_event_data(service, harness):
    harness.add_event("a", "Meeting")
    harness.add_event("b", "Holiday", all_day=True)
    tid = service.get_events("2024-01-02", "2024-01-02")
    service.process_queue()
    model = harness.models[0]
    model.do_refresh([
        harness.occurrence("a", datetime(2024, 1, 2, 10), datetime(2024, 1, 2, 11)),
        harness.occurrence("b", datetime(2024, 1, 2, 0), datetime(2024, 1, 2, 23, 59)),
    ])
    assert len(harness.results) == 1
    result_id, items = harness.results[0]
    assert result_id == tid
    by_id = {item.instance_id: item for item in items}
    assert by_id["a"].start_time == "2024-01-02T10:00:00"
    assert by_id["a"].end_time == "2024-01-02T11:00:00"
    assert by_id["a"].all_day is False
    assert by_id["a"].display_label == "Meeting"
    assert by_id["a"].color == "#ff0000"
    assert by_id["b"].start_time == "2024-01-02"
    assert by_id["b"].all_day is True
    assert service.current_request.transaction_id == ""
    assert service.idle is True


def test_cancelled_status_is_reported(service, harness):
    harness.add_event("c", "Gone", status=Status.CANCELLED)
    tid = service.get_events("2024-01-02", "2024-01-02")
    assert tid == "123-1"
    service.process_queue()
    harness.models[0].do_refresh([
        harness.occurrence("c", datetime(2024, 1, 2, 9), datetime(2024, 1, 2, 10)),
    ])
    result_id, items = harness.results[0]
    assert result_id == tid
    assert [(item.instance_id, item.cancelled) for item in items] == [("c", True)]
    assert service.current_request.transaction_id == ""


def test_requests_are_served_oldest_first(service, harness):
    first = service.get_events("2024-01-01", "2024-01-01")
    second = service.get_events("2024-02-01", "2024-02-01")
    service.process_queue()
    model = harness.models[0]
    assert model.start_date == date(2024, 1, 1)
    model.do_refresh([])
    assert model.start_date == date(2024, 2, 1)
    model.do_refresh([])
    assert [tid for tid, _ in harness.results] == [first, second]
    assert service.idle is True


def test_same_range_is_answered_without_new_agenda(service, harness):
    service.get_events("2024-01-01", "2024-01-01")
    service.process_queue()
    harness.models[0].do_refresh([])
    scheduled = len(harness.scheduled)
    tid = service.get_events("2024-01-01", "2024-01-01")
    service.process_queue()
    assert len(harness.models) == 1
    assert len(harness.scheduled) == scheduled
    assert harness.results[-1] == (tid, [])


def test_update_without_request_is_discarded(service, harness):
    tid = service.get_events("2024-01-01", "2024-01-01")
    service.process_queue()
    model = harness.models[0]
    model.do_refresh([])
    model.do_refresh([])
    assert [result_id for result_id, _ in harness.results] == [tid]
    assert service.current_request.transaction_id == ""
    assert service.idle is True


def test_shutdown_releases_agenda_and_signals(service, harness):
    calls = []
    service.connect("shut_down", lambda: calls.append(True))
    service.get_events("2024-01-01", "2024-01-01")
    service.process_queue()
    service.shutdown()
    assert calls == [True]
    assert service.agenda is None
    assert service.running is False


def test_connect_unknown_signal_raises(service):
    with pytest.raises(ValueError):
        service.connect("no_such_signal", lambda: None)