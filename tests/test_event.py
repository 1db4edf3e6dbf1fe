from datetime import date, datetime, timedelta, timezone, tzinfo
from types import SimpleNamespace

import pytest

from agendakit.event import (
    CalendarEvent,
    Day,
    EventRecord,
    Recur,
    Response,
    Status,
    StoredEvent,
    TimeSpec,
)


class _NamedZone(tzinfo):
    def __init__(self, key, hours):
        self.key = key
        self._offset = timedelta(hours=hours)

    def utcoffset(self, dt):
        return self._offset

    def dst(self, dt):
        return timedelta(0)

    def tzname(self, dt):
        return self.key


class FakeBackend:
    def __init__(self, accept=True):
        self.accept = accept
        self.calls = []
        self.parents = {}

    def send_response(self, instance_id, response):
        self.calls.append(("send_response", instance_id, response))
        return self.accept

    def save(self):
        self.calls.append(("save",))

    def delete_event(self, instance_id, time):
        self.calls.append(("delete_event", instance_id, time))

    def convert_event_to_icalendar(self, instance_id, prod_id):
        self.calls.append(("ical", instance_id, prod_id))
        return f"ICS:{instance_id}:{prod_id}"

    def event_object(self, instance_id):
        return self.parents.get(instance_id)

    def notebook_color(self, notebook_uid):
        return {"nb1": "#ff0000"}.get(notebook_uid, "")

    def dissociate_single_occurrence(self, instance_id, start_time):
        self.calls.append(("dissociate", instance_id, start_time))
        return EventRecord(instance_id=instance_id + "-x", start_time=start_time)


def _recorder(event, signals):
    seen = []
    for name in signals:
        event.connect(name, lambda name=name: seen.append(name))
    return seen


def test_record_validity_follows_instance_id():
    assert not EventRecord().is_valid()
    assert EventRecord(instance_id="abc").is_valid()


def test_event_copies_record():
    record = EventRecord(display_label="Meeting", instance_id="id1")
    event = CalendarEvent(record)
    record.display_label = "Changed"
    assert event.display_label == "Meeting"
    copy_of_event = CalendarEvent(event)
    assert copy_of_event.instance_id == "id1"
    assert copy_of_event.record == event.record


def test_empty_event_defaults():
    event = CalendarEvent(None)
    assert event.instance_id == ""
    assert event.recur is Recur.ONCE
    assert event.recur_weekly_days == Day.NO_DAYS
    assert event.start_time is None
    assert not event.is_exception


def test_bad_source_raises():
    with pytest.raises(TypeError):
        CalendarEvent(42)


def test_start_time_is_wall_clock():
    start = datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)
    event = CalendarEvent(EventRecord(start_time=start))
    assert event.start_time == datetime(2024, 5, 1, 10, 30)
    assert event.start_time.tzinfo is None


def test_time_specs_and_zones():
    record = EventRecord(
        start_time=datetime(2024, 5, 1, 10, tzinfo=timezone.utc),
        end_time=datetime(2024, 5, 1, 11, tzinfo=timezone(timedelta(hours=2))),
    )
    event = CalendarEvent(record)
    assert event.start_time_spec is TimeSpec.UTC
    assert event.start_time_zone == "UTC"
    assert event.end_time_spec is TimeSpec.OFFSET_FROM_UTC
    assert event.end_time_zone == "UTC+02:00"

    zoned = CalendarEvent(
        EventRecord(start_time=datetime(2024, 5, 1, 10, tzinfo=_NamedZone("Europe/Helsinki", 3)))
    )
    assert zoned.start_time_spec is TimeSpec.TIME_ZONE
    assert zoned.start_time_zone == "Europe/Helsinki"

    local = CalendarEvent(EventRecord(start_time=datetime(2024, 5, 1, 10)))
    assert local.start_time_spec is TimeSpec.LOCAL_TIME


def test_recur_end_date_is_end_of_day():
    event = CalendarEvent(EventRecord(recur_end_date=date(2024, 1, 31)))
    assert event.has_recur_end_date
    assert event.recur_end_date == datetime(2024, 1, 31, 23, 59, 59, 999000)
    assert CalendarEvent(EventRecord()).recur_end_date is None


def test_exception_detection():
    event = CalendarEvent(EventRecord(recurrence_id=datetime(2024, 1, 1, 9)))
    assert event.is_exception


def test_connect_unknown_signal_raises():
    with pytest.raises(ValueError):
        CalendarEvent(None).connect("nonsense", lambda: None)
    with pytest.raises(ValueError):
        CalendarEvent(None).connect("color_changed", lambda: None)


def test_notebook_color_changed_only_for_own_notebook():
    event = StoredEvent(FakeBackend(), EventRecord(calendar_uid="nb1"))
    seen = _recorder(event, ["color_changed"])
    event.notebook_color_changed("other")
    assert seen == []
    event.notebook_color_changed("nb1")
    assert seen == ["color_changed"]


def test_instance_id_notified_updates_ids():
    event = StoredEvent(FakeBackend(), EventRecord(instance_id="old", calendar_uid="nb0"))
    seen = _recorder(event, ["instance_id_changed", "calendar_uid_changed", "color_changed"])
    event.instance_id_notified("unrelated", "new", "nb1")
    assert event.instance_id == "old"
    assert seen == []
    event.instance_id_notified("old", "new", "nb1")
    assert event.instance_id == "new"
    assert event.calendar_uid == "nb1"
    assert seen == ["instance_id_changed", "calendar_uid_changed", "color_changed"]


def test_send_response_saves_on_success():
    backend = FakeBackend(accept=True)
    event = StoredEvent(backend, EventRecord(instance_id="id1"))
    assert event.send_response(1) is True
    assert backend.calls == [("send_response", "id1", Response.ACCEPT), ("save",)]


def test_send_response_failure_does_not_save():
    backend = FakeBackend(accept=False)
    event = StoredEvent(backend, EventRecord(instance_id="id1"))
    assert event.send_response(3) is False
    assert ("save",) not in backend.calls


def test_delete_event():
    backend = FakeBackend()
    StoredEvent(backend, EventRecord(instance_id="id1")).delete_event()
    assert backend.calls == [("delete_event", "id1", None), ("save",)]


def test_icalendar():
    backend = FakeBackend()
    assert StoredEvent(backend, EventRecord()).icalendar("prod") == ""
    assert backend.calls == []
    saved = StoredEvent(backend, EventRecord(instance_id="id1"))
    assert saved.icalendar("prod") == "ICS:id1:prod"


def test_recurring_parent():
    backend = FakeBackend()
    parent = StoredEvent(backend, EventRecord(instance_id="series"))
    backend.parents["series"] = parent
    exception = StoredEvent(
        backend,
        EventRecord(instance_id="x", incidence_uid="series", recurrence_id=datetime(2024, 1, 1)),
    )
    assert exception.recurring_parent() is parent
    assert parent.recurring_parent() is None


def test_color_from_backend():
    event = StoredEvent(FakeBackend(), EventRecord(calendar_uid="nb1"))
    assert event.color() == "#ff0000"


def test_set_event_emits_only_changes():
    event = StoredEvent(FakeBackend(), EventRecord(display_label="A", location="here"))
    seen = _recorder(event, sorted(StoredEvent.SIGNALS))
    event.set_event(EventRecord(display_label="B", location="here", status=Status.CANCELLED))
    assert sorted(seen) == ["display_label_changed", "status_changed"]
    assert event.display_label == "B"
    assert event.status is Status.CANCELLED


def test_set_event_none_keeps_data():
    event = StoredEvent(FakeBackend(), EventRecord(display_label="A"))
    event.set_event(None)
    assert event.display_label == "A"


def test_dissociate_single_occurrence():
    backend = FakeBackend()
    event = StoredEvent(backend, EventRecord(instance_id="id1"))
    assert event.dissociate_single_occurrence(None) == EventRecord()
    start = datetime(2024, 3, 4, 8)
    result = event.dissociate_single_occurrence(SimpleNamespace(start_time=start))
    assert result.start_time == start
    assert backend.calls == [("dissociate", "id1", start)]