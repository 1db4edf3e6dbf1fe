import pytest

from agendakit.eventdata import DBUS_SIGNATURE, EventData


def _sample():
    return EventData(
        calendar_uid="cal-1",
        instance_id="inst-1",
        start_time="2024-05-01T10:00:00",
        end_time="2024-05-01T11:00:00",
        all_day=False,
        color="#ff0000",
        display_label="Meeting",
        description="Weekly sync",
        location="Room A",
        cancelled=True,
    )


def test_to_dbus_wire_order():
    event = _sample()
    assert event.to_dbus() == (
        "cal-1",
        "inst-1",
        "2024-05-01T10:00:00",
        "2024-05-01T11:00:00",
        False,
        "#ff0000",
        "Meeting",
        "Weekly sync",
        "Room A",
        True,
    )


def test_round_trip():
    event = _sample()
    assert EventData.from_dbus(event.to_dbus()) == event


def test_round_trip_from_list():
    event = _sample()
    assert EventData.from_dbus(list(event.to_dbus())) == event


def test_signature_matches_field_count():
    assert len(DBUS_SIGNATURE) - 2 == len(_sample().to_dbus())


def test_from_dbus_wrong_length():
    with pytest.raises(ValueError):
        EventData.from_dbus(("a", "b"))


def test_from_dbus_wrong_type():
    values = list(_sample().to_dbus())
    values[4] = "yes"
    with pytest.raises(TypeError):
        EventData.from_dbus(values)


def test_defaults_round_trip():
    event = EventData()
    assert EventData.from_dbus(event.to_dbus()) == event
    assert event.all_day is False and event.cancelled is False