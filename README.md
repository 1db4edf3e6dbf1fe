# agendakit

Models for presenting calendar data. The package has an agenda of event
occurrences, events and their editable modifications, and attendee and
contact lists. It also has an in-process event data service and a matching
client-side events model.

## Installation

```
pip install .
```

Install the `test` extra (`pip install .[test]`) to get what the test suite needs.

## Modules

- `agendakit.eventdata`: `EventData`, the flat event summary that the data
  service hands out, with its times held as ISO 8601 strings.
  `to_dbus()` returns the fields as a tuple in wire order.
  `EventData.from_dbus(values)` builds an instance from such a tuple. It
  raises `ValueError` when the number of values is wrong and `TypeError`
  when a value has the wrong type.
- `agendakit.contacts`: `ContactModel`, an ordered list of `EmailContact`
  entries. It offers `append`, `prepend`, `remove`, `has_email`, `name`,
  `email`, `contacts()`, and `data(row, role)` with the `ContactRole` values.
  An index that is out of range is ignored, or gives an empty string or
  `None`.
- `agendakit.attendees`: `Person` and `AttendeeModel`. `Person.section()`
  places a person in a `SectionRole`. `AttendeeModel.fill(people)` adds people
  and sorts the model by section (organizer, required, chair, optional,
  non-participant) and then by name in locale order. It raises `TypeError` for
  anything that is not a `Person`.
- `agendakit.event`: the event enums (`Recur`, `Day`, `Secrecy`, `Response`,
  `SyncFailure`, `SyncFailureResolution`, `Status`, `TimeSpec`) and the plain
  `EventRecord`. It also has the read-only `CalendarEvent` and `StoredEvent`,
  which sends responses, deletions and lookups to a backend object that you
  supply.
- `agendakit.occurrence`: `EventOccurrence`, one dated instance of an event,
  which finds its event through a resolver callable.
  `to_event_datetime(value, spec, timezone)` gives a time as wall-clock time
  in the event's own zone.
- `agendakit.modification`: `EventModification`, an editable copy of an
  event. Its `save()` calls your saver with the record, whether attendees were
  set, and the lists of required and optional attendees.
- `agendakit.agenda`: `AgendaModel`, a list of occurrences kept sorted by
  start time, then by label ignoring case, then by instance id.
  `do_refresh(new_events)` applies the `FilterMode` flags and merges the
  events into the existing rows. It emits `rows_removed`, `rows_inserted`,
  `count_changed` and `updated`. `refresh()` asks the scheduler callable you
  passed in for fresh data.
- `agendakit.eventsmodel`: `EventsModel`, the client-side list of
  `EventData`.
  - It applies an `EventsFilter`, a `ContentType` and an event limit, and
    works out `expiry_date`.
  - Changing a property only schedules an update. `update_pending()` carries
    it out by calling your `request_events(start, end)` callable.
  - Results arrive through `get_events_result(transaction_id, events, now)`.
- `agendakit.dataservice`: `DataService`, which queues date-range requests.
  - `get_events` returns a transaction id.
  - `process_queue()` answers the requests one at a time from an
    `AgendaModel`. Each answer is emitted as the `get_events_result` signal,
    with the transaction id and a list of `EventData`.
  - `shutdown()` releases the agenda and emits `shut_down`.

Events, occurrences, the agenda, the events model and the data service take
observers through `connect(signal, callback)`. An unknown signal name raises
`ValueError`.

## Example

```python
from agendakit.contacts import ContactModel
from agendakit.eventdata import EventData

required = ContactModel()
required.append("Alice", "alice@example.com")
required.prepend("Bob", "bob@example.com")
assert len(required) == 2
assert required.has_email("alice@example.com")
assert required.name(0) == "Bob"

holiday = EventData(instance_id="holiday-1", start_time="2024-05-01",
                    end_time="2024-05-01", all_day=True, display_label="Holiday")
assert EventData.from_dbus(holiday.to_dbus()) == holiday
```

## What it does not do

The package has no calendar storage of its own, and it does not read or
write iCalendar data. `StoredEvent` relies on a backend that you supply.
`AgendaModel` only receives the occurrences that your scheduler hands to
`do_refresh`.

There is no message-bus transport, no timers and no command-line program.
`DataService` and `EventsModel` are plain objects, and your code calls their
methods to move requests and results between them. The `EventData` entries
that `DataService` emits leave `calendar_uid` and `location` empty.

## Running the tests

```
pytest
```