"""Compact event summary exchanged between the data service and its clients."""

from __future__ import annotations

from dataclasses import astuple, dataclass, fields
from typing import Any, List, Sequence, Tuple

DBUS_SIGNATURE = "(ssssbssssb)"


@dataclass
class EventData:
    """One event as sent over the bus, with times as ISO 8601 strings."""

    calendar_uid: str = ""
    instance_id: str = ""
    start_time: str = ""
    end_time: str = ""
    all_day: bool = False
    color: str = ""
    display_label: str = ""
    description: str = ""
    location: str = ""
    cancelled: bool = False

    def to_dbus(self) -> Tuple[Any, ...]:
        """Return the fields as a structure in wire order."""
        return astuple(self)

    @classmethod
    def from_dbus(cls, values: Sequence[Any]) -> "EventData":
        """Build an instance from a structure in wire order."""
        values = tuple(values)
        specs = fields(cls)
        if len(values) != len(specs):
            raise ValueError(
                f"expected {len(specs)} values, got {len(values)}"
            )
        for spec, value in zip(specs, values):
            expected = bool if spec.type in ("bool", bool) else str
            if not isinstance(value, expected):
                raise TypeError(
                    f"{spec.name} must be {expected.__name__}, "
                    f"not {type(value).__name__}"
                )
        return cls(*values)


EventDataList = List[EventData]