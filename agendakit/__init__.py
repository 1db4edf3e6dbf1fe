"""Calendar agenda, event, attendee and contact models with an in-process event data service."""

__version__ = "0.1.0"