"""Persistence — the append-only drop event log."""

from lodge.persistence.event_log import EventKind, EventLog, EventRecord

__all__ = ["EventKind", "EventLog", "EventRecord"]
