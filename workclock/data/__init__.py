"""
Data layer for the work clock ledger.

Contains the peewee model and the event store built on it.
"""

from .database import open_database
from .event_store import EventStore, TimestampEvent

__all__ = ['open_database', 'EventStore', 'TimestampEvent']
