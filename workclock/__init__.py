"""
Work clock ledger: clock in/out events kept in strict alternation, legacy
log reconciliation, and daily session projection.
"""

__version__ = "1.0.0"

from .config import load_config, WorkClockConfig
from .data import EventStore, TimestampEvent, open_database
from .services import ClockController, ClockService, project


def open_ledger(config: WorkClockConfig = None) -> ClockController:
    """
    Open the configured ledger database and return its controller.

    Args:
        config: Configuration, read from the environment when omitted
    """
    config = config or load_config()
    database = open_database(config.db_file, passphrase=config.passphrase)
    return ClockController(EventStore(database))


__all__ = [
    'open_ledger',
    'load_config',
    'WorkClockConfig',
    'EventStore',
    'TimestampEvent',
    'open_database',
    'ClockController',
    'ClockService',
    'project',
]
