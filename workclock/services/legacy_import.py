"""
Import of legacy activity databases.

Two historical SQLite layouts are supported, and a file may contain both:

- ``activity_log(timestamp, active)``: one row per clock action, used as is
- ``ActiveChanges(Time, Active, StartEnd)``: raw state changes that must be
  reconciled first (see `legacy_reconciler`)

Timestamps in both tables are nanoseconds since the Unix epoch.
"""
import datetime
import logging
import os
from dataclasses import dataclass, field
from typing import List

from peewee import DatabaseError, SqliteDatabase

from .legacy_reconciler import ActiveChange, reconcile
from ..utils.errors import ParseError
from ..utils.time_utils import from_unix_nanos

logger = logging.getLogger(__name__)

ACTIVITY_LOG_TABLE = "activity_log"
ACTIVE_CHANGES_TABLE = "ActiveChanges"


@dataclass
class LegacyImportResult:
    """Events extracted from a legacy file"""
    clock_in_timestamps: List[datetime.datetime] = field(default_factory=list)
    clock_out_timestamps: List[datetime.datetime] = field(default_factory=list)
    tables: List[str] = field(default_factory=list)
    skipped_rows: int = 0

    @property
    def total(self) -> int:
        return len(self.clock_in_timestamps) + len(self.clock_out_timestamps)


def _as_int(value, column: str) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ParseError(f"Unrecognized value {value!r} in column '{column}'")


def _read_activity_log(database, result: LegacyImportResult):
    cursor = database.execute_sql(
        f"SELECT timestamp, active FROM {ACTIVITY_LOG_TABLE} ORDER BY timestamp"
    )
    for row in cursor.fetchall():
        try:
            timestamp = from_unix_nanos(_as_int(row[0], 'timestamp'))
            active = _as_int(row[1], 'active') != 0
        except (ParseError, ValueError, OverflowError, OSError) as e:
            logger.warning(f"Skipping {ACTIVITY_LOG_TABLE} row {row!r}: {e}")
            result.skipped_rows += 1
            continue

        if active:
            result.clock_in_timestamps.append(timestamp)
        else:
            result.clock_out_timestamps.append(timestamp)


def _read_active_changes(database, result: LegacyImportResult):
    cursor = database.execute_sql(
        f"SELECT Time, Active, StartEnd FROM {ACTIVE_CHANGES_TABLE} "
        "ORDER BY Time ASC, Active DESC, StartEnd DESC"
    )
    changes = []
    for row in cursor.fetchall():
        try:
            changes.append(ActiveChange(
                timestamp=from_unix_nanos(_as_int(row[0], 'Time')),
                active=_as_int(row[1], 'Active') != 0,
                is_system=_as_int(row[2], 'StartEnd') != 0,
            ))
        except (ParseError, ValueError, OverflowError, OSError) as e:
            logger.warning(f"Skipping {ACTIVE_CHANGES_TABLE} row {row!r}: {e}")
            result.skipped_rows += 1

    reconciled = reconcile(changes)
    result.clock_in_timestamps.extend(reconciled.clock_in_timestamps)
    result.clock_out_timestamps.extend(reconciled.clock_out_timestamps)


def read_legacy_file(path: str) -> LegacyImportResult:
    """
    Extract clock events from a legacy SQLite database.

    Args:
        path: Path to the legacy .db file

    Returns:
        LegacyImportResult with the events of every supported table found

    Raises:
        ParseError: if the file is missing, unreadable, or contains none of
            the supported tables
    """
    if not os.path.exists(path):
        raise ParseError(f"Legacy database not found: {path}")

    database = SqliteDatabase(f"file:{path}?mode=ro", uri=True)
    result = LegacyImportResult()
    try:
        database.connect()
        if database.table_exists(ACTIVITY_LOG_TABLE):
            result.tables.append(ACTIVITY_LOG_TABLE)
            _read_activity_log(database, result)
        if database.table_exists(ACTIVE_CHANGES_TABLE):
            result.tables.append(ACTIVE_CHANGES_TABLE)
            _read_active_changes(database, result)
    except DatabaseError as e:
        logger.error(f"Failed to read legacy database {path}: {e}")
        raise ParseError(f"Failed to read legacy database {path}: {e}") from e
    finally:
        if not database.is_closed():
            database.close()

    if not result.tables:
        raise ParseError(
            f"No '{ACTIVITY_LOG_TABLE}' or '{ACTIVE_CHANGES_TABLE}' table found in {path}"
        )

    logger.info(
        f"Read {result.total} record(s) from {', '.join(result.tables)} "
        f"({result.skipped_rows} row(s) skipped)"
    )
    return result


def import_legacy_file(controller, path: str) -> LegacyImportResult:
    """
    Read a legacy database and bulk import its events into the ledger.
    The import is all or nothing, see `ClockController.bulk_import`.
    """
    result = read_legacy_file(path)
    controller.bulk_import(result.clock_in_timestamps, result.clock_out_timestamps)
    return result
