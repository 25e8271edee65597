"""
Database module for the work clock ledger.
Uses SQLite through peewee, or SQLCipher for AES-256 encryption at rest when
a passphrase is configured.
"""
import datetime
import logging
import secrets
import string

from peewee import Model, CharField, BooleanField, Field, SqliteDatabase

from ..utils.time_utils import format_store_timestamp, parse_store_timestamp

logger = logging.getLogger(__name__)

DB_FILE = "workclock.db"
TABLE_NAME = "work_clock"

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_LENGTH = 15

_SQLITE_PRAGMAS = {
    'journal_mode': 'wal',
    'foreign_keys': 1,
}


def generate_record_id() -> str:
    """Generate a 15 character lowercase alphanumeric record ID"""
    return ''.join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


class UTCTimestampField(Field):
    """
    Timestamp stored as fixed-width UTC text ('2024-01-15 14:30:00.000Z').
    The format sorts lexicographically in chronological order, so range
    queries and ORDER BY work directly on the column.
    """
    field_type = 'TEXT'

    def db_value(self, value):
        if value is None:
            return None
        if isinstance(value, datetime.datetime):
            return format_store_timestamp(value)
        return value

    def python_value(self, value):
        if value is None:
            return None
        return parse_store_timestamp(value)


class BaseModel(Model):
    pass


class WorkClockEntry(BaseModel):
    id = CharField(primary_key=True, max_length=_ID_LENGTH, default=generate_record_id)
    timestamp = UTCTimestampField(null=False, index=True)
    clock_in = BooleanField(null=False)

    class Meta:
        table_name = TABLE_NAME
        indexes = (
            (('timestamp', 'clock_in'), True),  # Unique pair
        )

    def __str__(self):
        return f"{'IN' if self.clock_in else 'OUT'} @ {format_store_timestamp(self.timestamp)} ({self.id})"


def bind_entry_model(database):
    """
    Return a `WorkClockEntry` model class bound to the given database.

    Each store gets its own subclass, so two ledgers opened in the same
    process never share a database binding.
    """
    meta = type('Meta', (), {'database': database, 'table_name': TABLE_NAME})
    return type('WorkClockEntry', (WorkClockEntry,), {'Meta': meta, '__module__': __name__})


def open_database(path: str = DB_FILE, passphrase: str = None):
    """
    Create the database handle for a ledger file.

    Args:
        path: SQLite file path, or ':memory:'
        passphrase: SQLCipher passphrase. When set, the database is encrypted
            and SQLCipher must be installed.

    Returns:
        An unconnected peewee database
    """
    if passphrase:
        try:
            from playhouse.sqlcipher_ext import SqlCipherDatabase
        except ImportError:
            logger.error(
                "SQLCipher not available! Install with: pip install sqlcipher3-binary "
                "or unset the passphrase to use an unencrypted database."
            )
            raise
        logger.info("SQLCipher encryption enabled")
        return SqlCipherDatabase(
            path,
            passphrase=passphrase,
            pragmas={
                'kdf_iter': 256000,
                'cipher_page_size': 4096,
                'cipher_use_hmac': True,
                **_SQLITE_PRAGMAS,
            }
        )

    if path != ':memory:':
        logger.warning(f"No encryption key set, opening UNENCRYPTED database {path}")
    return SqliteDatabase(path, pragmas=_SQLITE_PRAGMAS)


def ensure_db_connection(database):
    """Ensure database connection is open"""
    if database.is_closed():
        try:
            database.connect(reuse_if_open=True)
            logger.debug("Database connection opened")
        except Exception as e:
            logger.error(f"Failed to open database connection: {e}")
            raise


def initialize_db(database, models):
    """Open the connection and create the ledger tables"""
    try:
        ensure_db_connection(database)
        database.create_tables(models, safe=True)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise


def close_db(database):
    """Close database connection"""
    if not database.is_closed():
        database.close()
        logger.info("Database connection closed")
