"""
Runtime configuration for the work clock ledger.

All settings come from environment variables and are read when
`load_config()` is called, so tests can change them with monkeypatch.
"""
import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Environment variable names
ENV_DB_FILE = "WORKCLOCK_DB_FILE"
ENV_KEY_NAME = "WORKCLOCK_ENV_KEY"
ENV_LOG_LEVEL = "WORKCLOCK_LOG_LEVEL"
ENV_EXPORT_PATH = "WORKCLOCK_EXPORT_PATH"

DEFAULT_DB_FILE = "workclock.db"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class WorkClockConfig:
    """Resolved configuration values"""
    db_file: str
    passphrase: Optional[str]
    log_level: int
    export_path: str


def _parse_log_level(value: str) -> int:
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        logger.warning(f"Unknown log level '{value}', falling back to {DEFAULT_LOG_LEVEL}")
        return logging.INFO
    return level


def load_config() -> WorkClockConfig:
    """Read the configuration from the environment"""
    export_path = os.getenv(ENV_EXPORT_PATH)
    if export_path:
        export_path = os.path.expanduser(export_path)
    else:
        export_path = os.path.join(os.getcwd(), 'exports')

    return WorkClockConfig(
        db_file=os.getenv(ENV_DB_FILE) or DEFAULT_DB_FILE,
        passphrase=os.getenv(ENV_KEY_NAME) or None,
        log_level=_parse_log_level(os.getenv(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL),
        export_path=export_path,
    )


def setup_logging(config: WorkClockConfig):
    """Configure root logging for command line entry points"""
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
