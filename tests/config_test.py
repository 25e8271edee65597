"""
Unit tests for environment based configuration.
"""
import logging
import os

import pytest

from workclock import open_ledger
from workclock.config import load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("WORKCLOCK_DB_FILE", "WORKCLOCK_ENV_KEY", "WORKCLOCK_LOG_LEVEL", "WORKCLOCK_EXPORT_PATH"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = load_config()

    assert config.db_file == "workclock.db"
    assert config.passphrase is None
    assert config.log_level == logging.INFO
    assert config.export_path == os.path.join(os.getcwd(), 'exports')


def test_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("WORKCLOCK_DB_FILE", str(tmp_path / "ledger.db"))
    monkeypatch.setenv("WORKCLOCK_ENV_KEY", "secret")
    monkeypatch.setenv("WORKCLOCK_LOG_LEVEL", "debug")
    monkeypatch.setenv("WORKCLOCK_EXPORT_PATH", str(tmp_path / "out"))

    config = load_config()

    assert config.db_file == str(tmp_path / "ledger.db")
    assert config.passphrase == "secret"
    assert config.log_level == logging.DEBUG
    assert config.export_path == str(tmp_path / "out")


def test_unknown_log_level(monkeypatch):
    monkeypatch.setenv("WORKCLOCK_LOG_LEVEL", "chatty")

    assert load_config().log_level == logging.INFO


def test_open_ledger(monkeypatch, tmp_path):
    monkeypatch.setenv("WORKCLOCK_DB_FILE", str(tmp_path / "ledger.db"))

    controller = open_ledger()
    try:
        controller.clock_in()
        assert controller.is_clocked_in() is True
    finally:
        controller.store.close()

    assert (tmp_path / "ledger.db").exists()
