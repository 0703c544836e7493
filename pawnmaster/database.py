"""Settings database for PawnMaster.

Persists shop defaults (interest rate, contract duration) between runs.
The ledger itself lives in memory; only configuration is stored here.
"""
import sqlite3
from contextlib import contextmanager
from datetime import datetime

from pawnmaster.config import (
    DEFAULT_DURATION_DAYS,
    DEFAULT_INTEREST_RATE,
    SETTING_DEFAULT_DURATION,
    SETTING_DEFAULT_RATE,
    LedgerConfig,
)
from pawnmaster.exceptions import DatabaseError, TransactionError, ValidationError
from pawnmaster.logging_setup import get_logger

logger = get_logger(__name__)


class SettingsDatabase:
    """Key/value store for shop settings, one row per key.

    Each row records when it was last written so a changed default can be
    traced back.
    """

    def __init__(self, db_name="pawn_master.db"):
        self.db_name = db_name
        try:
            self.conn = sqlite3.connect(db_name)
        except sqlite3.Error as e:
            raise DatabaseError(f"Cannot open settings database: {e}", {'db_name': db_name})
        self._closed = False
        self.create_tables()

    def close(self):
        if self._closed:
            return
        self.conn.close()
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @contextmanager
    def transaction(self):
        """Group several ``set_setting(..., commit=False)`` calls into one commit.

        On a sqlite failure every pending write is rolled back and
        TransactionError is raised; other exceptions roll back and propagate.
        """
        try:
            yield
        except sqlite3.Error as e:
            self.conn.rollback()
            raise TransactionError(f"Saving settings failed: {e}", {'db_name': self.db_name})
        except Exception:
            self.conn.rollback()
            raise
        self.conn.commit()

    def create_tables(self):
        self.conn.execute(
            "CREATE TABLE IF NOT EXISTS settings ("
            "key TEXT PRIMARY KEY, value TEXT, updated_at TEXT)"
        )
        self.conn.commit()

    def get_setting(self, key, default=None):
        row = self.conn.execute("SELECT value FROM settings WHERE key=?", (key,)).fetchone()
        if row is None:
            return default
        return row[0]

    def set_setting(self, key, value, commit=True):
        self.conn.execute(
            "INSERT OR REPLACE INTO settings (key, value, updated_at) VALUES (?, ?, ?)",
            (key, str(value), datetime.now().isoformat(timespec="seconds")),
        )
        if commit:
            self.conn.commit()


def _parse_number(raw, cast, fallback, key):
    if raw is None:
        return fallback
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Ignoring unreadable setting %s=%r", key, raw)
        return fallback
    if value <= 0:
        logger.warning("Ignoring non-positive setting %s=%r", key, raw)
        return fallback
    return value


def load_config(db: SettingsDatabase) -> LedgerConfig:
    """Read contract defaults; missing or unreadable values fall back to the built-ins."""
    rate = _parse_number(db.get_setting(SETTING_DEFAULT_RATE), float,
                         DEFAULT_INTEREST_RATE, SETTING_DEFAULT_RATE)
    duration = _parse_number(db.get_setting(SETTING_DEFAULT_DURATION), int,
                             DEFAULT_DURATION_DAYS, SETTING_DEFAULT_DURATION)
    if float(rate).is_integer():
        rate = int(rate)
    return LedgerConfig(default_interest_rate=rate, default_duration_days=duration)


def validate_config(config: LedgerConfig) -> LedgerConfig:
    """Apply the same positivity rule that load_config uses when reading back.

    Raises:
        ValidationError: If the rate or duration is not greater than zero.
    """
    if config.default_interest_rate is None or config.default_interest_rate <= 0:
        raise ValidationError("default_interest_rate must be greater than zero",
                              SETTING_DEFAULT_RATE, config.default_interest_rate)
    if config.default_duration_days is None or config.default_duration_days <= 0:
        raise ValidationError("default_duration_days must be greater than zero",
                              SETTING_DEFAULT_DURATION, config.default_duration_days)
    return config


def save_config(db: SettingsDatabase, config: LedgerConfig) -> None:
    validate_config(config)
    with db.transaction():
        db.set_setting(SETTING_DEFAULT_RATE, config.default_interest_rate, commit=False)
        db.set_setting(SETTING_DEFAULT_DURATION, config.default_duration_days, commit=False)
