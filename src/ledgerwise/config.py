"""Runtime settings for ledgerwise.

Settings are read from the environment once and passed explicitly to the
services that need them; the engine itself never reads ambient state.
"""

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Mapping, Optional

DB_PATH_ENV = "LEDGERWISE_DB_PATH"
TOLERANCE_ENV = "LEDGERWISE_RECONCILIATION_TOLERANCE"
LOG_LEVEL_ENV = "LEDGERWISE_LOG_LEVEL"

# Divergences up to this amount are reported as warnings, above it as errors
RECONCILIATION_TOLERANCE = Decimal("10")


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Attributes:
        database_path: SQLite file path, or None for the default location
        reconciliation_tolerance: Largest divergence still classified as a warning
        log_level: Standard logging level name
    """

    database_path: Optional[str] = None
    reconciliation_tolerance: Decimal = RECONCILIATION_TOLERANCE
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ValueError: If the tolerance is not a non-negative number
        """
        environ = os.environ if environ is None else environ

        tolerance = RECONCILIATION_TOLERANCE
        raw_tolerance = environ.get(TOLERANCE_ENV)
        if raw_tolerance:
            try:
                tolerance = Decimal(raw_tolerance)
            except InvalidOperation:
                raise ValueError(f"Invalid {TOLERANCE_ENV} value: '{raw_tolerance}'")
            if tolerance < 0:
                raise ValueError(f"{TOLERANCE_ENV} must not be negative")

        return cls(
            database_path=environ.get(DB_PATH_ENV),
            reconciliation_tolerance=tolerance,
            log_level=environ.get(LOG_LEVEL_ENV, "WARNING").upper(),
        )


def default_database_path() -> str:
    """Return ~/.ledgerwise/ledgerwise.db, creating the directory."""
    db_dir = Path.home() / ".ledgerwise"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "ledgerwise.db")
