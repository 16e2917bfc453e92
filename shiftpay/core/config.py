# shiftpay/core/config.py

import os
from pathlib import Path
from typing import Final


# ==========================
# Environment
# ==========================

#: Production mode toggles JSON logging, strict CORS and Sentry.
IS_PRODUCTION: Final[bool] = os.getenv("PRODUCTION", "false").lower() == "true"

#: SQLAlchemy URL for the configuration store and calendar state.
DATABASE_URL: Final[str] = os.getenv("DATABASE_URL", "sqlite:///./shiftpay.db")

#: Package data directory holding the reference rate table.
DATA_DIR: Final[Path] = Path(__file__).resolve().parent.parent / "data"

#: Reference configuration shipped with the package (2025 values).
DEFAULT_CONFIG_FILE: Final[Path] = DATA_DIR / "default_config.json"

#: Profile name used when the caller does not pick one.
DEFAULT_PROFILE: Final[str] = "default"

#: Service name and version reported by /health and Sentry releases.
SERVICE_NAME: Final[str] = "shiftpay"
APP_VERSION: Final[str] = "0.1.0"


# ==========================
# Shifts and breaks
# ==========================

#: Shift length used to suggest an end time when only the start is given.
DEFAULT_SHIFT_DURATION_HOURS: Final[float] = 8.0

#: Age assumed when the caller does not provide one.
DEFAULT_AGE: Final[int] = 18


# ==========================
# Calendar import
# ==========================

#: Relay used when a calendar host refuses direct fetches.
ICS_PROXY_URL: Final[str] = os.getenv("ICS_PROXY_URL", "https://api.cors.lol/?url={url}")

#: Hosts that are always fetched through the relay.
ICS_PROXY_HOSTS: Final[tuple[str, ...]] = tuple(
    host.strip()
    for host in os.getenv("ICS_PROXY_HOSTS", "calendar.google.com").split(",")
    if host.strip()
)

#: Seconds before a calendar fetch is abandoned.
ICS_FETCH_TIMEOUT: Final[float] = 15.0


# ==========================
# Date and time formats
# ==========================

#: Format of datetime-local form inputs, e.g. "2025-03-04T08:00".
DATETIME_INPUT_FORMAT: Final[str] = "%Y-%m-%dT%H:%M"

#: Format for displaying times of day.
TIME_FORMAT_HM: Final[str] = "%H:%M"
