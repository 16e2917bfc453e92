# shiftpay/core/constants.py
from typing import Final

# ==========================
# Time units
# ==========================

#: Seconds per hour.
SECONDS_PER_HOUR: Final[int] = 3600

#: Minutes per hour.
MINUTES_PER_HOUR: Final[int] = 60


# ==========================
# Week structure
# ==========================

#: Short weekday names indexed like datetime.weekday().
WEEKDAY_ABBREVIATIONS: Final[tuple[str, ...]] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
