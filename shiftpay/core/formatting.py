"""Finnish number, currency and time formatting for API consumers."""

import datetime

from shiftpay.core.config import DATETIME_INPUT_FORMAT, TIME_FORMAT_HM

NBSP = "\u00a0"
MINUS_SIGN = "\u2212"


def format_number(value: float, decimals: int = 2) -> str:
    """
    Formats a number with Finnish notation.

    Comma as decimal separator, non-breaking space between thousands,
    e.g. 1234.5 -> "1 234,50".
    """
    text = f"{abs(value):,.{decimals}f}"
    text = text.replace(",", NBSP).replace(".", ",")
    if value < 0 and text.strip("0, "):
        return MINUS_SIGN + text
    return text


def format_currency(amount: float) -> str:
    """Formats an amount as euros, e.g. 12.95 -> "12,95 €"."""
    return f"{format_number(amount)}{NBSP}€"


def format_hours(hours: float) -> str:
    return f"{hours:.1f}"


def format_time(instant: datetime.datetime) -> str:
    return instant.strftime(TIME_FORMAT_HM)


def format_datetime_for_input(instant: datetime.datetime) -> str:
    """Format for a datetime-local input, e.g. "2025-03-04T08:00"."""
    return instant.strftime(DATETIME_INPUT_FORMAT)
