"""
Helper Utilities
Common utility functions used across the application
"""

import math
import secrets
import string
import uuid
from datetime import datetime, date, timezone


SPANISH_MONTHS = ['ene', 'feb', 'mar', 'abr', 'may', 'jun',
                  'jul', 'ago', 'sept', 'oct', 'nov', 'dic']


def to_number(value):
    """
    Coerce a stored numeric field to float

    Missing or malformed values degrade to 0 instead of raising.

    Args:
        value: Any value read from the state document

    Returns:
        float: Parsed number, or 0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def round_half_up(value):
    """Round to the nearest integer, halves toward positive infinity"""
    return int(math.floor(value + 0.5))


def new_id():
    """
    Generate an opaque record id

    Returns:
        str: Random UUID string
    """
    return str(uuid.uuid4())


def generate_sync_id(length=8):
    """
    Generate a short sync key shared between devices

    Format: lowercase letters and digits

    Returns:
        str: Sync id
    """
    alphabet = string.ascii_lowercase + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def utc_now_iso():
    """Current UTC time as ISO text with millisecond precision and a Z suffix"""
    return to_iso(datetime.now(timezone.utc))


def to_iso(dt):
    """Format a naive or UTC datetime the way records store dates"""
    return dt.strftime('%Y-%m-%dT%H:%M:%S.') + f"{dt.microsecond // 1000:03d}Z"


def date_prefix(value):
    """
    Calendar-day part of a stored date

    Args:
        value: ISO date text such as 2024-05-01T10:00:00.000Z

    Returns:
        str: Text before the 'T' separator ('' when missing)
    """
    if not value:
        return ''
    return str(value).split('T')[0]


def parse_date(value):
    """
    Parse a stored ISO date

    Returns:
        datetime: Parsed value, or None when it cannot be parsed
    """
    if not value:
        return None
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def month_key(value):
    """
    Year-month bucket of a stored date

    Returns:
        str: YYYY-MM, or None when the date is invalid
    """
    parsed = parse_date(value)
    if parsed is None:
        return None
    return f"{parsed.year:04d}-{parsed.month:02d}"


def shift_month(year, month, delta):
    """
    Move a (year, month) pair by delta months

    Returns:
        tuple: (year, month)
    """
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_label(year, month, with_year=True):
    """
    Short Spanish month label

    Examples: 'ene 25' with year, 'ene' without
    """
    label = SPANISH_MONTHS[month - 1]
    if with_year:
        return f"{label} {year % 100:02d}"
    return label


def trailing_months(count, today=None):
    """
    The last `count` calendar months ending with the current one

    Returns:
        list: (year, month) tuples, oldest first
    """
    today = today or date.today()
    return [shift_month(today.year, today.month, -offset)
            for offset in range(count - 1, -1, -1)]


def format_currency(amount, currency_symbol='$'):
    """
    Format amount as currency

    Args:
        amount: Numeric amount
        currency_symbol: Currency symbol

    Returns:
        str: Formatted currency string
    """
    return f"{currency_symbol}{amount:,.2f}"


def format_data_size(text):
    """Size of a serialized document in kilobytes, e.g. '1.25 KB'"""
    return f"{len(text.encode('utf-8')) / 1024:.2f} KB"
