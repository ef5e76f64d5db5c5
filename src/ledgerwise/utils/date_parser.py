"""Date and month parsing utilities.

All month arithmetic goes through ``relativedelta`` so that a due date on
the 31st lands on the last day of shorter months.
"""

from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

# Periods accepted by get_date_range, mirrored by the txn list flags
PERIODS = ("this-month", "last-month", "this-year")


def add_months(start: date, months: int) -> date:
    """Shift a date by whole months, clamping to the end of shorter months."""
    return start + relativedelta(months=months)


def month_bounds(month: date) -> tuple[date, date]:
    """Return the first and last day of the month containing ``month``."""
    start = month.replace(day=1)
    return (start, add_months(start, 1) - timedelta(days=1))


def _relative_date(text: str, today: date) -> date | None:
    days = {"today": 0, "yesterday": -1, "tomorrow": 1}
    if text in days:
        return today + timedelta(days=days[text])

    first_of_month = today.replace(day=1)
    months = {"last month": -1, "this month": 0, "next month": 1}
    if text in months:
        return add_months(first_of_month, months[text])

    first_of_year = today.replace(month=1, day=1)
    years = {"last year": -1, "this year": 0, "next year": 1}
    if text in years:
        return first_of_year + relativedelta(years=years[text])
    return None


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "15/01/2024", "January 15, 2024"),
    read day first when ambiguous, and the relative forms "today",
    "yesterday", "tomorrow" and "last/this/next month|year". Month and year
    forms resolve to the first day of the period.

    Raises:
        ValueError: If date string cannot be parsed
    """
    text = " ".join(date_str.strip().lower().split())
    relative = _relative_date(text, date.today())
    if relative is not None:
        return relative

    try:
        return date_parser.parse(text, dayfirst=True).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_month(month_str: str) -> date:
    """Parse a month reference into the first day of that month.

    Accepts "YYYY-MM" or anything parse_date understands.

    Raises:
        ValueError: If the string cannot be parsed
    """
    value = month_str.strip()
    parts = value.split("-")
    if len(parts) == 2 and all(part.isdigit() for part in parts):
        try:
            return date(int(parts[0]), int(parts[1]), 1)
        except ValueError as e:
            raise ValueError(f"Could not parse month '{month_str}': {e}")
    return parse_date(value).replace(day=1)


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a named period.

    Current periods end today; "last-month" covers the whole previous month.

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    if period == "this-month":
        return (today.replace(day=1), today)
    if period == "last-month":
        return month_bounds(add_months(today.replace(day=1), -1))
    if period == "this-year":
        return (today.replace(month=1, day=1), today)
    raise ValueError(f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}")
