from datetime import date, datetime, timedelta
import calendar
from utils.constants import DATE_FORMAT, MONTH_FORMAT
from utils.errors import InvalidInputError


def today() -> date:
    return date.today()


def current_month_str() -> str:
    return date.today().strftime(MONTH_FORMAT)


def parse_date(date_str: str) -> date | None:
    """Parse a date string in YYYY-MM-DD format, returning None on failure.

    Any time component after a 'T' is dropped so that stored timestamps
    compare as calendar dates.
    """
    if not date_str:
        return None
    date_part = date_str.strip().split("T")[0].split(" ")[0]
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(date_part, fmt).date()
        except ValueError:
            continue
    return None


def to_date(value, field: str = "date") -> date:
    """Normalize a date, datetime or ISO string to a calendar date.

    Raises InvalidInputError for anything that cannot be read as a date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        parsed = parse_date(value)
        if parsed is not None:
            return parsed
    raise InvalidInputError(f"Invalid {field}: {value!r}", field=field)


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def format_month(d: date) -> str:
    return d.strftime(MONTH_FORMAT)


def parse_month(month_str: str) -> date | None:
    """Return the first day of the given YYYY-MM month string."""
    if not month_str:
        return None
    try:
        return datetime.strptime(month_str, MONTH_FORMAT).date()
    except ValueError:
        return None


def month_range(month_str: str) -> tuple[str, str]:
    """Return (first_day_str, last_day_str) for a YYYY-MM month."""
    d = parse_month(month_str)
    if d is None:
        raise InvalidInputError(f"Invalid month: {month_str}", field="month")
    return (
        format_date(d),
        format_date(last_day_of_month(d)),
    )


def month_bounds(d: date) -> tuple[date, date]:
    """First and last day of the month containing d."""
    return d.replace(day=1), last_day_of_month(d)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def last_day_of_month(d: date) -> date:
    return d.replace(day=days_in_month(d.year, d.month))


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    return min(day, days_in_month(year, month))


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = clamp_day_to_month(year, month, d.day)
    return d.replace(year=year, month=month, day=day)


def inclusive_days(start: date, end: date) -> int:
    """Number of calendar days from start to end, counting both ends.

    Zero or negative when end falls before start.
    """
    return (end - start).days + 1


def date_span(start: date, end: date):
    """Yield every date from start to end inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
