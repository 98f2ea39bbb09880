import calendar
from datetime import date


def shift_months(day: date, months: int) -> date:
    """Move a date by whole months, clamping the day to the target month's length"""
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def iter_months(start: date, end: date):
    """Yield 'YYYY-MM' keys from start's month through end's month"""
    current = date(start.year, start.month, 1)
    while current <= end:
        yield month_key(current)
        current = shift_months(current, 1)
