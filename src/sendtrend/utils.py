from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal


def round_one_decimal(value: float) -> float:
    """Round half away from zero to one decimal place (2.25 -> 2.3).

    Works on the exact binary value, so 3.05 (stored as 3.0499...) gives 3.0.
    """
    return float(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def safe_average(total: float, count: float) -> float:
    """Average rounded to one decimal, 0 when there is nothing to average."""
    if count <= 0:
        return 0.0
    return round_one_decimal(total / count)


def days_before(d: date, days: int) -> date:
    """``d`` minus ``days``, clamped to ``date.min``."""
    if days >= (d - date.min).days:
        return date.min
    return d - timedelta(days=days)


def sunday_index(d: date) -> int:
    """Weekday index with Sunday=0 ... Saturday=6."""
    return (d.weekday() + 1) % 7


def week_start_sunday(d: date) -> date:
    """The Sunday on or before ``d`` (``date.min`` if that Sunday is out of range)."""
    return days_before(d, sunday_index(d))


def format_short_date(d: date) -> str:
    """Chart label like 'Jan 10'."""
    return f"{d:%b} {d.day}"
