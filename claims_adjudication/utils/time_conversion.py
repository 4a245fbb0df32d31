"""
Time conversion utilities for the claims adjudication engine.

Provides the date arithmetic used by eligibility, limit and utilization code.
"""

from datetime import date, timedelta
from dateutil.relativedelta import relativedelta


def add_days(d: date, days: int) -> date:
    """
    Add days to a date.

    Args:
        d: Base date
        days: Number of days to add (can be negative)

    Returns:
        New date
    """
    return d + timedelta(days=days)


def add_months(d: date, months: int) -> date:
    """
    Add months to a date.

    Handles end-of-month edge cases (e.g., Jan 31 + 1 month = Feb 28).

    Args:
        d: Base date
        months: Number of months to add (can be negative)

    Returns:
        New date
    """
    return d + relativedelta(months=months)


def get_age(date_of_birth: date, as_of_date: date) -> int:
    """
    Calculate age in complete years.

    Args:
        date_of_birth: Birth date
        as_of_date: Date to calculate age as of

    Returns:
        Age in complete years
    """
    age = as_of_date.year - date_of_birth.year

    # Adjust if birthday hasn't occurred yet this year
    if (as_of_date.month, as_of_date.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1

    return max(0, age)


def get_benefit_year_start(d: date, start_month: int = 1) -> date:
    """
    Get the start of the benefit year containing a date.

    Benefit years run for twelve months from the first day of
    ``start_month``. With the default of 1 this is the calendar year.

    Args:
        d: Any date in the benefit year
        start_month: Month (1-12) the benefit year starts in

    Returns:
        First day of the benefit year
    """
    if d.month >= start_month:
        return date(d.year, start_month, 1)
    return date(d.year - 1, start_month, 1)


def get_benefit_year_end(d: date, start_month: int = 1) -> date:
    """
    Get the last day of the benefit year containing a date.

    Args:
        d: Any date in the benefit year
        start_month: Month (1-12) the benefit year starts in

    Returns:
        Last day of the benefit year
    """
    return get_next_reset_date(d, start_month) - timedelta(days=1)


def get_next_reset_date(d: date, start_month: int = 1) -> date:
    """
    Get the date annual limits next reset, i.e. the next benefit year start.

    Args:
        d: Any date in the current benefit year
        start_month: Month (1-12) the benefit year starts in

    Returns:
        First day of the following benefit year
    """
    return add_months(get_benefit_year_start(d, start_month), 12)


def is_within(d: date, start: date | None, end: date | None) -> bool:
    """
    Check whether a date falls inside an optional inclusive window.

    A missing bound is open.

    Args:
        d: Date to check
        start: Window start (inclusive) or None
        end: Window end (inclusive) or None

    Returns:
        True if the date is inside the window
    """
    if start is not None and d < start:
        return False
    if end is not None and d > end:
        return False
    return True
