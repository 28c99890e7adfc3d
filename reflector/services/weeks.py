"""Sequential weekday-week arithmetic.

Weeks run Monday to Friday and are numbered from the start of the calendar
year. Week 1 begins on the Monday of the week containing January 1st when
January 1st is a weekday, otherwise on the first Monday after it. Weekend days
belong to the week that just ended. These are not ISO weeks.
"""

from datetime import date, datetime, timedelta


def week1_start(year: int) -> date:
    """Monday on which week 1 of ``year`` begins."""
    jan1 = date(year, 1, 1)
    weekday = jan1.weekday()  # Monday == 0
    if weekday <= 4:
        return jan1 - timedelta(days=weekday)
    return jan1 + timedelta(days=7 - weekday)


def week_start(year: int, week: int) -> date:
    """Monday of the given sequential week."""
    if week < 1:
        raise ValueError(f"week must be >= 1, got {week}")
    return week1_start(year) + timedelta(weeks=week - 1)


def week_date_range(year: int, week: int) -> tuple[date, date]:
    """Monday and Friday of the given week."""
    start = week_start(year, week)
    return start, start + timedelta(days=4)


def week_of(day: date | datetime) -> tuple[int, int]:
    """Return the ``(year, week)`` a calendar day belongs to."""
    if isinstance(day, datetime):
        day = day.date()

    year = day.year
    if day >= week1_start(year + 1):
        return year + 1, 1

    first = week1_start(year)
    if day < first:
        # Weekend days before the first Monday close out the previous year
        return week_of(date(year - 1, 12, 31))

    return year, (day - first).days // 7 + 1


def reflection_month(year: int, week: int) -> int:
    """Calendar month (1-12) a week is grouped under.

    Derived from the week's Monday; week 1 starting in December counts as January.
    """
    start = week_start(year, week)
    if start.year < year:
        return 1
    return start.month


def target_week(now: datetime) -> tuple[int, int]:
    """The most recently finished week as of ``now``.

    On a weekend that is the current week; on a weekday it is the previous one.
    """
    day = now.date()
    if day.weekday() <= 4:
        day -= timedelta(days=7)
    return week_of(day)
