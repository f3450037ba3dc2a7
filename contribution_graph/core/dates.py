from collections.abc import Callable
from datetime import date
from datetime import timedelta


Clock = Callable[[], date]

MONTH_ABBREVIATIONS = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)


def sunday_weekday(day: date) -> int:
    """Return the weekday index of `day` in a Sunday-first week (Sunday is 0)."""

    return (day.weekday() + 1) % 7


def week_sunday(day: date) -> date:
    """Return the Sunday that opens the week containing `day`."""

    return day - timedelta(days=sunday_weekday(day))


def nearest_sunday(day: date) -> date:
    """Return the Sunday closest to `day`.

    Monday to Wednesday fall back to the previous Sunday, Thursday to Saturday
    move on to the next one.
    """

    return week_sunday(day + timedelta(days=sunday_weekday(day)))


def one_year_before(day: date) -> date:
    # Feb 29 has no counterpart in the previous year.
    if day.month == 2 and day.day == 29:
        return day.replace(year=day.year - 1, day=28)
    return day.replace(year=day.year - 1)


def month_label(day: date) -> str:
    return MONTH_ABBREVIATIONS[day.month - 1]
