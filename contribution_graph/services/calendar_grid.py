from datetime import date
from datetime import timedelta

from contribution_graph.core.dates import Clock
from contribution_graph.core.dates import month_label
from contribution_graph.core.dates import nearest_sunday
from contribution_graph.models import Cell
from contribution_graph.models import MonthLabel
from contribution_graph.models import UnifiedSeries


ROLLING_WINDOW_DAYS = 365
DECEMBER = 12


def graph_window(
    year: int, full_year: bool, clock: Clock = date.today
) -> tuple[date, date]:
    """Return the inclusive date range drawn for `year`."""

    if full_year:
        today = clock()
        return today - timedelta(days=ROLLING_WINDOW_DAYS), today
    return date(year, 1, 1), date(year, 12, 31)


def build_blocks(
    year: int,
    series: UnifiedSeries,
    full_year: bool,
    clock: Clock = date.today,
) -> list[list[Cell]]:
    """Project the series onto Sunday-first week columns.

    Columns start at the Sunday nearest to the window start and the last
    column stops at the window end.
    """

    first_day, last_day = graph_window(year, full_year, clock)
    records = {record.date: record for record in series.contributions}

    blocks: list[list[Cell]] = []
    week_start = nearest_sunday(first_day)
    while week_start <= last_day:
        week: list[Cell] = []
        for offset in range(7):
            day = week_start + timedelta(days=offset)
            if day > last_day:
                break
            week.append(Cell(date=day, info=records.get(day)))
        blocks.append(week)
        week_start += timedelta(days=7)

    return blocks


def build_month_labels(blocks: list[list[Cell]], full_year: bool) -> list[MonthLabel]:
    """Label the columns where a new month begins.

    The last column of a rolling window is left out, and a December at the
    very first column is not labelled.
    """

    weeks = blocks[:-1] if full_year else blocks
    # None, not January: the first column is labelled even when it is January.
    previous_month: int | None = None

    labels: list[MonthLabel] = []
    for x, week in enumerate(weeks):
        first_day = week[0].date
        if first_day.month == previous_month:
            continue
        if x == 0 and first_day.month == DECEMBER:
            continue
        labels.append(MonthLabel(x=x, label=month_label(first_day)))
        previous_month = first_day.month

    return labels
