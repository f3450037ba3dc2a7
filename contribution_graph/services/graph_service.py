import asyncio
import logging
from datetime import date

from contribution_graph.clients.sources import ContributionSource
from contribution_graph.core.dates import Clock
from contribution_graph.core.dates import one_year_before
from contribution_graph.models import GraphRequest
from contribution_graph.models import UnifiedSeries
from contribution_graph.models import YearGraphData
from contribution_graph.services.calendar_grid import build_blocks
from contribution_graph.services.calendar_grid import build_month_labels
from contribution_graph.services.merge import combine_sources


logger = logging.getLogger(__name__)


class GraphDataError(Exception):
    """Base error for graph data requests."""


class NoDataAvailableError(GraphDataError):
    """Raised when the merged series has no yearly summaries."""

    def __init__(self, message: str = "No data available") -> None:
        super().__init__(message)


def count_last_year_contributions(
    series: UnifiedSeries, clock: Clock = date.today
) -> int:
    """Sum the counts from one year ago up to, but not including, today."""

    contributions = series.contributions
    today = clock()
    index_by_date = {record.date: index for index, record in enumerate(contributions)}

    end = index_by_date.get(today)
    if end is None:
        return 0

    # Contributions are ordered oldest first, so index 0 is the oldest day.
    start = index_by_date.get(one_year_before(today), 0)

    return sum(record.count for record in contributions[start:end])


def count_year_contributions(series: UnifiedSeries, year: int) -> int:
    summary = series.summary_for(year)
    return summary.total if summary else 0


def count_contributions(
    year: int,
    series: UnifiedSeries,
    full_year: bool,
    clock: Clock = date.today,
) -> int:
    if full_year:
        return count_last_year_contributions(series, clock)
    return count_year_contributions(series, year)


def build_year_graph(
    year: int,
    series: UnifiedSeries,
    full_year: bool,
    clock: Clock = date.today,
) -> YearGraphData:
    blocks = build_blocks(year, series, full_year, clock)
    return YearGraphData(
        year=year,
        blocks=blocks,
        month_labels=build_month_labels(blocks, full_year),
        total_count=count_contributions(year, series, full_year, clock),
    )


async def fetch_series(
    source: ContributionSource, username: str | None
) -> UnifiedSeries:
    """Fetch one source; a missing username yields an empty series."""

    if not username:
        return UnifiedSeries()
    return await source.fetch(username)


async def get_graph_data(
    request: GraphRequest,
    primary_source: ContributionSource,
    secondary_source: ContributionSource,
    clock: Clock = date.today,
) -> list[YearGraphData]:
    """Build one graph per requested year from both contribution sources.

    Raises:
        NoDataAvailableError: If the merged series has no yearly summaries.
        httpx.HTTPError: If a source request fails.
    """

    primary, secondary = await asyncio.gather(
        fetch_series(primary_source, request.primary_username),
        fetch_series(secondary_source, request.secondary_username),
    )
    logger.info(
        "Fetched %d primary and %d secondary contribution days",
        len(primary.contributions),
        len(secondary.contributions),
    )

    series = combine_sources(primary, [secondary])
    if not series.years:
        raise NoDataAvailableError

    current_year = clock().year
    return [
        build_year_graph(
            year,
            series,
            full_year=request.full_year and year == current_year,
            clock=clock,
        )
        for year in request.years
    ]
