import asyncio
from datetime import date

import httpx
import pytest

from contribution_graph.models import ContributionRecord
from contribution_graph.models import DateRange
from contribution_graph.models import GraphRequest
from contribution_graph.models import UnifiedSeries
from contribution_graph.models import YearSummary
from contribution_graph.services.graph_service import NoDataAvailableError
from contribution_graph.services.graph_service import build_year_graph
from contribution_graph.services.graph_service import count_contributions
from contribution_graph.services.graph_service import count_last_year_contributions
from contribution_graph.services.graph_service import count_year_contributions
from contribution_graph.services.graph_service import get_graph_data


TODAY = date(2024, 6, 15)


def clock() -> date:
    return TODAY


def record(day: date, count: int) -> ContributionRecord:
    return ContributionRecord(date=day, count=count, color="#c6e48b", intensity=1)


def summary(year: int, total: int) -> YearSummary:
    return YearSummary(
        year=year,
        total=total,
        range=DateRange(start=date(year, 1, 1), end=date(year, 12, 31)),
    )


class FakeSource:
    def __init__(self, series: UnifiedSeries) -> None:
        self.series = series
        self.usernames: list[str] = []

    async def fetch(self, username: str) -> UnifiedSeries:
        self.usernames.append(username)
        return self.series


class FailingSource:
    async def fetch(self, username: str) -> UnifiedSeries:
        request = httpx.Request("GET", f"https://github-calendar.now.sh/v1/{username}")
        raise httpx.ConnectError("connection refused", request=request)


def test_count_year_contributions_returns_summary_total() -> None:
    series = UnifiedSeries(years=[summary(2023, 120), summary(2022, 40)])

    assert count_year_contributions(series, 2022) == 40


def test_count_year_contributions_returns_zero_for_missing_year() -> None:
    series = UnifiedSeries(years=[summary(2023, 120)])

    assert count_year_contributions(series, 2019) == 0


def test_count_last_year_sums_from_year_ago_and_excludes_today() -> None:
    series = UnifiedSeries(
        contributions=[
            record(date(2023, 6, 14), 1000),
            record(date(2023, 6, 15), 100),
            record(date(2023, 6, 16), 1),
            record(date(2024, 6, 14), 2),
            record(TODAY, 50),
        ]
    )

    assert count_last_year_contributions(series, clock) == 103


def test_count_last_year_is_zero_without_record_for_today() -> None:
    series = UnifiedSeries(
        years=[summary(2024, 30)],
        contributions=[record(date(2024, 6, 13), 10), record(date(2024, 6, 14), 20)],
    )

    assert count_last_year_contributions(series, clock) == 0


def test_count_last_year_falls_back_to_oldest_record() -> None:
    series = UnifiedSeries(
        contributions=[
            record(date(2024, 6, 1), 4),
            record(date(2024, 6, 10), 6),
            record(TODAY, 9),
        ]
    )

    assert count_last_year_contributions(series, clock) == 10


def test_count_last_year_handles_newest_first_input() -> None:
    series = UnifiedSeries(
        contributions=[
            record(TODAY, 50),
            record(date(2024, 6, 14), 2),
            record(date(2023, 6, 16), 1),
            record(date(2023, 6, 15), 100),
        ]
    )

    assert count_last_year_contributions(series, clock) == 103

def test_count_contributions_switches_on_full_year() -> None:
    series = UnifiedSeries(
        years=[summary(2024, 500)],
        contributions=[record(date(2024, 6, 14), 3), record(TODAY, 1)],
    )

    assert count_contributions(2024, series, False, clock) == 500
    assert count_contributions(2024, series, True, clock) == 3


def test_build_year_graph_composes_blocks_labels_and_total() -> None:
    series = UnifiedSeries(
        years=[summary(2023, 7)], contributions=[record(date(2023, 3, 5), 7)]
    )

    graph = build_year_graph(2023, series, False, clock)

    assert graph.year == 2023
    assert graph.total_count == 7
    assert graph.blocks[0][0].date == date(2023, 1, 1)
    assert graph.month_labels[0].label == "Jan"


def test_get_graph_data_merges_sources_and_keeps_request_order() -> None:
    primary = FakeSource(
        UnifiedSeries(
            years=[summary(2023, 8), summary(2022, 1)],
            contributions=[record(date(2023, 6, 1), 5), record(date(2023, 6, 2), 3)],
        )
    )
    secondary = FakeSource(
        UnifiedSeries(
            contributions=[ContributionRecord(date=date(2023, 6, 1), count=2)]
        )
    )
    request = GraphRequest(
        primary_username="octocat", secondary_username="tanuki", years=[2023, 2022]
    )

    graphs = asyncio.run(get_graph_data(request, primary, secondary, clock))

    assert [graph.year for graph in graphs] == [2023, 2022]
    assert graphs[0].total_count == 9
    assert graphs[1].total_count == 1
    cells = {cell.date: cell for week in graphs[0].blocks for cell in week}
    assert cells[date(2023, 6, 1)].info.count == 7
    assert cells[date(2023, 6, 2)].info.count == 3
    assert primary.usernames == ["octocat"]
    assert secondary.usernames == ["tanuki"]


def test_get_graph_data_ignores_full_year_for_past_years() -> None:
    primary = FakeSource(
        UnifiedSeries(
            years=[summary(2022, 4)], contributions=[record(date(2022, 5, 1), 4)]
        )
    )
    secondary = FakeSource(UnifiedSeries())

    rolling = asyncio.run(
        get_graph_data(
            GraphRequest(full_year=True, primary_username="octocat", years=[2022]),
            primary,
            secondary,
            clock,
        )
    )
    calendar = asyncio.run(
        get_graph_data(
            GraphRequest(full_year=False, primary_username="octocat", years=[2022]),
            primary,
            secondary,
            clock,
        )
    )

    assert rolling == calendar


def test_get_graph_data_uses_rolling_window_for_current_year() -> None:
    primary = FakeSource(
        UnifiedSeries(
            years=[summary(2024, 11)],
            contributions=[record(date(2024, 6, 14), 11), record(TODAY, 0)],
        )
    )

    graphs = asyncio.run(
        get_graph_data(
            GraphRequest(full_year=True, primary_username="octocat", years=[2024]),
            primary,
            FakeSource(UnifiedSeries()),
            clock,
        )
    )

    assert graphs[0].blocks[-1][-1].date == TODAY
    assert graphs[0].total_count == 11


def test_get_graph_data_skips_sources_without_username() -> None:
    primary = FakeSource(UnifiedSeries(years=[summary(2024, 0)]))
    secondary = FakeSource(UnifiedSeries())

    asyncio.run(
        get_graph_data(
            GraphRequest(primary_username="octocat", years=[2024]),
            primary,
            secondary,
            clock,
        )
    )

    assert secondary.usernames == []


def test_get_graph_data_raises_when_no_years_available() -> None:
    primary = FakeSource(UnifiedSeries(contributions=[record(date(2024, 6, 1), 1)]))

    with pytest.raises(NoDataAvailableError, match="No data available"):
        asyncio.run(
            get_graph_data(
                GraphRequest(primary_username="octocat", years=[2024]),
                primary,
                FakeSource(UnifiedSeries()),
                clock,
            )
        )


def test_get_graph_data_propagates_transport_errors() -> None:
    with pytest.raises(httpx.ConnectError):
        asyncio.run(
            get_graph_data(
                GraphRequest(primary_username="octocat", years=[2024]),
                FailingSource(),
                FakeSource(UnifiedSeries()),
                clock,
            )
        )
