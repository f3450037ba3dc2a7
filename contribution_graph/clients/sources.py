from collections.abc import Mapping
from datetime import date
from typing import Any
from typing import Protocol

import httpx
from pydantic import ValidationError

from contribution_graph.models import ContributionRecord
from contribution_graph.models import DateRange
from contribution_graph.models import UnifiedSeries
from contribution_graph.models import YearSummary


class InvalidSourcePayloadError(ValueError):
    """Raised when a contribution source answers with an unexpected payload."""


class ContributionSource(Protocol):
    async def fetch(self, username: str) -> UnifiedSeries: ...


class GitHubCalendarSource:
    """Primary source: a GitHub calendar service returning years and days."""

    def __init__(
        self, client: httpx.AsyncClient, base_url: str, user_agent: str
    ) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent

    def url_for(self, username: str) -> str:
        return f"{self.base_url}/{username}"

    async def fetch(self, username: str) -> UnifiedSeries:
        response = await self.client.get(
            self.url_for(username),
            headers={"Accept": "application/json", "User-Agent": self.user_agent},
        )
        response.raise_for_status()

        payload: Any = response.json()
        if not isinstance(payload, Mapping):
            raise InvalidSourcePayloadError("GitHub calendar response is invalid")

        try:
            return UnifiedSeries.model_validate(
                {
                    "years": payload.get("years") or [],
                    "contributions": payload.get("contributions") or [],
                }
            )
        except ValidationError as exc:
            raise InvalidSourcePayloadError(
                "GitHub calendar response is malformed"
            ) from exc


class GitLabCalendarSource:
    """Secondary source: GitLab's per-user `calendar.json` of daily counts.

    GitLab does not send CORS headers, so requests may be routed through a
    relay whose URL is prefixed to the target URL.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        user_agent: str,
        relay_url: str = "",
    ) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.relay_url = relay_url

    def url_for(self, username: str) -> str:
        return f"{self.relay_url}{self.base_url}/users/{username}/calendar.json"

    async def fetch(self, username: str) -> UnifiedSeries:
        response = await self.client.get(
            self.url_for(username),
            headers={"Accept": "application/json", "User-Agent": self.user_agent},
        )
        response.raise_for_status()

        payload: Any = response.json()
        if not isinstance(payload, Mapping):
            raise InvalidSourcePayloadError("GitLab calendar response is invalid")

        return series_from_daily_counts(payload)


def series_from_daily_counts(payload: Mapping[str, Any]) -> UnifiedSeries:
    """Turn a `{"YYYY-MM-DD": count}` mapping into an unclassified series."""

    counts: dict[date, int] = {}
    for raw_day, raw_count in payload.items():
        if not isinstance(raw_day, str):
            continue
        if isinstance(raw_count, bool) or not isinstance(raw_count, int):
            continue
        if raw_count < 0:
            continue
        try:
            parsed_day = date.fromisoformat(raw_day)
        except ValueError:
            continue
        counts[parsed_day] = raw_count

    contributions = [
        ContributionRecord(date=day, count=count)
        for day, count in sorted(counts.items())
    ]

    years: dict[int, list[ContributionRecord]] = {}
    for record in contributions:
        years.setdefault(record.date.year, []).append(record)

    summaries = [
        YearSummary(
            year=year,
            total=sum(record.count for record in records),
            range=DateRange(start=records[0].date, end=records[-1].date),
        )
        for year, records in sorted(years.items(), reverse=True)
    ]

    return UnifiedSeries(years=summaries, contributions=contributions)
