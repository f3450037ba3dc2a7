import logging

import httpx
from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Query

from contribution_graph.api.dependencies import get_clock
from contribution_graph.api.dependencies import get_http_client
from contribution_graph.api.dependencies import get_settings
from contribution_graph.clients.sources import GitHubCalendarSource
from contribution_graph.clients.sources import GitLabCalendarSource
from contribution_graph.clients.sources import InvalidSourcePayloadError
from contribution_graph.core.dates import Clock
from contribution_graph.models import GraphRequest
from contribution_graph.models import YearGraphData
from contribution_graph.services.graph_service import NoDataAvailableError
from contribution_graph.services.graph_service import get_graph_data
from contribution_graph.settings import Settings


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def root() -> dict[str, str]:
    """Return a basic service greeting."""

    return {"message": "Hello World"}


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get("/graph", response_model=list[YearGraphData])
async def get_graph(
    github: str | None = Query(default=None, max_length=100),
    gitlab: str | None = Query(default=None, max_length=100),
    years: list[int] | None = Query(default=None),
    full_year: bool = False,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
    clock: Clock = Depends(get_clock),
) -> list[YearGraphData]:
    """Return the contribution graph of every requested year."""

    request = GraphRequest(
        full_year=full_year,
        primary_username=github.strip() if github else None,
        secondary_username=gitlab.strip() if gitlab else None,
        years=years or [clock().year],
    )
    primary_source = GitHubCalendarSource(
        client, settings.github_calendar_url, settings.user_agent
    )
    secondary_source = GitLabCalendarSource(
        client,
        settings.gitlab_url,
        settings.user_agent,
        relay_url=settings.cors_relay_url,
    )

    try:
        return await get_graph_data(request, primary_source, secondary_source, clock)
    except NoDataAvailableError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except (httpx.HTTPError, InvalidSourcePayloadError) as exc:
        logger.warning("Contribution source request failed: %s", exc)
        raise HTTPException(
            status_code=502, detail="Contribution source request failed"
        ) from exc
