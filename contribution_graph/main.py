from fastapi import FastAPI

from contribution_graph.api.routes.graph import router
from contribution_graph.core.middleware import GraphRateLimitMiddleware
from contribution_graph.core.observability import configure_logging
from contribution_graph.core.observability import init_sentry
from contribution_graph.settings import Settings


def create_app() -> FastAPI:
    """Build the FastAPI application with observability and rate limiting."""

    settings = Settings()
    configure_logging(settings)
    init_sentry(settings)

    app = FastAPI(title="Contribution Graph")
    app.add_middleware(
        GraphRateLimitMiddleware,
        path="/graph",
        requests_per_window=settings.rate_limit_per_minute,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.include_router(router)
    return app


app = create_app()
