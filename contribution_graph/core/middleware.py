from collections import defaultdict
from collections import deque
from collections.abc import Awaitable
from collections.abc import Callable
from threading import RLock
from time import monotonic

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


# Query parameter -> upstream service it triggers a request to.
UPSTREAM_ACCOUNT_PARAMS = {"github": "github", "gitlab": "gitlab"}


class GraphRateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window limiter for graph requests.

    A graph request is charged to the calling client and to every upstream
    account it asks for, so one calendar account cannot be hammered by
    rotating client addresses. The request is refused when any of those
    budgets is spent.
    """

    def __init__(
        self,
        app,
        path: str = "/graph",
        requests_per_window: int = 30,
        window_seconds: int = 60,
    ) -> None:
        super().__init__(app)
        self.path = path
        self.max_requests = max(1, requests_per_window)
        self.window_seconds = max(1, window_seconds)
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._lock = RLock()

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.method != "GET" or request.url.path != self.path:
            return await call_next(request)

        keys = self.budget_keys(request)
        now = monotonic()

        with self._lock:
            retry_after = self._retry_after(keys, now)
            if retry_after is not None:
                return JSONResponse(
                    status_code=429,
                    content={"detail": "Too Many Requests"},
                    headers={"Retry-After": str(retry_after)},
                )
            for key in keys:
                self._hits[key].append(now)

        return await call_next(request)

    def _retry_after(self, keys: list[str], now: float) -> int | None:
        """Return seconds until every budget in `keys` has room, or None."""

        cutoff = now - self.window_seconds
        waits: list[int] = []
        for key in keys:
            hits = self._hits[key]
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= self.max_requests:
                waits.append(max(1, int(self.window_seconds - (now - hits[0]))))
        return max(waits) if waits else None

    @staticmethod
    def budget_keys(request: Request) -> list[str]:
        keys = [f"client:{client_address(request)}"]
        for param, service in UPSTREAM_ACCOUNT_PARAMS.items():
            account = request.query_params.get(param, "").strip().lower()
            if account:
                keys.append(f"{service}:{account}")
        return keys


def client_address(request: Request) -> str:
    # Reverse proxies put the original client first in X-Forwarded-For.
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip() or "unknown"

    if request.client and request.client.host:
        return request.client.host

    return "unknown"
