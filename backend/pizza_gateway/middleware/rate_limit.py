"""
Pizza Gateway — Rate Limiting Middleware
=========================================

What:  Per-IP sliding window limiter (default 100 requests per 15 minutes).
How:   Each client IP keeps a list of request timestamps; timestamps older than
       the window are dropped on every request, and a full window answers 429
       with a Retry-After header.

Client IP:
    With TRUST_PROXY on, the service sits behind exactly one proxy, so the
    client is the right-most X-Forwarded-For entry. Otherwise the socket peer.

State is in-memory and per-process.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


def client_ip_for(request: Request, trust_proxy: bool) -> str:
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
            if hops:
                return hops[-1]
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Excluded paths: /health and the API docs.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        max_requests: int = 100,
        window_seconds: int = 900,
        trust_proxy: bool = True,
        clock=time.monotonic,
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.trust_proxy = trust_proxy
        self._clock = clock
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    def retry_after(self, client_ip: str, now: Optional[float] = None) -> Optional[int]:
        """
        Record a request for `client_ip` if the window has room.

        Returns None when allowed, otherwise seconds until the oldest request
        leaves the window.
        """
        now = self._clock() if now is None else now
        window_start = now - self.window_seconds
        timestamps = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = timestamps

        if len(timestamps) >= self.max_requests:
            return int(timestamps[0] + self.window_seconds - now) + 1

        timestamps.append(now)
        self._seen += 1
        if self._seen % 1000 == 0:
            self._cleanup_inactive_ips(window_start)
        return None

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = client_ip_for(request, self.trust_proxy)
        retry_after = self.retry_after(client_ip)
        if retry_after is None:
            return await call_next(request)

        logger.warning(
            "Rate limit exceeded for IP %s: %d requests in %ds window",
            client_ip,
            len(self._requests[client_ip]),
            self.window_seconds,
        )
        return JSONResponse(
            status_code=429,
            content={
                "error": "rate_limit_exceeded",
                "message": RATE_LIMIT_MESSAGE,
                "details": {"retry_after": retry_after},
                "request_id": getattr(request.state, "request_id", None),
            },
            headers={"Retry-After": str(retry_after)},
        )

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]
        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
