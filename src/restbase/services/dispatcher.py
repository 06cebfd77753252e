"""Concurrent dispatch of invalidation requests to RESTBase."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {"Cache-control": "no-cache"}


@dataclass(frozen=True)
class InvalidationRequest:
    """A single HTTP request asking RESTBase to regenerate a resource."""

    url: str
    headers: dict = field(default_factory=dict)
    method: str = "GET"

    @classmethod
    def no_cache(cls, url: str, **extra_headers) -> "InvalidationRequest":
        """Build a GET request carrying ``Cache-control: no-cache`` plus extra headers."""
        headers = {**extra_headers, **NO_CACHE_HEADERS}
        return cls(url=url, headers=headers)


@dataclass
class TransportResponse:
    """Outcome of one request: HTTP status, or an error message."""

    status: int | None = None
    error: str = ""


@dataclass
class DispatchResult:
    ok: bool
    error: str | None = None
    count: int = 0


class HttpTransport:
    """Runs batches of HTTP requests in parallel over one session."""

    def __init__(self, timeout: float | None = None, session: requests.Session | None = None):
        self.timeout = timeout if timeout is not None else settings.RESTBASE_REQUEST_TIMEOUT
        self.session = session or requests.Session()

    def _run_one(self, request: InvalidationRequest) -> TransportResponse:
        try:
            response = self.session.request(
                request.method,
                request.url,
                headers=request.headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            return TransportResponse(error=f"{type(e).__name__}: {e}")

        if not 200 <= response.status_code < 300:
            return TransportResponse(
                status=response.status_code,
                error=f"HTTP {response.status_code} for {request.method} {request.url}",
            )
        return TransportResponse(status=response.status_code)

    def run_multi(self, batch: list[InvalidationRequest], max_workers: int | None = None) -> list[TransportResponse]:
        """Execute all requests concurrently; results are in request order."""
        if not batch:
            return []
        with ThreadPoolExecutor(max_workers=max_workers or len(batch)) as executor:
            return list(executor.map(self._run_one, batch))


class RequestDispatcher:
    """Sends a batch of invalidation requests and aggregates the outcome.

    Every request in the batch is issued; only the first error (in request
    order) is kept.
    """

    def __init__(self, transport: HttpTransport | None = None):
        self.transport = transport or HttpTransport()

    def dispatch(self, batch: list[InvalidationRequest]) -> DispatchResult:
        if not batch:
            return DispatchResult(ok=True)

        responses = self.transport.run_multi(batch, max_workers=len(batch))

        for request, response in zip(batch, responses):
            if response.error:
                logger.warning("Invalidation request to %s failed: %s", request.url, response.error)
                return DispatchResult(ok=False, error=response.error, count=len(batch))

        logger.debug("Dispatched %d invalidation requests", len(batch))
        return DispatchResult(ok=True, count=len(batch))


_dispatcher = None


def get_dispatcher() -> RequestDispatcher:
    """Get the request dispatcher singleton, which reuses one HTTP session."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = RequestDispatcher()
    return _dispatcher
