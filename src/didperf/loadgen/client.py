from __future__ import annotations

import logging
import time
from typing import Callable

import httpx

from didperf.loadgen.limiter import RateLimiter
from didperf.metrics import ErrorType, HttpExchange, IterationTally, MetricAggregator, RequestSpec

logger = logging.getLogger(__name__)

StatusExpectation = Callable[[int], bool]


def default_expected_status(status: int) -> bool:
    return 200 <= status < 400


async def send_request(client: httpx.AsyncClient, request: RequestSpec) -> HttpExchange:
    start_mono = time.perf_counter()
    try:
        resp = await client.request(
            request.method,
            request.url,
            headers=request.headers,
            content=request.body,
            params=request.params,
        )
        latency_ms = (time.perf_counter() - start_mono) * 1000.0
        return HttpExchange(
            request=request,
            status_code=resp.status_code,
            headers=resp.headers,
            body=resp.content or b"",
            elapsed_ms=latency_ms,
        )
    except httpx.TimeoutException as exc:
        err, detail = ErrorType.TIMEOUT, exc
    except httpx.ConnectError as exc:
        err, detail = ErrorType.CONNECT, exc
    except httpx.ReadError as exc:
        err, detail = ErrorType.READ, exc
    except httpx.HTTPError as exc:
        err, detail = ErrorType.OTHER, exc
    latency_ms = (time.perf_counter() - start_mono) * 1000.0
    logger.debug("%s %s failed after %.1fms: %s (%s)", request.method, request.url, latency_ms, err.value, detail)
    return HttpExchange(
        request=request,
        status_code=None,
        headers=httpx.Headers(),
        body=b"",
        elapsed_ms=latency_ms,
        error_type=err,
        error_message=str(detail),
    )


class HttpSession:
    """What a scenario sees of the network: rate-limited, metered requests."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        limiter: RateLimiter,
        aggregator: MetricAggregator,
        expected_status: StatusExpectation = default_expected_status,
    ) -> None:
        self._client = client
        self._limiter = limiter
        self._aggregator = aggregator
        self._expected_status = expected_status

    async def request(self, request: RequestSpec, tally: IterationTally | None = None) -> HttpExchange:
        await self._limiter.acquire()
        exchange = await send_request(self._client, request)
        failed = exchange.status_code is None or not self._expected_status(exchange.status_code)
        self._aggregator.record_exchange(exchange, failed, tally)
        return exchange
