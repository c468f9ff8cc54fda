"""HTTP health polling for freshly started containers."""

import asyncio
import logging
from typing import Optional

import httpx

from .constants import DEFAULT_HEALTH_HOST, HEALTH_CHECK_INTERVAL_MS, HEALTH_CHECK_TIMEOUT_MS

logger = logging.getLogger(__name__)


class HealthChecker:
    """Polls a published port until the application answers."""

    def __init__(
        self,
        host: str = DEFAULT_HEALTH_HOST,
        interval_ms: int = HEALTH_CHECK_INTERVAL_MS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.host = host
        self.interval = interval_ms / 1000
        self.transport = transport

    def url_for(self, port: int) -> str:
        return f"http://{self.host}:{port}/"

    async def wait_for_healthy(self, port: int, timeout_ms: int = HEALTH_CHECK_TIMEOUT_MS) -> bool:
        """Poll until a response below 500 arrives or the timeout elapses.

        Client errors count as healthy: the application is serving, it just
        does not like the request. Request timeouts and sleeps are clipped to
        the remaining budget so the call ends at the deadline.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000
        url = self.url_for(port)

        async with httpx.AsyncClient(transport=self.transport, follow_redirects=False) as client:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                try:
                    response = await client.get(url, timeout=max(min(remaining, 5.0), 0.001))
                    if response.status_code < 500:
                        logger.debug(f"{url} answered {response.status_code}")
                        return True
                    logger.debug(f"{url} answered {response.status_code}, retrying")
                except httpx.HTTPError as e:
                    logger.debug(f"{url} not ready: {type(e).__name__}")

                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                await asyncio.sleep(min(self.interval, remaining))

        logger.info(f"Health check for {url} timed out after {timeout_ms}ms")
        return False
