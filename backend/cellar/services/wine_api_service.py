"""
External wine lookup service.

Searches Vivino (scraped through a headless Chromium driven by
Playwright) and the mock `wine_api` source, then normalizes and
deduplicates the merged results for manual import into the cellar.

Outbound requests are throttled to one per rate_limit_delay seconds.
Vivino navigation is retried with a fixed backoff schedule unless the
failure is terminal (DNS, connection refused, HTTP 403/404).
"""

import asyncio
import logging
import socket
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar
from urllib.parse import urlencode

from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from cellar.config import Config
from cellar.mocks.fixtures import get_mock_details, get_mock_search_result
from cellar.models import ExternalSource, ExternalWine, LookupStats
from cellar.services.vivino_parser import parse_search_results
from cellar.services.wine_normalizer import WineDataNormalizer

logger = logging.getLogger(__name__)

T = TypeVar("T")

NON_RETRYABLE_STATUSES = {403, 404}
# Chromium / Node-style network error markers that won't fix themselves
NON_RETRYABLE_MARKERS = (
    "net::ERR_NAME_NOT_RESOLVED",
    "net::ERR_CONNECTION_REFUSED",
    "ENOTFOUND",
    "ECONNREFUSED",
)
NAVIGATION_TIMEOUT_GRACE_SECONDS = 5

EXTRA_HTTP_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


class LookupRequestError(Exception):
    """An outbound lookup request failed, optionally with an HTTP status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def is_non_retryable_error(error: BaseException) -> bool:
    """
    Classify a lookup failure.

    Terminal: DNS resolution failures, connection refused, HTTP 403/404.
    Retryable: timeouts and anything unrecognized.
    """
    if isinstance(error, (asyncio.TimeoutError, PlaywrightTimeoutError)):
        return False
    if isinstance(error, (socket.gaierror, ConnectionRefusedError)):
        return True
    if getattr(error, "status", None) in NON_RETRYABLE_STATUSES:
        return True
    message = str(error)
    return any(marker in message for marker in NON_RETRYABLE_MARKERS)


class WineApiService:
    """
    Rate-limited, retrying external wine search.

    One instance holds the shared browser; call cleanup() on shutdown.
    """

    def __init__(
        self,
        normalizer: Optional[WineDataNormalizer] = None,
        rate_limit_delay: Optional[float] = None,
        retry_delays: tuple[float, ...] = Config.LOOKUP_RETRY_DELAYS,
        max_retries: int = Config.LOOKUP_MAX_RETRIES,
        headless: Optional[bool] = None,
        enable_vivino: Optional[bool] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the lookup service.

        Args:
            normalizer: Field normalizer / deduplicator
            rate_limit_delay: Min seconds between outbound requests (default: LOOKUP_RATE_LIMIT_SECONDS)
            retry_delays: Sleep before attempt 2, 3, ...
            max_retries: Total attempts per Vivino search
            headless: Run Chromium headless (default: LOOKUP_HEADLESS)
            enable_vivino: Query Vivino at all (default: LOOKUP_ENABLE_VIVINO)
            sleep: Awaitable sleep, injectable for tests
            clock: Monotonic clock, injectable for tests
        """
        self.normalizer = normalizer or WineDataNormalizer()
        self.rate_limit_delay = (
            rate_limit_delay if rate_limit_delay is not None else Config.lookup_rate_limit_seconds()
        )
        self.retry_delays = retry_delays
        self.max_retries = max_retries
        self.headless = headless if headless is not None else Config.lookup_headless()
        self.enable_vivino = enable_vivino if enable_vivino is not None else Config.lookup_enable_vivino()
        self._sleep = sleep
        self._clock = clock

        self._request_count = 0
        self._next_request_at: Optional[float] = None
        self._last_request_time: Optional[datetime] = None

        self._playwright = None
        self._browser = None
        self._browser_lock = asyncio.Lock()

    # === Throttling and retries ===

    async def _rate_limit(self) -> None:
        """Wait until rate_limit_delay has passed since the previous request."""
        now = self._clock()
        wait = 0.0
        if self._next_request_at is not None and now < self._next_request_at:
            wait = self._next_request_at - now

        # Reserve the slot before sleeping so concurrent callers queue up
        self._next_request_at = now + wait + self.rate_limit_delay
        self._request_count += 1
        self._last_request_time = datetime.now(timezone.utc)

        if wait > 0:
            logger.debug(f"Rate limit: waiting {wait:.2f}s")
            await self._sleep(wait)

    async def _retry_with_backoff(self, operation: Callable[[], Awaitable[T]], operation_name: str) -> T:
        """Run operation up to max_retries times, sleeping retry_delays between attempts."""
        last_error: Optional[BaseException] = None

        for attempt in range(self.max_retries):
            try:
                return await operation()
            except Exception as e:
                last_error = e
                logger.warning(f"{operation_name} attempt {attempt + 1} failed: {e}")

                if is_non_retryable_error(e):
                    raise

                if attempt < self.max_retries - 1:
                    delay = self.retry_delays[min(attempt, len(self.retry_delays) - 1)]
                    logger.info(f"Retrying {operation_name} in {delay}s...")
                    await self._sleep(delay)

        logger.error(f"{operation_name} failed after {self.max_retries} attempts")
        raise last_error

    # === Browser lifecycle ===

    async def _get_browser(self):
        """Launch Chromium on first use and reuse it afterwards."""
        async with self._browser_lock:
            if self._browser is None:
                playwright = await async_playwright().start()
                try:
                    browser = await playwright.chromium.launch(
                        headless=self.headless,
                        args=[
                            "--no-sandbox",
                            "--disable-setuid-sandbox",
                            "--disable-dev-shm-usage",
                        ],
                    )
                except Exception:
                    logger.error("Failed to launch Playwright browser", exc_info=True)
                    await playwright.stop()
                    raise
                self._playwright = playwright
                self._browser = browser
                logger.info("Playwright browser launched for wine lookup")
        return self._browser

    async def cleanup(self) -> None:
        """Close browser and Playwright instance."""
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
            logger.info("Playwright browser closed")
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    # === Sources ===

    async def _perform_vivino_search(
        self,
        query: str,
        vintage: Optional[int],
        region: Optional[str],
        limit: int,
    ) -> list[ExternalWine]:
        """One Vivino attempt: render the search page and parse its cards."""
        await self._rate_limit()
        browser = await self._get_browser()

        context = await browser.new_context(
            user_agent=Config.BROWSER_USER_AGENT,
            viewport=Config.BROWSER_VIEWPORT,
            extra_http_headers=EXTRA_HTTP_HEADERS,
        )
        try:
            page = await context.new_page()
            search_url = f"{Config.VIVINO_SEARCH_URL}?{urlencode({'q': query})}"
            logger.info(f'Searching Vivino for: "{query}"')

            response = await asyncio.wait_for(
                page.goto(search_url, wait_until="networkidle", timeout=Config.NAVIGATION_TIMEOUT_MS),
                timeout=Config.NAVIGATION_TIMEOUT_MS / 1000 + NAVIGATION_TIMEOUT_GRACE_SECONDS,
            )
            if response is not None and response.status >= 400:
                raise LookupRequestError(f"Vivino returned HTTP {response.status}", status=response.status)

            try:
                await page.wait_for_selector(".wine-card", timeout=Config.RESULTS_SELECTOR_TIMEOUT_MS)
            except PlaywrightTimeoutError:
                logger.warning("No wine cards found on Vivino search page")

            html = await page.content()
        finally:
            await context.close()

        results = parse_search_results(html, limit=limit, region=region, vintage=vintage)
        logger.info(f"Found {len(results)} wines from Vivino")
        return results

    async def _search_vivino(
        self,
        query: str,
        vintage: Optional[int],
        region: Optional[str],
        limit: int,
    ) -> list[ExternalWine]:
        return await self._retry_with_backoff(
            lambda: self._perform_vivino_search(query, vintage, region, limit),
            "Vivino search",
        )

    async def _search_wine_api(
        self,
        query: str,
        vintage: Optional[int],
        region: Optional[str],
    ) -> list[ExternalWine]:
        await self._rate_limit()
        return [get_mock_search_result(query, vintage=vintage, region=region)]

    # === Public API ===

    async def search(
        self,
        query: str,
        vintage: Optional[int] = None,
        region: Optional[str] = None,
        limit: int = Config.LOOKUP_DEFAULT_LIMIT,
    ) -> list[ExternalWine]:
        """
        Search every source, normalize, deduplicate, and truncate to limit.

        A failing source is logged and skipped; this never raises for
        source failures.
        """
        results: list[ExternalWine] = []

        if self.enable_vivino:
            try:
                results.extend(await self._search_vivino(query, vintage, region, limit))
            except Exception as e:
                logger.warning(f"Vivino search failed: {e}")

        try:
            results.extend(await self._search_wine_api(query, vintage, region))
        except Exception as e:
            logger.warning(f"Wine API search failed: {e}")

        normalized = [self.normalizer.normalize(wine) for wine in results]
        unique = self.normalizer.remove_duplicates(normalized)
        logger.info(f"External search '{query}': {len(results)} raw, {len(unique)} unique")
        return unique[:limit]

    async def get_wine_details(self, external_id: str, source: str) -> Optional[ExternalWine]:
        """Detailed record for an external id, or None for an unknown source."""
        try:
            source_enum = ExternalSource(source)
        except ValueError:
            logger.error(f"Unknown wine source: {source}")
            return None

        await self._rate_limit()
        return self.normalizer.normalize(get_mock_details(external_id, source_enum))

    def request_stats(self) -> LookupStats:
        return LookupStats(count=self._request_count, last_request=self._last_request_time)
