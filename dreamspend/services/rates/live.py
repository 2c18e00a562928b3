"""
Live Exchange Rate Service

Fetches one directed rate from an HTTP rate API:

    GET {base_url}/latest?from=USD&to=EUR
    -> {"amount": 1.0, "base": "USD", "date": "...", "rates": {"EUR": 0.92}}

DESIGN DECISION: Only transport failures are retried (tenacity).
A well-formed answer that is unusable (non-2xx, bad JSON, missing or
non-positive rate) fails immediately with RateFetchError; retrying
would return the same answer.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from dreamspend.config import LiveRatesSettings, get_settings


class RateFetchError(Exception):
    """A live rate could not be obtained."""
    pass


class LiveRateService:
    """Async client for the live rate API."""

    def __init__(
        self,
        settings: Optional[LiveRatesSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        wait: Optional[wait_base] = None,
    ):
        """
        Args:
            settings: Rate source configuration
            transport: httpx transport override (tests use httpx.MockTransport)
            wait: Backoff between transport retries
        """
        self._settings = settings or get_settings().live_rates
        self._transport = transport
        self._wait = wait or wait_exponential(multiplier=0.5, min=0.5, max=4)
        self._logger = structlog.get_logger("dreamspend.rates")

    async def fetch_rate(self, source_currency: str, target_currency: str) -> Decimal:
        """
        Fetch the SRC->TGT rate.

        Raises:
            RateFetchError: On transport failure (after retries), non-2xx
                status, an unparseable body or a missing/non-positive rate
        """
        source = source_currency.upper()
        target = target_currency.upper()
        url = f"{self._settings.base_url.rstrip('/')}/latest"

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._settings.max_attempts),
                wait=self._wait,
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    response = await self._get(url, {"from": source, "to": target})
        except httpx.TransportError as e:
            self._logger.warning("rate_fetch_transport_failed", pair=f"{source}->{target}", error=str(e))
            raise RateFetchError(f"Could not reach rate service: {e}")

        if not response.is_success:
            self._logger.warning(
                "rate_fetch_bad_status",
                pair=f"{source}->{target}",
                status_code=response.status_code,
            )
            raise RateFetchError(f"Rate service answered HTTP {response.status_code}")

        value = self._parse_rate(response, target)
        self._logger.info("rate_fetched", pair=f"{source}->{target}", rate=str(value))
        return value

    async def _get(self, url: str, params: dict[str, str]) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
        ) as client:
            return await client.get(url, params=params)

    @staticmethod
    def _parse_rate(response: httpx.Response, target: str) -> Decimal:
        try:
            payload = response.json()
        except ValueError:
            raise RateFetchError("Rate service returned invalid JSON")

        rates = payload.get("rates") if isinstance(payload, dict) else None
        if not isinstance(rates, dict) or target not in rates:
            raise RateFetchError(f"Rate for {target} missing from response")

        try:
            value = Decimal(str(rates[target]))
        except (InvalidOperation, ValueError):
            raise RateFetchError(f"Rate for {target} is not a number")

        if not value.is_finite() or value <= 0:
            raise RateFetchError(f"Rate for {target} must be positive")
        return value
