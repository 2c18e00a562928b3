"""Live exchange rate services."""

from dreamspend.services.rates.live import LiveRateService, RateFetchError

__all__ = [
    "LiveRateService",
    "RateFetchError",
]
