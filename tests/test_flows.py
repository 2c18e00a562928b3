"""Tests for the flows around the engine: live rates, rate refresh, reminders, wiring."""

import asyncio
from decimal import Decimal

import httpx
import pytest
from tenacity import wait_none

from dreamspend.config import LiveRatesSettings, Settings
from dreamspend.engine import ProgressionEngine
from dreamspend.models.game import GameSettings, SupportedLanguage
from dreamspend.orchestrator import (
    RateRefreshFlow,
    ReminderFlow,
    create_app_components,
    current_manual_rate,
    manual_fx_pair,
)
from dreamspend.services.rates import LiveRateService, RateFetchError


RATES_SETTINGS = LiveRatesSettings(base_url="https://rates.test", max_attempts=3)


def rate_service(handler) -> LiveRateService:
    return LiveRateService(
        settings=RATES_SETTINGS,
        transport=httpx.MockTransport(handler),
        wait=wait_none(),
    )


def rates_handler(rates: dict[tuple[str, str], object]):
    """Answer GET /latest from a fixed (from, to) -> rate mapping."""
    def handler(request: httpx.Request) -> httpx.Response:
        source = request.url.params["from"]
        target = request.url.params["to"]
        if (source, target) not in rates:
            return httpx.Response(404, json={"message": "not found"})
        return httpx.Response(200, json={
            "amount": 1.0,
            "base": source,
            "rates": {target: rates[(source, target)]},
        })
    return handler


class RecordingScheduler:
    def __init__(self):
        self.calls = []

    def schedule(self, hour: int, minute: int, enabled: bool) -> None:
        self.calls.append((hour, minute, enabled))


class TestLiveRateService:
    """Tests for the HTTP rate client."""

    def test_fetch_rate(self):
        """Test a successful fetch and the request shape."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"rates": {"EUR": 0.9123}})

        result = asyncio.run(rate_service(handler).fetch_rate("usd", "eur"))
        assert result == Decimal("0.9123")
        assert seen[0].url.path == "/latest"
        assert seen[0].url.params["from"] == "USD"
        assert seen[0].url.params["to"] == "EUR"

    def test_transport_errors_are_retried(self):
        """Test that a flaky connection succeeds on a later attempt."""
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) < 3:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"rates": {"RUB": 92.5}})

        assert asyncio.run(rate_service(handler).fetch_rate("USD", "RUB")) == Decimal("92.5")
        assert len(attempts) == 3

    def test_transport_failure_after_retries(self):
        """Test the error once attempts are exhausted."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RateFetchError):
            asyncio.run(rate_service(handler).fetch_rate("USD", "RUB"))

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500, json={"rates": {"EUR": 0.9}}),
            httpx.Response(200, text="<html>"),
            httpx.Response(200, json={"rates": {}}),
            httpx.Response(200, json={"rates": {"EUR": 0}}),
            httpx.Response(200, json={"rates": {"EUR": "abc"}}),
            httpx.Response(200, json=[1, 2, 3]),
        ],
    )
    def test_unusable_answers(self, response):
        """Test bad status, bad body, missing and non-positive rates."""
        calls = []

        def handler(request):
            calls.append(request)
            return response

        with pytest.raises(RateFetchError):
            asyncio.run(rate_service(handler).fetch_rate("USD", "EUR"))
        assert len(calls) == 1


class TestRateRefreshFlow:
    """Tests for refreshing the rate table of the active language."""

    def test_russian_refreshes_two_pairs(self, storage, clock):
        """Test USD->RUB and EUR->RUB are both applied."""
        engine = ProgressionEngine(storage=storage, clock=clock, default_language="ru")
        flow = RateRefreshFlow(engine, rate_service(rates_handler({
            ("USD", "RUB"): 90,
            ("EUR", "RUB"): 100,
        })))

        result = asyncio.run(flow.refresh_for_current_language())

        assert result.success
        assert result.updated_pairs == ["USD->RUB", "EUR->RUB"]
        table = engine.settings.approx_fx_table
        assert table["USD->RUB"] == Decimal("90")
        assert table["EUR->RUB"] == Decimal("100")
        assert table["RUB->EUR"] == Decimal("0.01")
        assert storage.snapshot.settings.approx_fx_table["USD->RUB"] == Decimal("90")

    def test_failure_keeps_earlier_pairs(self, storage, clock):
        """Test a failing second pair leaves the first one applied."""
        engine = ProgressionEngine(storage=storage, clock=clock, default_language="ru")
        flow = RateRefreshFlow(engine, rate_service(rates_handler({("USD", "RUB"): 90})))

        result = asyncio.run(flow.refresh_for_current_language())

        assert not result.success
        assert result.updated_pairs == ["USD->RUB"]
        assert "EUR->RUB" in result.message
        assert engine.settings.approx_fx_table["EUR->RUB"] == Decimal("108")

    def test_english_refreshes_usd_eur(self, engine):
        """Test the pair for the English game."""
        flow = RateRefreshFlow(engine, rate_service(rates_handler({("USD", "EUR"): 0.95})))
        result = asyncio.run(flow.refresh_for_current_language())
        assert result.updated_pairs == ["USD->EUR"]
        assert current_manual_rate(engine.settings) == Decimal("0.95")


class TestManualRates:
    """Tests for the manual rate pair helpers."""

    def test_manual_pairs(self):
        """Test the editable pair per language."""
        assert manual_fx_pair(SupportedLanguage.RU) == ("USD", "RUB")
        assert manual_fx_pair(SupportedLanguage.EN) == ("USD", "EUR")
        assert manual_fx_pair(SupportedLanguage.DE) == ("EUR", "USD")

    def test_current_manual_rate_defaults(self):
        """Test the table value and the fallback for a missing entry."""
        settings = GameSettings.default(SupportedLanguage.DE)
        assert current_manual_rate(settings) == Decimal("1.0869565")
        settings.approx_fx_table = {}
        assert current_manual_rate(settings) == Decimal(1)


class TestReminderFlow:
    """Tests for reminder forwarding."""

    def test_reminder_changes_are_forwarded(self, engine):
        """Test that clamped values reach the scheduler."""
        scheduler = RecordingScheduler()
        ReminderFlow(engine, scheduler)
        engine.update_reminder(8, 75, True)
        assert scheduler.calls == [(8, 59, True)]

    def test_other_events_ignored(self, engine):
        """Test only reminder events are forwarded."""
        scheduler = RecordingScheduler()
        ReminderFlow(engine, scheduler)
        engine.update_max_amount(1234)
        engine.add_custom_category("Books")
        assert scheduler.calls == []

    def test_close_stops_forwarding(self, engine):
        """Test unsubscribing."""
        scheduler = RecordingScheduler()
        flow = ReminderFlow(engine, scheduler)
        flow.close()
        engine.update_reminder(9, 0, False)
        assert scheduler.calls == []


class TestAppComponents:
    """Tests for wiring from configuration."""

    def test_create_with_memory_storage(self, monkeypatch):
        """Test a fully wired app on the in-memory backend."""
        monkeypatch.setenv("DREAMSPEND_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("DEFAULT_LANGUAGE", "de_DE")
        scheduler = RecordingScheduler()

        components = create_app_components(Settings(), scheduler=scheduler)

        assert components.engine.settings.language == SupportedLanguage.DE
        assert components.reminder_flow is not None
        components.engine.update_reminder(7, 30, True)
        assert scheduler.calls == [(7, 30, True)]

    def test_no_reminder_flow_without_scheduler(self, monkeypatch):
        """Test that reminders are optional."""
        monkeypatch.setenv("DREAMSPEND_STORAGE_BACKEND", "memory")
        components = create_app_components(Settings())
        assert components.reminder_flow is None
