"""Tests for scheduled bet checks."""

import asyncio
from contextlib import asynccontextmanager

import pytest

from betstreak import scheduler
from betstreak.config import Settings
from betstreak.scheduler import JOB_ID, BetCheckPoller
from betstreak.services.stake import UpstreamUnavailable
from betstreak.storage import load_state


def test_check_once_records_new_bet(tracker, source, store) -> None:
    poller = BetCheckPoller(tracker, interval_seconds=60)
    source.place("A")

    first = asyncio.run(poller.check_once())
    second = asyncio.run(poller.check_once())

    assert first.new_bet is True
    assert second.new_bet is False
    state = load_state(store)
    assert state.streak == 1
    assert state.last_bet_id == "A"


def test_check_once_survives_upstream_failure(tracker, source, store) -> None:
    poller = BetCheckPoller(tracker, interval_seconds=60)
    source.error = UpstreamUnavailable("Stake returned HTTP 500", status_code=500)

    assert asyncio.run(poller.check_once()) is None
    assert load_state(store).streak == 0


def test_poller_registers_interval_job(tracker) -> None:
    poller = BetCheckPoller(tracker, interval_seconds=30)

    async def run():
        poller.start()
        try:
            job = poller.scheduler.get_job(JOB_ID)
            return poller.running, job.trigger.interval.total_seconds()
        finally:
            poller.stop()

    running, interval = asyncio.run(run())

    assert running is True
    assert interval == 30
    assert poller.running is False


def test_run_check_uses_configured_tracker(
    monkeypatch: pytest.MonkeyPatch, tracker, source, store
) -> None:
    @asynccontextmanager
    async def fake_open_tracker(settings):
        yield tracker

    monkeypatch.setattr(scheduler, "open_tracker", fake_open_tracker)
    source.place("A")

    result = asyncio.run(scheduler.run_check(Settings(_env_file=None)))

    assert result.new_bet is True
    assert load_state(store).streak == 1
