"""Shared fixtures: in-memory state store and a scripted Stake bet source."""

import asyncio
from typing import Any

import pytest

from betstreak.services.stake import StakeUser, UserNotFound, WagerRecord
from betstreak.storage import InMemoryStore, StorageUnavailable, create_default_state
from betstreak.tracker import BetStreakTracker


def make_bet(bet_id: str, **overrides: Any) -> WagerRecord:
    data = {
        "id": bet_id,
        "status": "pending",
        "amount": 1.5,
        "potentialMultiplier": 2.0,
        "currency": {"symbol": "usdt"},
    }
    data.update(overrides)
    return WagerRecord.model_validate(data)


class FakeBetSource:
    """Returns whatever `latest` is set to; raises `error` when set."""

    def __init__(self):
        self.latest: list[WagerRecord] = []
        self.user: StakeUser | None = None
        self.error: Exception | None = None
        self.calls = 0

    def place(self, bet_id: str, **overrides: Any) -> WagerRecord:
        bet = make_bet(bet_id, **overrides)
        self.latest = [bet]
        return bet

    async def get_latest_bets(self, first: int = 1) -> list[WagerRecord]:
        self.calls += 1
        # Yield so concurrent checks interleave at the upstream call.
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.latest[:first]

    async def get_current_user(self) -> StakeUser:
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        if self.user is None:
            raise UserNotFound("Stake returned no current user")
        return self.user


class FailingWriteStore(InMemoryStore):
    """Reads normally; every write fails."""

    def write(self, document: dict[str, Any]) -> None:
        raise StorageUnavailable("disk full")


class RecordingNotifier:
    def __init__(self):
        self.alerts: list[tuple[str, int]] = []

    async def bet_recorded(self, bet: WagerRecord, streak: int) -> bool:
        self.alerts.append((bet.id, streak))
        return True


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore(create_default_state().to_document())


@pytest.fixture
def source() -> FakeBetSource:
    return FakeBetSource()


@pytest.fixture
def tracker(store: InMemoryStore, source: FakeBetSource) -> BetStreakTracker:
    return BetStreakTracker(store=store, source=source)
