"""Bet-streak tracker: new-bet detection and streak bookkeeping.

The tracker compares the most recent bet reported by Stake against the last
bet id it recorded. A different id is a new bet: the streak is incremented,
the bet is appended to history and the whole document is persisted in one
write. Detection is by id inequality only, so an older bet resurfacing with
a different id than the last recorded one also counts as new.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field
from telegram import Bot
from telegram.error import TelegramError

from betstreak.alerts import BetAlerter
from betstreak.config import Settings
from betstreak.services.stake import (
    StakeClient,
    StakeUser,
    WagerRecord,
    create_stake_client,
)
from betstreak.storage import (
    DocumentStore,
    JsonFileStore,
    TrackerState,
    load_state,
    save_state,
)

logger = logging.getLogger(__name__)

PROFILE_CURRENCY = "usdt"

NO_BETS_MESSAGE = "No bets found in your Stake history."
NO_NEW_BET_MESSAGE = "No new bet detected."


class BetSource(Protocol):
    async def get_latest_bets(self, first: int = 1) -> list[WagerRecord]: ...

    async def get_current_user(self) -> StakeUser: ...


class Notifier(Protocol):
    async def bet_recorded(self, bet: WagerRecord, streak: int) -> bool: ...


class CheckResult(BaseModel):
    """Outcome of a single new-bet check."""

    model_config = ConfigDict(populate_by_name=True)

    new_bet: bool = Field(alias="newBet")
    bet: WagerRecord | None = None
    message: str | None = None

    def to_api(self) -> dict[str, Any]:
        data: dict[str, Any] = {"newBet": self.new_bet}
        if self.bet is not None:
            data["bet"] = self.bet.to_api()
        if self.message is not None:
            data["message"] = self.message
        return data


class UserProfile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    avatar_url: str | None = Field(default=None, alias="avatarUrl")
    usdt: float = 0.0

    def to_api(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class BetStreakTracker:
    def __init__(
        self,
        store: DocumentStore,
        source: BetSource,
        notifier: Notifier | None = None,
    ):
        self.store = store
        self.source = source
        self.notifier = notifier
        self._lock = asyncio.Lock()

    async def get_status(self) -> TrackerState:
        return await asyncio.to_thread(load_state, self.store)

    async def get_history(self) -> list[WagerRecord]:
        """Recorded bets, most recent first."""
        state = await asyncio.to_thread(load_state, self.store)
        return state.recent_first()

    async def get_user_profile(self) -> UserProfile:
        user = await self.source.get_current_user()
        return UserProfile(
            name=user.name,
            avatar_url=user.avatar_url,
            usdt=user.available_balance(PROFILE_CURRENCY),
        )

    @asynccontextmanager
    async def _exclusive(self) -> AsyncIterator[None]:
        """Serialize read-modify-write within this process and across processes."""
        async with self._lock:
            store_lock = self.store.lock()
            await asyncio.to_thread(store_lock.__enter__)
            try:
                yield
            finally:
                await asyncio.to_thread(store_lock.__exit__, None, None, None)

    async def check_for_new_bet(self) -> CheckResult:
        """Record the latest Stake bet if it has not been seen yet.

        Load, fetch, compare and persist happen under one lock, so concurrent
        callers observe each new bet exactly once. Any failure before the write
        completes leaves the stored state untouched.
        """
        async with self._exclusive():
            state = await asyncio.to_thread(load_state, self.store)

            bets = await self.source.get_latest_bets(first=1)
            if not bets:
                return CheckResult(new_bet=False, message=NO_BETS_MESSAGE)

            latest = bets[0]
            if not state.is_new(latest):
                return CheckResult(new_bet=False, message=NO_NEW_BET_MESSAGE)

            updated = state.with_bet(latest)
            await asyncio.to_thread(save_state, self.store, updated)
            logger.info(f"New bet detected! ID: {latest.id} (streak={updated.streak})")

        if self.notifier is not None:
            await self.notifier.bet_recorded(latest, updated.streak)
        return CheckResult(new_bet=True, bet=latest)


@asynccontextmanager
async def open_tracker(settings: Settings) -> AsyncIterator[BetStreakTracker]:
    """Build a tracker wired to the configured state file, Stake and Telegram."""
    async with AsyncExitStack() as stack:
        client: StakeClient = await stack.enter_async_context(
            create_stake_client(settings.stake_api_token, settings.stake)
        )

        notifier: BetAlerter | None = None
        if settings.telegram_enabled:
            try:
                bot = await stack.enter_async_context(Bot(settings.telegram_bot_token))
            except TelegramError as e:
                logger.warning(f"Telegram alerts disabled: {e}")
            else:
                notifier = BetAlerter(bot, settings.telegram_chat_id)

        yield BetStreakTracker(
            store=JsonFileStore(settings.state_path),
            source=client,
            notifier=notifier,
        )
