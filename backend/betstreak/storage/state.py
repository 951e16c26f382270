"""Tracker state document: streak counter, last bet id, and bet history."""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer

from betstreak.services.stake.models import WagerRecord

from .documents import DocumentStore
from .exceptions import StorageUnavailable

logger = logging.getLogger(__name__)

INITIAL_STATUS = "No bets tracked yet."


def format_status(streak: int) -> str:
    return f"Streak: {streak}. Last bet placed."


class TrackerState(BaseModel):
    """Persisted tracker document - serialized with camelCase keys.

    Top-level keys this model does not know about are kept and written back.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    streak: int = Field(default=0, ge=0)
    last_bet_id: str | None = Field(default=None, alias="lastBetId")
    status: str = INITIAL_STATUS
    history: list[WagerRecord] = Field(default_factory=list)

    def is_new(self, bet: WagerRecord) -> bool:
        """A bet is new when its id differs from the last recorded one."""
        return bet.id != self.last_bet_id

    def with_bet(self, bet: WagerRecord) -> "TrackerState":
        """Return a copy with the bet recorded. The receiver is not modified."""
        streak = self.streak + 1
        return self.model_copy(
            deep=True,
            update={
                "streak": streak,
                "last_bet_id": bet.id,
                "status": format_status(streak),
                "history": [*self.history, bet.model_copy(deep=True)],
            },
        )

    @field_serializer("history")
    def dump_history(self, history: list[WagerRecord]) -> list[dict[str, Any]]:
        return [bet.to_api() for bet in history]

    def recent_first(self) -> list[WagerRecord]:
        return list(reversed(self.history))

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def create_default_state() -> TrackerState:
    return TrackerState()


def load_state(store: DocumentStore) -> TrackerState:
    """Load and validate the tracker state."""
    raw_data = store.read()

    try:
        state = TrackerState.model_validate(raw_data)
    except ValidationError as e:
        logger.error(f"Invalid state document: {e}")
        raise StorageUnavailable(f"State document failed validation: {e}") from e

    logger.debug(
        f"Loaded state: streak={state.streak} last_bet_id={state.last_bet_id}"
    )
    return state


def save_state(store: DocumentStore, state: TrackerState) -> None:
    store.write(state.to_document())
    logger.debug(f"Saved state: streak={state.streak} last_bet_id={state.last_bet_id}")


def initialize_state(store: DocumentStore, overwrite: bool = False) -> bool:
    """Write the default document. Returns True if anything was written."""
    if store.exists() and not overwrite:
        logger.info(f"State document already exists in {store!r}")
        return False

    save_state(store, create_default_state())
    logger.info(f"Created default state document in {store!r}")
    return True
