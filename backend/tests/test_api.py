"""HTTP surface tests using FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from betstreak.api import create_app
from betstreak.config import Settings
from betstreak.services.stake import (
    CurrencyBalance,
    StakeUser,
    UpstreamUnavailable,
    WagerRecord,
)
from betstreak.storage import InMemoryStore
from betstreak.tracker import BetStreakTracker


@pytest.fixture
def client(tracker):
    settings = Settings(_env_file=None)
    app = create_app(settings=settings, tracker=tracker)
    with TestClient(app) as test_client:
        yield test_client


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_status_returns_state_document(client) -> None:
    response = client.get("/api/status")

    assert response.status_code == 200
    assert response.json() == {
        "streak": 0,
        "lastBetId": None,
        "status": "No bets tracked yet.",
        "history": [],
    }


def test_check_new_bet_flow(client, source) -> None:
    source.place("A")

    first = client.get("/api/check-new-bet").json()
    second = client.get("/api/check-new-bet").json()

    assert first["newBet"] is True
    assert first["bet"]["id"] == "A"
    assert first["bet"]["potentialMultiplier"] == 2.0
    assert "message" not in first
    assert second == {"newBet": False, "message": "No new bet detected."}

    status = client.get("/api/status").json()
    assert status["streak"] == 1
    assert status["lastBetId"] == "A"
    assert status["status"] == "Streak: 1. Last bet placed."


def test_check_new_bet_without_bets(client) -> None:
    response = client.get("/api/check-new-bet")

    assert response.status_code == 200
    assert response.json() == {
        "newBet": False,
        "message": "No bets found in your Stake history.",
    }


def test_check_new_bet_upstream_failure(client, source, store) -> None:
    source.place("A")
    source.error = UpstreamUnavailable("Stake returned HTTP 503", status_code=503)

    response = client.get("/api/check-new-bet")

    assert response.status_code == 500
    assert response.json() == {
        "message": "Failed to check for new bet.",
        "details": "Stake returned HTTP 503",
    }
    assert store.read()["streak"] == 0


def test_bet_history_most_recent_first(client, source) -> None:
    for bet_id in ["W1", "W2", "W3"]:
        source.place(bet_id)
        client.get("/api/check-new-bet")

    response = client.get("/api/bet-history")

    assert response.status_code == 200
    assert [bet["id"] for bet in response.json()] == ["W3", "W2", "W1"]


def test_user_profile(client, source) -> None:
    source.user = StakeUser(
        name="punter",
        avatar_url="https://example.com/a.png",
        balances=[CurrencyBalance(amount=7.5, currency="usdt")],
    )

    response = client.get("/api/user-profile")

    assert response.status_code == 200
    assert response.json() == {
        "name": "punter",
        "avatarUrl": "https://example.com/a.png",
        "usdt": 7.5,
    }


def test_user_profile_not_found(client) -> None:
    response = client.get("/api/user-profile")

    assert response.status_code == 404
    assert response.json() == {"message": "User not found."}


def test_user_profile_upstream_failure(client, source) -> None:
    source.error = UpstreamUnavailable("Network error contacting Stake")

    response = client.get("/api/user-profile")

    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "Failed to fetch user profile."
    assert "Network error" in body["details"]


def test_storage_failure_returns_500(source) -> None:
    tracker = BetStreakTracker(store=InMemoryStore(), source=source)
    app = create_app(settings=Settings(_env_file=None), tracker=tracker)

    with TestClient(app) as client:
        status = client.get("/api/status")
        history = client.get("/api/bet-history")
        check = client.get("/api/check-new-bet")

    assert status.status_code == 500
    assert status.json()["message"] == "Failed to load status."
    assert history.status_code == 500
    assert history.json()["message"] == "Failed to load bet history."
    assert check.status_code == 500
    assert "details" in check.json()


def test_bet_round_trips_unchanged(client, source) -> None:
    node = {
        "id": "N1",
        "status": None,
        "amount": "0.00012345",
        "potentialMultiplier": None,
        "currency": {"symbol": "btc"},
    }
    source.latest = [WagerRecord.model_validate(node)]

    check = client.get("/api/check-new-bet")
    status = client.get("/api/status")
    history = client.get("/api/bet-history")

    assert check.status_code == 200
    assert check.json() == {"newBet": True, "bet": node}
    assert status.status_code == 200
    assert status.json()["history"] == [node]
    assert history.json() == [node]


def test_poller_not_started_by_default(tracker) -> None:
    app = create_app(settings=Settings(_env_file=None), tracker=tracker)

    with TestClient(app):
        assert app.state.poller is None


def test_server_polls_with_shared_tracker(tracker) -> None:
    settings = Settings(
        _env_file=None,
        scheduler={"check_interval_seconds": 3600, "poll_in_server": True},
    )
    app = create_app(settings=settings, tracker=tracker)

    with TestClient(app):
        poller = app.state.poller
        assert poller.running is True
        assert poller.tracker is tracker

    assert poller.running is False
