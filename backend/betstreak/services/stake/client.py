from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import StakeConfig
from .exceptions import StakeAuthError, UpstreamUnavailable, UserNotFound
from .models import StakeUser, WagerRecord

logger = logging.getLogger(__name__)

BET_HISTORY_QUERY = """
query LatestBets($first: Int!) {
  currentUser {
    betHistory(first: $first) {
      edges { node { id status amount potentialMultiplier currency { symbol } } }
    }
  }
}
"""

USER_PROFILE_QUERY = """
query UserProfile {
  currentUser {
    name
    avatarUrl
    balances { available { amount currency } }
  }
}
"""


class StakeClient:
    def __init__(
        self,
        config: StakeConfig | None = None,
        access_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or StakeConfig()
        self.access_token = access_token or ""
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        logger.info(
            f"Initialized StakeClient (auth={'enabled' if self.access_token else 'disabled'})"
        )

    async def __aenter__(self) -> StakeClient:
        limits = httpx.Limits(
            max_connections=self.config.max_connections,
            max_keepalive_connections=self.config.max_keepalive_connections,
        )
        self._client = httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            limits=limits,
            headers={
                "x-access-token": self.access_token,
                "Content-Type": "application/json",
            },
            transport=self._transport,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Closed StakeClient")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("StakeClient must be used as async context manager")
        return self._client

    async def _query(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """POST a GraphQL query and return its `data` object."""
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            response = await self.client.post(self.config.api_url, json=payload)
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"Request to Stake timed out: {e}") from e
        except httpx.RequestError as e:
            logger.error(f"Network error: {e}")
            raise UpstreamUnavailable(f"Network error contacting Stake: {e}") from e

        if response.status_code in (401, 403):
            raise StakeAuthError(
                "Stake rejected the access token", status_code=response.status_code
            )
        if response.status_code >= 400:
            raise UpstreamUnavailable(
                f"Stake returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamUnavailable(f"Invalid JSON from Stake: {e}") from e

        if not isinstance(body, dict):
            raise UpstreamUnavailable("Unexpected response shape from Stake")

        errors = body.get("errors")
        if errors:
            message = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in errors
            )
            raise UpstreamUnavailable(f"GraphQL error: {message}")

        data = body.get("data")
        if not isinstance(data, dict):
            raise UpstreamUnavailable("Stake response is missing 'data'")
        return data

    async def get_latest_bets(self, first: int = 1) -> list[WagerRecord]:
        """Most recent bets first, as ordered by Stake."""
        data = await self._query(BET_HISTORY_QUERY, {"first": first})

        user = data.get("currentUser")
        if user is None:
            raise UpstreamUnavailable("Stake returned no current user for bet history")

        try:
            edges = user["betHistory"]["edges"] or []
            return [WagerRecord.model_validate(edge["node"]) for edge in edges]
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamUnavailable(f"Malformed bet history from Stake: {e}") from e

    async def get_current_user(self) -> StakeUser:
        data = await self._query(USER_PROFILE_QUERY)

        user = data.get("currentUser")
        if user is None:
            raise UserNotFound("Stake returned no current user")

        try:
            return StakeUser.from_api(user)
        except (AttributeError, TypeError, ValueError) as e:
            raise UpstreamUnavailable(f"Malformed user profile from Stake: {e}") from e


def create_stake_client(
    access_token: str,
    config: StakeConfig | None = None,
) -> StakeClient:
    """Factory function to create StakeClient."""
    return StakeClient(config=config, access_token=access_token)
