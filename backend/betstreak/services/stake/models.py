from __future__ import annotations

import copy
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidatorFunctionWrapHandler,
    model_validator,
)

# Stake sends numbers as JSON numbers or numeric strings, and may send null.
Numeric = int | float | str | None


def as_float(value: Numeric) -> float | None:
    """Numeric wire value as a float, or None when it is null or not a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except ValueError:
        return None


def format_number(value: Numeric) -> str:
    number = as_float(value)
    if number is None:
        return "?" if value is None else str(value)
    return f"{number:g}"


class WagerCurrency(BaseModel):
    model_config = ConfigDict(extra="allow")

    symbol: str | None = None


class WagerRecord(BaseModel):
    """A single bet as returned by betHistory.

    Only ``id`` is required. The other fields keep whatever JSON type Stake
    sent (a string amount stays a string, null stays null) and unknown keys
    are kept. ``to_api()`` returns the node exactly as it was validated, which
    is what gets appended to history.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    status: str | None = None
    amount: Numeric = None
    potential_multiplier: Numeric = Field(default=None, alias="potentialMultiplier")
    currency: WagerCurrency | None = None

    _node: dict[str, Any] | None = PrivateAttr(default=None)

    @model_validator(mode="wrap")
    @classmethod
    def keep_node(
        cls, data: Any, handler: ValidatorFunctionWrapHandler
    ) -> WagerRecord:
        record = handler(data)
        if isinstance(data, dict):
            record._node = copy.deepcopy(data)
        return record

    @property
    def currency_symbol(self) -> str:
        if self.currency is None:
            return ""
        return self.currency.symbol or ""

    @property
    def potential_payout(self) -> float | None:
        amount = as_float(self.amount)
        multiplier = as_float(self.potential_multiplier)
        if amount is None or multiplier is None:
            return None
        return amount * multiplier

    def to_api(self) -> dict[str, Any]:
        if self._node is not None:
            return copy.deepcopy(self._node)
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class CurrencyBalance(BaseModel):
    amount: float = 0.0
    currency: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CurrencyBalance:
        available = data.get("available") or {}
        return cls(
            amount=available.get("amount") or 0.0,
            currency=available.get("currency", ""),
        )


class StakeUser(BaseModel):
    name: str = ""
    avatar_url: str | None = None
    balances: list[CurrencyBalance] = Field(default_factory=list)

    def available_balance(self, currency: str) -> float:
        """Available amount for an exact (case-sensitive) currency symbol, 0 if absent."""
        for balance in self.balances:
            if balance.currency == currency:
                return balance.amount
        return 0.0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> StakeUser:
        return cls(
            name=data.get("name") or "",
            avatar_url=data.get("avatarUrl"),
            balances=[
                CurrencyBalance.from_api(b) for b in data.get("balances") or []
            ],
        )
