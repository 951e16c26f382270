from .client import StakeClient, create_stake_client
from .config import StakeConfig
from .exceptions import (
    StakeAuthError,
    StakeError,
    UpstreamUnavailable,
    UserNotFound,
)
from .models import (
    CurrencyBalance,
    StakeUser,
    WagerCurrency,
    WagerRecord,
    as_float,
    format_number,
)

__all__ = [
    "StakeClient",
    "create_stake_client",
    "StakeConfig",
    "StakeError",
    "StakeAuthError",
    "UpstreamUnavailable",
    "UserNotFound",
    "CurrencyBalance",
    "StakeUser",
    "WagerCurrency",
    "WagerRecord",
    "as_float",
    "format_number",
]
