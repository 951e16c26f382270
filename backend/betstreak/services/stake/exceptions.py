class StakeError(Exception):
    """Base exception for Stake API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamUnavailable(StakeError):
    """Request failed, timed out, or returned malformed data."""

    pass


class StakeAuthError(UpstreamUnavailable):
    """Access token rejected."""

    pass


class UserNotFound(StakeError):
    """Request succeeded but no current user was returned."""

    pass
