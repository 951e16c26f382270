from pydantic import BaseModel


class StakeConfig(BaseModel):
    """Configuration for the Stake GraphQL client."""

    api_url: str = "https://stake.com/_api/graphql"
    timeout_seconds: float = 30.0
    max_connections: int = 10
    max_keepalive_connections: int = 5
