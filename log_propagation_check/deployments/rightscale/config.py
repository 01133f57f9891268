"""Configuration for RightScale provider."""

from pydantic import BaseModel, SecretStr


class RightScaleConfig(BaseModel):
    """Configuration for RightScale provider.

    Authenticates with an OAuth refresh token generated in the dashboard
    under Settings > API Credentials.
    """

    refresh_token: SecretStr
    account_id: str
    api_base_url: str = "https://us-3.rightscale.com"
    api_version: str = "1.5"
