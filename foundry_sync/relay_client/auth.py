"""Authentication module for loading relay connection settings.

Connection settings come from environment variables, optionally seeded from
a .env file through python-dotenv. Missing required settings raise
InvalidCredentialsError at session start.
"""

import os
from typing import NamedTuple, Optional

from dotenv import load_dotenv

from .errors import InvalidCredentialsError

DEFAULT_RELAY_URL = "https://foundryvtt-rest-api-relay.fly.dev"


class Credentials(NamedTuple):
    """Relay connection settings."""
    url: str
    api_key: str
    client_id: Optional[str] = None


class Authenticator:
    """Loads and validates relay credentials from environment variables.

    Credentials are never cached or logged.

    Environment variables:
        FOUNDRY_RELAY_URL: Relay base URL (defaults to the public relay)
        FOUNDRY_API_KEY: Relay API key (required)
        FOUNDRY_CLIENT_ID: Foundry world client id (optional, first
            connected client is used otherwise)

    Example:
        >>> auth = Authenticator()
        >>> creds = auth.get_credentials()
        >>> print(f"Connecting to {creds.url}")
    """

    def __init__(self):
        """Initialize the authenticator by loading variables from .env."""
        load_dotenv()

    def get_credentials(self) -> Credentials:
        """Get relay credentials from environment variables.

        Returns:
            Credentials: url, api_key and optional client_id

        Raises:
            InvalidCredentialsError: If a required setting is missing
        """
        url = os.getenv('FOUNDRY_RELAY_URL') or DEFAULT_RELAY_URL
        api_key = os.getenv('FOUNDRY_API_KEY')
        client_id = os.getenv('FOUNDRY_CLIENT_ID') or None

        if not api_key:
            raise InvalidCredentialsError(missing=['FOUNDRY_API_KEY'], endpoint=url)

        return Credentials(url=url.rstrip('/'), api_key=api_key, client_id=client_id)
