"""Typed exception hierarchy for relay-related errors.

All exceptions inherit from RelayError (itself a SyncError) so callers can
catch any remote failure in one place. Each exception keeps its context as
attributes to help with debugging.
"""

from typing import List, Optional


class SyncError(Exception):
    """Base exception for all foundry-sync errors.

    Use this to catch any application-level error from the sync tool.
    """
    pass


class RelayError(SyncError):
    """Base exception for all relay-related errors."""
    pass


class InvalidCredentialsError(RelayError):
    """Raised when required connection settings are missing."""

    def __init__(self, missing: List[str], endpoint: str):
        super().__init__(
            f"Missing connection setting(s) {', '.join(missing)} (endpoint: {endpoint})"
        )
        self.missing = missing
        self.endpoint = endpoint


class APIUnreachableError(RelayError):
    """Raised when the relay is not available or unreachable."""

    def __init__(self, endpoint: str):
        super().__init__(f"Relay is not available at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(RelayError):
    """Raised when relay access fails after retries."""

    def __init__(self, message: str = "Relay API failure (after 3 retries)"):
        super().__init__(message)


class RelayHTTPError(RelayError):
    """Raised when the relay answers with a non-200 status."""

    def __init__(self, status_code: int, path: str, text: str = ""):
        message = f"HTTP {status_code} from {path}"
        if text:
            message += f": {text[:200]}"
        super().__init__(message)
        self.status_code = status_code
        self.path = path
        self.text = text


class ClientNotFoundError(RelayError):
    """Raised when no connected Foundry client can be selected."""

    def __init__(self, client_id: Optional[str] = None):
        if client_id:
            message = f"Foundry client '{client_id}' is not connected to the relay"
        else:
            message = "No Foundry client is connected to the relay"
        super().__init__(message)
        self.client_id = client_id


class ConversionError(RelayError):
    """Raised when rendering a note to HTML fails."""

    def __init__(self, message: str):
        super().__init__(message)
