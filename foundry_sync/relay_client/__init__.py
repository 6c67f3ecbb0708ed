"""Client library for the Foundry VTT REST API relay.

This package wraps the relay's HTTP surface (status, clients, script
execution, entity create/update, file system listing and upload) behind
a small typed API with credential loading, rate-limit retries and
error translation.
"""

from .errors import (
    SyncError,
    RelayError,
    InvalidCredentialsError,
    APIUnreachableError,
    APIAccessError,
    RelayHTTPError,
    ClientNotFoundError,
    ConversionError,
)
from .auth import Authenticator, Credentials
from .transport import RelayTransport, TransportResponse
from .relay_api import RelayAPI

__all__ = [
    "SyncError",
    "RelayError",
    "InvalidCredentialsError",
    "APIUnreachableError",
    "APIAccessError",
    "RelayHTTPError",
    "ClientNotFoundError",
    "ConversionError",
    "Authenticator",
    "Credentials",
    "RelayTransport",
    "TransportResponse",
    "RelayAPI",
]
