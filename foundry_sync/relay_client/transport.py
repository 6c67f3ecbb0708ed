"""HTTP transport for the Foundry REST relay.

RelayTransport is the only place that touches requests. It sends the API key
header on every call and hands back a TransportResponse carrying the status,
the decoded JSON body (when there is one) and the raw text. Network failures
are translated into APIUnreachableError; HTTP status handling is left to the
caller.
"""

import logging
from typing import Any, Dict, NamedTuple, Optional

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout

from .auth import Credentials
from .errors import APIAccessError, APIUnreachableError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class TransportResponse(NamedTuple):
    """Status, JSON body and raw text of a relay response."""
    status: int
    json: Any
    text: str


class RelayTransport:
    """Thin requests.Session wrapper bound to one relay and API key.

    Example:
        >>> transport = RelayTransport(Authenticator().get_credentials())
        >>> response = transport.request("GET", "/clients")
        >>> response.status
        200
    """

    def __init__(
        self,
        credentials: Credentials,
        session: Optional[requests.Session] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self._base_url = credentials.url.rstrip('/')
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({'x-api-key': credentials.api_key})

    @property
    def base_url(self) -> str:
        return self._base_url

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> TransportResponse:
        """Send one request to the relay.

        Args:
            method: HTTP method
            path: Path below the relay base URL (e.g. "/api/status")
            params: Query string parameters
            json: JSON body (sent with Content-Type application/json)
            data: Raw body bytes
            headers: Extra headers for this request

        Returns:
            TransportResponse with status, decoded JSON (or None) and text

        Raises:
            APIUnreachableError: On timeouts and connection failures
            APIAccessError: On any other requests failure
        """
        url = f"{self._base_url}{path}"
        logger.debug(f"{method} {path} params={params}")
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=json,
                data=data,
                headers=headers,
                timeout=self._timeout,
            )
        except (Timeout, ConnectionError) as e:
            raise APIUnreachableError(endpoint=self._base_url) from e
        except RequestException as e:
            raise APIAccessError(f"Request to {path} failed: {type(e).__name__}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        return TransportResponse(status=response.status_code, json=body, text=response.text)

    def close(self) -> None:
        self._session.close()
