"""Unit tests for relay_client.transport module."""

from unittest.mock import Mock

import pytest
from requests.exceptions import ConnectionError, InvalidURL, Timeout

from foundry_sync.relay_client.auth import Credentials
from foundry_sync.relay_client.errors import APIAccessError, APIUnreachableError
from foundry_sync.relay_client.transport import RelayTransport


class TestRelayTransport:
    """Test cases for RelayTransport.request."""

    @pytest.fixture
    def http(self):
        session = Mock()
        session.headers = {}
        return session

    @pytest.fixture
    def transport(self, http):
        creds = Credentials(url="https://relay.example.test/", api_key="k-123")
        return RelayTransport(creds, session=http, timeout=5)

    def test_sets_api_key_header(self, transport, http):
        assert http.headers['x-api-key'] == 'k-123'
        assert transport.base_url == "https://relay.example.test"

    def test_returns_status_json_and_text(self, transport, http):
        """A JSON response is decoded."""
        # Arrange
        response = Mock(status_code=200, text='{"status": "ok"}')
        response.json.return_value = {'status': 'ok'}
        http.request.return_value = response

        # Act
        result = transport.request("GET", "/api/status")

        # Assert
        assert result.status == 200
        assert result.json == {'status': 'ok'}
        http.request.assert_called_once_with(
            "GET",
            "https://relay.example.test/api/status",
            params=None,
            json=None,
            data=None,
            headers=None,
            timeout=5,
        )

    def test_non_json_body_gives_none(self, transport, http):
        response = Mock(status_code=502, text='Bad Gateway')
        response.json.side_effect = ValueError("no json")
        http.request.return_value = response

        result = transport.request("GET", "/clients")

        assert result.status == 502
        assert result.json is None
        assert result.text == 'Bad Gateway'

    @pytest.mark.parametrize("error", [Timeout(), ConnectionError()])
    def test_network_failures_raise_unreachable(self, transport, http, error):
        http.request.side_effect = error

        with pytest.raises(APIUnreachableError):
            transport.request("GET", "/clients")

    def test_other_request_failures_raise_access_error(self, transport, http):
        http.request.side_effect = InvalidURL("bad")

        with pytest.raises(APIAccessError):
            transport.request("GET", "/clients")
