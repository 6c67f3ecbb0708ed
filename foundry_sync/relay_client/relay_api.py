"""High-level operations against the Foundry REST relay.

Every public method here is a remote call site: transport failures, non-200
responses and exhausted rate-limit retries are caught, logged with
credentials masked, and replaced by an empty/default value. Callers never
see a RelayError from this class; they check for the default instead.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from foundry_sync.hierarchy.models import ROOT_ID

from .errors import RelayError, RelayHTTPError
from .retry_logic import retry_on_rate_limit
from .scripts import FOLDER_SNAPSHOT_SCRIPT, JOURNAL_SNAPSHOT_SCRIPT, create_folder_script
from .transport import RelayTransport, TransportResponse

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png', '.gif', '.bmp', '.svg', '.webp')


class RelayAPI:
    """Typed wrapper over the relay endpoints used by the sync.

    Example:
        >>> api = RelayAPI(RelayTransport(Authenticator().get_credentials()))
        >>> api.check_status()
        True
        >>> api.client_id = api.get_client_id()
        >>> folders = api.get_folders()
    """

    def __init__(self, transport: RelayTransport, client_id: str = ""):
        self._transport = transport
        self.client_id = client_id

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    # Status and client selection

    def check_status(self) -> bool:
        """Return True when the relay reports status "ok"."""
        response = self._call("check_status", "GET", "/api/status", with_client=False)
        if response is None or not isinstance(response.json, dict):
            return False
        return response.json.get('status') == 'ok'

    def get_client_id(self, configured: Optional[str] = None) -> str:
        """Pick the Foundry client to talk to.

        Args:
            configured: Client id from the environment, if any

        Returns:
            The configured id when it is connected, otherwise the first
            connected client's id; "" when nothing usable is connected
        """
        response = self._call("get_clients", "GET", "/clients", with_client=False)
        if response is None or not isinstance(response.json, dict):
            return ""

        clients = response.json.get('clients') or []
        ids = [c.get('id') for c in clients if isinstance(c, dict) and c.get('id')]

        if configured:
            if configured in ids:
                return configured
            logger.warning(f"Configured client {configured} is not connected to the relay")
            return ""

        if not ids:
            logger.warning("No Foundry client connected to the relay")
            return ""
        return ids[0]

    # Snapshot

    def get_folders(self) -> List[Dict[str, Any]]:
        """Fetch every JournalEntry folder as a raw record."""
        result = self._execute("get_folders", FOLDER_SNAPSHOT_SCRIPT)
        if not isinstance(result, list):
            return []
        return [
            record for record in result
            if isinstance(record, dict) and record.get('type') == 'JournalEntry'
        ]

    def get_journals(self) -> List[Dict[str, Any]]:
        """Fetch every journal with its pages (content and flags included)."""
        result = self._execute("get_journals", JOURNAL_SNAPSHOT_SCRIPT)
        if not isinstance(result, list):
            return []
        return [record for record in result if isinstance(record, dict)]

    # Creation and update

    def create_folder(self, name: str, parent_id: str) -> str:
        """Create a JournalEntry folder and return its id ("" on failure)."""
        result = self._execute(
            f"create_folder({name})", create_folder_script(name, parent_id)
        )
        if isinstance(result, dict):
            result = result.get('_id') or result.get('id')
        return str(result) if result else ""

    def create_journal(self, name: str, folder_id: str) -> str:
        """Create an empty journal and return its id ("" on failure).

        Args:
            name: Journal name
            folder_id: Containing folder id; "" or the root sentinel for none
        """
        body: Dict[str, Any] = {
            'entityType': 'JournalEntry',
            'data': {'name': name, 'pages': []},
        }
        if folder_id and folder_id != ROOT_ID:
            body['folder'] = folder_id

        response = self._call(f"create_journal({name})", "POST", "/create", json=body)
        if response is None or not isinstance(response.json, dict):
            return ""

        uuid = response.json.get('uuid') or ""
        return uuid.split('.')[-1] if uuid else ""

    def put_pages(
        self, journal_id: str, pages: List[Dict[str, Any]]
    ) -> Optional[List[Dict[str, Any]]]:
        """Create or update pages of one journal.

        Pages with a blank ``_id`` are created; the others are merged into
        the existing page with that id.

        Returns:
            The journal's pages as returned by the relay, or None when the
            update failed
        """
        params = {'uuid': f"JournalEntry.{journal_id}", 'selected': 'false'}
        body = {'data': {'pages': pages}}

        response = self._call(
            f"put_pages({journal_id})", "PUT", "/update", params=params, json=body
        )
        if response is None:
            return None

        payload = response.json if isinstance(response.json, dict) else {}
        entity = payload.get('entity') or []
        if not entity or not isinstance(entity[0], dict):
            return []
        return list(entity[0].get('pages') or [])

    # Assets

    def list_assets(self) -> List[str]:
        """List image paths present in the remote file system."""
        params = {'recursive': 'true', 'path': '/'}
        response = self._call("list_assets", "GET", "/file-system", params=params)
        if response is None or not isinstance(response.json, dict):
            return []

        paths = []
        for entry in response.json.get('results') or []:
            path = entry.get('path') if isinstance(entry, dict) else None
            if path and path.lower().endswith(IMAGE_EXTENSIONS):
                paths.append(path)
        return paths

    def upload_asset(self, directory: str, filename: str, data: bytes) -> bool:
        """Upload one binary asset, overwriting any file of the same name."""
        params = {'path': directory, 'filename': filename, 'overwrite': 'true'}
        response = self._call(
            f"upload_asset({directory}/{filename})",
            "POST",
            "/upload",
            params=params,
            data=data,
            headers={'Content-Type': 'application/octet-stream'},
        )
        return response is not None

    # Internals

    def _execute(self, operation: str, script: str) -> Any:
        response = self._call(operation, "POST", "/execute-js", json={'script': script})
        if response is None or not isinstance(response.json, dict):
            return None
        return response.json.get('result')

    def _call(
        self,
        operation: str,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        with_client: bool = True,
    ) -> Optional[TransportResponse]:
        """Run one request with rate-limit retries and error containment.

        Returns:
            The 200 response, or None after logging the failure
        """
        query = dict(params or {})
        if with_client and self.client_id:
            query['clientId'] = self.client_id

        def _send() -> TransportResponse:
            response = self._transport.request(
                method, path, params=query or None, json=json, data=data, headers=headers
            )
            if response.status != 200:
                raise RelayHTTPError(response.status, path, response.text)
            return response

        try:
            return retry_on_rate_limit(_send)
        except RelayError as e:
            logger.error(f"Relay operation failed: {operation} - {sanitize_credentials(str(e))}")
            return None


def sanitize_credentials(text: str) -> str:
    """Mask API keys and tokens in log text.

    Example:
        >>> sanitize_credentials("x-api-key: abc123def456")
        'x-api-key: ***REDACTED***'
    """
    if not text:
        return text

    sanitized = re.sub(
        r'(x-api-key|api_?key|token)(["\']?\s*[:=]\s*["\']?)([^"\'\s&,}]+)',
        r'\1\2***REDACTED***',
        text,
        flags=re.IGNORECASE,
    )
    sanitized = re.sub(r'://([\w.-]+):([\w.-]+)@', r'://***:***@', sanitized)
    return sanitized
