"""Root pytest configuration for all tests.

Shared fixtures build a SyncSession around a mocked RelayAPI and a vault in
a temporary directory, so unit tests never touch the network.
"""

import logging
from unittest.mock import Mock

import pytest

from foundry_sync.hierarchy.hierarchy_builder import HierarchyBuilder
from foundry_sync.hierarchy.identity import IdentityGenerator
from foundry_sync.hierarchy.models import SyncConfig
from foundry_sync.relay_client.relay_api import RelayAPI
from foundry_sync.rendering.vault import LocalVault
from foundry_sync.session import SyncSession

# urllib3 logs every connection attempt at DEBUG
logging.getLogger("urllib3").setLevel(logging.WARNING)


@pytest.fixture
def mock_api():
    """RelayAPI mock with an empty remote world."""
    api = Mock(spec=RelayAPI)
    api.base_url = "https://relay.example.test"
    api.client_id = "client-1"
    api.check_status.return_value = True
    api.get_client_id.return_value = "client-1"
    api.get_folders.return_value = []
    api.get_journals.return_value = []
    api.list_assets.return_value = []
    api.create_folder.return_value = ""
    api.create_journal.return_value = ""
    api.put_pages.return_value = None
    api.upload_asset.return_value = True
    return api


@pytest.fixture
def vault_dir(tmp_path):
    """Empty vault directory."""
    root = tmp_path / "Campaign"
    root.mkdir()
    return root


@pytest.fixture
def vault(vault_dir):
    return LocalVault(vault_dir)


@pytest.fixture
def make_session(mock_api, vault):
    """Factory building a session over given folder and journal records."""

    def _make(folders=None, journals=None, config=None, catalog=None):
        session = SyncSession(api=mock_api, config=config or SyncConfig(), vault=vault)
        session.index = HierarchyBuilder.build(folders or [], journals or [])
        session.asset_catalog = set(catalog or [])
        session.identities = IdentityGenerator()
        return session

    return _make


def write_note(root, relative, content):
    """Write a note below ``root`` and return its path."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding='utf-8')
    return path


@pytest.fixture
def note_writer(vault_dir):
    """Helper writing notes into the vault directory."""

    def _write(relative, content):
        return write_note(vault_dir, relative, content)

    return _write
