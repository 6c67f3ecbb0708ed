"""Explicit context object for one synchronization session.

A SyncSession owns everything that lives for exactly one run: the relay
API bound to a client, the hierarchy index built from the remote snapshot,
the remote asset catalog, the pending image queue and the identity
generator. Components receive the session instead of sharing module state,
so two sessions never interfere.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from foundry_sync.hierarchy.hierarchy_builder import HierarchyBuilder
from foundry_sync.hierarchy.identity import IdentityGenerator
from foundry_sync.hierarchy.models import HierarchyIndex, ImageAsset, SyncConfig
from foundry_sync.page_operations.image_dedup import catalog_key
from foundry_sync.relay_client.errors import APIUnreachableError, ClientNotFoundError
from foundry_sync.relay_client.relay_api import RelayAPI
from foundry_sync.rendering.vault import LocalVault

logger = logging.getLogger(__name__)


@dataclass
class SyncSession:
    """State of one synchronization run.

    Attributes:
        api: Relay API bound to the selected client
        config: Loaded configuration
        vault: Local vault being exported
        index: Remote hierarchy index
        asset_catalog: Remote image paths, in comparison form
        pending_images: Images waiting for upload
        identities: Identity generator seeded with every known identity
        vault_identities: Vault path -> document identity
    """
    api: RelayAPI
    config: SyncConfig
    vault: LocalVault
    index: HierarchyIndex = field(default_factory=HierarchyIndex)
    asset_catalog: Set[str] = field(default_factory=set)
    pending_images: List[ImageAsset] = field(default_factory=list)
    identities: IdentityGenerator = field(default_factory=IdentityGenerator)
    vault_identities: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def open(
        cls,
        api: RelayAPI,
        config: SyncConfig,
        vault: LocalVault,
        client_id: Optional[str] = None,
    ) -> 'SyncSession':
        """Start a session: check the relay, pick a client, take a snapshot.

        Args:
            api: Relay API (its client id is set here)
            config: Loaded configuration
            vault: Local vault
            client_id: Configured Foundry client id, if any

        Raises:
            APIUnreachableError: If the relay status check fails
            ClientNotFoundError: If no usable Foundry client is connected
        """
        if not api.check_status():
            raise APIUnreachableError(endpoint=api.base_url)

        selected = api.get_client_id(client_id)
        if not selected:
            raise ClientNotFoundError(client_id)
        api.client_id = selected
        logger.info(f"Using Foundry client {selected}")

        session = cls(api=api, config=config, vault=vault)
        session.refresh_index()
        session.asset_catalog = {catalog_key(path) for path in api.list_assets()}
        session.vault_identities = vault.collect_identities()

        known = set(session.vault_identities.values())
        for page in session.index.pages.by_id.values():
            if page.provenance and page.provenance.document_identity:
                known.add(page.provenance.document_identity)
        session.identities = IdentityGenerator(known)

        logger.info(f"Remote catalog has {len(session.asset_catalog)} image(s)")
        return session

    def refresh_index(self) -> HierarchyIndex:
        """Rebuild the hierarchy index from a fresh remote snapshot."""
        self.index = HierarchyBuilder.build(self.api.get_folders(), self.api.get_journals())
        return self.index

    def has_asset(self, remote_path: str) -> bool:
        return catalog_key(remote_path) in self.asset_catalog

    def add_asset(self, remote_path: str) -> None:
        self.asset_catalog.add(catalog_key(remote_path))
