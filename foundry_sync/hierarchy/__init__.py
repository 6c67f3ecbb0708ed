"""Remote hierarchy indexing and local note metadata.

This package models the Folder -> JournalEntry -> Page tree of a Foundry
world, builds by-id and by-path indexes over it, creates missing folder
chains, and handles the frontmatter, identities and configuration of the
local vault.
"""

from .models import (
    ROOT_ID,
    FolderNode,
    FolderTreeEntry,
    JournalNode,
    PageNode,
    Provenance,
    LinkReference,
    EntityIndex,
    HierarchyIndex,
    ImageAsset,
    Destination,
    LocalNote,
    UpsertDecision,
    UpsertResult,
    DestinationConfig,
    SyncConfig,
)
from .errors import HierarchyError, FilesystemError, ConfigError, FrontmatterError
from .hierarchy_builder import HierarchyBuilder, journal_path, page_path
from .folder_chain import FolderChainReconciler, normalize_folder_path
from .frontmatter_handler import FrontmatterHandler
from .identity import IdentityGenerator
from .config_loader import ConfigLoader

__all__ = [
    'ROOT_ID',
    'FolderNode',
    'FolderTreeEntry',
    'JournalNode',
    'PageNode',
    'Provenance',
    'LinkReference',
    'EntityIndex',
    'HierarchyIndex',
    'ImageAsset',
    'Destination',
    'LocalNote',
    'UpsertDecision',
    'UpsertResult',
    'DestinationConfig',
    'SyncConfig',
    'HierarchyError',
    'FilesystemError',
    'ConfigError',
    'FrontmatterError',
    'HierarchyBuilder',
    'journal_path',
    'page_path',
    'FolderChainReconciler',
    'normalize_folder_path',
    'FrontmatterHandler',
    'IdentityGenerator',
    'ConfigLoader',
]
