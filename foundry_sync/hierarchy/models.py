"""Data models for the remote hierarchy and local notes.

All models use dataclasses. The remote side is Folder -> JournalEntry ->
JournalEntryPage; every entity is addressable both by its remote id and by
its composite full path.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Generic, List, Optional, TypeVar

# Synthetic id of the folder tree root (also "no folder" for journals)
ROOT_ID = "root"
NONE_ID = "none"

# Page flag namespace holding the provenance record
PROVENANCE_NAMESPACE = "markdowntofoundry"


@dataclass
class FolderTreeEntry:
    """One step of a walk from a folder up to the root.

    Attributes:
        id: Folder id at this step
        name: Folder name at this step
        level: Folder depth (the synthetic root is 0)
        parent_id: Id of the parent folder, "root" at the top
        parent_name: Name of the parent folder
        parent_level: Depth of the parent folder
        child_id: Id of the folder the walk came from, "none" at the start
        child_name: Name of that folder
        child_level: Depth of that folder, -1 at the start
    """
    id: str
    name: str
    level: int
    parent_id: str = ROOT_ID
    parent_name: str = ROOT_ID
    parent_level: int = 0
    child_id: str = NONE_ID
    child_name: str = NONE_ID
    child_level: int = -1


@dataclass
class FolderNode:
    """A remote JournalEntry folder.

    Attributes:
        id: Remote-assigned folder id
        name: Folder name
        parent_id: Parent folder id, or ROOT_ID for a top-level folder
        depth: Folder depth (1 for top-level folders)
        full_path: Slash-joined names from the top-level folder down
        tree: Root-first walk entries used to compute full_path
    """
    id: str
    name: str
    parent_id: str = ROOT_ID
    depth: int = 1
    full_path: str = ""
    tree: List[FolderTreeEntry] = field(default_factory=list)


@dataclass
class LinkReference:
    """An outbound link recorded in a page's provenance.

    Attributes:
        source_document_identity: Identity of the note holding the link
        target_path_hint: Vault path of the target note ("" for self links)
        display_text: Text shown for the link
        target_document_identity: Identity of the target note, if known
        is_anchor_link: True when the link carries a heading fragment
        anchor_fragment: Raw fragment including "#", "" if none
        resolved: True once the inline markup has been rewritten
    """
    source_document_identity: str = ""
    target_path_hint: str = ""
    display_text: str = ""
    target_document_identity: str = ""
    is_anchor_link: bool = False
    anchor_fragment: str = ""
    resolved: bool = False

    def to_flags(self) -> Dict[str, Any]:
        return {
            'obsidianNoteUUID': self.source_document_identity,
            'linkPath': self.target_path_hint,
            'linkText': self.display_text,
            'linkDestinationUUID': self.target_document_identity,
            'isAnkerLink': self.is_anchor_link,
            'ankerLink': self.anchor_fragment,
            'linkResolved': self.resolved,
        }

    @classmethod
    def from_flags(cls, data: Dict[str, Any]) -> 'LinkReference':
        return cls(
            source_document_identity=str(data.get('obsidianNoteUUID') or ""),
            target_path_hint=str(data.get('linkPath') or ""),
            display_text=str(data.get('linkText') or ""),
            target_document_identity=str(data.get('linkDestinationUUID') or ""),
            is_anchor_link=bool(data.get('isAnkerLink')),
            anchor_fragment=str(data.get('ankerLink') or ""),
            resolved=bool(data.get('linkResolved')),
        )


@dataclass
class Provenance:
    """Metadata embedded in a remote page about the note that produced it.

    Stored under ``flags.markdowntofoundry`` with the key names used by
    existing exports, so a later link resolution run can rebuild its maps
    from the remote corpus alone.

    Attributes:
        document_identity: Note identity (frontmatter UUID)
        vault_name: Name of the vault the note lives in
        document_path: Vault-relative note path
        document_title: Note title
        content_hash: Hash of the note body
        creation_time: Note creation time, epoch milliseconds
        modification_time: Note modification time, epoch milliseconds
        upload_time: Upload time, epoch milliseconds
        links: Outbound links found in the rendered note
    """
    document_identity: str = ""
    vault_name: str = ""
    document_path: str = ""
    document_title: str = ""
    content_hash: str = ""
    creation_time: int = 0
    modification_time: int = 0
    upload_time: int = 0
    links: List[LinkReference] = field(default_factory=list)

    @property
    def unresolved_link_count(self) -> int:
        return sum(1 for link in self.links if not link.resolved)

    def to_flags(self) -> Dict[str, Any]:
        return {
            'uuid': self.document_identity,
            'vault': self.vault_name,
            'filePath': self.document_path,
            'noteTitle': self.document_title,
            'noteHash': self.content_hash,
            'cTime': self.creation_time,
            'mTime': self.modification_time,
            'uploadTime': self.upload_time,
            'journalLinks': [link.to_flags() for link in self.links],
            'unresolvedLinks': self.unresolved_link_count,
        }

    @classmethod
    def from_page_flags(cls, flags: Optional[Dict[str, Any]]) -> Optional['Provenance']:
        """Read the provenance record from a page's flags, if present."""
        if not isinstance(flags, dict):
            return None
        data = flags.get(PROVENANCE_NAMESPACE)
        if not isinstance(data, dict):
            return None

        links = [
            LinkReference.from_flags(item)
            for item in data.get('journalLinks') or []
            if isinstance(item, dict)
        ]
        return cls(
            document_identity=str(data.get('uuid') or ""),
            vault_name=str(data.get('vault') or ""),
            document_path=str(data.get('filePath') or ""),
            document_title=str(data.get('noteTitle') or ""),
            content_hash=str(data.get('noteHash') or ""),
            creation_time=_as_int(data.get('cTime')),
            modification_time=_as_int(data.get('mTime')),
            upload_time=_as_int(data.get('uploadTime')),
            links=links,
        )


@dataclass
class PageNode:
    """A remote journal page.

    Attributes:
        id: Remote-assigned page id
        name: Page name
        journal_id: Id of the containing journal
        journal_name: Name of the containing journal
        folder_id: Id of the journal's folder, ROOT_ID if none
        folder_path: Full path of the journal's folder
        full_path: "<folder path>/<journal>.<page>"
        content: Stored HTML content
        provenance: Provenance record, None for pages not produced by a sync
    """
    id: str
    name: str
    journal_id: str
    journal_name: str = ""
    folder_id: str = ROOT_ID
    folder_path: str = ""
    full_path: str = ""
    content: str = ""
    provenance: Optional[Provenance] = None

    @property
    def address(self) -> str:
        """Remote address used in @UUID references."""
        return page_address(self.journal_id, self.id)


@dataclass
class JournalNode:
    """A remote journal entry.

    Attributes:
        id: Remote-assigned journal id
        name: Journal name
        folder_id: Containing folder id, ROOT_ID if none
        folder_path: Full path of the containing folder
        full_path: "<folder path>/<journal>"
        pages: Pages in remote order
    """
    id: str
    name: str
    folder_id: str = ROOT_ID
    folder_path: str = ""
    full_path: str = ""
    pages: List[PageNode] = field(default_factory=list)


N = TypeVar('N', FolderNode, JournalNode, PageNode)


@dataclass
class EntityIndex(Generic[N]):
    """By-id and by-full-path lookup for one entity kind.

    The first entity registered under a path keeps it; a later entity with
    the same path is still reachable by id.
    """
    by_id: Dict[str, N] = field(default_factory=dict)
    by_path: Dict[str, N] = field(default_factory=dict)

    def add(self, node: N) -> bool:
        """Register a node. Returns False if its path was already taken."""
        self.by_id[node.id] = node
        if node.full_path in self.by_path:
            return False
        self.by_path[node.full_path] = node
        return True

    def __len__(self) -> int:
        return len(self.by_id)


@dataclass
class HierarchyIndex:
    """Session-scoped lookup structures for folders, journals and pages."""
    folders: EntityIndex = field(default_factory=EntityIndex)
    journals: EntityIndex = field(default_factory=EntityIndex)
    pages: EntityIndex = field(default_factory=EntityIndex)


@dataclass
class ImageAsset:
    """An image embedded in a note, queued for upload.

    Attributes:
        source_path: Absolute path of the local file
        vault_path: Vault-relative path, as referenced in rendered HTML
        basename: File name without extension
        extension: Extension without the dot
        content_hash: XXH64 of the file bytes, 16 lowercase hex characters
        upload_dir: Remote directory the asset is uploaded to
    """
    source_path: Path
    vault_path: str
    basename: str
    extension: str
    content_hash: str
    upload_dir: str

    @property
    def remote_filename(self) -> str:
        return f"{self.basename}_{self.content_hash}.{self.extension}"

    @property
    def remote_path(self) -> str:
        return f"{self.upload_dir}/{self.remote_filename}"


@dataclass
class Destination:
    """Where a note lands remotely, after applying frontmatter overrides."""
    folder: str
    journal: str
    page_title: str
    page_id: str = ""
    picture_path: str = ""
    is_page: bool = False


@dataclass
class LocalNote:
    """A Markdown note from the vault.

    Attributes:
        path: Vault-relative POSIX path (e.g. "Areas/Town.md")
        absolute_path: Absolute path on disk
        title: File stem
        body: Markdown without frontmatter
        frontmatter: Parsed frontmatter fields
        creation_time: Creation time, epoch milliseconds
        modification_time: Modification time, epoch milliseconds
    """
    path: str
    absolute_path: Path
    title: str
    body: str = ""
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    creation_time: int = 0
    modification_time: int = 0

    @property
    def identity(self) -> str:
        value = self.frontmatter.get('UUID')
        return str(value) if value else ""


@dataclass
class UpsertDecision:
    """Accumulated outcome of resolving one note to a remote page.

    The flags are independent: folder, journal and page can each be found
    or created in any combination.
    """
    page_found: bool = False
    create_page: bool = False
    update_page: bool = False
    needs_folder: bool = False
    needs_journal: bool = False
    folder_id: str = ""
    journal_id: str = ""
    page_id: str = ""


@dataclass
class UpsertResult:
    """Result of one page upsert."""
    decision: UpsertDecision
    page_id: str = ""
    success: bool = False

    @property
    def created(self) -> bool:
        return self.success and self.decision.create_page


def page_address(journal_id: str, page_id: str) -> str:
    return f"JournalEntry.{journal_id}.JournalEntryPage.{page_id}"


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass
class DestinationConfig:
    """Default destination for notes without frontmatter overrides.

    Attributes:
        folder: Slash-delimited remote folder path
        journal: Journal name inside that folder
        picture_path: Remote directory for uploaded images
    """
    folder: str = "Obsidian Export"
    journal: str = "Obsidian"
    picture_path: str = "assets/pictures"


@dataclass
class SyncConfig:
    """Configuration loaded from .foundry-sync/config.yaml.

    Attributes:
        vault_path: Root directory of the Markdown vault
        destination: Default remote destination
        read_frontmatter: Honor VTT_* destination overrides in notes
        write_back: Write the resolved destination and page id back to new notes
        write_identity: Write generated document identities (UUID) to notes
        resolve_links: Run the link resolution pass after each export
        ownership: Default ownership level of created pages
    """
    vault_path: str = "."
    destination: DestinationConfig = field(default_factory=DestinationConfig)
    read_frontmatter: bool = True
    write_back: bool = False
    write_identity: bool = False
    resolve_links: bool = False
    ownership: int = -1
