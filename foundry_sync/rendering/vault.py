"""Read access to the local Markdown vault.

Link targets are resolved the way the editor does it: an exact
vault-relative path first, then a path relative to the linking note, then
the first file in the vault with a matching name.
"""

import logging
import posixpath
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import unquote

from foundry_sync.hierarchy.errors import FilesystemError, FrontmatterError
from foundry_sync.hierarchy.frontmatter_handler import FrontmatterHandler
from foundry_sync.hierarchy.models import LocalNote

logger = logging.getLogger(__name__)

NOTE_SUFFIX = ".md"


class LocalVault:
    """A directory of Markdown notes and attachments.

    Example:
        >>> vault = LocalVault("~/Vaults/Campaign")
        >>> note = vault.load_note(vault.list_notes()[0])
        >>> vault.resolve_link("Town Map.png", note.path)
        'Assets/Town Map.png'
    """

    def __init__(self, root):
        self.root = Path(root).expanduser().resolve()
        self.name = self.root.name
        self._files: Optional[List[str]] = None

    def relative_path(self, path) -> str:
        """Vault-relative POSIX path of a file inside the vault."""
        return Path(path).resolve().relative_to(self.root).as_posix()

    def list_files(self) -> List[str]:
        """Every file in the vault, skipping hidden directories."""
        if self._files is None:
            self._files = sorted(
                path.relative_to(self.root).as_posix()
                for path in self.root.rglob('*')
                if path.is_file()
                and not any(part.startswith('.') for part in path.relative_to(self.root).parts)
            )
        return self._files

    def list_notes(self) -> List[Path]:
        return [self.root / path for path in self.list_files() if path.endswith(NOTE_SUFFIX)]

    def load_note(self, path) -> LocalNote:
        """Read a note with its frontmatter and timestamps.

        Raises:
            FilesystemError: If the note cannot be read
            FrontmatterError: If its frontmatter is malformed
        """
        absolute = Path(path)
        if not absolute.is_absolute():
            absolute = self.root / absolute
        try:
            content = absolute.read_text(encoding='utf-8')
            stat = absolute.stat()
        except (OSError, UnicodeDecodeError) as e:
            raise FilesystemError(str(absolute), 'read', str(e))

        relative = self.relative_path(absolute)
        frontmatter, body = FrontmatterHandler.parse(relative, content)
        created = getattr(stat, 'st_birthtime', stat.st_ctime)
        return LocalNote(
            path=relative,
            absolute_path=absolute,
            title=absolute.stem,
            body=body,
            frontmatter=frontmatter,
            creation_time=int(created * 1000),
            modification_time=int(stat.st_mtime * 1000),
        )

    def resolve_link(self, link: str, source_path: str = "") -> Optional[str]:
        """Resolve a link target to a vault-relative path.

        Args:
            link: Link target as written (may be percent-encoded, may omit .md)
            source_path: Vault-relative path of the linking note

        Returns:
            Vault-relative path of the target, or None if nothing matches
        """
        target = unquote(link).strip().lstrip('/')
        if not target:
            return None

        files = set(self.list_files())
        candidates = [target]
        if not posixpath.splitext(target)[1]:
            candidates.append(target + NOTE_SUFFIX)

        source_dir = posixpath.dirname(source_path)
        for candidate in list(candidates):
            if source_dir:
                candidates.append(posixpath.normpath(posixpath.join(source_dir, candidate)))

        for candidate in candidates:
            if candidate in files:
                return candidate

        names = {posixpath.basename(candidate) for candidate in candidates}
        for path in self.list_files():
            if posixpath.basename(path) in names:
                return path

        logger.debug(f"Unresolved link target '{link}' in {source_path}")
        return None

    def read_binary(self, vault_path: str) -> bytes:
        """Read an attachment's bytes.

        Raises:
            FilesystemError: If the file cannot be read
        """
        path = self.root / vault_path
        try:
            return path.read_bytes()
        except OSError as e:
            raise FilesystemError(str(path), 'read', str(e))

    def collect_identities(self) -> Dict[str, str]:
        """Map each note path to the identity in its frontmatter."""
        identities = {}
        for path in self.list_notes():
            try:
                fields = FrontmatterHandler.read_fields(path)
            except (FilesystemError, FrontmatterError) as e:
                logger.warning(f"Skipping {path} while collecting identities: {e}")
                continue
            identity = fields.get('UUID')
            if identity:
                identities[self.relative_path(path)] = str(identity)
        return identities
