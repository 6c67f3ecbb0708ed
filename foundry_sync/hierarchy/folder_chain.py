"""Creates missing folders along a slash-delimited destination path."""

import logging
from typing import Callable, List

from .models import ROOT_ID, FolderNode, FolderTreeEntry, HierarchyIndex

logger = logging.getLogger(__name__)

PLACEHOLDER_NAME = "ObsidianPlaceholder"


def split_folder_path(path: str) -> List[str]:
    """Split a destination path into folder names.

    Surrounding separators are dropped and empty inner segments are
    replaced by the placeholder name.

    Example:
        >>> split_folder_path("/Area//Leaf/")
        ['Area', 'ObsidianPlaceholder', 'Leaf']
    """
    stripped = (path or "").strip().strip('/')
    if not stripped:
        return []
    return [segment if segment else PLACEHOLDER_NAME for segment in stripped.split('/')]


def normalize_folder_path(path: str) -> str:
    """Canonical form of a destination path, as used in composite keys."""
    return "/".join(split_folder_path(path))


class FolderChainReconciler:
    """Finds the longest indexed prefix of a path and creates the rest.

    Args:
        index: Session hierarchy index (folders are read and, once the chain
            is complete, the created folders are registered in it)
        create_folder: Remote operation ``(name, parent_id) -> new_id``;
            returns "" on failure

    Example:
        >>> reconciler = FolderChainReconciler(session.index, api.create_folder)
        >>> reconciler.ensure_path("Area/Sub/Leaf")
        'Fo9Leaf000000000'
    """

    def __init__(self, index: HierarchyIndex, create_folder: Callable[[str, str], str]):
        self._index = index
        self._create_folder = create_folder

    def ensure_path(self, path: str) -> str:
        """Return the id of the deepest folder of ``path``, creating as needed.

        Returns:
            The leaf folder id; ROOT_ID when the path is empty; "" when a
            folder could not be created
        """
        segments = split_folder_path(path)
        if not segments:
            return ROOT_ID

        by_path = self._index.folders.by_path
        prefixes = ["/".join(segments[:i + 1]) for i in range(len(segments))]

        last_existing = -1
        for position, prefix in enumerate(prefixes):
            if prefix not in by_path:
                break
            last_existing = position

        parent_id = by_path[prefixes[last_existing]].id if last_existing >= 0 else ROOT_ID
        if last_existing == len(segments) - 1:
            return parent_id

        created: List[FolderNode] = []
        current_path = prefixes[last_existing] if last_existing >= 0 else ""
        for position in range(last_existing + 1, len(segments)):
            name = segments[position]
            current_path = f"{current_path}/{name}" if current_path else name

            new_id = self._create_folder(name, parent_id)
            if not new_id:
                logger.warning(f"Could not create folder '{current_path}', stopping chain")
                self._register(created)
                return ""

            logger.info(f"Created folder '{current_path}' ({new_id})")
            created.append(FolderNode(
                id=new_id,
                name=name,
                parent_id=parent_id,
                depth=position + 1,
                full_path=current_path,
            ))
            parent_id = new_id

        self._register(created)
        return parent_id

    def _register(self, created: List[FolderNode]) -> None:
        folders = self._index.folders
        for node in created:
            parent = folders.by_id.get(node.parent_id)
            parent_tree = parent.tree if parent and parent.tree else [
                FolderTreeEntry(id=ROOT_ID, name=ROOT_ID, level=0)
            ]
            node.tree = parent_tree + [FolderTreeEntry(
                id=node.id,
                name=node.name,
                level=node.depth,
                parent_id=node.parent_id,
                parent_name=parent.name if parent else ROOT_ID,
                parent_level=parent.depth if parent else 0,
            )]
            folders.add(node)
