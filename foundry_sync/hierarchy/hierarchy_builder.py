"""Builds the session hierarchy index from a flat remote snapshot.

Folders reference their parent by id. The full path of a folder is found by
walking up the parent chain to the root, reversing the walk and joining the
names below the synthetic root. Journals and pages are then keyed by the
composite paths "<folder>/<journal>" and "<folder>/<journal>.<page>".
"""

import logging
from typing import Any, Dict, List

from .models import (
    NONE_ID,
    ROOT_ID,
    EntityIndex,
    FolderNode,
    FolderTreeEntry,
    HierarchyIndex,
    JournalNode,
    PageNode,
    Provenance,
)

logger = logging.getLogger(__name__)


def journal_path(folder_path: str, journal_name: str) -> str:
    """Composite key of a journal: "<folder path>/<journal>"."""
    return f"{folder_path}/{journal_name}"


def page_path(folder_path: str, journal_name: str, page_name: str) -> str:
    """Composite key of a page: "<folder path>/<journal>.<page>"."""
    return f"{journal_path(folder_path, journal_name)}.{page_name}"


class HierarchyBuilder:
    """Turns folder and journal records into a HierarchyIndex.

    Folder records carry ``id``, ``name``, ``depth`` and ``parentId``.
    Journal records carry ``id``, ``name``, ``folderId`` and ``pages``
    (each with ``id``, ``name``, ``content`` and ``flags``).

    Example:
        >>> index = HierarchyBuilder.build(api.get_folders(), api.get_journals())
        >>> index.folders.by_path["Area/Sub"].id
        'Fo1xS0aBc'
    """

    @classmethod
    def build(
        cls,
        folder_records: List[Dict[str, Any]],
        journal_records: List[Dict[str, Any]],
    ) -> HierarchyIndex:
        """Build the full index. Empty snapshots give empty (not missing) maps."""
        index = HierarchyIndex()
        index.folders = cls.build_folder_index(folder_records or [])
        index.journals, index.pages = cls.build_journal_index(
            journal_records or [], index.folders
        )
        logger.info(
            f"Indexed {len(index.folders)} folder(s), {len(index.journals)} journal(s), "
            f"{len(index.pages)} page(s)"
        )
        return index

    @classmethod
    def build_folder_index(cls, folder_records: List[Dict[str, Any]]) -> EntityIndex:
        records_by_id = {
            str(record['id']): record for record in folder_records if record.get('id')
        }

        index = EntityIndex()
        for folder_id, record in records_by_id.items():
            tree = cls.walk_up_tree(records_by_id, folder_id)
            node = FolderNode(
                id=folder_id,
                name=str(record.get('name') or ""),
                parent_id=str(record.get('parentId') or ROOT_ID),
                depth=_depth(record),
                full_path=cls.compute_full_path(tree),
                tree=tree,
            )
            if not index.add(node):
                logger.warning(
                    f"Duplicate folder path '{node.full_path}' (folder {folder_id}), "
                    f"keeping {index.by_path[node.full_path].id}"
                )
        return index

    @classmethod
    def walk_up_tree(
        cls, records_by_id: Dict[str, Dict[str, Any]], start_id: str
    ) -> List[FolderTreeEntry]:
        """Walk from a folder to the root and return the entries root-first.

        The walk stops without error at a dangling parent reference or at a
        parent with a negative depth. A synthetic root entry (id "root",
        level 0) is always prepended.

        Args:
            records_by_id: Folder records keyed by id
            start_id: Folder to start from

        Returns:
            Entries ordered from the synthetic root down to the start folder
        """
        entries: List[FolderTreeEntry] = []
        visited = set()
        current = records_by_id.get(start_id)
        child = None

        while current is not None:
            current_id = str(current['id'])
            if current_id in visited:
                logger.warning(f"Folder parent cycle detected at {current_id}")
                break
            visited.add(current_id)

            parent = records_by_id.get(str(current.get('parentId') or ""))
            entry = FolderTreeEntry(
                id=current_id,
                name=str(current.get('name') or ""),
                level=_depth(current),
            )
            if parent is not None:
                entry.parent_id = str(parent['id'])
                entry.parent_name = str(parent.get('name') or "")
                entry.parent_level = _depth(parent)
            if child is not None:
                entry.child_id = str(child['id'])
                entry.child_name = str(child.get('name') or "")
                entry.child_level = _depth(child)
            entries.append(entry)

            if parent is None or _depth(parent) < 0:
                break
            child, current = current, parent

        entries.reverse()
        root = FolderTreeEntry(
            id=ROOT_ID,
            name=ROOT_ID,
            level=0,
            parent_id=NONE_ID,
            parent_name=NONE_ID,
            parent_level=-1,
        )
        if entries:
            root.child_id = entries[0].id
            root.child_name = entries[0].name
            root.child_level = entries[0].level
        return [root] + entries

    @staticmethod
    def compute_full_path(tree: List[FolderTreeEntry]) -> str:
        """Join the names below the synthetic root with "/"."""
        return "/".join(entry.name for entry in tree[1:])

    @classmethod
    def build_journal_index(
        cls,
        journal_records: List[Dict[str, Any]],
        folders: EntityIndex,
    ):
        """Index journals and their pages by id and composite path.

        Returns:
            Tuple of (journal index, page index)
        """
        journals = EntityIndex()
        pages = EntityIndex()

        for record in journal_records:
            if not record.get('id'):
                continue
            folder_id = str(record.get('folderId') or ROOT_ID)
            folder = folders.by_id.get(folder_id)
            if folder is None and folder_id != ROOT_ID:
                logger.debug(f"Journal {record['id']} references unknown folder {folder_id}")
            folder_path = folder.full_path if folder else ""
            name = str(record.get('name') or "")

            journal = JournalNode(
                id=str(record['id']),
                name=name,
                folder_id=folder_id if folder else ROOT_ID,
                folder_path=folder_path,
                full_path=journal_path(folder_path, name),
            )
            if not journals.add(journal):
                logger.warning(f"Duplicate journal path '{journal.full_path}' ({journal.id})")

            for page_record in record.get('pages') or []:
                if not isinstance(page_record, dict) or not page_record.get('id'):
                    continue
                page_name = str(page_record.get('name') or "")
                page = PageNode(
                    id=str(page_record['id']),
                    name=page_name,
                    journal_id=journal.id,
                    journal_name=name,
                    folder_id=journal.folder_id,
                    folder_path=folder_path,
                    full_path=page_path(folder_path, name, page_name),
                    content=str(page_record.get('content') or ""),
                    provenance=Provenance.from_page_flags(page_record.get('flags')),
                )
                journal.pages.append(page)
                if not pages.add(page):
                    logger.warning(f"Duplicate page path '{page.full_path}' ({page.id})")

        return journals, pages


def _depth(record: Dict[str, Any]) -> int:
    try:
        return int(record.get('depth', 1))
    except (TypeError, ValueError):
        return 1
