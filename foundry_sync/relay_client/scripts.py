"""Foundry-side scripts sent through the relay's /execute-js endpoint.

The snapshot scripts return raw records only. Paths and indexes are
computed on our side by the hierarchy builder.
"""

import json

from foundry_sync.hierarchy.models import ROOT_ID

FOLDER_SNAPSHOT_SCRIPT = """
return game.folders.contents.map(folder => ({
  id: folder.id,
  name: folder.name,
  type: folder.type,
  depth: folder.depth,
  parentId: folder.folder ? folder.folder.id : null
}));
"""

JOURNAL_SNAPSHOT_SCRIPT = """
return game.journal.contents.map(journal => ({
  id: journal.id,
  name: journal.name,
  folderId: journal.folder ? journal.folder.id : null,
  pages: journal.pages.contents.map(page => ({
    id: page.id,
    name: page.name,
    content: page.text?.content ?? "",
    flags: page.flags ?? {}
  }))
}));
"""

_CREATE_FOLDER_TEMPLATE = """
const folder = await Folder.create({
  name: %(name)s,
  type: "JournalEntry",
  folder: %(parent)s,
  sorting: "a"
});
return folder ? folder.id : "";
"""


def create_folder_script(name: str, parent_id: str) -> str:
    """Build the script that creates one JournalEntry folder.

    Args:
        name: Folder name, passed through as given
        parent_id: Parent folder id, or "root"/"" for a top-level folder
    """
    parent = json.dumps(parent_id) if parent_id and parent_id != ROOT_ID else "null"
    return _CREATE_FOLDER_TEMPLATE % {'name': json.dumps(name), 'parent': parent}
