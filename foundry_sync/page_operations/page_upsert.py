"""Create-or-update of the remote page for one note.

Resolution order:
1. The page id stored in the note (VTT_UUID), if the page still exists
2. The destination folder by path, creating the missing chain
3. The journal by "<folder>/<journal>", creating it if missing
4. The page by "<folder>/<journal>.<title>"

Exactly one page write follows: an update of the found page, or a create
with a blank id whose new id is read back from the relay response.
"""

import hashlib
import logging
import time
from typing import Any, Dict, List, Optional

from foundry_sync.hierarchy.folder_chain import FolderChainReconciler, normalize_folder_path
from foundry_sync.hierarchy.frontmatter_handler import FrontmatterHandler
from foundry_sync.hierarchy.hierarchy_builder import journal_path, page_path
from foundry_sync.hierarchy.models import (
    PROVENANCE_NAMESPACE,
    ROOT_ID,
    Destination,
    JournalNode,
    LinkReference,
    LocalNote,
    PageNode,
    Provenance,
    UpsertDecision,
    UpsertResult,
)

logger = logging.getLogger(__name__)

TEXT_FORMAT_HTML = 1


def note_content_hash(body: str) -> str:
    return hashlib.sha256(body.encode('utf-8')).hexdigest()


def build_page_payload(
    name: str,
    html: str,
    page_id: str,
    provenance: Provenance,
    ownership: int = -1,
) -> Dict[str, Any]:
    """Page document sent to the relay ("" page id means create)."""
    return {
        'name': name,
        'type': 'text',
        'text': {'content': html, 'format': TEXT_FORMAT_HTML},
        '_id': page_id,
        'flags': {PROVENANCE_NAMESPACE: provenance.to_flags()},
        'title': {'show': True, 'level': 1},
        'ownership': {'default': ownership},
    }


class PageUpsert:
    """Resolves a note to its remote page and writes it.

    Args:
        session: Active SyncSession; its index is updated with every folder,
            journal and page created here

    Example:
        >>> upsert = PageUpsert(session)
        >>> result = upsert.upsert(note, html, links)
        >>> result.decision.create_page, result.page_id
        (True, 'Pg0000000000new1')
    """

    def __init__(self, session):
        self._session = session
        self._api = session.api
        self._config = session.config

    def destination_for(self, note: LocalNote) -> Destination:
        defaults = self._config.destination
        return FrontmatterHandler.resolve_destination(
            note,
            default_folder=defaults.folder,
            default_journal=defaults.journal,
            default_picture_path=defaults.picture_path,
            read_frontmatter=self._config.read_frontmatter,
        )

    def upsert(
        self,
        note: LocalNote,
        html: str,
        links: List[LinkReference],
        destination: Optional[Destination] = None,
    ) -> UpsertResult:
        """Create or update the page for ``note``.

        Args:
            note: Source note
            html: Rendered page content
            links: Outbound links found in ``html``
            destination: Resolved destination (computed from the note if None)

        Returns:
            UpsertResult with the decision record and the page id ("" when
            the page could not be written or its new id not recovered)
        """
        identity = self._session.identities.ensure_note_identity(
            note, persist=self._config.write_identity
        )
        for link in links:
            link.source_document_identity = identity

        destination = destination or self.destination_for(note)
        decision = self.decide(destination)

        if not decision.journal_id:
            logger.error(f"No journal available for {note.path}, skipping")
            return UpsertResult(decision=decision)

        provenance = Provenance(
            document_identity=identity,
            vault_name=self._session.vault.name,
            document_path=note.path,
            document_title=note.title,
            content_hash=note_content_hash(note.body),
            creation_time=note.creation_time,
            modification_time=note.modification_time,
            upload_time=int(time.time() * 1000),
            links=links,
        )

        if decision.update_page:
            return self._update(note, html, destination, decision, provenance)
        return self._create(note, html, destination, decision, provenance)

    def decide(self, destination: Destination) -> UpsertDecision:
        """Resolve folder, journal and page for a destination.

        Missing folders and journals are created here; the page write is
        left to the caller.
        """
        decision = UpsertDecision()
        index = self._session.index

        stored = index.pages.by_id.get(destination.page_id) if destination.page_id else None
        if stored is not None:
            decision.page_found = True
            decision.update_page = True
            decision.page_id = stored.id
            decision.journal_id = stored.journal_id
            decision.folder_id = stored.folder_id
            logger.debug(f"Page {stored.id} found by stored id")
            return decision

        folder_path = normalize_folder_path(destination.folder)
        if folder_path:
            folder = index.folders.by_path.get(folder_path)
            if folder is not None:
                decision.folder_id = folder.id
            else:
                reconciler = FolderChainReconciler(index, self._api.create_folder)
                decision.folder_id = reconciler.ensure_path(folder_path)
                decision.needs_folder = True
                decision.create_page = True
                if not decision.folder_id:
                    logger.error(f"Folder chain '{folder_path}' could not be created")
                    decision.journal_id = ""
                    return decision
        else:
            decision.folder_id = ROOT_ID

        journal_key = journal_path(folder_path, destination.journal)
        journal = index.journals.by_path.get(journal_key)
        if journal is not None:
            decision.journal_id = journal.id
            decision.update_page = True
        else:
            decision.journal_id = self._create_journal(
                destination.journal, decision.folder_id, folder_path
            )
            decision.needs_journal = True
            decision.create_page = True

        page = index.pages.by_path.get(
            page_path(folder_path, destination.journal, destination.page_title)
        )
        if page is not None:
            decision.page_id = page.id
            decision.page_found = True
            decision.update_page = True
            decision.create_page = False
        else:
            decision.create_page = True
            decision.update_page = False

        return decision

    def _create_journal(self, name: str, folder_id: str, folder_path: str) -> str:
        journal_id = self._api.create_journal(name, folder_id if folder_id != ROOT_ID else "")
        if not journal_id:
            return ""

        logger.info(f"Created journal '{journal_path(folder_path, name)}' ({journal_id})")
        self._session.index.journals.add(JournalNode(
            id=journal_id,
            name=name,
            folder_id=folder_id or ROOT_ID,
            folder_path=folder_path,
            full_path=journal_path(folder_path, name),
        ))
        return journal_id

    def _update(self, note, html, destination, decision, provenance) -> UpsertResult:
        payload = build_page_payload(
            destination.page_title, html, decision.page_id, provenance, self._config.ownership
        )
        if self._api.put_pages(decision.journal_id, [payload]) is None:
            return UpsertResult(decision=decision, page_id=decision.page_id)

        page = self._session.index.pages.by_id.get(decision.page_id)
        if page is not None:
            page.content = html
            page.provenance = provenance
        logger.info(f"Updated page '{destination.page_title}' ({decision.page_id}) from {note.path}")
        return UpsertResult(decision=decision, page_id=decision.page_id, success=True)

    def _create(self, note, html, destination, decision, provenance) -> UpsertResult:
        payload = build_page_payload(
            destination.page_title, html, "", provenance, self._config.ownership
        )
        pages = self._api.put_pages(decision.journal_id, [payload])
        if pages is None:
            return UpsertResult(decision=decision)

        page_id = self._recover_page_id(pages, destination.page_title)
        decision.page_id = page_id
        if not page_id:
            return UpsertResult(decision=decision)

        self._register_page(page_id, html, destination, decision, provenance)
        logger.info(f"Created page '{destination.page_title}' ({page_id}) from {note.path}")

        if self._config.write_back:
            destination.page_id = page_id
            fields = FrontmatterHandler.destination_fields(destination)
            if FrontmatterHandler.write_fields(note.absolute_path, fields):
                note.frontmatter.update(fields)

        return UpsertResult(decision=decision, page_id=page_id, success=True)

    def _recover_page_id(self, pages: List[Dict[str, Any]], title: str) -> str:
        """Pick the id of the page just created out of the journal's pages.

        A single page with the title wins. With several, the one whose id is
        not yet in the session index is the new one; anything else is
        ambiguous and yields "".
        """
        matches = [page for page in pages if page.get('name') == title]
        ids = [str(page.get('_id') or page.get('id') or "") for page in matches]
        ids = [page_id for page_id in ids if page_id]

        if len(ids) > 1:
            known = self._session.index.pages.by_id
            ids = [page_id for page_id in ids if page_id not in known]

        if len(ids) == 1:
            return ids[0]

        logger.warning(
            f"Could not recover id of created page '{title}' "
            f"({len(matches)} page(s) with that name)"
        )
        return ""

    def _register_page(self, page_id, html, destination, decision, provenance) -> None:
        index = self._session.index
        journal = index.journals.by_id.get(decision.journal_id)
        folder_path = journal.folder_path if journal else normalize_folder_path(destination.folder)

        page = PageNode(
            id=page_id,
            name=destination.page_title,
            journal_id=decision.journal_id,
            journal_name=destination.journal,
            folder_id=decision.folder_id or ROOT_ID,
            folder_path=folder_path,
            full_path=page_path(folder_path, destination.journal, destination.page_title),
            content=html,
            provenance=provenance,
        )
        index.pages.add(page)
        if journal is not None:
            journal.pages.append(page)
