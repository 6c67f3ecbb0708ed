"""Single-flight export pipeline.

Notes are exported one at a time. A submission made while the pipeline is
already running (for instance from inside a renderer) is queued and picked
up by the running loop instead of starting a second, overlapping export.
Each note goes through: load, render, link extraction, image collection,
upsert, then the image queue is drained.
"""

import logging
from collections import deque
from pathlib import Path
from typing import Callable, Deque, Iterable, Optional

from foundry_sync.hierarchy.models import UpsertResult
from foundry_sync.page_operations.html_links import HtmlLinkProcessor
from foundry_sync.page_operations.image_dedup import ImageDeduplicator
from foundry_sync.page_operations.page_upsert import PageUpsert
from foundry_sync.relay_client.errors import SyncError
from foundry_sync.rendering.renderer import Renderer

from .models import ExportSummary

logger = logging.getLogger(__name__)


class ExportPipeline:
    """Exports notes of a session, one at a time.

    Args:
        session: Active SyncSession
        renderer: Renderer producing HTML for a note
        on_note_done: Optional callback invoked with each processed path

    Example:
        >>> pipeline = ExportPipeline(session, PandocRenderer(session.vault))
        >>> pipeline.submit(session.vault.list_notes())
        True
        >>> pipeline.summary.created_count
        4
    """

    def __init__(
        self,
        session,
        renderer: Renderer,
        on_note_done: Optional[Callable[[Path], None]] = None,
    ):
        self._session = session
        self._renderer = renderer
        self._on_note_done = on_note_done
        self._links = HtmlLinkProcessor()
        self._images = ImageDeduplicator(session)
        self._upsert = PageUpsert(session)
        self._pending: Deque[Path] = deque()
        self._busy = False
        self.summary = ExportSummary()

    @property
    def busy(self) -> bool:
        return self._busy

    def submit(self, paths: Iterable) -> bool:
        """Queue notes and run the pipeline unless it is already running.

        Returns:
            True if this call ran the queue, False if the paths were queued
            for the export already in progress
        """
        self._pending.extend(Path(path) for path in paths)
        if self._busy:
            logger.debug(f"Export in progress, {len(self._pending)} note(s) queued")
            return False

        self._busy = True
        try:
            while self._pending:
                path = self._pending.popleft()
                self._process(path)
                if self._on_note_done:
                    self._on_note_done(path)
        finally:
            self._busy = False
        return True

    def _process(self, path: Path) -> None:
        try:
            result = self.export_note(path)
        except SyncError as e:
            logger.error(f"Export of {path} failed: {e}")
            self._record_failure(path)
            return
        except Exception:
            logger.exception(f"Unexpected error exporting {path}")
            self._record_failure(path)
            return

        if not result.success:
            self._record_failure(path)
        elif result.created:
            self.summary.created_count += 1
        else:
            self.summary.updated_count += 1

        drained = self._images.drain()
        self.summary.images_uploaded += drained.uploaded
        self.summary.images_skipped += drained.skipped
        self.summary.images_failed += drained.failed

    def export_note(self, path: Path) -> UpsertResult:
        """Render one note and write it to its remote page.

        Raises:
            SyncError: If the note cannot be read or rendered
        """
        session = self._session
        note = session.vault.load_note(path)
        destination = self._upsert.destination_for(note)

        html = self._renderer.render(note.body, note.path)

        identity = session.identities.ensure_note_identity(
            note, persist=session.config.write_identity
        )
        session.vault_identities[note.path] = identity

        html, links = self._links.extract_links(html, session.vault_identities, identity)
        assets = self._images.collect(
            self._links.image_sources(html), note.path, destination.picture_path
        )
        html = self._links.replace_image_sources(html, assets)
        self._images.enqueue(assets)

        return self._upsert.upsert(note, html, links, destination)

    def _record_failure(self, path: Path) -> None:
        self.summary.failed_count += 1
        self.summary.failed_notes.append(str(path))
