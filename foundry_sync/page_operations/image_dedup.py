"""Content-addressed image upload with deduplication.

Each embedded image is hashed (XXH64, fixed seed) and uploaded as
"<basename>_<hash>.<ext>" under the destination's picture directory.
Identical bytes therefore always map to the same remote path, and an asset
already in the remote catalog is never uploaded again.
"""

import logging
import posixpath
from typing import List, NamedTuple
from urllib.parse import unquote

import xxhash

from foundry_sync.hierarchy.errors import FilesystemError
from foundry_sync.hierarchy.models import ImageAsset
from foundry_sync.rendering.renderer import IMAGE_SUFFIXES

logger = logging.getLogger(__name__)

HASH_SEED = 987654321


def content_hash(data: bytes) -> str:
    """XXH64 of ``data`` as 16 lowercase hex characters."""
    return xxhash.xxh64(data, seed=HASH_SEED).hexdigest()


def catalog_key(path: str) -> str:
    """Comparison form of a remote path (percent-decoded, no leading slash)."""
    return unquote(path).lstrip('/')


class DrainResult(NamedTuple):
    uploaded: int
    skipped: int
    failed: int


class ImageDeduplicator:
    """Builds image assets for a note and drains the session upload queue.

    Args:
        session: Active SyncSession (vault, relay API, asset catalog and
            pending queue)
    """

    def __init__(self, session):
        self._session = session

    def collect(self, sources: List[str], note_path: str, upload_dir: str) -> List[ImageAsset]:
        """Turn image sources of a rendered note into assets.

        Sources that do not resolve to an image file in the vault are
        skipped.

        Args:
            sources: Decoded image sources from the rendered HTML
            note_path: Vault-relative path of the note
            upload_dir: Remote directory for this note's images
        """
        vault = self._session.vault
        assets = []
        for source in sources:
            resolved = vault.resolve_link(source, note_path)
            if resolved is None or not resolved.lower().endswith(IMAGE_SUFFIXES):
                logger.warning(f"Image '{source}' in {note_path} not found in vault")
                continue
            try:
                data = vault.read_binary(resolved)
            except FilesystemError as e:
                logger.warning(f"Skipping image '{source}': {e}")
                continue

            filename = posixpath.basename(resolved)
            basename, extension = posixpath.splitext(filename)
            assets.append(ImageAsset(
                source_path=vault.root / resolved,
                vault_path=source,
                basename=basename,
                extension=extension.lstrip('.'),
                content_hash=content_hash(data),
                upload_dir=upload_dir.strip('/'),
            ))
        return assets

    def enqueue(self, assets: List[ImageAsset]) -> None:
        self._session.pending_images.extend(assets)

    def drain(self) -> DrainResult:
        """Upload or skip every queued asset.

        The first queued asset is processed, then every queued asset with
        the same remote path is dropped with it.
        """
        session = self._session
        uploaded = skipped = failed = 0

        while session.pending_images:
            asset = session.pending_images[0]

            if session.has_asset(asset.remote_path):
                logger.debug(f"Asset {asset.remote_path} already uploaded, skipping")
                skipped += 1
            elif self._upload(asset):
                session.add_asset(asset.remote_path)
                uploaded += 1
            else:
                failed += 1

            key = catalog_key(asset.remote_path)
            session.pending_images = [
                pending for pending in session.pending_images
                if catalog_key(pending.remote_path) != key
            ]

        return DrainResult(uploaded=uploaded, skipped=skipped, failed=failed)

    def _upload(self, asset: ImageAsset) -> bool:
        try:
            data = asset.source_path.read_bytes()
        except OSError as e:
            logger.error(f"Could not read {asset.source_path}: {e}")
            return False

        ok = self._session.api.upload_asset(asset.upload_dir, asset.remote_filename, data)
        if ok:
            logger.info(f"Uploaded {asset.remote_path}")
        return ok
