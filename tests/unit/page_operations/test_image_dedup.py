"""Unit tests for page_operations.image_dedup module."""

import re
from pathlib import Path

import pytest

from foundry_sync.hierarchy.models import ImageAsset
from foundry_sync.page_operations.image_dedup import (
    ImageDeduplicator,
    catalog_key,
    content_hash,
)


def asset(tmp_path, name, data=b'png-bytes', upload_dir='assets/pictures'):
    path = tmp_path / name
    path.write_bytes(data)
    basename, _, extension = name.rpartition('.')
    return ImageAsset(source_path=path, vault_path=name, basename=basename,
                      extension=extension, content_hash=content_hash(data),
                      upload_dir=upload_dir)


class TestContentHash:

    def test_hash_is_stable_hex(self):
        """Identical bytes always hash to the same 16 hex characters."""
        first = content_hash(b'same image')

        assert first == content_hash(b'same image')
        assert re.fullmatch(r'[0-9a-f]{16}', first)
        assert first != content_hash(b'other image')

    def test_catalog_key(self):
        assert catalog_key('/assets/my%20map.png') == 'assets/my map.png'


class TestCollect:
    """Test cases for ImageDeduplicator.collect."""

    def test_resolves_vault_images(self, make_session, note_writer, vault_dir):
        # Arrange
        (vault_dir / "Assets").mkdir()
        (vault_dir / "Assets" / "Town Map.png").write_bytes(b'map')
        note_writer("Areas/Town.md", "body")
        session = make_session()

        # Act
        assets = ImageDeduplicator(session).collect(
            ['Town Map.png', 'missing.png'], 'Areas/Town.md', '/img/'
        )

        # Assert
        assert len(assets) == 1
        assert assets[0].vault_path == 'Town Map.png'
        assert assets[0].source_path == Path(vault_dir / "Assets" / "Town Map.png").resolve()
        assert assets[0].remote_path == f"img/Town Map_{content_hash(b'map')}.png"


class TestDrain:
    """Test cases for ImageDeduplicator.drain."""

    def test_duplicates_upload_once(self, make_session, mock_api, tmp_path):
        """Three queued copies of one image give exactly one upload."""
        # Arrange
        session = make_session()
        copy = asset(tmp_path, 'map.png')
        session.pending_images = [copy, copy, copy]

        # Act
        result = ImageDeduplicator(session).drain()

        # Assert
        assert result.uploaded == 1
        assert mock_api.upload_asset.call_count == 1
        mock_api.upload_asset.assert_called_once_with(
            'assets/pictures', copy.remote_filename, b'png-bytes'
        )
        assert session.pending_images == []
        assert session.has_asset(copy.remote_path)

    def test_catalogued_asset_is_skipped(self, make_session, mock_api, tmp_path):
        copy = asset(tmp_path, 'map.png')
        session = make_session(catalog=[catalog_key(copy.remote_path)])
        session.pending_images = [copy]

        result = ImageDeduplicator(session).drain()

        assert result.skipped == 1
        mock_api.upload_asset.assert_not_called()

    def test_distinct_images_each_upload(self, make_session, mock_api, tmp_path):
        """Processing an asset drops every queued copy of it in one step."""
        # Arrange
        session = make_session()
        first, second, duplicate = (
            asset(tmp_path, 'a.png', b'a'),
            asset(tmp_path, 'b.png', b'b'),
            asset(tmp_path, 'a.png', b'a'),
        )
        session.pending_images = [first, second, duplicate]
        queued = []

        def upload(directory, filename, data):
            queued.append([pending.vault_path for pending in session.pending_images])
            return True

        mock_api.upload_asset.side_effect = upload

        # Act
        result = ImageDeduplicator(session).drain()

        # Assert
        assert result.uploaded == 2
        assert queued == [['a.png', 'b.png', 'a.png'], ['b.png']]
        assert session.pending_images == []

    def test_failed_upload_is_not_catalogued(self, make_session, mock_api, tmp_path):
        session = make_session()
        copy = asset(tmp_path, 'map.png')
        session.pending_images = [copy, copy]
        mock_api.upload_asset.return_value = False

        result = ImageDeduplicator(session).drain()

        assert result.failed == 1
        assert mock_api.upload_asset.call_count == 1
        assert not session.has_asset(copy.remote_path)

    @pytest.mark.parametrize("upload_dir", ['assets/pictures', 'other'])
    def test_same_bytes_same_remote_name(self, tmp_path, upload_dir):
        first = asset(tmp_path, 'map.png', upload_dir=upload_dir)
        second = asset(tmp_path, 'map.png', upload_dir=upload_dir)

        assert first.remote_path == second.remote_path
