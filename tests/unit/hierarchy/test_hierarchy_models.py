"""Unit tests for hierarchy.models module."""

from pathlib import Path

from foundry_sync.hierarchy.models import (
    EntityIndex,
    FolderNode,
    ImageAsset,
    LinkReference,
    Provenance,
    UpsertDecision,
    UpsertResult,
)


class TestProvenance:
    """Provenance flag layout."""

    def test_flag_keys(self):
        # Arrange
        provenance = Provenance(
            document_identity='abc', vault_name='Campaign', document_path='Town.md',
            document_title='Town', content_hash='h', creation_time=1, modification_time=2,
            upload_time=3,
            links=[LinkReference(source_document_identity='abc', target_path_hint='Map.md')],
        )

        # Act
        flags = provenance.to_flags()

        # Assert
        assert set(flags) == {
            'uuid', 'vault', 'filePath', 'noteTitle', 'noteHash', 'cTime', 'mTime',
            'uploadTime', 'journalLinks', 'unresolvedLinks',
        }
        assert flags['unresolvedLinks'] == 1
        assert set(flags['journalLinks'][0]) == {
            'obsidianNoteUUID', 'linkPath', 'linkText', 'linkDestinationUUID',
            'isAnkerLink', 'ankerLink', 'linkResolved',
        }

    def test_read_back_from_page_flags(self):
        provenance = Provenance(document_identity='abc', creation_time=5, links=[
            LinkReference(target_path_hint='Map.md', resolved=True),
        ])

        restored = Provenance.from_page_flags({'markdowntofoundry': provenance.to_flags()})

        assert restored == provenance

    def test_missing_namespace_gives_none(self):
        assert Provenance.from_page_flags({'core': {}}) is None
        assert Provenance.from_page_flags(None) is None

    def test_bad_timestamps_become_zero(self):
        restored = Provenance.from_page_flags({'markdowntofoundry': {'cTime': 'soon'}})

        assert restored.creation_time == 0


class TestEntityIndex:

    def test_first_path_wins(self):
        index = EntityIndex()

        assert index.add(FolderNode(id='a', name='A', full_path='A')) is True
        assert index.add(FolderNode(id='b', name='A', full_path='A')) is False
        assert index.by_path['A'].id == 'a'
        assert len(index) == 2


class TestImageAsset:

    def test_remote_name(self):
        asset = ImageAsset(source_path=Path('/v/map.png'), vault_path='map.png', basename='map',
                           extension='png', content_hash='0123456789abcdef',
                           upload_dir='assets/pictures')

        assert asset.remote_filename == 'map_0123456789abcdef.png'
        assert asset.remote_path == 'assets/pictures/map_0123456789abcdef.png'


class TestUpsertResult:

    def test_created_requires_success(self):
        decision = UpsertDecision(create_page=True)

        assert UpsertResult(decision=decision, success=True).created is True
        assert UpsertResult(decision=decision).created is False
