"""Unit tests for page_operations.page_upsert module."""

import pytest

from foundry_sync.hierarchy.frontmatter_handler import FrontmatterHandler
from foundry_sync.hierarchy.models import (
    PROVENANCE_NAMESPACE,
    ROOT_ID,
    Destination,
    DestinationConfig,
    LinkReference,
    Provenance,
    SyncConfig,
)
from foundry_sync.page_operations.page_upsert import (
    PageUpsert,
    build_page_payload,
    note_content_hash,
)

FOLDERS = [
    {'id': 'A', 'name': 'A', 'type': 'JournalEntry', 'depth': 1, 'parentId': None},
    {'id': 'B', 'name': 'B', 'type': 'JournalEntry', 'depth': 2, 'parentId': 'A'},
]


def journal(journal_id, name, folder_id, pages=()):
    return {
        'id': journal_id,
        'name': name,
        'folderId': folder_id,
        'pages': [{'id': pid, 'name': pname, 'content': '', 'flags': {}} for pid, pname in pages],
    }


class TestPageUpsert:
    """Base fixtures for PageUpsert tests."""

    @pytest.fixture
    def note(self, vault, note_writer):
        note_writer("Areas/Town.md", "# Town\n\nMarket square.\n")
        return vault.load_note("Areas/Town.md")


class TestCreate(TestPageUpsert):
    """Pages that do not exist yet."""

    def test_missing_folders_journal_and_page_are_created(self, make_session, mock_api, note):
        """With A/B present, A/B/C/D creates two folders, the journal and the page."""
        # Arrange
        session = make_session(folders=FOLDERS)
        mock_api.create_folder.side_effect = ['C1', 'D1']
        mock_api.create_journal.return_value = 'Jr1'
        mock_api.put_pages.return_value = [{'_id': 'Pg1', 'name': 'Town'}]
        destination = Destination(folder='A/B/C/D', journal='J', page_title='Town')

        # Act
        result = PageUpsert(session).upsert(note, '<p>Town</p>', [], destination)

        # Assert
        assert result.success is True
        assert result.created is True
        assert result.page_id == 'Pg1'
        decision = result.decision
        assert decision.needs_folder and decision.needs_journal and decision.create_page
        assert decision.folder_id == 'D1'
        assert mock_api.create_folder.call_count == 2
        mock_api.create_journal.assert_called_once_with('J', 'D1')

        journal_id, pages = mock_api.put_pages.call_args.args
        assert journal_id == 'Jr1'
        assert pages[0]['_id'] == ''
        assert pages[0]['name'] == 'Town'
        assert pages[0]['text'] == {'content': '<p>Town</p>', 'format': 1}

        assert session.index.journals.by_path['A/B/C/D/J'].id == 'Jr1'
        assert session.index.pages.by_path['A/B/C/D/J.Town'].id == 'Pg1'

    def test_second_export_updates_instead_of_creating(self, make_session, mock_api, note):
        """The entities created by the first export are found by the second."""
        session = make_session(folders=FOLDERS)
        mock_api.create_folder.side_effect = ['C1']
        mock_api.create_journal.return_value = 'Jr1'
        mock_api.put_pages.return_value = [{'_id': 'Pg1', 'name': 'Town'}]
        destination = Destination(folder='A/B/C', journal='J', page_title='Town')
        upsert = PageUpsert(session)

        upsert.upsert(note, '<p>v1</p>', [], destination)
        second = upsert.upsert(note, '<p>v2</p>', [], destination)

        assert second.created is False
        assert second.decision.update_page is True
        assert mock_api.create_folder.call_count == 1
        mock_api.create_journal.assert_called_once()
        assert mock_api.put_pages.call_args.args[1][0]['_id'] == 'Pg1'

    def test_empty_folder_puts_journal_at_root(self, make_session, mock_api, note):
        session = make_session()
        mock_api.create_journal.return_value = 'Jr1'
        mock_api.put_pages.return_value = [{'_id': 'Pg1', 'name': 'Town'}]

        result = PageUpsert(session).upsert(
            note, '', [], Destination(folder='', journal='J', page_title='Town')
        )

        assert result.decision.folder_id == ROOT_ID
        mock_api.create_journal.assert_called_once_with('J', '')
        mock_api.create_folder.assert_not_called()
        assert session.index.pages.by_path['/J.Town'].id == 'Pg1'

    def test_no_journal_skips_page_write(self, make_session, mock_api, note):
        session = make_session(folders=FOLDERS)
        mock_api.create_journal.return_value = ''

        result = PageUpsert(session).upsert(
            note, '', [], Destination(folder='A', journal='J', page_title='Town')
        )

        assert result.success is False
        mock_api.put_pages.assert_not_called()

    def test_failed_folder_create_skips_journal_and_page(self, make_session, mock_api, note):
        """No journal is created at the root in place of a missing folder."""
        # Arrange
        session = make_session()
        mock_api.create_folder.return_value = ''
        mock_api.create_journal.return_value = 'J1'

        # Act
        result = PageUpsert(session).upsert(
            note, '<p>Town</p>', [], Destination(folder='Area/Sub', journal='Lore', page_title='Town')
        )

        # Assert
        assert result.success is False
        assert result.decision.journal_id == ''
        mock_api.create_journal.assert_not_called()
        mock_api.put_pages.assert_not_called()
        assert session.index.journals.by_path == {}

    def test_failed_write_is_reported(self, make_session, mock_api, note):
        session = make_session(folders=FOLDERS, journals=[journal('Jr1', 'J', 'A')])
        mock_api.put_pages.return_value = None

        result = PageUpsert(session).upsert(
            note, '', [], Destination(folder='A', journal='J', page_title='Town')
        )

        assert result.success is False
        assert 'Pg1' not in session.index.pages.by_id

    def test_new_id_recovered_among_same_named_pages(self, make_session, mock_api, note):
        """With two pages of the same name, the one not yet indexed is new."""
        # Arrange
        session = make_session(
            folders=FOLDERS, journals=[journal('Jr1', 'J', 'A', [('Old', 'Other')])]
        )
        mock_api.put_pages.return_value = [
            {'_id': 'Old', 'name': 'Town'},
            {'_id': 'New', 'name': 'Town'},
        ]

        # Act
        result = PageUpsert(session).upsert(
            note, '', [], Destination(folder='A', journal='J', page_title='Town')
        )

        # Assert
        assert result.page_id == 'New'

    def test_ambiguous_new_id_gives_empty(self, make_session, mock_api, note):
        session = make_session(folders=FOLDERS, journals=[journal('Jr1', 'J', 'A')])
        mock_api.put_pages.return_value = [
            {'_id': 'X1', 'name': 'Town'},
            {'_id': 'X2', 'name': 'Town'},
        ]

        result = PageUpsert(session).upsert(
            note, '', [], Destination(folder='A', journal='J', page_title='Town')
        )

        assert result.page_id == ''
        assert result.success is False

    def test_write_back_records_destination(self, make_session, mock_api, note):
        session = make_session(
            folders=FOLDERS,
            journals=[journal('Jr1', 'J', 'A')],
            config=SyncConfig(write_back=True),
        )
        mock_api.put_pages.return_value = [{'_id': 'Pg9', 'name': 'Town'}]

        PageUpsert(session).upsert(
            note, '', [], Destination(folder='A', journal='J', page_title='Town',
                                      picture_path='img')
        )

        fields = FrontmatterHandler.read_fields(note.absolute_path)
        assert fields['VTT_UUID'] == 'Pg9'
        assert fields['VTT_Folder'] == 'A'
        assert fields['VTT_Journal'] == 'J'


class TestUpdate(TestPageUpsert):
    """Pages that already exist remotely."""

    def test_stored_id_updates_without_creating(self, make_session, mock_api, vault, note_writer):
        """A note carrying a live page id updates that page directly."""
        # Arrange
        session = make_session(
            folders=FOLDERS, journals=[journal('Jr1', 'Elsewhere', 'B', [('Pg1', 'Renamed')])]
        )
        note_writer("Town.md", "---\nVTT_UUID: Pg1\n---\nBody\n")
        note = vault.load_note("Town.md")
        mock_api.put_pages.return_value = [{'_id': 'Pg1', 'name': 'Town'}]

        # Act
        result = PageUpsert(session).upsert(note, '<p>Body</p>', [])

        # Assert
        assert result.success is True
        assert result.created is False
        assert result.decision.page_found is True
        mock_api.create_folder.assert_not_called()
        mock_api.create_journal.assert_not_called()
        journal_id, pages = mock_api.put_pages.call_args.args
        assert journal_id == 'Jr1'
        assert pages[0]['_id'] == 'Pg1'
        assert session.index.pages.by_id['Pg1'].content == '<p>Body</p>'

    def test_stale_stored_id_falls_back_to_path(self, make_session, mock_api, vault, note_writer):
        session = make_session(folders=FOLDERS, journals=[journal('Jr1', 'J', 'A', [('Pg2', 'Town')])])
        note_writer("Town.md", "---\nVTT_UUID: Deleted\nVTT_Folder: A\nVTT_Journal: J\n---\nBody\n")
        note = vault.load_note("Town.md")
        mock_api.put_pages.return_value = [{'_id': 'Pg2', 'name': 'Town'}]

        result = PageUpsert(session).upsert(note, '', [])

        assert result.page_id == 'Pg2'
        assert result.created is False

    def test_provenance_is_embedded(self, make_session, mock_api, note):
        # Arrange
        session = make_session(
            folders=FOLDERS, journals=[journal('Jr1', 'J', 'A', [('Pg1', 'Town')])]
        )
        mock_api.put_pages.return_value = []
        links = [LinkReference(target_path_hint='Areas/Map.md', display_text='map')]

        # Act
        PageUpsert(session).upsert(
            note, '', links, Destination(folder='A', journal='J', page_title='Town')
        )

        # Assert
        flags = mock_api.put_pages.call_args.args[1][0]['flags'][PROVENANCE_NAMESPACE]
        assert flags['filePath'] == 'Areas/Town.md'
        assert flags['noteTitle'] == 'Town'
        assert flags['vault'] == 'Campaign'
        assert flags['noteHash'] == note_content_hash(note.body)
        assert flags['uuid'] == note.identity
        assert flags['unresolvedLinks'] == 1
        assert flags['journalLinks'][0]['obsidianNoteUUID'] == note.identity


class TestHelpers:

    def test_content_hash_is_stable(self):
        assert note_content_hash("same body") == note_content_hash("same body")
        assert note_content_hash("same body") != note_content_hash("other body")

    def test_payload_ownership(self):
        payload = build_page_payload('Town', '<p/>', '', Provenance(), ownership=2)

        assert payload['ownership'] == {'default': 2}
        assert payload['type'] == 'text'

    def test_default_destination_from_config(self, make_session, vault, note_writer):
        session = make_session(config=SyncConfig(destination=DestinationConfig('Lore', 'Book', 'img')))
        note_writer("Town.md", "Body\n")

        destination = PageUpsert(session).destination_for(vault.load_note("Town.md"))

        assert (destination.folder, destination.journal, destination.page_title) == ('Lore', 'Book', 'Town')
