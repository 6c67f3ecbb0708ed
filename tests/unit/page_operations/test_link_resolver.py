"""Unit tests for page_operations.link_resolver module."""

from unittest.mock import Mock

import pytest

from foundry_sync.hierarchy.models import PROVENANCE_NAMESPACE, LinkReference, PageNode, Provenance
from foundry_sync.page_operations.link_resolver import (
    LinkResolver,
    anchor_pattern,
    reference_token,
    slugify_anchor,
)


def page(page_id, identity, path, content='', links=()):
    return PageNode(
        id=page_id,
        name=page_id,
        journal_id='J1',
        content=content,
        provenance=Provenance(document_identity=identity, document_path=path, links=list(links)),
    )


class TestSlugifyAnchor:
    """Heading slugs."""

    @pytest.mark.parametrize("anchor, slug", [
        ("#Section: One!", "section-one"),
        ("Section: One!", "section-one"),
        ("  ##Trailing--", "trailing"),
        ("#Notes", "notes"),
        ("#Two  Spaces Here", "two-spaces-here"),
        ("Town.md#Old#New Part", "new-part"),
        ("#", ""),
        ("", ""),
    ])
    def test_slugs(self, anchor, slug):
        assert slugify_anchor(anchor) == slug


class TestTokens:

    def test_reference_token_with_anchor(self):
        token = reference_token('JournalEntry.J1.JournalEntryPage.P1', 'market', 'the market')

        assert token == '@UUID[JournalEntry.J1.JournalEntryPage.P1#market]{the market}'

    def test_reference_token_without_anchor(self):
        assert reference_token('JournalEntry.J1.JournalEntryPage.P1', '', 'Town') == \
            '@UUID[JournalEntry.J1.JournalEntryPage.P1]{Town}'

    def test_reference_token_escapes_text(self):
        token = reference_token('JournalEntry.J1.JournalEntryPage.P1', '', 'Salt & <Pepper>')

        assert token == '@UUID[JournalEntry.J1.JournalEntryPage.P1]{Salt &amp; &lt;Pepper&gt;}'

    def test_anchor_pattern_is_exact(self):
        """Only the element with exactly that href matches."""
        html = '<a href="Town.md">Town</a> <a href="Town.md#Market">market</a>'

        matches = anchor_pattern('Town.md').findall(html)

        assert matches == ['<a href="Town.md">Town</a>']


class TestLinkResolver:
    """Test cases for LinkResolver.run."""

    @pytest.fixture
    def api(self):
        api = Mock()
        api.put_pages.return_value = []
        return api

    def test_identity_wins_over_path(self, api):
        """A link whose identity and path point at different pages follows the identity."""
        # Arrange
        by_identity_target = page('P2', 'id-2', 'Other.md')
        by_path_target = page('P3', 'id-3', 'Town.md')
        link = LinkReference(target_path_hint='Town.md', display_text='Town',
                             target_document_identity='id-2')
        source = page('P1', 'id-1', 'Index.md', '<p><a href="Town.md">Town</a></p>', [link])

        # Act
        summary = LinkResolver(api).run([source, by_identity_target, by_path_target])

        # Assert
        assert summary.links_resolved == 1
        assert source.content == '<p>@UUID[JournalEntry.J1.JournalEntryPage.P2]{Town}</p>'

    def test_path_used_without_identity(self, api):
        link = LinkReference(target_path_hint='Areas/Town.md', display_text='Town',
                             is_anchor_link=True, anchor_fragment='#Market Square')
        source = page('P1', 'id-1', 'Index.md',
                      '<a href="Areas/Town.md#Market Square">Town</a>', [link])
        target = page('P2', 'id-2', 'Areas/Town.md')

        LinkResolver(api).run([source, target])

        assert source.content == '@UUID[JournalEntry.J1.JournalEntryPage.P2#market-square]{Town}'

    def test_self_anchor_points_at_own_page(self, api):
        """A bare #Notes anchor resolves to the page holding it."""
        link = LinkReference(display_text='Notes', is_anchor_link=True, anchor_fragment='#Notes')
        source = page('P1', 'id-1', 'Index.md', '<a href="#Notes">Notes</a>', [link])

        LinkResolver(api).run([source])

        assert source.content == '@UUID[JournalEntry.J1.JournalEntryPage.P1#notes]{Notes}'
        assert link.resolved is True

    def test_unknown_target_stays_pending(self, api):
        link = LinkReference(target_path_hint='Gone.md', display_text='Gone')
        content = '<a href="Gone.md">Gone</a>'
        source = page('P1', 'id-1', 'Index.md', content, [link])

        summary = LinkResolver(api).run([source])

        assert summary.links_unresolved == 1
        assert source.content == content
        api.put_pages.assert_not_called()

    def test_changed_page_is_persisted_with_flags(self, api):
        # Arrange
        link = LinkReference(target_path_hint='Town.md', display_text='Town')
        source = page('P1', 'id-1', 'Index.md', '<a href="Town.md">Town</a>', [link])
        target = page('P2', 'id-2', 'Town.md')

        # Act
        summary = LinkResolver(api).run([source, target])

        # Assert
        assert summary.pages_updated == 1
        journal_id, updates = api.put_pages.call_args.args
        assert journal_id == 'J1'
        assert updates[0]['_id'] == 'P1'
        assert updates[0]['text']['content'].startswith('@UUID[')
        flags = updates[0]['flags'][PROVENANCE_NAMESPACE]
        assert flags['unresolvedLinks'] == 0
        assert flags['journalLinks'][0]['linkResolved'] is True

    def test_second_run_is_a_no_op(self, api):
        link = LinkReference(target_path_hint='Town.md', display_text='Town')
        source = page('P1', 'id-1', 'Index.md', '<a href="Town.md">Town</a>', [link])
        target = page('P2', 'id-2', 'Town.md')
        resolver = LinkResolver(api)

        resolver.run([source, target])
        summary = resolver.run([source, target])

        assert summary.pages_queued == 0
        assert api.put_pages.call_count == 1

    def test_failed_save_is_counted(self, api):
        api.put_pages.return_value = None
        link = LinkReference(target_path_hint='Town.md', display_text='Town')
        content = '<a href="Town.md">Town</a>'
        source = page('P1', 'id-1', 'Index.md', content, [link])

        summary = LinkResolver(api).run([source, page('P2', 'id-2', 'Town.md')])

        assert summary.failed_updates == 1
        assert summary.links_resolved == 0
        assert source.content == content
        assert link.resolved is False

    def test_pages_without_provenance_are_ignored(self, api):
        plain = PageNode(id='X', name='X', journal_id='J1')

        by_identity, by_path, queue = LinkResolver(api).build_maps([plain])

        assert (by_identity, by_path, queue) == ({}, {}, [])
