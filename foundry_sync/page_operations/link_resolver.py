"""Two-phase resolution of note links into Foundry @UUID references.

Phase 1 scans every synchronized page's provenance and maps both its
document identity and its document path to the page address. Phase 2
walks the pages that still have unresolved links, finds each link's target
(identity first, then path, then the page itself for bare anchors) and
replaces the rendered ``<a>`` element with an @UUID reference.
"""

import html
import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from foundry_sync.hierarchy.models import PROVENANCE_NAMESPACE, LinkReference, PageNode

logger = logging.getLogger(__name__)


def slugify_anchor(anchor: str) -> str:
    """Heading slug of an anchor such as "#Section: One!".

    Example:
        >>> slugify_anchor("Section: One!")
        'section-one'
        >>> slugify_anchor("  ##Trailing--")
        'trailing'
    """
    fragment = (anchor or "").rsplit('#', 1)[-1].lower()
    fragment = re.sub(r'[^\w\s-]', '', fragment)
    fragment = re.sub(r'\s+', '-', fragment.strip())
    return fragment.strip('-')


def reference_token(address: str, slug: str, text: str) -> str:
    anchor = f"#{slug}" if slug else ""
    return f"@UUID[{address}{anchor}]{{{html.escape(text, quote=False)}}}"


def anchor_pattern(href: str) -> "re.Pattern":
    """Exact-match pattern for an ``<a>`` element with the given href."""
    return re.compile(rf'<a[^>]*href=["\']{re.escape(href)}["\'][^>]*>.*?</a>')


@dataclass
class LinkResolutionSummary:
    """Counts from one resolution run."""
    pages_scanned: int = 0
    pages_queued: int = 0
    pages_updated: int = 0
    links_resolved: int = 0
    links_unresolved: int = 0
    failed_updates: int = 0


class LinkResolver:
    """Resolves pending links across all synchronized pages.

    Args:
        api: RelayAPI used to persist changed pages

    Example:
        >>> resolver = LinkResolver(api)
        >>> summary = resolver.run(session.index.pages.by_id.values())
        >>> summary.links_resolved
        12
    """

    def __init__(self, api):
        self._api = api

    def build_maps(
        self, pages: Iterable[PageNode]
    ) -> Tuple[Dict[str, str], Dict[str, str], List[PageNode]]:
        """Phase 1: identity and path maps, plus the pages to process.

        Returns:
            Tuple of (identity -> address, document path -> address,
            pages with unresolved links)
        """
        by_identity: Dict[str, str] = {}
        by_path: Dict[str, str] = {}
        queue: List[PageNode] = []

        for page in pages:
            provenance = page.provenance
            if provenance is None:
                continue
            if provenance.document_identity:
                by_identity.setdefault(provenance.document_identity, page.address)
            if provenance.document_path:
                by_path.setdefault(provenance.document_path, page.address)
            if provenance.unresolved_link_count > 0:
                queue.append(page)

        return by_identity, by_path, queue

    def run(self, pages: Iterable[PageNode]) -> LinkResolutionSummary:
        """Resolve and persist links for every page with pending links."""
        pages = list(pages)
        by_identity, by_path, queue = self.build_maps(pages)
        summary = LinkResolutionSummary(pages_scanned=len(pages), pages_queued=len(queue))
        logger.info(f"Resolving links on {len(queue)} of {len(pages)} page(s)")

        for page in queue:
            links = page.provenance.links
            before = [link.resolved for link in links]
            content, changed = self.resolve_page(page, by_identity, by_path)

            if changed and not self._persist(page, content):
                # the remote page still holds the old markup
                for link, resolved in zip(links, before):
                    link.resolved = resolved
                summary.failed_updates += 1
            elif changed:
                page.content = content
                summary.pages_updated += 1

            after = page.provenance.unresolved_link_count
            summary.links_resolved += before.count(False) - after
            summary.links_unresolved += after

        return summary

    def resolve_page(
        self,
        page: PageNode,
        by_identity: Dict[str, str],
        by_path: Dict[str, str],
    ) -> Tuple[str, bool]:
        """Phase 2 for one page.

        Link objects in the page's provenance are marked resolved in place.

        Returns:
            Tuple of (new content, whether content or link state changed)
        """
        content = page.content
        changed = False

        for link in page.provenance.links:
            if link.resolved:
                continue

            address = self.resolve_target(link, page, by_identity, by_path)
            if address is None:
                logger.warning(
                    f"Unresolved link '{link.display_text}' -> '{link.target_path_hint}"
                    f"{link.anchor_fragment}' on page {page.full_path}"
                )
                continue

            href = self._markup_href(link)
            if href is None:
                logger.warning(f"No markup pattern for link '{link.display_text}' on {page.full_path}")
                continue

            slug = slugify_anchor(link.anchor_fragment) if link.is_anchor_link else ""
            token = reference_token(address, slug, link.display_text)
            content, count = anchor_pattern(href).subn(lambda _match: token, content)

            if count or token in content:
                link.resolved = True
                changed = True
            else:
                logger.warning(
                    f"Markup for link '{link.display_text}' ({href}) not found on {page.full_path}"
                )

        return content, changed

    @staticmethod
    def resolve_target(
        link: LinkReference,
        page: PageNode,
        by_identity: Dict[str, str],
        by_path: Dict[str, str],
    ) -> Optional[str]:
        """Target address of a link; identity wins over path."""
        if link.target_document_identity:
            address = by_identity.get(link.target_document_identity)
            if address:
                return address
        if link.target_path_hint:
            address = by_path.get(link.target_path_hint)
            if address:
                return address
        if not link.target_document_identity and not link.target_path_hint and link.is_anchor_link:
            return page.address
        return None

    @staticmethod
    def _markup_href(link: LinkReference) -> Optional[str]:
        if not link.target_path_hint and link.anchor_fragment:
            return link.anchor_fragment
        if link.target_path_hint and not link.anchor_fragment:
            return link.target_path_hint
        if link.target_path_hint and link.anchor_fragment:
            return link.target_path_hint + link.anchor_fragment
        return None

    def _persist(self, page: PageNode, content: str) -> bool:
        update = {
            '_id': page.id,
            'text': {'content': content},
            'flags': {PROVENANCE_NAMESPACE: page.provenance.to_flags()},
        }
        if self._api.put_pages(page.journal_id, [update]) is None:
            logger.error(f"Could not save resolved links on page {page.full_path}")
            return False
        logger.info(f"Saved resolved links on page {page.full_path}")
        return True
