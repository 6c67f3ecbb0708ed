"""Internal link and image handling in rendered HTML fragments.

Uses html.parser so fragments are edited in place without the html/body
wrapper a full-document parser would add.
"""

import logging
from typing import Dict, Iterable, List, Tuple
from urllib.parse import unquote, urlparse

from bs4 import BeautifulSoup

from foundry_sync.hierarchy.models import ImageAsset, LinkReference

logger = logging.getLogger(__name__)

NOTE_SUFFIX = ".md"


def is_internal_href(href: str) -> bool:
    """True for in-page anchors and links to vault notes."""
    if not href or href.startswith('//'):
        return False
    if urlparse(href).scheme:
        return False
    if href.startswith('#'):
        return True
    path = unquote(href).partition('#')[0]
    return path.lower().endswith(NOTE_SUFFIX)


def is_local_src(src: str) -> bool:
    return bool(src) and not src.startswith('//') and not urlparse(src).scheme


class HtmlLinkProcessor:
    """Extracts link references and rewrites image sources.

    Example:
        >>> processor = HtmlLinkProcessor()
        >>> html, links = processor.extract_links(
        ...     '<a href="Town.md#Market">market</a>', {"Town.md": "k3Y..."}
        ... )
        >>> links[0].anchor_fragment
        '#Market'
    """

    def __init__(self):
        self.parser = "html.parser"

    def extract_links(
        self,
        html: str,
        identities_by_path: Dict[str, str],
        source_identity: str = "",
    ) -> Tuple[str, List[LinkReference]]:
        """Record every internal anchor as a LinkReference.

        Hrefs are rewritten to their percent-decoded form so that the stored
        markup carries the same path as the recorded link.

        Args:
            html: Rendered note HTML
            identities_by_path: Vault path -> document identity
            source_identity: Identity of the note being rendered

        Returns:
            Tuple of (rewritten HTML, links in document order)
        """
        soup = BeautifulSoup(html, self.parser)
        links = []

        for anchor in soup.find_all('a', href=True):
            href = anchor['href']
            if not is_internal_href(href):
                continue

            decoded = unquote(href)
            path, separator, fragment = decoded.partition('#')
            anchor['href'] = decoded

            links.append(LinkReference(
                source_document_identity=source_identity,
                target_path_hint=path,
                display_text=anchor.get_text(),
                target_document_identity=identities_by_path.get(path, "") if path else "",
                is_anchor_link=bool(separator),
                anchor_fragment=f"#{fragment}" if separator else "",
            ))

        logger.debug(f"Found {len(links)} internal link(s)")
        return str(soup), links

    def image_sources(self, html: str) -> List[str]:
        """Decoded local image sources, in document order."""
        soup = BeautifulSoup(html, self.parser)
        return [
            unquote(img['src'])
            for img in soup.find_all('img', src=True)
            if is_local_src(img['src'])
        ]

    def replace_image_sources(self, html: str, assets: Iterable[ImageAsset]) -> str:
        """Point local image sources at their uploaded remote paths."""
        remote_by_source = {asset.vault_path: asset.remote_path for asset in assets}
        if not remote_by_source:
            return html

        soup = BeautifulSoup(html, self.parser)
        for img in soup.find_all('img', src=True):
            remote = remote_by_source.get(unquote(img['src']))
            if remote:
                img['src'] = remote
        return str(soup)
