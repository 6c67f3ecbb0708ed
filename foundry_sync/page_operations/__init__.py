"""Page-level operations: upsert, image deduplication and link resolution."""

from .page_upsert import PageUpsert, build_page_payload
from .html_links import HtmlLinkProcessor
from .image_dedup import ImageDeduplicator, content_hash
from .link_resolver import LinkResolver, LinkResolutionSummary, slugify_anchor

__all__ = [
    'PageUpsert',
    'build_page_payload',
    'HtmlLinkProcessor',
    'ImageDeduplicator',
    'content_hash',
    'LinkResolver',
    'LinkResolutionSummary',
    'slugify_anchor',
]
