"""Markdown to HTML rendering.

The sync only needs a ``render(markup, base_path) -> html`` callable. The
default implementation resolves wikilinks and relative Markdown links
against the vault, then hands the text to Pandoc.
"""

import logging
import posixpath
import re
import subprocess
from typing import Protocol

from foundry_sync.relay_client.errors import ConversionError

from .vault import LocalVault

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = ('.jpg', '.jpeg', '.png', '.gif', '.bmp', '.svg', '.webp')


class Renderer(Protocol):
    """Renders note markup into an HTML fragment."""

    def render(self, markup: str, base_path: str) -> str:
        ...


class PandocRenderer:
    """Renders notes with Pandoc after resolving vault links.

    Wikilinks become standard Markdown links whose destination is the
    vault-relative path of the target (plus "#Heading" when present), so
    the rendered anchors can later be matched back to their notes.

    Raises:
        ConversionError: If Pandoc is not installed

    Example:
        >>> renderer = PandocRenderer(LocalVault("."))
        >>> renderer.render("See [[Town#Market|the market]]", "Areas/Map.md")
        '<p>See <a href="Areas/Town.md#Market">the market</a></p>\\n'
    """

    # ![[target#heading|alias]] and [[target#heading|alias]]
    WIKILINK_PATTERN = re.compile(r'(!?)\[\[([^\]|#]*)(#[^\]|]*)?(?:\|([^\]]*))?\]\]')

    # [text](target) and ![alt](target), skipping angle-bracket destinations
    MARKDOWN_LINK_PATTERN = re.compile(r'(!?)\[([^\]]*)\]\(([^)<>\s]+)\)')

    def __init__(self, vault: LocalVault, timeout: int = 10):
        self._vault = vault
        self._timeout = timeout
        if not self._pandoc_installed():
            raise ConversionError(
                "Pandoc not found. Install: brew install pandoc (macOS) or "
                "apt-get install pandoc (Linux) or download from "
                "https://pandoc.org/installing.html"
            )

    def render(self, markup: str, base_path: str) -> str:
        """Render note markup to HTML.

        Args:
            markup: Note body without frontmatter
            base_path: Vault-relative path of the note, used to resolve links

        Returns:
            HTML fragment

        Raises:
            ConversionError: If Pandoc fails or times out
        """
        if not markup:
            return ""

        markdown = self.resolve_links(markup, base_path)
        try:
            result = subprocess.run(
                ["pandoc", "-f", "markdown", "-t", "html", "--wrap=none"],
                input=markdown,
                text=True,
                capture_output=True,
                check=True,
                timeout=self._timeout,
            )
        except subprocess.CalledProcessError as e:
            raise ConversionError(f"Pandoc conversion failed: {e.stderr}")
        except subprocess.TimeoutExpired:
            raise ConversionError(f"Pandoc conversion timed out (>{self._timeout}s)")
        return result.stdout

    def resolve_links(self, markup: str, base_path: str) -> str:
        """Rewrite wikilinks and relative links to vault-path Markdown links."""

        def replace_wikilink(match) -> str:
            embed, target, heading, alias = match.groups()
            target = (target or "").strip()
            heading = (heading or "").strip()

            if not target:
                text = alias or heading.lstrip('#')
                return f"[{text}](<{heading}>)"

            resolved = self._vault.resolve_link(target, base_path) or target
            if embed and resolved.lower().endswith(IMAGE_SUFFIXES):
                alt = alias or posixpath.splitext(posixpath.basename(resolved))[0]
                return f"![{alt}](<{resolved}>)"

            return f"[{alias or target}](<{resolved}{heading}>)"

        def replace_markdown_link(match) -> str:
            embed, text, destination = match.groups()
            if re.match(r'^[a-zA-Z][a-zA-Z0-9+.-]*:', destination) or destination.startswith('#'):
                return match.group(0)

            path, _, fragment = destination.partition('#')
            resolved = self._vault.resolve_link(path, base_path)
            if resolved is None:
                return match.group(0)
            suffix = f"#{fragment}" if fragment else ""
            return f"{embed}[{text}](<{resolved}{suffix}>)"

        markup = self.WIKILINK_PATTERN.sub(replace_wikilink, markup)
        return self.MARKDOWN_LINK_PATTERN.sub(replace_markdown_link, markup)

    def _pandoc_installed(self) -> bool:
        try:
            result = subprocess.run(
                ["which", "pandoc"],
                capture_output=True,
                timeout=5
            )
            return result.returncode == 0
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return False
