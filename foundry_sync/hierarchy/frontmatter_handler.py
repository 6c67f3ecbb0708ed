"""YAML frontmatter parsing and write-back for vault notes.

Frontmatter carries two groups of fields:
- UUID: the note's document identity
- VTT_*: destination overrides (folder, journal, page title, picture path)
  and, after a first export, the remote page id in VTT_UUID

Writing merges into the existing frontmatter; fields we do not own are kept
in their original order.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from .errors import FilesystemError, FrontmatterError
from .models import Destination, LocalNote

logger = logging.getLogger(__name__)

IDENTITY_KEY = 'UUID'
FOLDER_KEY = 'VTT_Folder'
JOURNAL_KEY = 'VTT_Journal'
PAGE_KEY = 'VTT_Page'
PAGE_TITLE_KEY = 'VTT_PageTitle'
PAGE_ID_KEY = 'VTT_UUID'
PICTURE_PATH_KEY = 'VTT_PicturePath'

DEFAULT_JOURNAL = "ObsidianExport"
DEFAULT_PICTURE_PATH = "assets/pictures"


class FrontmatterHandler:
    """Reads and writes YAML frontmatter in Markdown notes."""

    FRONTMATTER_PATTERN = re.compile(
        r'^---\s*\n(.*?)\n---\s*\n',
        re.DOTALL
    )

    # Maximum allowed depth for YAML structures
    MAX_YAML_DEPTH = 10

    @classmethod
    def _validate_yaml_depth(cls, obj, current_depth: int = 0, max_depth: int = MAX_YAML_DEPTH) -> None:
        if current_depth > max_depth:
            raise FrontmatterError(
                "<yaml>",
                f"YAML structure exceeds maximum depth of {max_depth}"
            )

        if isinstance(obj, dict):
            for value in obj.values():
                cls._validate_yaml_depth(value, current_depth + 1, max_depth)
        elif isinstance(obj, list):
            for item in obj:
                cls._validate_yaml_depth(item, current_depth + 1, max_depth)

    @classmethod
    def parse(cls, file_path: str, content: str) -> Tuple[Dict[str, Any], str]:
        """Split note content into frontmatter fields and body.

        Args:
            file_path: Path of the note (for error messages)
            content: Full note content

        Returns:
            Tuple of (frontmatter dict, body). ({}, content) without frontmatter.

        Raises:
            FrontmatterError: If the frontmatter is not a valid YAML mapping
        """
        match = cls.FRONTMATTER_PATTERN.match(content)
        if not match:
            return {}, content

        try:
            frontmatter = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            raise FrontmatterError(file_path, f"Invalid YAML syntax: {str(e)}")

        if frontmatter is None:
            frontmatter = {}
        if not isinstance(frontmatter, dict):
            raise FrontmatterError(
                file_path,
                f"Frontmatter must be a YAML dictionary, got {type(frontmatter).__name__}"
            )

        try:
            cls._validate_yaml_depth(frontmatter)
        except FrontmatterError as e:
            raise FrontmatterError(file_path, e.message)

        return frontmatter, content[match.end():]

    @classmethod
    def generate(cls, frontmatter: Dict[str, Any], body: str) -> str:
        """Render frontmatter and body back into note content."""
        if not frontmatter:
            return body

        yaml_str = yaml.safe_dump(
            frontmatter,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )
        return f"---\n{yaml_str}---\n{body}"

    @classmethod
    def read_fields(cls, file_path: Path) -> Dict[str, Any]:
        """Read the frontmatter fields of a note.

        Raises:
            FilesystemError: If the note cannot be read
            FrontmatterError: If the frontmatter is malformed
        """
        try:
            content = Path(file_path).read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise FilesystemError(str(file_path), 'read', str(e))
        frontmatter, _ = cls.parse(str(file_path), content)
        return frontmatter

    @classmethod
    def write_fields(cls, file_path: Path, fields: Dict[str, Any]) -> bool:
        """Merge ``fields`` into a note's frontmatter and save it.

        Returns:
            True on success, False if the note could not be read, parsed
            or written (the failure is logged)
        """
        path = Path(file_path)
        try:
            content = path.read_text(encoding='utf-8')
            frontmatter, body = cls.parse(str(path), content)
            frontmatter.update(fields)
            path.write_text(cls.generate(frontmatter, body), encoding='utf-8')
        except (OSError, UnicodeDecodeError, FrontmatterError) as e:
            logger.error(f"Could not write frontmatter to {path}: {e}")
            return False

        logger.debug(f"Wrote frontmatter {sorted(fields)} to {path}")
        return True

    @classmethod
    def resolve_destination(
        cls,
        note: LocalNote,
        default_folder: str,
        default_journal: str,
        default_picture_path: str,
        read_frontmatter: bool = True,
    ) -> Destination:
        """Work out where a note lands, applying frontmatter overrides.

        Args:
            note: The note being exported
            default_folder: Configured destination folder path
            default_journal: Configured destination journal
            default_picture_path: Configured upload directory for images
            read_frontmatter: When False, VTT_* fields are ignored

        Returns:
            Destination with folder, journal, page title, stored page id
            and picture path
        """
        fields = note.frontmatter if read_frontmatter else {}
        return Destination(
            folder=_text(fields.get(FOLDER_KEY)) or default_folder or "",
            journal=_text(fields.get(JOURNAL_KEY)) or default_journal or DEFAULT_JOURNAL,
            page_title=_text(fields.get(PAGE_TITLE_KEY)) or note.title,
            page_id=_text(fields.get(PAGE_ID_KEY)),
            picture_path=(
                _text(fields.get(PICTURE_PATH_KEY))
                or default_picture_path
                or DEFAULT_PICTURE_PATH
            ),
            is_page=bool(fields.get(PAGE_KEY, False)),
        )

    @staticmethod
    def destination_fields(destination: Destination) -> Dict[str, Any]:
        """VTT_* fields describing a synchronized destination."""
        return {
            FOLDER_KEY: destination.folder,
            JOURNAL_KEY: destination.journal,
            PAGE_TITLE_KEY: destination.page_title,
            PAGE_KEY: destination.is_page,
            PICTURE_PATH_KEY: destination.picture_path,
            PAGE_ID_KEY: destination.page_id,
        }


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""
