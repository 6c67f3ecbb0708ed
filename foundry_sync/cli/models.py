"""Data models for CLI operations."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): Config issues, rendering failures, failed notes
    - AUTH_ERROR (3): Missing or rejected relay credentials
    - NETWORK_ERROR (4): Relay unreachable or no Foundry client connected
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    AUTH_ERROR = 3
    NETWORK_ERROR = 4


@dataclass
class ExportSummary:
    """Counts collected over one export run.

    Attributes:
        created_count: Pages created
        updated_count: Pages updated in place
        failed_count: Notes that could not be exported
        images_uploaded: Images uploaded
        images_skipped: Images already present remotely
        images_failed: Images whose upload failed
        links_resolved: Links rewritten to @UUID references
        links_unresolved: Links still pending after the link pass
        failed_notes: Paths of the notes that failed
    """
    created_count: int = 0
    updated_count: int = 0
    failed_count: int = 0
    images_uploaded: int = 0
    images_skipped: int = 0
    images_failed: int = 0
    links_resolved: int = 0
    links_unresolved: int = 0
    failed_notes: List[str] = field(default_factory=list)
