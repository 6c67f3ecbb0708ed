"""Typed exception hierarchy for vault, frontmatter and config errors."""

from typing import Optional

from foundry_sync.relay_client.errors import SyncError


class HierarchyError(SyncError):
    """Base exception for local vault and configuration errors."""
    pass


class FilesystemError(HierarchyError):
    """Raised when filesystem operations fail (read, write, permissions, etc)."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Filesystem operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class ConfigError(HierarchyError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class FrontmatterError(HierarchyError):
    """Raised when YAML frontmatter parsing or validation fails."""

    def __init__(self, file_path: str, message: str):
        super().__init__(f"Frontmatter error in {file_path}: {message}")
        self.file_path = file_path
        self.message = message
