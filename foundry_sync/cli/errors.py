"""Typed exception hierarchy for CLI-related errors."""

from foundry_sync.relay_client.errors import SyncError


class CLIError(SyncError):
    """Base exception for all CLI-related errors."""
    pass


class InitError(CLIError):
    """Raised when initialization fails."""

    def __init__(self, message: str):
        super().__init__(message)


class NoteOutsideVaultError(CLIError):
    """Raised when a note path is not inside the configured vault."""

    def __init__(self, note_path: str, vault_path: str):
        super().__init__(f"{note_path} is not inside the vault {vault_path}")
        self.note_path = note_path
        self.vault_path = vault_path
