"""Command-line interface for exporting a vault into Foundry VTT.

This package provides the `foundry-sync` CLI: configuration bootstrap,
the single-flight export pipeline, the link resolution pass and terminal
output.
"""

from .sync_command import SyncCommand
from .pipeline import ExportPipeline
from .models import ExitCode, ExportSummary
from .errors import CLIError, InitError, NoteOutsideVaultError

__all__ = [
    'SyncCommand',
    'ExportPipeline',
    'ExitCode',
    'ExportSummary',
    'CLIError',
    'InitError',
    'NoteOutsideVaultError',
]
