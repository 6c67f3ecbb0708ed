"""Export command orchestration for the CLI.

SyncCommand loads the configuration, opens a SyncSession against the relay,
runs the export pipeline over the requested notes and, when asked, runs the
link resolution pass over a fresh snapshot of the world. Typed errors are
translated into exit codes here.
"""

import logging
from pathlib import Path
from typing import List, Optional

from foundry_sync.cli.errors import CLIError, NoteOutsideVaultError
from foundry_sync.cli.models import ExitCode, ExportSummary
from foundry_sync.cli.output import OutputHandler
from foundry_sync.cli.pipeline import ExportPipeline
from foundry_sync.hierarchy.config_loader import DEFAULT_CONFIG_PATH, ConfigLoader
from foundry_sync.hierarchy.errors import ConfigError, FilesystemError, FrontmatterError
from foundry_sync.page_operations.link_resolver import LinkResolver
from foundry_sync.relay_client.auth import Authenticator
from foundry_sync.relay_client.errors import (
    APIAccessError,
    APIUnreachableError,
    ClientNotFoundError,
    ConversionError,
    InvalidCredentialsError,
    SyncError,
)
from foundry_sync.relay_client.relay_api import RelayAPI
from foundry_sync.relay_client.transport import RelayTransport
from foundry_sync.rendering.renderer import PandocRenderer, Renderer
from foundry_sync.rendering.vault import NOTE_SUFFIX, LocalVault
from foundry_sync.session import SyncSession

logger = logging.getLogger(__name__)


class SyncCommand:
    """Orchestrates an export run.

    The run:
        1. Load configuration (defaults when no config file exists)
        2. Load relay credentials and open a SyncSession
        3. Export the requested notes through the single-flight pipeline
        4. Optionally resolve links across all synchronized pages
        5. Print a summary and return an exit code

    Example:
        >>> command = SyncCommand(output_handler=OutputHandler(verbosity=1))
        >>> exit_code = command.run(["Areas/Town.md"], resolve_links=True)
    """

    def __init__(
        self,
        config_path: str = DEFAULT_CONFIG_PATH,
        vault_path: Optional[str] = None,
        output_handler: Optional[OutputHandler] = None,
        authenticator: Optional[Authenticator] = None,
        api: Optional[RelayAPI] = None,
        renderer: Optional[Renderer] = None,
    ):
        """Initialize the command with optional dependencies.

        Args:
            config_path: Path to the configuration YAML file
            vault_path: Vault directory (overrides the configured one)
            output_handler: OutputHandler for terminal output
            authenticator: Authenticator for relay credentials
            api: RelayAPI to use instead of building one from credentials
            renderer: Renderer to use instead of Pandoc
        """
        self.config_path = config_path
        self.vault_path = vault_path
        self.output_handler = output_handler or OutputHandler()
        self.authenticator = authenticator
        self.api = api
        self.renderer = renderer

    def run(self, notes: Optional[List[str]] = None, resolve_links: bool = False) -> ExitCode:
        """Export notes and/or resolve links.

        Args:
            notes: Note files or directories to export
            resolve_links: Run the link resolution pass afterwards

        Returns:
            ExitCode indicating success or the failure type
        """
        output = self.output_handler
        try:
            config = ConfigLoader.load_or_default(self.config_path)
            vault = LocalVault(self.vault_path or config.vault_path)
            paths = self._collect_paths(notes or [], vault)

            if not self.authenticator:
                self.authenticator = Authenticator()
            credentials = self.authenticator.get_credentials()
            if not self.api:
                self.api = RelayAPI(RelayTransport(credentials))

            with output.spinner("Connecting to Foundry..."):
                session = SyncSession.open(self.api, config, vault, credentials.client_id)
            output.info(f"Connected to Foundry client {self.api.client_id}")

            summary = ExportSummary()
            if paths:
                summary = self._export(session, paths)

            if resolve_links or config.resolve_links:
                self._resolve_links(session, summary)

            output.print_summary(summary)
            return ExitCode.GENERAL_ERROR if summary.failed_count else ExitCode.SUCCESS

        except InvalidCredentialsError as e:
            logger.error(f"Authentication failed: {e}")
            output.error(f"Authentication failed: {e}")
            output.info("Set FOUNDRY_API_KEY (and optionally FOUNDRY_RELAY_URL) in .env")
            return ExitCode.AUTH_ERROR

        except (APIUnreachableError, APIAccessError, ClientNotFoundError) as e:
            logger.error(f"Relay error: {e}")
            output.error(f"Relay error: {e}")
            output.info("Check that the relay is reachable and your world is connected")
            return ExitCode.NETWORK_ERROR

        except (ConfigError, FilesystemError, FrontmatterError) as e:
            logger.error(f"Configuration error: {e}")
            output.error(f"Configuration error: {e}")
            return ExitCode.GENERAL_ERROR

        except (ConversionError, CLIError) as e:
            logger.error(f"Error: {e}")
            output.error(f"Error: {e}")
            return ExitCode.GENERAL_ERROR

        except SyncError as e:
            logger.error(f"Sync error: {e}")
            output.error(f"Sync error: {e}")
            return ExitCode.GENERAL_ERROR

        except Exception as e:
            logger.exception("Unexpected error during export")
            output.error(f"Unexpected error: {e}")
            return ExitCode.GENERAL_ERROR

    def _export(self, session: SyncSession, paths: List[Path]) -> ExportSummary:
        renderer = self.renderer or PandocRenderer(session.vault)
        output = self.output_handler

        with output.progress_bar(len(paths), "Exporting notes") as progress:
            task = progress.add_task("Exporting notes", total=len(paths))
            pipeline = ExportPipeline(
                session,
                renderer,
                on_note_done=lambda _path: progress.update(task, advance=1),
            )
            pipeline.submit(paths)

        return pipeline.summary

    def _resolve_links(self, session: SyncSession, summary: ExportSummary) -> None:
        with self.output_handler.spinner("Resolving links..."):
            session.refresh_index()
            result = LinkResolver(session.api).run(session.index.pages.by_id.values())
        summary.links_resolved += result.links_resolved
        summary.links_unresolved += result.links_unresolved
        if result.failed_updates:
            self.output_handler.warning(
                f"{result.failed_updates} page(s) could not be saved after link resolution"
            )

    @staticmethod
    def _collect_paths(notes: List[str], vault: LocalVault) -> List[Path]:
        """Expand note arguments (files or directories) into note paths.

        Raises:
            NoteOutsideVaultError: If a path is not inside the vault
            FilesystemError: If a path does not exist
        """
        paths: List[Path] = []
        for note in notes:
            path = Path(note).expanduser().resolve()
            if not path.exists():
                raise FilesystemError(str(path), 'read', 'No such file or directory')
            if path != vault.root and vault.root not in path.parents:
                raise NoteOutsideVaultError(str(path), str(vault.root))

            if path.is_dir():
                paths.extend(p for p in vault.list_notes() if p == path or path in p.parents)
            elif path.suffix == NOTE_SUFFIX:
                paths.append(path)
        return paths
