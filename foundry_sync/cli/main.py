"""Main CLI entry point for the foundry-sync command.

Uses options on the main command rather than subcommands.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from foundry_sync import __version__
from foundry_sync.cli.errors import InitError
from foundry_sync.cli.models import ExitCode
from foundry_sync.cli.output import OutputHandler
from foundry_sync.cli.sync_command import SyncCommand
from foundry_sync.hierarchy.config_loader import DEFAULT_CONFIG_PATH, ConfigLoader
from foundry_sync.hierarchy.errors import ConfigError, FilesystemError, FrontmatterError
from foundry_sync.hierarchy.identity import IdentityGenerator
from foundry_sync.hierarchy.models import SyncConfig
from foundry_sync.rendering.vault import LocalVault

app = typer.Typer(
    name="foundry-sync",
    help="""Export Markdown notes into Foundry VTT journals through the REST relay.

QUICK START:
  foundry-sync --init --vault <folder>      # Write .foundry-sync/config.yaml
  foundry-sync <note.md> [<dir> ...]        # Export notes
  foundry-sync --resolve-links              # Turn note links into @UUID links
  foundry-sync --generate-id                # Print a fresh note identity""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=False,
)

logger = logging.getLogger(__name__)

GETTING_STARTED_MESSAGE = """foundry-sync <note.md> [<dir> ...]        # Export notes

--init --vault <folder>                    # Initialize configuration
--resolve-links                            # Resolve links across exported pages
--generate-id [<note.md> ...]              # Print or assign note identities
--help                                     # Show all options

Required environment variables (or .env):
  FOUNDRY_API_KEY     - Relay API key
  FOUNDRY_RELAY_URL   - Relay URL (optional)
  FOUNDRY_CLIENT_ID   - Foundry world client id (optional)"""


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure the 'foundry_sync' logger based on verbosity level.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for a timestamped log file
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("foundry_sync")
    app_logger.setLevel(level)

    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter("%(asctime)s [%(levelname)8s] %(message)s", datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"foundry-sync_{timestamp}.log"

        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=date_format
        )
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _run_init(config_path: str, vault: Optional[str], output: OutputHandler) -> None:
    try:
        if os.path.exists(config_path):
            raise InitError(f"Configuration already exists at {config_path}")
        vault_path = vault or "."
        if not Path(vault_path).is_dir():
            raise InitError(f"Vault directory not found: {vault_path}")

        ConfigLoader.save(config_path, SyncConfig(vault_path=vault_path))
        output.success(f"Configuration written to {config_path}")
        output.info("Next steps:")
        output.info(f"  1. Review {config_path}")
        output.info("  2. Set FOUNDRY_API_KEY in .env")
        output.info("  3. Run 'foundry-sync <note.md>' to export")
    except (InitError, FilesystemError) as e:
        logger.error(f"Initialization failed: {e}")
        output.error(f"Initialization failed: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    raise typer.Exit(ExitCode.SUCCESS)


def _run_generate_id(
    config_path: str, vault: Optional[str], notes: List[str], output: OutputHandler
) -> None:
    """Print a fresh identity, or assign identities to the given notes."""
    try:
        config = ConfigLoader.load_or_default(config_path)
        local_vault = LocalVault(vault or config.vault_path)
        generator = IdentityGenerator(local_vault.collect_identities().values())

        if not notes:
            output.print(generator.generate())
            raise typer.Exit(ExitCode.SUCCESS)

        for note_path in notes:
            note = local_vault.load_note(Path(note_path).resolve())
            had_identity = bool(note.identity)
            identity = generator.ensure_note_identity(note, persist=True)
            if had_identity:
                output.info(f"{note.path} already has identity {identity}")
            else:
                output.success(f"{note.path}: {identity}")
    except (ConfigError, FilesystemError, FrontmatterError, ValueError) as e:
        logger.error(f"Identity generation failed: {e}")
        output.error(f"Identity generation failed: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def main_command(
    notes: Optional[List[str]] = typer.Argument(
        None,
        help="Note files or directories to export",
    ),
    resolve_links: bool = typer.Option(
        False,
        "--resolve-links",
        help="Resolve note links into @UUID links across all exported pages",
    ),
    generate_id: bool = typer.Option(
        False,
        "--generate-id",
        help="Print a fresh note identity, or assign identities to the given notes",
    ),
    init: bool = typer.Option(
        False,
        "--init",
        help="Write a default configuration file",
    ),
    config_path: str = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Configuration file path",
        metavar="PATH",
    ),
    vault: Optional[str] = typer.Option(
        None,
        "--vault",
        help="Vault directory (overrides vault_path from the configuration)",
        metavar="FOLDER",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Export Markdown notes into Foundry VTT journals.

    \b
    EXAMPLES:
      foundry-sync --init --vault ~/Vaults/Campaign
      foundry-sync ~/Vaults/Campaign/Areas
      foundry-sync Areas/Town.md --resolve-links
      foundry-sync --generate-id Areas/Town.md
    """
    if version:
        typer.echo(f"foundry-sync version {__version__}")
        raise typer.Exit()

    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    if init:
        _run_init(config_path, vault, output)
        return

    if generate_id:
        _run_generate_id(config_path, vault, notes or [], output)
        return

    if not notes and not resolve_links:
        typer.echo(GETTING_STARTED_MESSAGE)
        raise typer.Exit()

    command = SyncCommand(config_path=config_path, vault_path=vault, output_handler=output)
    exit_code = command.run(notes=notes or [], resolve_links=resolve_links)
    raise typer.Exit(exit_code)


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
