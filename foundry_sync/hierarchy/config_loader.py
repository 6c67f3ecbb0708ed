"""YAML configuration loading and saving.

Configuration file structure (every field is optional):
    vault_path: "."
    destination:
      folder: "Obsidian Export"
      journal: "Obsidian"
      picture_path: "assets/pictures"
    read_frontmatter: true
    write_back: false
    write_identity: false
    resolve_links: false
    ownership: -1
"""

import os
from typing import Any, Dict

import yaml

from .errors import ConfigError, FilesystemError
from .models import DestinationConfig, SyncConfig

DEFAULT_CONFIG_PATH = ".foundry-sync/config.yaml"

# Foundry ownership levels: INHERIT, NONE, LIMITED, OBSERVER, OWNER
OWNERSHIP_LEVELS = {-1, 0, 1, 2, 3}

BOOLEAN_FIELDS = ('read_frontmatter', 'write_back', 'write_identity', 'resolve_links')


class ConfigLoader:
    """Handles configuration file loading, validation and saving."""

    @classmethod
    def load(cls, config_path: str = DEFAULT_CONFIG_PATH) -> SyncConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            SyncConfig with defaults filled in

        Raises:
            FilesystemError: If the file cannot be read
            ConfigError: If the configuration is invalid
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise FilesystemError(config_path, 'read', 'Configuration file not found')
        except PermissionError:
            raise FilesystemError(config_path, 'read', 'Permission denied')
        except OSError as e:
            raise FilesystemError(config_path, 'read', str(e))

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            return SyncConfig()

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def load_or_default(cls, config_path: str = DEFAULT_CONFIG_PATH) -> SyncConfig:
        """Like load, but a missing file yields the default configuration."""
        if not os.path.exists(config_path):
            return SyncConfig()
        return cls.load(config_path)

    @classmethod
    def save(cls, config_path: str, sync_config: SyncConfig) -> None:
        """Save configuration to a YAML file.

        Raises:
            FilesystemError: If the file cannot be written
        """
        config_dict = {
            'vault_path': sync_config.vault_path,
            'destination': {
                'folder': sync_config.destination.folder,
                'journal': sync_config.destination.journal,
                'picture_path': sync_config.destination.picture_path,
            },
            'read_frontmatter': sync_config.read_frontmatter,
            'write_back': sync_config.write_back,
            'write_identity': sync_config.write_identity,
            'resolve_links': sync_config.resolve_links,
            'ownership': sync_config.ownership,
        }

        yaml_str = yaml.safe_dump(
            config_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        if config_dir:
            try:
                os.makedirs(config_dir, exist_ok=True)
            except OSError as e:
                raise FilesystemError(config_dir, 'create_directory', str(e))

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except PermissionError:
            raise FilesystemError(config_path, 'write', 'Permission denied')
        except OSError as e:
            raise FilesystemError(config_path, 'write', str(e))

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> SyncConfig:
        defaults = SyncConfig()

        destination_raw = config_dict.get('destination') or {}
        if not isinstance(destination_raw, dict):
            raise ConfigError("Field 'destination' must be a dictionary", 'destination')

        default_destination = DestinationConfig()
        destination = DestinationConfig(
            folder=str(destination_raw.get('folder', default_destination.folder) or ""),
            journal=str(destination_raw.get('journal', default_destination.journal) or ""),
            picture_path=str(
                destination_raw.get('picture_path', default_destination.picture_path) or ""
            ).strip('/'),
        )

        flags = {}
        for name in BOOLEAN_FIELDS:
            value = config_dict.get(name, getattr(defaults, name))
            if not isinstance(value, bool):
                raise ConfigError(f"Field '{name}' must be true or false", name)
            flags[name] = value

        try:
            ownership = int(config_dict.get('ownership', defaults.ownership))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid ownership level: {str(e)}", 'ownership')
        if ownership not in OWNERSHIP_LEVELS:
            raise ConfigError(
                f"Field 'ownership' must be one of {sorted(OWNERSHIP_LEVELS)}, got {ownership}",
                'ownership'
            )

        vault_path = str(config_dict.get('vault_path', defaults.vault_path) or "").strip()
        if not vault_path:
            raise ConfigError("Field 'vault_path' cannot be empty", 'vault_path')

        return SyncConfig(
            vault_path=vault_path,
            destination=destination,
            ownership=ownership,
            **flags,
        )
