"""
Configuration management for the rotation system.

This module handles loading, merging and validation of rotation settings.
Settings come from an optional YAML file and are overridden by explicit
values (usually command-line flags).
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from rotator.storage.rotation_errors import ConfigError
from rotator.storage.rotation_models import RetentionPolicy
from rotator.storage.rotation_scanner import DEFAULT_SUFFIX

logger = logging.getLogger(__name__)

POLICY_FIELDS = ('keep', 'keep_days', 'keep_weeks', 'keep_months', 'keep_years')


@dataclass
class RotationConfig:
    """Validated settings for a rotation run."""
    source_dir: Path
    destination_dir: Path
    policy: RetentionPolicy = field(default_factory=RetentionPolicy)
    dry_run: bool = False
    filename_suffix: str = DEFAULT_SUFFIX
    log_level: str = 'INFO'
    logs_dir: Optional[Path] = None
    metrics_textfile: Optional[Path] = None
    lock_path: Optional[Path] = None


class RotationConfigManager:
    """Loads rotation configuration from YAML and applies overrides."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self.config_data = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from the YAML file merged over the defaults."""
        config_data = self._get_default_config()

        if self.config_path is None:
            return config_data

        if not self.config_path.exists():
            logger.warning(f"Config file not found at {self.config_path}. Using defaults.")
            return config_data

        try:
            with open(self.config_path, 'r') as f:
                file_data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config {self.config_path}: {e}") from e

        if file_data is None:
            return config_data
        if not isinstance(file_data, dict):
            raise ConfigError(f"Config {self.config_path} must be a mapping")

        for section, values in file_data.items():
            if section not in config_data:
                logger.warning(f"Ignoring unknown config section: {section}")
                continue
            if values is None:
                continue
            if not isinstance(values, dict):
                raise ConfigError(f"Config section '{section}' must be a mapping")
            config_data[section].update(values)

        return config_data

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration."""
        return {
            'rotation': {
                'source': None,
                'destination': None,
                'filename_suffix': DEFAULT_SUFFIX,
                'dry_run': False
            },
            'policy': {
                'keep': 5,
                'keep_days': 7,
                'keep_weeks': 5,
                'keep_months': 6,
                'keep_years': 2
            },
            'logging': {
                'level': 'INFO',
                'logs_dir': None
            },
            'metrics': {
                'textfile': None
            },
            'lock': {
                'path': None
            }
        }

    def build(self, **overrides: Any) -> RotationConfig:
        """
        Build a validated RotationConfig.

        Keyword overrides take precedence over the file; ``None`` means "not
        given". Recognised keys: source, destination, filename_suffix,
        dry_run, keep, keep_days, keep_weeks, keep_months, keep_years,
        log_level, logs_dir, metrics_textfile, lock_path.

        Raises:
            ConfigError: a required value is missing or invalid.
        """
        rotation = self.config_data['rotation']
        policy_data = self.config_data['policy']

        def pick(key: str, default: Any) -> Any:
            value = overrides.get(key)
            return default if value is None else value

        source = pick('source', rotation.get('source'))
        destination = pick('destination', rotation.get('destination'))
        suffix = pick('filename_suffix', rotation.get('filename_suffix'))

        policy_values = {name: pick(name, policy_data.get(name)) for name in POLICY_FIELDS}
        policy = RetentionPolicy(**policy_values)

        config = RotationConfig(
            source_dir=self._require_directory('source', source),
            destination_dir=self._require_directory('destination', destination),
            policy=policy,
            dry_run=bool(pick('dry_run', rotation.get('dry_run', False))),
            filename_suffix=suffix,
            log_level=str(pick('log_level', self.config_data['logging'].get('level', 'INFO'))).upper(),
            logs_dir=self._optional_path(pick('logs_dir', self.config_data['logging'].get('logs_dir'))),
            metrics_textfile=self._optional_path(pick('metrics_textfile', self.config_data['metrics'].get('textfile'))),
            lock_path=self._optional_path(pick('lock_path', self.config_data['lock'].get('path'))),
        )

        self._validate(config)
        return config

    def _require_directory(self, name: str, value: Any) -> Path:
        if value is None or str(value).strip() == '':
            raise ConfigError(f"{name} directory is required")
        path = Path(value).expanduser()
        if not path.exists():
            raise ConfigError(f"{name} directory does not exist: {path}")
        if not path.is_dir():
            raise ConfigError(f"{name} is not a directory: {path}")
        return path

    def _optional_path(self, value: Any) -> Optional[Path]:
        if value is None or str(value).strip() == '':
            return None
        return Path(value).expanduser()

    def _validate(self, config: RotationConfig):
        if not isinstance(config.filename_suffix, str) or not config.filename_suffix:
            raise ConfigError("filename_suffix must be a non-empty string")
        if config.source_dir.resolve() == config.destination_dir.resolve():
            raise ConfigError(
                f"source and destination must differ: {config.source_dir}"
            )
        if config.log_level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ConfigError(f"Unknown log level: {config.log_level}")


def load_rotation_config(config_path: Optional[str] = None, **overrides: Any) -> RotationConfig:
    """Load, merge and validate rotation configuration."""
    return RotationConfigManager(config_path).build(**overrides)
