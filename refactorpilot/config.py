"""
Configuration management for refactorpilot.
"""

import copy
import os
import json
from pathlib import Path
from typing import Dict, Any, List, Optional

import toml
import yaml
from pydantic import BaseModel, Field, ValidationError

from .constants import CONFIG_FILES, DEFAULT_CONFIG
from .exceptions import ConfigError
from .utils import logger, merge_dicts


class DetectionConfig(BaseModel):
    """Duplicate detection settings."""
    min_lines: int = Field(default=5, ge=1)
    max_block_lines: int = Field(default=50, ge=1)
    min_block_chars: int = Field(default=20, ge=0)
    similarity_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    ignore_imports: bool = Field(default=True)
    maximal_blocks_only: bool = Field(default=True)


class AnalysisConfig(BaseModel):
    """Per-file analysis settings."""
    complexity_threshold: int = Field(default=10)
    length_threshold: int = Field(default=50)
    cache_file: str = Field(default=".refactorpilot/cache.json")
    extensions: List[str] = Field(default_factory=list)
    exclude: List[str] = Field(default_factory=list)
    models: List[str] = Field(default_factory=lambda: ["default"])


class ExecutionConfig(BaseModel):
    """Executor settings."""
    test_command: str = Field(default="pytest -q")
    test_timeout: Optional[float] = Field(default=900)
    max_autofix_attempts: int = Field(default=3, ge=0)


class BacklogConfig(BaseModel):
    """Backlog document settings."""
    path: str = Field(default=".refactorpilot/REFACTOR-CANDIDATES.md")


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO")


class RefactorPilotConfig(BaseModel):
    """Main configuration model."""
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    backlog: BacklogConfig = Field(default_factory=BacklogConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class Config:
    """Configuration manager for refactorpilot."""

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = config_file
        self.config_path: Optional[Path] = None
        self.config_data = self._load_config()
        self._apply_environment_overrides()
        self.config = self._build(self.config_data)

    @staticmethod
    def _build(data: Dict[str, Any]) -> RefactorPilotConfig:
        try:
            return RefactorPilotConfig(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def _find_config_file(self) -> Optional[Path]:
        """Find configuration file in current directory or parent directories."""
        current_dir = Path.cwd()

        for parent in [current_dir] + list(current_dir.parents):
            for config_name in CONFIG_FILES:
                config_path = parent / config_name
                if config_path.exists():
                    logger.debug(f"Found config file: {config_path}")
                    return config_path

        return None

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file, merged over the defaults."""
        config = copy.deepcopy(DEFAULT_CONFIG)

        if self.config_file:
            config_path = Path(self.config_file)
        else:
            config_path = self._find_config_file()

        if not config_path or not config_path.exists():
            logger.debug("No config file found, using defaults")
            return config

        try:
            if config_path.suffix in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            elif config_path.suffix == '.toml':
                with open(config_path, 'r') as f:
                    file_config = toml.load(f)
            elif config_path.suffix == '.json':
                with open(config_path, 'r') as f:
                    file_config = json.load(f)
            else:
                logger.warning(f"Unknown config file format: {config_path}")
                return config

            config = merge_dicts(config, file_config)
            self.config_path = config_path
            logger.debug(f"Loaded config from: {config_path}")

        except (OSError, ValueError, yaml.YAMLError, toml.TomlDecodeError) as e:
            logger.error(f"Error loading config file: {e}")

        return config

    def _apply_environment_overrides(self):
        """Apply environment variable overrides to configuration."""
        log_level = os.getenv('REFACTORPILOT_LOG_LEVEL')
        if log_level:
            self.config_data['logging']['level'] = log_level

        test_command = os.getenv('REFACTORPILOT_TEST_COMMAND')
        if test_command:
            self.config_data['execution']['test_command'] = test_command

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation key."""
        value = self.config_data

        try:
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any):
        """Set configuration value by dot-notation key."""
        keys = key.split('.')
        config_dict = self.config_data

        for k in keys[:-1]:
            if k not in config_dict:
                config_dict[k] = {}
            config_dict = config_dict[k]

        config_dict[keys[-1]] = value
        self.config = self._build(self.config_data)

    def save(self, path: Optional[str] = None):
        """Save configuration to file."""
        save_path = Path(path or self.config_file or '.refactorpilot.yaml')

        if save_path.suffix == '.toml':
            with open(save_path, 'w') as f:
                toml.dump(self.config_data, f)
        elif save_path.suffix == '.json':
            with open(save_path, 'w') as f:
                json.dump(self.config_data, f, indent=2)
        else:
            if save_path.suffix not in ['.yaml', '.yml']:
                save_path = save_path.with_suffix('.yaml')
            with open(save_path, 'w') as f:
                yaml.dump(self.config_data, f, default_flow_style=False)

        logger.info(f"Configuration saved to: {save_path}")
        return save_path

    def validate(self) -> bool:
        """Validate configuration."""
        try:
            RefactorPilotConfig(**self.config_data)
            return True
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            return False

    @property
    def project_root(self) -> Path:
        """Directory relative paths in the config are resolved against."""
        if self.config_path:
            return self.config_path.resolve().parent
        return Path.cwd()
