"""
Configuration management for the solvers.
Uses OmegaConf for flexible configuration handling.
"""

import logging
import os
from typing import Any

import omegaconf
from omegaconf import DictConfig, OmegaConf

from branchsat.utils.exceptions import ConfigurationError

# Set up logging
logger = logging.getLogger(__name__)


class SolverConfig:
    """
    Configuration manager for SAT solvers.
    Handles loading, merging, and accessing configuration parameters.
    """

    DEFAULT_CONFIG = {
        "solver": {
            "name": "monien_speckenmeyer",
            "timeout": None,
            "monien_speckenmeyer": {
                "parallel_workers": 1,
                "record_witness": True,
            },
            "brute_force": {
                "max_vars": 24,
            },
        },
        "logging": {
            "level": "INFO",
            "file": None,
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        },
    }

    def __init__(self, config_path: str | None = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to configuration file (YAML)

        Raises:
            ConfigurationError: If the file is missing or cannot be parsed
        """
        self.config: DictConfig = OmegaConf.create(self.DEFAULT_CONFIG)

        if config_path:
            self._load_config_file(config_path)

    def _load_config_file(self, config_path: str) -> None:
        if not os.path.exists(config_path):
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            file_config = OmegaConf.load(config_path)
        except Exception as e:
            raise ConfigurationError(
                f"Error loading configuration file {config_path}: {e}"
            ) from e

        self.config = OmegaConf.merge(self.config, file_config)
        logger.debug(f"Merged configuration from {config_path}")

    def update(self, config_dict: dict[str, Any]) -> None:
        """
        Update the configuration with the given dictionary.
        """
        self.config = OmegaConf.merge(self.config, config_dict)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by key.
        Supports dot notation for nested keys (e.g., "solver.timeout").

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        try:
            return OmegaConf.select(self.config, key, default=default)
        except omegaconf.errors.OmegaConfBaseException:
            return default

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value by key.
        Supports dot notation for nested keys (e.g., "solver.timeout").
        """
        OmegaConf.update(self.config, key, value, merge=True)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the configuration to a dictionary.
        """
        return OmegaConf.to_container(self.config, resolve=True)

    def save(self, file_path: str) -> None:
        """
        Save the configuration to a YAML file.
        """
        os.makedirs(os.path.dirname(os.path.abspath(file_path)), exist_ok=True)
        OmegaConf.save(self.config, file_path)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


# Create a global configuration instance
config = SolverConfig()


def load_config(config_path: str | None = None) -> SolverConfig:
    """
    Load configuration from a file and make it the global configuration.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration instance
    """
    global config
    if config_path:
        config = SolverConfig(config_path)
    return config


def get_config() -> SolverConfig:
    """
    Get the global configuration instance.
    """
    return config


def reset_config() -> SolverConfig:
    """
    Restore the global configuration to the defaults.
    """
    global config
    config = SolverConfig()
    return config
