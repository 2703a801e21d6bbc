"""Configuration management for DeFi Pulse."""
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from defi_pulse.utils.errors import ConfigurationError
from defi_pulse.utils.logging import setup_logging

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "DEFI_PULSE_CONFIG"
DEFAULT_CONFIG_PATH = "config.yaml"


class Config:
    """Application configuration."""

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        """
        Initialize configuration.

        Args:
            config_path: Path to YAML configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        """Load configuration from YAML and environment."""
        load_dotenv()

        if not self.config_path.exists():
            raise ConfigurationError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            try:
                self._config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not self._config:
            raise ConfigurationError(f"Empty configuration file: {self.config_path}")

        self._validate()

        log_config = self._config.get('logging', {})
        setup_logging(
            level=os.getenv('LOG_LEVEL', log_config.get('level', 'INFO')),
            log_file=log_config.get('file'),
            format_type=log_config.get('format', 'json'),
            enabled=log_config.get('enabled', True)
        )

        logger.info("Configuration loaded successfully")

    def _validate(self) -> None:
        """Validate required configuration sections."""
        for section in ('app', 'upstream'):
            if section not in self._config:
                raise ConfigurationError(f"Missing required config section: {section}")

        ttl = self.get('cache.ttl_seconds', 60)
        if not isinstance(ttl, (int, float)) or ttl <= 0:
            raise ConfigurationError(f"cache.ttl_seconds must be a positive number, got: {ttl}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-separated key.

        Args:
            key: Dot-separated key (e.g., "upstream.tvl_base_url")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        value = self._config

        for k in key.split('.'):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def get_env(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get environment variable."""
        return os.getenv(key, default)

    @property
    def app_name(self) -> str:
        return self.get('app.name', 'DeFi Pulse')

    @property
    def app_version(self) -> str:
        return self.get('app.version', '0.1.0')

    @property
    def debug(self) -> bool:
        return self.get('app.debug', False)

    @property
    def cache_ttl(self) -> float:
        """Freshness window for cached upstream responses, in seconds."""
        return float(self.get('cache.ttl_seconds', 60))

    @property
    def upstream_timeout(self) -> float:
        return float(self.get('upstream.timeout_seconds', 10))

    @property
    def request_timeout(self) -> float:
        """Overall deadline the HTTP boundary imposes on one request."""
        return float(self.get('api.request_timeout_seconds', 30))


# Global config instance
_config: Optional[Config] = None


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and return global configuration instance."""
    global _config
    if _config is None:
        _config = Config(config_path or os.getenv(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))
    return _config


def get_config() -> Config:
    """Get global configuration instance."""
    if _config is None:
        raise ConfigurationError("Configuration not loaded. Call load_config() first.")
    return _config
