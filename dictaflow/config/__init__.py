"""Simple YAML configuration loader for Dictaflow."""

import os
import re
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


class DictaflowConfig:
    """Dictaflow configuration loader."""

    def __init__(self, config_path: str):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file
        """
        self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}") from e

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")

        # Resolve relative paths
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        for section, key in (('logging', 'file_path'), ('autosave', 'file_path'), ('api', 'output_file_path')):
            value = (config.get(section) or {}).get(key)
            if value and not os.path.isabs(value):
                config[section][key] = str(config_dir / value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'audio.sample_rate').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'stream.endpoint')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        # Set the final value
        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_stream_endpoint(self) -> str:
        """Get the WebSocket endpoint of the STT service.

        Uses ``stream.endpoint`` when set, otherwise derives it from
        ``api.base_url`` (``http://`` becomes ``ws://``, ``https://`` becomes
        ``wss://``).
        """
        endpoint = self.get('stream.endpoint')
        if endpoint:
            return endpoint

        base_url = self.get('api.base_url')
        if not base_url:
            raise ValueError("Neither stream.endpoint nor api.base_url is configured")
        return websocket_url_from_base(base_url)

    def get_stream_headers(self) -> Dict[str, str]:
        """Get static headers sent when opening the stream (e.g. credentials)."""
        headers = self.get('stream.headers') or {}
        return {str(k): str(v) for k, v in headers.items()}

    def get_generate_url(self) -> Optional[str]:
        """Get the URL finalized dictation is submitted to, if configured."""
        base_url = self.get('api.base_url')
        if not base_url:
            return None
        path = self.get('api.generate_path', '/google-generative-ai/generate')
        return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def websocket_url_from_base(base_url: str) -> str:
    """Turn an HTTP(S) API base URL into the matching WS(S) URL."""
    return re.sub(r'^http', 'ws', base_url)
