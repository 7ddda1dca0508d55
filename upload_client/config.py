"""Configuration management for the chunkup client."""

import json
import os
import shutil
from pathlib import Path

from common.logging_config import get_logger
from upload_client.retry import RetryPolicy

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / '.chunkup' / 'config.json'


def default_config() -> dict:
    """Defaults, with the server address taken from the environment."""
    return {
        "server_host": os.environ.get("CHUNKUP_SERVER_HOST", "localhost"),
        "server_port": int(os.environ.get("CHUNKUP_SERVER_PORT", "3000")),
        "timeout": 60,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
        "retry_base_delay": 1.0,
        "large_object_extra_delay": 2.0,
        "large_object_chunk_threshold": 100,
        "send_checksums": True,
    }


class Config:
    """Manages client configuration stored in a JSON file."""

    def __init__(self, config_path: Path = DEFAULT_CONFIG_PATH):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.chunkup/config.json)
        """
        self.config_path = Path(config_path)
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        A file that cannot be parsed is copied to ``config.json.bak`` and the
        defaults are used instead.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            import tempfile
            self.config_path = Path(tempfile.gettempdir()) / '.chunkup' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("config root must be a JSON object")
                config = default_config()
                config.update(data)
                return config
            except (json.JSONDecodeError, ValueError, OSError) as e:
                backup_path = self.config_path.with_suffix('.json.bak')
                logger.warning(f"Config file {self.config_path} is unreadable ({e}), backing up to {backup_path}")
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError as copy_error:
                    logger.warning(f"Could not back up config file: {copy_error}")
                return default_config()
        else:
            config = default_config()
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(config, f, indent=2)
            except OSError as e:
                logger.warning(f"Could not write default config to {self.config_path}: {e}")
            return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save config to {self.config_path}: {e}")

    def get_base_url(self) -> str:
        """
        Get upload server base URL.

        Returns:
            Base URL string (e.g., "http://localhost:3000")
        """
        host = self.data.get('server_host', 'localhost')
        port = self.data.get('server_port', 3000)
        return f"http://{host}:{port}"

    def set_server(self, host: str, port: int) -> None:
        self.data['server_host'] = host
        self.data['server_port'] = port
        self.save()

    def get_timeout(self) -> float:
        return self.data.get('timeout', 60)

    def get_retry_config(self) -> dict:
        """
        Get retry configuration for control requests (init, status).

        Returns:
            Dictionary with 'max_retries' and 'retry_backoff_multiplier'
        """
        return {
            'max_retries': self.data.get('max_retries', 3),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', 2),
        }

    def get_retry_policy(self) -> RetryPolicy:
        """
        Get the chunk retry delays.

        The retry budget itself comes from the transfer plan.
        """
        return RetryPolicy(
            base_delay=float(self.data.get('retry_base_delay', 1.0)),
            large_object_extra_delay=float(self.data.get('large_object_extra_delay', 2.0)),
            large_object_chunk_threshold=int(self.data.get('large_object_chunk_threshold', 100)),
        )

    def get_send_checksums(self) -> bool:
        return bool(self.data.get('send_checksums', True))
