"""
Centralized environment configuration.

Values are layered, later sources overriding earlier ones:
1) `env.example` (committed, safe placeholders)
2) `env.local` (optional, MUST NOT be committed)
3) System environment variables (highest priority)
"""

import os
from pathlib import Path

from dotenv import dotenv_values
from loguru import logger


class EnvironConfig:
    """
    Singleton configuration providing dictionary-like access to environment values.
    """

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(EnvironConfig, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._config = {}
            self._load_config()
            EnvironConfig._initialized = True

    def _load_config(self):
        root = Path(__file__).parent.parent.parent

        example_path = root / "env.example"
        if example_path.exists():
            self._config.update(dotenv_values(example_path))
            logger.info("Loaded environment variables from {}", example_path)

        local_path = root / "env.local"
        if local_path.exists():
            self._config.update(dotenv_values(local_path))
            logger.info("Loaded and overrode environment variables from {}", local_path)

        self._config.update(os.environ)

    def __getitem__(self, key):
        if key not in self._config:
            raise KeyError(f"Configuration key '{key}' not found")
        return self._config[key]

    def get(self, key, default=None):
        value = self._config.get(key)
        return default if value is None else value

    def __contains__(self, key):
        return key in self._config

    def __iter__(self):
        return iter(self._config)

    def keys(self):
        return self._config.keys()

    def items(self):
        return self._config.items()

    def reload(self):
        """Reload configuration from files and environment (used by tests)."""
        self._config.clear()
        self._load_config()
        logger.info("Configuration reloaded")

    def _get_labeled_url(self, kind: str, label: str, fallback: str) -> str:
        if label == "default":
            return self.get(f"{kind}_URL_DEFAULT") or self.get(f"{kind}_URL") or fallback
        return self.get(f"{kind}_URL_{label.upper()}") or self.get(f"{kind}_URL") or fallback

    def get_redis_url(self, label: str = "default") -> str:
        """
        Get Redis connection URL for a label.

        Resolution: REDIS_URL_<LABEL>, then REDIS_URL, then localhost.
        """
        return self._get_labeled_url("REDIS", label, "redis://localhost:6379")

    def get_mongo_url(self, label: str = "default") -> str:
        """
        Get MongoDB connection URL for a label.

        Resolution: MONGO_URL_<LABEL>, then MONGO_URL, then localhost.
        """
        return self._get_labeled_url("MONGO", label, "mongodb://localhost:27017/ingress_control")

    def get_mongo_max_pool_size(self) -> int:
        try:
            size = int(self.get("MONGO_MAX_POOL_SIZE", "5"))
        except (ValueError, TypeError):
            logger.warning(
                "Invalid MONGO_MAX_POOL_SIZE value '{}', defaulting to 5",
                self.get("MONGO_MAX_POOL_SIZE"),
            )
            return 5
        if not 1 <= size <= 100:
            logger.warning("MONGO_MAX_POOL_SIZE value {} is out of range (1-100), defaulting to 5", size)
            return 5
        return size


config = EnvironConfig()
