"""
Simple MongoDB client manager that creates and tracks clients per label.
"""

import atexit
import re
import threading

from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient

from ..config import config


class MongoManager:
    """
    MongoDB client manager.

    - One client per label, connection string from MONGO_URL_<LABEL>
    - Configurable connection pool size
    - All clients are closed on process exit
    - Thread-safe singleton
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, "_initialized"):
            return

        self._clients: dict[str, AsyncIOMotorClient] = {}
        self._clients_lock = threading.Lock()
        self._max_pool_size = config.get_mongo_max_pool_size()

        atexit.register(self._cleanup)
        self._initialized = True

    @staticmethod
    def _hide_password_in_connection_string(url: str) -> str:
        return re.sub(r"://([^:/@]+):([^@]+)@", r"://\1:***@", url)

    def get_client(self, label: str = "default") -> AsyncIOMotorClient:
        with self._clients_lock:
            client = self._clients.get(label)
            if client is None:
                url = config.get_mongo_url(label)
                logger.info(
                    "Creating MongoDB client for label '{}': {}",
                    label,
                    self._hide_password_in_connection_string(url),
                )
                client = AsyncIOMotorClient(url, maxPoolSize=self._max_pool_size)
                self._clients[label] = client
            return client

    def close_client(self, label: str) -> None:
        with self._clients_lock:
            client = self._clients.pop(label, None)
        if client is not None:
            client.close()
            logger.info("Closed MongoDB client for label '{}'", label)

    def _cleanup(self) -> None:
        for label in list(self._clients):
            self.close_client(label)


def get_mongo_client(label: str = "default") -> AsyncIOMotorClient:
    return MongoManager().get_client(label)
