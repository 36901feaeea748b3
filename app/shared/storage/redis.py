"""
Simple Redis client manager that creates and tracks async clients per label.
"""

import threading

from loguru import logger
from redis.asyncio import Redis

from ..config import config


class RedisManager:
    """
    Redis client manager.

    - One client per label, connection string from REDIS_URL_<LABEL>
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

        self._clients: dict[str, Redis] = {}
        self._clients_lock = threading.Lock()
        self._initialized = True

    def get_client(self, label: str = "default") -> Redis:
        with self._clients_lock:
            client = self._clients.get(label)
            if client is None:
                client = Redis.from_url(config.get_redis_url(label), decode_responses=True)
                self._clients[label] = client
                logger.info("Created Redis client for label '{}'", label)
            return client

    async def close_all(self) -> None:
        with self._clients_lock:
            clients = list(self._clients.items())
            self._clients.clear()
        for label, client in clients:
            await client.aclose()
            logger.info("Closed Redis client for label '{}'", label)


def get_redis_manager() -> RedisManager:
    return RedisManager()


def get_redis_client(label: str = "default") -> Redis:
    return RedisManager().get_client(label)
