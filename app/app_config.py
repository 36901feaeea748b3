from pydantic import BaseModel

from app.shared.config import config


def _str_or_none(key: str) -> str | None:
    return (config.get(key) or "").strip() or None


def _int(key: str, default: int) -> int:
    return int((config.get(key) or "").strip() or default)


def _float(key: str, default: float) -> float:
    return float((config.get(key) or "").strip() or default)


def _bool(key: str, default: str) -> bool:
    return config.get(key, default).strip().lower() == "true"


class AppEnvironConfig(BaseModel):
    # Server
    API_HOST: str = config.get("API_HOST", "0.0.0.0").strip()
    API_PORT: int = _int("API_PORT", 8000)
    API_WORKERS: int = _int("API_WORKERS", 1)
    API_CORS_ORIGINS: list[str] = [
        x.strip() for x in config.get("API_CORS_ORIGINS", "*").split(",") if x.strip()
    ]
    DEBUG: bool = _bool("DEBUG", "false")
    LOG_LEVEL: str | None = _str_or_none("LOG_LEVEL")
    SESSION_SECRET: str = config.get("SESSION_SECRET", "dev-secret").strip()

    # Logfire
    LOGFIRE_ENABLE: bool = _bool("LOGFIRE_ENABLE", "false")
    LOGFIRE_TOKEN: str | None = _str_or_none("LOGFIRE_TOKEN")

    # Storage labels (MONGO_URL_<LABEL> / REDIS_URL_<LABEL>)
    MONGO_LABEL: str = config.get("MONGO_LABEL", "flc_primary").strip()
    REDIS_LABEL: str = config.get("REDIS_LABEL", "flc_major").strip()

    # LiveKit configuration
    LIVEKIT_URL: str | None = _str_or_none("LIVEKIT_URL")
    LIVEKIT_API_KEY: str | None = _str_or_none("LIVEKIT_API_KEY")
    LIVEKIT_API_SECRET: str | None = _str_or_none("LIVEKIT_API_SECRET")
    # Upper bound for every call to the LiveKit server API
    LIVEKIT_API_TIMEOUT_SECONDS: float = _float("LIVEKIT_API_TIMEOUT_SECONDS", 10)

    # Per-identity provisioning lock
    PROVISION_LOCK_TTL_SECONDS: int = _int("PROVISION_LOCK_TTL_SECONDS", 30)
    PROVISION_LOCK_WAIT_SECONDS: float = _float("PROVISION_LOCK_WAIT_SECONDS", 10)

    # API cache
    API_CACHE_PREFIX: str = config.get("API_CACHE_PREFIX", "ingress-control-cache").strip()
    STREAM_KEYS_CACHE_EXPIRE_SECONDS: int = _int("STREAM_KEYS_CACHE_EXPIRE_SECONDS", 60)


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
