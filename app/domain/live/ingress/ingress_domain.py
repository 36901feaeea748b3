"""Ingress domain service - broadcaster ingress lifecycle."""

from collections.abc import Awaitable, Callable

from redis.asyncio import Redis

from app.app_config import AppEnvironConfig, get_app_environ_config
from app.domain.live.stream._streams import StreamRepository
from app.services.api_cache import invalidate_stream_keys
from app.services.integrations.livekit_service import LivekitService
from app.shared.lock import LockManager
from app.shared.storage.redis import get_redis_client
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from ._provision import IngressProvisioner
from ._reconcile import ResourceReconciler
from .ingress_models import IngressInputMode, ProvisionResult, ReconcileReport, StreamKeys


class IngressService:
    """Provision, reset and read a broadcaster's ingress."""

    def __init__(
        self,
        livekit: LivekitService,
        streams: StreamRepository,
        redis_client: Redis,
        lock_ttl: int = 30,
        lock_wait: float = 10.0,
        on_provisioned: Callable[[str], Awaitable[None]] | None = invalidate_stream_keys,
    ):
        self._streams = streams
        self._reconciler = ResourceReconciler(livekit)
        self._provisioner = IngressProvisioner(
            livekit=livekit,
            streams=streams,
            reconciler=self._reconciler,
            lock_factory=lambda: LockManager(redis_client, default_ttl=lock_ttl),
            lock_ttl=lock_ttl,
            lock_wait=lock_wait,
            on_provisioned=on_provisioned,
        )

    @classmethod
    def from_config(cls, cfg: AppEnvironConfig | None = None) -> "IngressService":
        cfg = cfg or get_app_environ_config()
        return cls(
            livekit=LivekitService.from_config(cfg),
            streams=StreamRepository(),
            redis_client=get_redis_client(cfg.REDIS_LABEL),
            lock_ttl=cfg.PROVISION_LOCK_TTL_SECONDS,
            lock_wait=cfg.PROVISION_LOCK_WAIT_SECONDS,
        )

    async def create_ingress(
        self,
        user_id: str,
        username: str,
        input_mode: IngressInputMode,
    ) -> ProvisionResult:
        """Replace the user's ingress with a fresh one.

        Raises ProvisionError on any provisioning failure.
        """
        return await self._provisioner.provision(
            identity=user_id,
            display_name=username,
            input_mode=input_mode,
        )

    async def reset_ingress(self, user_id: str) -> ReconcileReport:
        """Delete the user's ingresses and room without creating new ones."""
        return await self._provisioner.reset(identity=user_id)

    async def get_stream_keys(self, user_id: str) -> StreamKeys:
        """Raises AppError if the user has no stream record."""
        stream = await self._streams.get_by_user_id(user_id)
        if stream is None:
            raise AppError(
                errcode=AppErrorCode.E_STREAM_NOT_FOUND,
                errmesg="Stream not found",
                status_code=HttpStatusCode.NOT_FOUND,
            )
        return StreamKeys(
            user_id=stream.user_id,
            ingress_id=stream.ingress_id,
            server_url=stream.server_url,
            stream_key=stream.stream_key,
            is_live=stream.is_live,
        )
