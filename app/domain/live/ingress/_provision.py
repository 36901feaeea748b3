"""Reset-then-create provisioning of a broadcaster's LiveKit ingress."""

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from livekit import api
from livekit.api.twirp_client import TwirpError
from loguru import logger

from app.domain.live.stream._streams import StreamRepository
from app.services.integrations.livekit_service import LivekitService
from app.shared.lock import LockManager
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode, ProvisionError

from ._reconcile import ResourceReconciler
from .ingress_models import IngressInputMode, ProvisionResult, ReconcileReport

PROVISION_LOCK_SCOPE = "provision"

# Push-encoder presets
RTMP_VIDEO_PRESET = api.IngressVideoEncodingPreset.H264_1080P_30FPS_3_LAYERS
RTMP_AUDIO_PRESET = api.IngressAudioEncodingPreset.OPUS_STEREO_96KBPS


def build_create_ingress_request(
    identity: str,
    display_name: str,
    input_mode: IngressInputMode,
) -> api.CreateIngressRequest:
    """Build the create-ingress request for a broadcaster.

    The room is named after the identity so the next reconciliation finds it.
    """
    request = api.CreateIngressRequest(
        input_type=input_mode.to_livekit(),
        name=display_name,
        room_name=identity,
        participant_identity=identity,
        participant_name=display_name,
    )

    if input_mode == IngressInputMode.WHIP:
        request.bypass_transcoding = True
    else:
        request.video.CopyFrom(
            api.IngressVideoOptions(source=api.TrackSource.CAMERA, preset=RTMP_VIDEO_PRESET)
        )
        request.audio.CopyFrom(
            api.IngressAudioOptions(source=api.TrackSource.MICROPHONE, preset=RTMP_AUDIO_PRESET)
        )

    return request


def _provider_error(exc: Exception, action: str) -> ProvisionError:
    if isinstance(exc, asyncio.TimeoutError):
        return ProvisionError(
            AppErrorCode.E_PROVIDER_TIMEOUT,
            f"LiveKit timed out while trying to {action}",
            HttpStatusCode.GATEWAY_TIMEOUT,
        )
    if isinstance(exc, TwirpError):
        return ProvisionError(
            AppErrorCode.E_PROVIDER_ERROR,
            exc.message or str(exc),
            HttpStatusCode.BAD_GATEWAY if exc.status >= 500 else exc.status,
        )
    return ProvisionError(
        AppErrorCode.E_PROVIDER_ERROR,
        str(exc) or f"Failed to {action}",
        HttpStatusCode.BAD_GATEWAY,
    )


class IngressProvisioner:
    """Creates a fresh ingress for a broadcaster and stores its credentials.

    Steps, all under an identity-scoped Redis lease that is refreshed while held:
    1. reconcile: delete any ingress/room left over for the identity
    2. create the ingress with the options for the requested input mode
    3. validate the returned url/stream key
    4. write ingress id, url and key onto the identity's Stream record

    After the lease is released, a successful provision or reset awaits
    ``on_provisioned(identity)`` so cached views of the stream keys can be dropped.
    """

    def __init__(
        self,
        livekit: LivekitService,
        streams: StreamRepository,
        reconciler: ResourceReconciler,
        lock_factory: Callable[[], LockManager],
        lock_ttl: int = 30,
        lock_wait: float = 10.0,
        on_provisioned: Callable[[str], Awaitable[None]] | None = None,
    ) -> None:
        self.livekit = livekit
        self.streams = streams
        self.reconciler = reconciler
        self.lock_factory = lock_factory
        self.lock_ttl = lock_ttl
        self.lock_wait = lock_wait
        self.on_provisioned = on_provisioned

    async def _acquire(self, identity: str) -> LockManager:
        lock = self.lock_factory()
        acquired = await lock.acquire(
            PROVISION_LOCK_SCOPE,
            identity,
            ttl=self.lock_ttl,
            blocking=True,
            blocking_timeout=self.lock_wait,
        )
        if not acquired:
            raise ProvisionError(
                AppErrorCode.E_PROVISION_IN_PROGRESS,
                "provisioning already in progress",
                HttpStatusCode.CONFLICT,
                errmesg="Another stream setup is already in progress for this account. Please try again shortly.",
            )
        return lock

    @asynccontextmanager
    async def _lease(self, identity: str):
        """Hold the identity's lease, refreshing its TTL until the block exits."""
        async with await self._acquire(identity) as lock, lock.keep_alive():
            yield lock

    @staticmethod
    def _ensure_held(lock: LockManager, identity: str, step: str) -> None:
        if not lock:
            logger.error(f"[provision] Lease for {identity} lost before {step}")
            raise ProvisionError(
                AppErrorCode.E_PROVISION_IN_PROGRESS,
                "lease lost",
                HttpStatusCode.CONFLICT,
                errmesg="Another stream setup took over for this account. Please try again shortly.",
            )

    async def _reconcile(self, identity: str) -> ReconcileReport:
        try:
            return await self.reconciler.reconcile(identity)
        except ProvisionError:
            raise
        except Exception as exc:
            logger.error(f"[provision] reconcile failed for {identity}: {exc!r}")
            raise _provider_error(exc, "list existing ingresses") from exc

    async def reset(self, identity: str) -> ReconcileReport:
        """Reconcile the identity's resources under the provisioning lease."""
        async with self._lease(identity):
            report = await self._reconcile(identity)

        await self._notify(identity)
        return report

    async def provision(
        self,
        identity: str,
        display_name: str,
        input_mode: IngressInputMode,
    ) -> ProvisionResult:
        """Replace the identity's ingress with a new one.

        Raises:
            ProvisionError: provider failure/timeout, incomplete ingress,
                missing stream record or lock contention
        """
        async with self._lease(identity) as lock:
            result = await self._provision_locked(lock, identity, display_name, input_mode)

        await self._notify(identity)
        return result

    async def _notify(self, identity: str) -> None:
        if self.on_provisioned is None:
            return
        try:
            await self.on_provisioned(identity)
        except Exception:
            logger.exception(f"[provision] on_provisioned hook failed for {identity}")

    async def _provision_locked(
        self,
        lock: LockManager,
        identity: str,
        display_name: str,
        input_mode: IngressInputMode,
    ) -> ProvisionResult:
        await self._reconcile(identity)

        self._ensure_held(lock, identity, "create")
        request = build_create_ingress_request(identity, display_name, input_mode)

        try:
            ingress = await self.livekit.create_ingress(request)
        except AppError:
            raise
        except Exception as exc:
            logger.error(f"[provision] create_ingress failed for {identity}: {exc!r}")
            raise _provider_error(exc, "create ingress") from exc

        if ingress is None:
            raise ProvisionError(
                AppErrorCode.E_INGRESS_NO_RESPONSE,
                "no response",
                HttpStatusCode.BAD_GATEWAY,
                errmesg="LiveKit failed to create ingress - no response received",
            )

        if not ingress.url or not ingress.stream_key:
            logger.error(
                f"[provision] Ingress {ingress.ingress_id} for {identity} is missing url or stream key"
            )
            raise ProvisionError(
                AppErrorCode.E_INGRESS_INCOMPLETE,
                "missing credentials",
                HttpStatusCode.BAD_GATEWAY,
                errmesg=(
                    "LiveKit created ingress but did not provide URL or stream key. "
                    "Retrying will clean it up."
                ),
            )

        logger.info(
            f"[provision] Created ingress {ingress.ingress_id}: room={request.room_name}, "
            f"participant={request.participant_identity}, name={request.participant_name}, "
            f"mode={input_mode}"
        )

        # a lost lease means another call may already be replacing this ingress
        self._ensure_held(lock, identity, "persist")
        updated = await self.streams.update_credentials(
            user_id=identity,
            ingress_id=ingress.ingress_id,
            server_url=ingress.url,
            stream_key=ingress.stream_key,
        )
        if not updated:
            raise ProvisionError(
                AppErrorCode.E_STREAM_NOT_FOUND,
                "record not found",
                HttpStatusCode.NOT_FOUND,
                errmesg="Stream not found in database. Please contact support.",
            )

        return ProvisionResult(
            ingress_id=ingress.ingress_id,
            url=ingress.url,
            stream_key=ingress.stream_key,
        )
