"""Broadcaster ingress endpoints: provision, read and reset stream keys."""

from fastapi import APIRouter, Depends

from app.api.v1.dependency import CurrentUser
from app.api.v1.schemas.stream_ingress import (
    ApiOut,
    CreateIngressIn,
    CreateIngressOut,
    ResetIngressOut,
    StreamKeysOut,
)
from app.app_config import get_app_environ_config
from app.domain.live.ingress.ingress_domain import IngressService
from app.services.api_cache import STREAM_KEYS_NAMESPACE, cw_cache, stream_keys_key_builder

router = APIRouter(prefix="/stream/ingress", tags=["Stream Ingress"])

# Built lazily so importing the router does not open Redis/LiveKit clients
_ingress_service: IngressService | None = None


def get_ingress_service() -> IngressService:
    """Get the singleton IngressService instance."""
    global _ingress_service
    if _ingress_service is None:
        _ingress_service = IngressService.from_config()
    return _ingress_service


@router.post("/create_ingress", response_model=ApiOut[CreateIngressOut])
async def create_ingress(
    params: CreateIngressIn,
    user: CurrentUser,
    service: IngressService = Depends(get_ingress_service),
) -> ApiOut[CreateIngressOut]:
    """Create a fresh ingress for the caller.

    Any ingress or room the caller already owns is deleted first, so the
    previous stream key stops working. The new credentials are stored on the
    caller's stream record and returned.
    """
    result = await service.create_ingress(
        user_id=user.user_id,
        username=user.username,
        input_mode=params.input_mode,
    )

    return ApiOut[CreateIngressOut](
        results=CreateIngressOut(
            ingress_id=result.ingress_id,
            server_url=result.url,
            stream_key=result.stream_key,
        )
    )


@router.get("/get_stream_keys", response_model=ApiOut[StreamKeysOut])
@cw_cache(
    expire_seconds=get_app_environ_config().STREAM_KEYS_CACHE_EXPIRE_SECONDS,
    namespace=STREAM_KEYS_NAMESPACE,
    key_builder=stream_keys_key_builder,
)
async def get_stream_keys(
    user: CurrentUser,
    service: IngressService = Depends(get_ingress_service),
) -> ApiOut[StreamKeysOut]:
    """Get the caller's current server URL and stream key."""
    keys = await service.get_stream_keys(user_id=user.user_id)

    return ApiOut[StreamKeysOut](
        results=StreamKeysOut(
            ingress_id=keys.ingress_id,
            server_url=keys.server_url,
            stream_key=keys.stream_key,
            is_live=keys.is_live,
        )
    )


@router.post("/reset_ingress", response_model=ApiOut[ResetIngressOut])
async def reset_ingress(
    user: CurrentUser,
    service: IngressService = Depends(get_ingress_service),
) -> ApiOut[ResetIngressOut]:
    """Delete the caller's ingresses and room without creating new ones."""
    report = await service.reset_ingress(user_id=user.user_id)

    return ApiOut[ResetIngressOut](
        results=ResetIngressOut(
            deleted_ingress_ids=report.deleted_ingress_ids,
            deleted_rooms=report.deleted_rooms,
            skipped_ingress_ids=report.skipped_ingress_ids,
            skipped_rooms=report.skipped_rooms,
            failed=report.failed,
        )
    )
