from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from app.domain.live.ingress.ingress_models import IngressInputMode
from app.shared.api.utils import ApiSuccess

T = TypeVar("T")


class CreateIngressIn(BaseModel):
    """Request to (re)provision the caller's ingress."""

    input_mode: IngressInputMode = Field(
        default=IngressInputMode.RTMP,
        description="Encoder protocol: 'rtmp' (transcoded) or 'whip' (passthrough)",
    )


class CreateIngressOut(BaseModel):
    ingress_id: str
    server_url: str = Field(description="Server URL to paste into the encoder")
    stream_key: str


class StreamKeysOut(BaseModel):
    ingress_id: str | None = None
    server_url: str | None = None
    stream_key: str | None = None
    is_live: bool = False


class ResetIngressOut(BaseModel):
    deleted_ingress_ids: list[str]
    deleted_rooms: list[str]
    skipped_ingress_ids: list[str]
    skipped_rooms: list[str]
    failed: dict[str, str]


class ApiOut(ApiSuccess, Generic[T]):
    """Success envelope around a typed ``results`` payload."""

    results: T  # type: ignore[valid-type]
