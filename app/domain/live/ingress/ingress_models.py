"""Ingress domain models."""

from enum import Enum

from livekit import api
from pydantic import BaseModel, Field


class IngressInputMode(str, Enum):
    """How the broadcaster's encoder pushes media.

    - RTMP: push encoder; LiveKit transcodes into the standard presets.
    - WHIP: zero-transcode passthrough; media is forwarded as-is.
    """

    RTMP = "rtmp"
    WHIP = "whip"

    def __str__(self) -> str:
        return self.value

    def to_livekit(self) -> int:
        if self == IngressInputMode.WHIP:
            return api.IngressInput.WHIP_INPUT
        return api.IngressInput.RTMP_INPUT


class ProvisionResult(BaseModel):
    """Credentials of a freshly provisioned ingress."""

    ingress_id: str
    url: str
    stream_key: str


class ReconcileReport(BaseModel):
    """Outcome of sweeping one identity's LiveKit resources."""

    identity: str
    deleted_ingress_ids: list[str] = Field(default_factory=list)
    deleted_rooms: list[str] = Field(default_factory=list)
    # Listed but not owned by the identity
    skipped_ingress_ids: list[str] = Field(default_factory=list)
    skipped_rooms: list[str] = Field(default_factory=list)
    # "ingress:<id>" / "room:<name>" -> error message
    failed: dict[str, str] = Field(default_factory=dict)

    @property
    def clean(self) -> bool:
        return not self.failed


class StreamKeys(BaseModel):
    """What a broadcaster pastes into their encoder."""

    user_id: str
    ingress_id: str | None = None
    server_url: str | None = None
    stream_key: str | None = None
    is_live: bool = False
