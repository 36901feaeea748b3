"""LiveKit webhook event schemas.

Pydantic models for the LiveKit webhook events this service consumes. Field
aliases follow the protobuf JSON mapping (camelCase), which is what LiveKit
sends on the wire.

References:
- https://docs.livekit.io/home/server/webhooks/
- livekit.protocol.webhook.WebhookEvent
- livekit.protocol.ingress.IngressInfo
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class IngressStatus(str, Enum):
    """Ingress endpoint status."""

    ENDPOINT_INACTIVE = "ENDPOINT_INACTIVE"
    ENDPOINT_BUFFERING = "ENDPOINT_BUFFERING"
    ENDPOINT_PUBLISHING = "ENDPOINT_PUBLISHING"
    ENDPOINT_ERROR = "ENDPOINT_ERROR"
    ENDPOINT_COMPLETE = "ENDPOINT_COMPLETE"


class _WebhookModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class IngressState(_WebhookModel):
    """Runtime state of an ingress."""

    status: IngressStatus | None = Field(None, description="Endpoint status")
    error: str | None = Field(None, description="Error message if failed")
    room_id: str | None = Field(None, alias="roomId", description="Room SID")


class IngressInfo(_WebhookModel):
    """Ingress information carried by ingress_* events.

    The stream key is deliberately not modelled so it never reaches logs.
    """

    ingress_id: str = Field("", alias="ingressId", description="Ingress server ID")
    name: str = Field("", description="Ingress name")
    room_name: str = Field("", alias="roomName", description="Room name")
    participant_identity: str = Field(
        "", alias="participantIdentity", description="Participant identity"
    )
    participant_name: str = Field("", alias="participantName", description="Participant name")
    state: IngressState | None = Field(None, description="Ingress state")


class LivekitWebhookEvent(_WebhookModel):
    """Any LiveKit webhook event. Kinds other than ingress_* are kept opaque."""

    event: str = Field(..., description="Event kind")
    id: str = Field("", description="Event UUID")
    created_at: int = Field(0, alias="createdAt", description="Event timestamp (seconds)")
    ingress_info: IngressInfo | None = Field(None, alias="ingressInfo")


class IngressStartedEvent(LivekitWebhookEvent):
    """Ingress started event: media began flowing into the ingress."""

    event: Literal["ingress_started"] = "ingress_started"
    ingress_info: IngressInfo = Field(..., alias="ingressInfo", description="Ingress information")


class IngressEndedEvent(LivekitWebhookEvent):
    """Ingress ended event: the encoder disconnected or the ingress was deleted."""

    event: Literal["ingress_ended"] = "ingress_ended"
    ingress_info: IngressInfo = Field(..., alias="ingressInfo", description="Ingress information")


WebhookEvent = IngressStartedEvent | IngressEndedEvent | LivekitWebhookEvent

_EVENT_MODELS: dict[str, type[LivekitWebhookEvent]] = {
    "ingress_started": IngressStartedEvent,
    "ingress_ended": IngressEndedEvent,
}


def parse_webhook_event(data: dict[str, Any]) -> WebhookEvent:
    """Parse a decoded webhook payload into the most specific event model.

    Raises:
        pydantic.ValidationError: If the payload does not match the event schema
    """
    model = _EVENT_MODELS.get(str(data.get("event") or ""), LivekitWebhookEvent)
    return model.model_validate(data)


__all__ = [
    "IngressEndedEvent",
    "IngressInfo",
    "IngressStartedEvent",
    "IngressState",
    "IngressStatus",
    "LivekitWebhookEvent",
    "WebhookEvent",
    "parse_webhook_event",
]
