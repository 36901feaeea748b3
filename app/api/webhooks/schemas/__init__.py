"""Webhook schemas for external providers."""

from app.api.webhooks.schemas.livekit import (
    IngressEndedEvent,
    IngressInfo,
    IngressStartedEvent,
    LivekitWebhookEvent,
    WebhookEvent,
    parse_webhook_event,
)

__all__ = [
    "IngressEndedEvent",
    "IngressInfo",
    "IngressStartedEvent",
    "LivekitWebhookEvent",
    "WebhookEvent",
    "parse_webhook_event",
]
