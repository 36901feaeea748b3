"""LiveKit webhook verification.

LiveKit signs every webhook with a JWT in the ``Authorization`` header. The
token is issued with this deployment's API key/secret and carries the SHA-256
of the body. Verification is delegated to ``livekit.api.WebhookReceiver``;
this module only adapts it to the ``WebhookVerifier`` interface so the
synchronizer can be tested with a double.
"""

from typing import Protocol

from google.protobuf.json_format import MessageToDict
from livekit import api
from loguru import logger
from pydantic import ValidationError

from app.api.webhooks.schemas.livekit import WebhookEvent, parse_webhook_event


class WebhookAuthError(Exception):
    """The webhook could not be authenticated or its body could not be parsed."""


class WebhookVerifier(Protocol):
    def verify_and_parse(self, body: str, authorization: str) -> WebhookEvent:
        """Authenticate ``body`` against ``authorization`` and return the parsed event.

        Raises:
            WebhookAuthError: On a bad signature or a malformed body
        """
        ...


class LivekitWebhookVerifier:
    """WebhookVerifier backed by the LiveKit SDK's WebhookReceiver."""

    def __init__(self, api_key: str | None, api_secret: str | None) -> None:
        self._receiver: api.WebhookReceiver | None = None
        if api_key and api_secret:
            self._receiver = api.WebhookReceiver(api.TokenVerifier(api_key, api_secret))
        else:
            logger.warning("LIVEKIT_API_KEY or LIVEKIT_API_SECRET not configured, webhooks will be rejected")

    def verify_and_parse(self, body: str, authorization: str) -> WebhookEvent:
        if self._receiver is None:
            raise WebhookAuthError("Webhook verifier is not configured")

        try:
            proto_event = self._receiver.receive(body, authorization)
        except Exception as exc:
            raise WebhookAuthError(f"Invalid webhook signature or body: {exc}") from exc

        try:
            return parse_webhook_event(MessageToDict(proto_event))
        except ValidationError as exc:
            raise WebhookAuthError(f"Failed to parse webhook event: {exc}") from exc


__all__ = ["LivekitWebhookVerifier", "WebhookAuthError", "WebhookVerifier"]
