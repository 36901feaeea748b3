"""Keeps Stream.is_live in step with LiveKit ingress webhooks."""

from collections.abc import Awaitable, Callable

from loguru import logger

from app.api.webhooks.schemas.livekit import (
    IngressEndedEvent,
    IngressStartedEvent,
    WebhookEvent,
)
from app.services.integrations.livekit_webhook import WebhookAuthError, WebhookVerifier
from app.utils.app_errors import HttpStatusCode

from ._streams import StreamRepository


class WebhookStateSynchronizer:
    """Authenticates LiveKit webhooks and applies the is-live transition.

    Status codes:
    - 400: no Authorization header
    - 500: bad signature, malformed body or unexpected failure (LiveKit retries on 5xx)
    - 200: everything else, including ignored kinds and unknown ingress ids

    ``ingress_started`` sets ``is_live = True`` and ``ingress_ended`` sets it to
    False. Both are plain assignments, so redelivered events are harmless.
    After a matched transition ``on_change(user_id)`` is awaited so cached
    views of the stream can be dropped.
    """

    def __init__(
        self,
        verifier: WebhookVerifier,
        streams: StreamRepository,
        on_change: Callable[[str], Awaitable[None]] | None = None,
    ) -> None:
        self.verifier = verifier
        self.streams = streams
        self.on_change = on_change

    async def handle(self, raw_body: bytes | str, authorization: str | None) -> HttpStatusCode:
        if not authorization:
            logger.error("LiveKit webhook: no authorization header")
            return HttpStatusCode.BAD_REQUEST

        try:
            body = raw_body.decode("utf-8") if isinstance(raw_body, bytes) else raw_body
            event = self.verifier.verify_and_parse(body, authorization)
        except (WebhookAuthError, UnicodeDecodeError) as exc:
            logger.error(f"LiveKit webhook rejected: {exc}")
            return HttpStatusCode.INTERNAL_SERVER_ERROR

        try:
            await self.dispatch(event)
        except Exception:
            logger.exception(f"Error processing LiveKit webhook: event={event.event} id={event.id}")
            return HttpStatusCode.INTERNAL_SERVER_ERROR

        return HttpStatusCode.OK

    async def dispatch(self, event: WebhookEvent) -> bool | None:
        """Apply ``event``.

        Returns:
            True/False when an ingress event matched/missed a stream, None for ignored kinds
        """
        if isinstance(event, IngressStartedEvent):
            is_live = True
        elif isinstance(event, IngressEndedEvent):
            is_live = False
        else:
            logger.debug(f"Ignoring LiveKit webhook event: {event.event}")
            return None

        info = event.ingress_info
        logger.info(
            f"LiveKit webhook {event.event}: ingress_id={info.ingress_id} room={info.room_name} "
            f"participant={info.participant_identity}"
        )

        matched = await self.streams.set_live_by_ingress_id(info.ingress_id, is_live)
        if matched:
            logger.info(f"Stream for ingress {info.ingress_id} set to {'LIVE' if is_live else 'OFFLINE'}")
            await self._notify(info.ingress_id)
        else:
            # Usually the ingress was replaced by a newer provisioning before this event arrived
            logger.warning(
                f"No stream found for ingress {info.ingress_id} on {event.event} "
                f"(room={info.room_name}), ignoring"
            )
        return matched

    async def _notify(self, ingress_id: str) -> None:
        if self.on_change is None:
            return
        stream = await self.streams.get_by_ingress_id(ingress_id)
        if stream is None:
            return
        try:
            await self.on_change(stream.user_id)
        except Exception:
            logger.exception(f"on_change hook failed for {stream.user_id}")
