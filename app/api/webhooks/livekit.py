"""LiveKit webhook endpoint for ingress lifecycle events.

LiveKit posts every event of the deployment here, signed with a JWT in the
``Authorization`` header (see ``LivekitWebhookVerifier``). Only two kinds
change state:

- ingress_started: the broadcaster's encoder connected, stream goes live
- ingress_ended: the encoder disconnected, stream goes offline

Other kinds are acknowledged with 200 and ignored. Responses are plain text
because LiveKit only looks at the status code; any 5xx is retried.

References:
- https://docs.livekit.io/home/server/webhooks/
- Pydantic schemas: app.api.webhooks.schemas.livekit
"""

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import PlainTextResponse

from app.app_config import get_app_environ_config
from app.domain.live.stream._streams import StreamRepository
from app.domain.live.stream._sync import WebhookStateSynchronizer
from app.services.api_cache import invalidate_stream_keys
from app.services.integrations.livekit_webhook import LivekitWebhookVerifier
from app.utils.app_errors import HttpStatusCode

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])

_RESPONSE_TEXT = {
    HttpStatusCode.OK: "OK",
    HttpStatusCode.BAD_REQUEST: "Error occurred -- no authorization header",
    HttpStatusCode.INTERNAL_SERVER_ERROR: "Error occurred",
}

_synchronizer: WebhookStateSynchronizer | None = None


def get_stream_synchronizer() -> WebhookStateSynchronizer:
    """Get the singleton WebhookStateSynchronizer instance."""
    global _synchronizer
    if _synchronizer is None:
        cfg = get_app_environ_config()
        _synchronizer = WebhookStateSynchronizer(
            verifier=LivekitWebhookVerifier(cfg.LIVEKIT_API_KEY, cfg.LIVEKIT_API_SECRET),
            streams=StreamRepository(),
            on_change=invalidate_stream_keys,
        )
    return _synchronizer


@router.post("/livekit", response_class=PlainTextResponse)
async def livekit_webhook(
    request: Request,
    authorization: str | None = Header(None),
    synchronizer: WebhookStateSynchronizer = Depends(get_stream_synchronizer),
) -> PlainTextResponse:
    """Receive and apply a LiveKit webhook event."""
    body = await request.body()
    status = await synchronizer.handle(body, authorization)
    return PlainTextResponse(_RESPONSE_TEXT.get(status, "Error occurred"), status_code=int(status))
