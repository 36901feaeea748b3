"""Stream record storage operations."""

from beanie.odm.operators.update.general import Set
from loguru import logger

from app.schemas import Stream
from app.schemas.stream import utc_now


class StreamRepository:
    """Keyed access to Stream documents.

    Writes are single-document ``$set`` updates so callers never need a
    read-modify-write round trip.
    """

    async def get_by_user_id(self, user_id: str) -> Stream | None:
        return await Stream.find_one(Stream.user_id == user_id)

    async def get_by_ingress_id(self, ingress_id: str) -> Stream | None:
        return await Stream.find_one(Stream.ingress_id == ingress_id)

    async def update_credentials(
        self,
        user_id: str,
        ingress_id: str,
        server_url: str,
        stream_key: str,
    ) -> bool:
        """Point the user's stream at a new ingress.

        Returns:
            True if a stream document matched ``user_id``, False otherwise
        """
        result = await Stream.find_one(Stream.user_id == user_id).update(
            Set(
                {
                    Stream.ingress_id: ingress_id,
                    Stream.server_url: server_url,
                    Stream.stream_key: stream_key,
                    Stream.updated_at: utc_now(),
                }
            )
        )
        matched = bool(result and result.matched_count)
        logger.debug(f"Stream credentials update for user_id={user_id}: matched={matched}")
        return matched

    async def set_live_by_ingress_id(self, ingress_id: str, is_live: bool) -> bool:
        """Set ``is_live`` on the stream owning ``ingress_id``.

        Returns:
            True if a stream document matched ``ingress_id``, False otherwise
        """
        result = await Stream.find_one(Stream.ingress_id == ingress_id).update(
            Set({Stream.is_live: is_live, Stream.updated_at: utc_now()})
        )
        matched = bool(result and result.matched_count)
        logger.debug(f"Stream is_live={is_live} update for ingress_id={ingress_id}: matched={matched}")
        return matched
