"""LiveKit helper service.

This module provides a thin wrapper around the `livekit-api` package for the
ingress and room operations used by provisioning and reconciliation.

Based on the official LiveKit Python SDK:
https://github.com/livekit/python-sdks

Usage:
    from app.services.integrations.livekit_service import LivekitService

    livekit = LivekitService.from_config(get_app_environ_config())

    ingresses = await livekit.list_ingress(room_name="user-123")
    await livekit.delete_ingress(ingress_id="IN_abc")

Every call is bounded by ``timeout`` seconds; expiry raises
``asyncio.TimeoutError``. LiveKit API errors surface as ``TwirpError``.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, TypeVar

from livekit import api
from livekit.api.twirp_client import TwirpError, TwirpErrorCode
from loguru import logger

from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

if TYPE_CHECKING:
    from app.app_config import AppEnvironConfig

T = TypeVar("T")


def _is_not_found(exc: Exception) -> bool:
    if isinstance(exc, TwirpError) and exc.code == TwirpErrorCode.NOT_FOUND:
        return True
    return "not_found" in str(exc) or "does not exist" in str(exc)


class LivekitService:
    """Service wrapper for LiveKit server SDK (livekit-api package).

    Constructed explicitly and passed to the components that need it, so
    tests can substitute a double with the same methods.
    """

    def __init__(
        self,
        url: str | None,
        api_key: str | None,
        api_secret: str | None,
        timeout: float = 10.0,
    ) -> None:
        self._url = url
        self._api_key = api_key
        self._api_secret = api_secret
        self._timeout = timeout
        logger.info("LivekitService initialized")

    @classmethod
    def from_config(cls, cfg: AppEnvironConfig) -> LivekitService:
        return cls(
            url=cfg.LIVEKIT_URL,
            api_key=cfg.LIVEKIT_API_KEY,
            api_secret=cfg.LIVEKIT_API_SECRET,
            timeout=cfg.LIVEKIT_API_TIMEOUT_SECONDS,
        )

    @asynccontextmanager
    async def _get_api_client(self) -> AsyncIterator[api.LiveKitAPI]:
        """Internal method to get LiveKit API client.

        This is private to force callers to use specific methods.

        Raises:
            AppError: If the LiveKit URL or credentials are not configured
        """
        if not self._url:
            logger.error("LIVEKIT_URL not configured")
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="RTC provider URL must be configured. Set it in env.local or environment variables.",
                status_code=HttpStatusCode.BAD_REQUEST,
            )
        if not self._api_key or not self._api_secret:
            logger.error("LIVEKIT_API_KEY or LIVEKIT_API_SECRET not configured")
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg="RTC provider credentials must be configured. Set them in env.local or environment variables.",
                status_code=HttpStatusCode.BAD_REQUEST,
            )

        logger.debug(f"Creating LiveKit API client for URL={self._url}")
        async with api.LiveKitAPI(self._url, self._api_key, self._api_secret) as lkapi:
            yield lkapi

    async def _bounded(self, call: Awaitable[T]) -> T:
        return await asyncio.wait_for(call, timeout=self._timeout)

    async def list_ingress(self, room_name: str) -> list[api.IngressInfo]:
        """List ingresses whose room is ``room_name`` (filtered server-side).

        Args:
            room_name: Room name to filter on

        Returns:
            List of IngressInfo objects (may be empty)
        """
        logger.debug(f"Listing ingresses for room={room_name}")
        async with self._get_api_client() as lkapi:
            response = await self._bounded(
                lkapi.ingress.list_ingress(api.ListIngressRequest(room_name=room_name))
            )
            return list(response.items)

    async def delete_ingress(self, ingress_id: str) -> None:
        """Delete an ingress. Deleting an ingress that no longer exists is a no-op.

        Args:
            ingress_id: Ingress ID to delete
        """
        logger.info(f"Deleting LiveKit ingress: ingress_id={ingress_id}")
        async with self._get_api_client() as lkapi:
            try:
                await self._bounded(
                    lkapi.ingress.delete_ingress(api.DeleteIngressRequest(ingress_id=ingress_id))
                )
                logger.debug(f"Successfully deleted LiveKit ingress: ingress_id={ingress_id}")
            except TwirpError as e:
                if _is_not_found(e):
                    logger.info(f"LiveKit ingress already deleted or not found: ingress_id={ingress_id}")
                else:
                    raise

    async def list_rooms(self, names: list[str]) -> list[api.Room]:
        """List rooms by name.

        Args:
            names: Room names to look up

        Returns:
            List of Room objects for the names that exist
        """
        logger.debug(f"Listing rooms: names={names}")
        async with self._get_api_client() as lkapi:
            response = await self._bounded(lkapi.room.list_rooms(api.ListRoomsRequest(names=names)))
            return list(response.rooms)

    async def delete_room(self, room_name: str) -> None:
        """Delete a LiveKit room. Deleting a room that no longer exists is a no-op.

        Args:
            room_name: Room name to delete
        """
        logger.info(f"Deleting LiveKit room: room_name={room_name}")
        async with self._get_api_client() as lkapi:
            try:
                await self._bounded(lkapi.room.delete_room(api.DeleteRoomRequest(room=room_name)))
                logger.debug(f"Successfully deleted LiveKit room: name={room_name}")
            except TwirpError as e:
                if _is_not_found(e):
                    logger.info(f"LiveKit room already deleted or not found: name={room_name}")
                else:
                    raise

    async def create_ingress(self, request: api.CreateIngressRequest) -> api.IngressInfo | None:
        """Create an ingress.

        Args:
            request: CreateIngressRequest with input type, room, participant and encoding options

        Returns:
            IngressInfo with .ingress_id, .url and .stream_key, or None if the server returned nothing

        Example:
            info = await livekit.create_ingress(
                api.CreateIngressRequest(
                    input_type=api.IngressInput.WHIP_INPUT,
                    name="alice",
                    room_name="user-123",
                    participant_identity="user-123",
                    participant_name="alice",
                    bypass_transcoding=True,
                )
            )
        """
        logger.info(
            f"Creating LiveKit ingress: room={request.room_name}, "
            f"input_type={api.IngressInput.Name(request.input_type)}"
        )
        async with self._get_api_client() as lkapi:
            info = await self._bounded(lkapi.ingress.create_ingress(request))
            if info is not None:
                logger.debug(f"Successfully created LiveKit ingress: ingress_id={info.ingress_id}")
            return info


__all__ = ["LivekitService"]
