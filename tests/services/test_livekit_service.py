"""Tests for LivekitService against a patched LiveKitAPI client."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from livekit import api
from livekit.api.twirp_client import TwirpError, TwirpErrorCode

from app.services.integrations.livekit_service import LivekitService
from app.utils.app_errors import AppError


@pytest.fixture
def lkapi() -> MagicMock:
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    client.ingress.list_ingress = AsyncMock()
    client.ingress.delete_ingress = AsyncMock()
    client.ingress.create_ingress = AsyncMock()
    client.room.list_rooms = AsyncMock()
    client.room.delete_room = AsyncMock()
    return client


@pytest.fixture
def service(lkapi):
    with patch("app.services.integrations.livekit_service.api.LiveKitAPI", return_value=lkapi):
        yield LivekitService("wss://livekit.example.com", "key", "secret", timeout=0.2)


class TestLivekitService:
    async def test_list_ingress_filters_by_room(self, service, lkapi):
        lkapi.ingress.list_ingress.return_value = api.ListIngressResponse(
            items=[api.IngressInfo(ingress_id="IN_1", room_name="u.alice")]
        )

        items = await service.list_ingress(room_name="u.alice")

        assert [i.ingress_id for i in items] == ["IN_1"]
        request = lkapi.ingress.list_ingress.call_args.args[0]
        assert request.room_name == "u.alice"

    async def test_list_rooms(self, service, lkapi):
        lkapi.room.list_rooms.return_value = api.ListRoomsResponse(rooms=[api.Room(name="u.alice")])

        rooms = await service.list_rooms(names=["u.alice"])

        assert [r.name for r in rooms] == ["u.alice"]
        assert list(lkapi.room.list_rooms.call_args.args[0].names) == ["u.alice"]

    async def test_delete_ingress_not_found_is_noop(self, service, lkapi):
        lkapi.ingress.delete_ingress.side_effect = TwirpError(TwirpErrorCode.NOT_FOUND, "gone", status=404)

        await service.delete_ingress(ingress_id="IN_1")

    async def test_delete_room_other_errors_propagate(self, service, lkapi):
        lkapi.room.delete_room.side_effect = TwirpError(TwirpErrorCode.INTERNAL, "boom", status=500)

        with pytest.raises(TwirpError):
            await service.delete_room(room_name="u.alice")

    async def test_calls_are_bounded_by_timeout(self, service, lkapi):
        async def slow(_request):
            await asyncio.sleep(5)

        lkapi.ingress.create_ingress.side_effect = slow

        with pytest.raises(asyncio.TimeoutError):
            await service.create_ingress(api.CreateIngressRequest(room_name="u.alice"))

    async def test_create_ingress_returns_info(self, service, lkapi):
        lkapi.ingress.create_ingress.return_value = api.IngressInfo(
            ingress_id="IN_1", url="rtmp://x", stream_key="sk"
        )

        info = await service.create_ingress(api.CreateIngressRequest(room_name="u.alice"))

        assert info is not None and info.stream_key == "sk"

    async def test_unconfigured_service_raises(self):
        service = LivekitService(None, None, None)

        with pytest.raises(AppError):
            await service.list_ingress(room_name="u.alice")
