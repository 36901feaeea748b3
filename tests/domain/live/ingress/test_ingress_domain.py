"""Tests for the IngressService facade."""

from unittest.mock import AsyncMock

import pytest

from app.domain.live.ingress.ingress_domain import IngressService
from app.domain.live.ingress.ingress_models import IngressInputMode
from app.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


@pytest.fixture
def service(fake_livekit, fake_streams, fake_redis) -> IngressService:
    return IngressService(
        livekit=fake_livekit,
        streams=fake_streams,
        redis_client=fake_redis,
        lock_wait=0,
        on_provisioned=AsyncMock(),
    )


class TestIngressService:
    async def test_create_ingress_then_get_stream_keys(self, service):
        result = await service.create_ingress(
            user_id="u.alice",
            username="alice",
            input_mode=IngressInputMode.WHIP,
        )

        keys = await service.get_stream_keys(user_id="u.alice")

        assert keys.ingress_id == result.ingress_id
        assert keys.server_url == result.url
        assert keys.stream_key == result.stream_key
        assert keys.is_live is False

    async def test_create_ingress_uses_username_as_display_name(self, service, fake_livekit):
        await service.create_ingress(user_id="u.alice", username="Alice", input_mode=IngressInputMode.RTMP)

        request = fake_livekit.create_requests[0]
        assert request.participant_name == "Alice"
        assert request.participant_identity == "u.alice"

    async def test_get_stream_keys_before_provisioning(self, service):
        keys = await service.get_stream_keys(user_id="u.bob")

        assert keys.user_id == "u.bob"
        assert keys.stream_key is None

    async def test_get_stream_keys_unknown_user(self, service):
        with pytest.raises(AppError) as exc_info:
            await service.get_stream_keys(user_id="u.nobody")

        assert exc_info.value.errcode == AppErrorCode.E_STREAM_NOT_FOUND.value
        assert exc_info.value.status_code == HttpStatusCode.NOT_FOUND

    async def test_reset_ingress(self, service, fake_livekit):
        fake_livekit.add_ingress("IN_a1", "u.alice", "u.alice")

        report = await service.reset_ingress(user_id="u.alice")

        assert report.deleted_ingress_ids == ["IN_a1"]
