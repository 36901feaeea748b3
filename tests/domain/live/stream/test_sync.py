"""Tests for WebhookStateSynchronizer status codes and is_live transitions."""

import json
from unittest.mock import AsyncMock

import pytest

from app.api.webhooks.schemas.livekit import parse_webhook_event
from app.domain.live.stream._sync import WebhookStateSynchronizer
from app.utils.app_errors import HttpStatusCode
from tests.fixtures.fakes import FakeWebhookVerifier


def ingress_event(event: str, ingress_id: str, room_name: str = "u.alice") -> str:
    return json.dumps(
        {
            "event": event,
            "id": "EV_1",
            "createdAt": "1700000000",
            "ingressInfo": {
                "ingressId": ingress_id,
                "roomName": room_name,
                "participantIdentity": room_name,
                "state": {"status": "ENDPOINT_PUBLISHING"},
            },
        }
    )


@pytest.fixture
def verifier() -> FakeWebhookVerifier:
    return FakeWebhookVerifier()


@pytest.fixture
def synchronizer(verifier, fake_streams) -> WebhookStateSynchronizer:
    fake_streams.streams["u.alice"].ingress_id = "IN_a1"
    return WebhookStateSynchronizer(verifier=verifier, streams=fake_streams)


class TestHandle:
    @pytest.mark.parametrize("authorization", [None, ""])
    async def test_missing_authorization_is_400(self, synchronizer, verifier, fake_streams, authorization):
        status = await synchronizer.handle(ingress_event("ingress_started", "IN_a1"), authorization)

        assert status == HttpStatusCode.BAD_REQUEST
        assert verifier.calls == []
        assert fake_streams.streams["u.alice"].is_live is False

    async def test_bad_signature_is_500(self, synchronizer, fake_streams):
        status = await synchronizer.handle(ingress_event("ingress_started", "IN_a1"), "forged")

        assert status == HttpStatusCode.INTERNAL_SERVER_ERROR
        assert fake_streams.live_updates == []

    async def test_malformed_body_is_500(self, synchronizer, fake_streams):
        status = await synchronizer.handle(b"{not json", "valid-token")

        assert status == HttpStatusCode.INTERNAL_SERVER_ERROR
        assert fake_streams.live_updates == []

    async def test_non_utf8_body_is_500(self, synchronizer):
        status = await synchronizer.handle(b"\xff\xfe", "valid-token")

        assert status == HttpStatusCode.INTERNAL_SERVER_ERROR

    async def test_ingress_started_sets_live(self, synchronizer, fake_streams):
        status = await synchronizer.handle(ingress_event("ingress_started", "IN_a1").encode(), "valid-token")

        assert status == HttpStatusCode.OK
        assert fake_streams.streams["u.alice"].is_live is True

    async def test_ingress_ended_clears_live(self, synchronizer, fake_streams):
        fake_streams.streams["u.alice"].is_live = True

        status = await synchronizer.handle(ingress_event("ingress_ended", "IN_a1"), "valid-token")

        assert status == HttpStatusCode.OK
        assert fake_streams.streams["u.alice"].is_live is False

    async def test_redelivery_is_idempotent(self, synchronizer, fake_streams):
        body = ingress_event("ingress_started", "IN_a1")

        first = await synchronizer.handle(body, "valid-token")
        second = await synchronizer.handle(body, "valid-token")

        assert first == second == HttpStatusCode.OK
        assert fake_streams.streams["u.alice"].is_live is True

    async def test_unknown_ingress_is_200_and_changes_nothing(self, synchronizer, fake_streams):
        status = await synchronizer.handle(ingress_event("ingress_started", "IN_stale"), "valid-token")

        assert status == HttpStatusCode.OK
        assert all(not s.is_live for s in fake_streams.streams.values())

    async def test_other_event_kinds_are_ignored(self, synchronizer, fake_streams):
        body = json.dumps({"event": "room_started", "id": "EV_2", "room": {"name": "u.alice"}})

        status = await synchronizer.handle(body, "valid-token")

        assert status == HttpStatusCode.OK
        assert fake_streams.live_updates == []

    async def test_storage_failure_is_500(self, synchronizer, fake_streams):
        async def broken(ingress_id, is_live):
            raise RuntimeError("mongo down")

        fake_streams.set_live_by_ingress_id = broken

        status = await synchronizer.handle(ingress_event("ingress_started", "IN_a1"), "valid-token")

        assert status == HttpStatusCode.INTERNAL_SERVER_ERROR


class TestDispatch:
    async def test_returns_none_for_ignored_kinds(self, synchronizer):
        event = parse_webhook_event({"event": "participant_joined"})

        assert await synchronizer.dispatch(event) is None

    async def test_returns_match_flag(self, synchronizer):
        hit = parse_webhook_event(json.loads(ingress_event("ingress_ended", "IN_a1")))
        miss = parse_webhook_event(json.loads(ingress_event("ingress_ended", "IN_zz")))

        assert await synchronizer.dispatch(hit) is True
        assert await synchronizer.dispatch(miss) is False


class TestOnChange:
    @pytest.fixture
    def on_change(self) -> AsyncMock:
        return AsyncMock()

    @pytest.fixture
    def notifying_synchronizer(self, verifier, fake_streams, on_change) -> WebhookStateSynchronizer:
        fake_streams.streams["u.alice"].ingress_id = "IN_a1"
        return WebhookStateSynchronizer(verifier=verifier, streams=fake_streams, on_change=on_change)

    @pytest.mark.parametrize("event", ["ingress_started", "ingress_ended"])
    async def test_matched_transition_notifies_owner(self, notifying_synchronizer, on_change, event):
        status = await notifying_synchronizer.handle(ingress_event(event, "IN_a1"), "valid-token")

        assert status == HttpStatusCode.OK
        on_change.assert_awaited_once_with("u.alice")

    async def test_unknown_ingress_does_not_notify(self, notifying_synchronizer, on_change):
        await notifying_synchronizer.handle(ingress_event("ingress_started", "IN_stale"), "valid-token")

        on_change.assert_not_awaited()

    async def test_hook_failure_still_returns_200(self, notifying_synchronizer, on_change, fake_streams):
        on_change.side_effect = RuntimeError("cache down")

        status = await notifying_synchronizer.handle(ingress_event("ingress_started", "IN_a1"), "valid-token")

        assert status == HttpStatusCode.OK
        assert fake_streams.streams["u.alice"].is_live is True
