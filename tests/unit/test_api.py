"""
Tests for the HTTP surface (standup_bot/api/main.py, standup_bot/api/messages.py).

Covers:
  - POST /api/messages: routing, validation errors, platform errors
  - GET /health: component statuses and 503 when unhealthy
  - GET /: service info
"""

import json
import random
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from standup_bot import __version__
from standup_bot.api.main import (
    ComponentStatus,
    _check_debounce_store,
    _check_platform,
    _overall_status,
    app,
)
from standup_bot.api.messages import get_orchestrator, set_orchestrator
from standup_bot.config.settings import AppSettings
from standup_bot.debounce.debouncer import RequestDebouncer
from standup_bot.integrations.platform import MessagingPlatform, RosterFetchError, SendReplyError
from standup_bot.integrations.reply_formatter import ReplyFormatter
from standup_bot.models.ordering import Participant
from standup_bot.ordering.orchestrator import StandupOrderOrchestrator
from standup_bot.utils.validation import MAX_ACTIVITY_PAYLOAD_BYTES, MAX_REQUEST_TEXT_LENGTH


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def platform():
    fake = AsyncMock(spec=MessagingPlatform)
    fake.fetch_roster.return_value = [
        Participant(id="29:1", name="Ana Lopez", given_name="Ana", email="ana@contoso.com"),
        Participant(id="29:2", name="Ben Ode", given_name="Ben", email="ben@contoso.com"),
    ]
    fake.fetch_meeting_presence.return_value = False
    return fake


@pytest.fixture
def orchestrator(platform):
    orchestrator = StandupOrderOrchestrator(
        platform=platform,
        debouncer=RequestDebouncer(),
        formatter=ReplyFormatter(override_domain="contoso.com"),
        override_domain="contoso.com",
        send_acknowledgement=False,
        rng=random.Random(0),
    )
    set_orchestrator(orchestrator)
    yield orchestrator
    set_orchestrator(None)


@pytest.fixture
async def client():
    """Async test client for the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def _activity(text="<at>Standup</at>", **overrides) -> dict:
    data = {
        "type": "message",
        "id": "act-1",
        "text": text,
        "serviceUrl": "https://smba.example.net/amer/",
        "from": {"id": "29:1", "name": "Ana Lopez"},
        "recipient": {"id": "28:bot", "name": "Standup"},
        "conversation": {"id": "19:meeting@thread.v2", "tenantId": "tenant-1"},
        "channelData": {"meeting": {"id": "meeting-1"}},
        "entities": [
            {"type": "mention", "mentioned": {"id": "28:bot", "name": "Standup"}, "text": "<at>Standup</at>"}
        ],
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# POST /api/messages
# ---------------------------------------------------------------------------


class TestMessagesEndpoint:
    """Tests for the messaging endpoint."""

    @pytest.mark.asyncio
    async def test_order_request(self, client, orchestrator, platform):
        resp = await client.post("/api/messages", json=_activity())

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "processed"
        assert body["reply_kind"] == "order"
        assert body["processed_in_ms"] >= 0

        conversation, payload = platform.send_reply.await_args.args
        assert conversation.conversation_id == "19:meeting@thread.v2"
        assert payload.text.startswith("<at>Ana Lopez</at>, here is the random order")

    @pytest.mark.asyncio
    async def test_override_marks_present(self, client, orchestrator, platform):
        await client.post("/api/messages", json=_activity("<at>Standup</at> override:ben"))
        payload = platform.send_reply.await_args.args[1]
        assert payload.ordered_names[0].display_name == "Ben"
        assert payload.ordered_names[0].present is True
        assert "**Ben**" in payload.text

    @pytest.mark.asyncio
    async def test_help_request(self, client, orchestrator, platform):
        resp = await client.post("/api/messages", json=_activity("<at>Standup</at> help"))
        assert resp.json()["reply_kind"] == "help"
        platform.fetch_roster.assert_not_called()

    @pytest.mark.asyncio
    async def test_second_request_debounced(self, client, orchestrator, platform):
        await client.post("/api/messages", json=_activity())
        resp = await client.post(
            "/api/messages",
            json=_activity(**{"from": {"id": "29:2", "name": "Ben Ode"}}),
        )

        assert resp.json()["reply_kind"] == "debounced"
        payload = platform.send_reply.await_args.args[1]
        assert payload.text == "Sorry <at>Ben Ode</at>, Ana Lopez beat you to it."

    @pytest.mark.asyncio
    async def test_non_message_ignored(self, client, orchestrator, platform):
        resp = await client.post("/api/messages", json=_activity(type="conversationUpdate"))
        assert resp.status_code == 200
        assert resp.json()["status"] == "ignored"
        platform.send_reply.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_json(self, client, orchestrator):
        resp = await client.post(
            "/api/messages",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_fields(self, client, orchestrator):
        resp = await client.post("/api/messages", json={"type": "message"})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_payload_too_large(self, client, orchestrator):
        resp = await client.post(
            "/api/messages",
            content=b"x" * (MAX_ACTIVITY_PAYLOAD_BYTES + 1),
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 413

    @pytest.mark.asyncio
    async def test_text_too_long(self, client, orchestrator, platform):
        resp = await client.post(
            "/api/messages",
            json=_activity("x" * (MAX_REQUEST_TEXT_LENGTH + 1)),
        )
        assert resp.status_code == 413
        platform.send_reply.assert_not_called()

    @pytest.mark.asyncio
    async def test_roster_failure_is_bad_gateway(self, client, orchestrator, platform):
        platform.fetch_roster.side_effect = RosterFetchError("down", status_code=503)
        resp = await client.post("/api/messages", json=_activity())
        assert resp.status_code == 502
        assert "RosterFetchError" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_send_failure_is_bad_gateway(self, client, orchestrator, platform):
        platform.send_reply.side_effect = SendReplyError("down")
        resp = await client.post("/api/messages", json=_activity())
        assert resp.status_code == 502

    @pytest.mark.asyncio
    async def test_orchestrator_not_initialized(self):
        set_orchestrator(None)
        with pytest.raises(RuntimeError):
            get_orchestrator()


# ---------------------------------------------------------------------------
# Health and info
# ---------------------------------------------------------------------------


class TestOverallStatus:
    """Tests for _overall_status."""

    def test_all_healthy(self):
        assert _overall_status({"a": ComponentStatus(status="healthy")}) == "healthy"

    def test_degraded(self):
        components = {"a": ComponentStatus(status="healthy"), "b": ComponentStatus(status="degraded")}
        assert _overall_status(components) == "degraded"

    def test_unhealthy_takes_priority(self):
        components = {"a": ComponentStatus(status="degraded"), "b": ComponentStatus(status="unhealthy")}
        assert _overall_status(components) == "unhealthy"


class TestComponentChecks:
    """Tests for individual component checks."""

    @pytest.mark.asyncio
    async def test_store_not_initialized(self):
        set_orchestrator(None)
        result = await _check_debounce_store()
        assert result.status == "unhealthy"
        assert "not initialized" in result.message

    @pytest.mark.asyncio
    async def test_store_healthy(self, orchestrator):
        result = await _check_debounce_store()
        assert result.status == "healthy"
        assert result.message == "MemoryDebounceStore"

    @pytest.mark.asyncio
    async def test_store_unhealthy(self, orchestrator):
        with patch.object(orchestrator.debouncer.store, "health_check", AsyncMock(return_value=False)):
            result = await _check_debounce_store()
        assert result.status == "unhealthy"

    @pytest.mark.asyncio
    async def test_platform_without_token_degraded(self, orchestrator):
        settings = AppSettings(_env_file=None, bot_access_token=None)
        with patch("standup_bot.api.main.get_settings", return_value=settings):
            result = await _check_platform()
        assert result.status == "degraded"

    @pytest.mark.asyncio
    async def test_platform_with_token_healthy(self, orchestrator):
        settings = AppSettings(_env_file=None, bot_access_token="abc")
        with patch("standup_bot.api.main.get_settings", return_value=settings):
            result = await _check_platform()
        assert result.status == "healthy"


class TestHealthEndpoint:
    """Tests for GET /health."""

    @pytest.mark.asyncio
    async def test_components_present(self, client, orchestrator):
        resp = await client.get("/health")
        body = resp.json()
        assert set(body["components"]) == {"debounce_store", "platform"}
        assert body["service"] == "standup-order-bot"
        assert body["version"] == __version__
        assert body["timestamp"].endswith("Z")

    @pytest.mark.asyncio
    async def test_503_when_not_initialized(self, client):
        set_orchestrator(None)
        resp = await client.get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_request_id_header(self, client, orchestrator):
        resp = await client.get("/health")
        assert resp.headers["X-Request-ID"].startswith("req-")


class TestRootEndpoint:
    """Tests for GET /."""

    @pytest.mark.asyncio
    async def test_info(self, client):
        resp = await client.get("/")
        assert resp.status_code == 200
        body = resp.json()
        assert body["name"] == "Standup Order Bot"
        assert body["messaging_endpoint"] == "/api/messages"
