import asyncio
import json
import httpx
import pytest
from trackly.services.email_service import InviteMailer


def _mailer(handler):
    return InviteMailer(
        api_key="re_test",
        sender="Trackly <noreply@trackly.example>",
        api_url="https://mail.test/emails",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.unit
class TestInviteMailer:
    """Unit tests for best-effort invite email dispatch."""

    @pytest.mark.asyncio
    async def test_not_configured_is_not_sent(self):
        """Test a mailer without key or sender reports not_configured."""
        outcome = await InviteMailer(api_key="", sender="").send_invite(
            "p@example.com", "https://x/join?token=t"
        )

        assert outcome.sent is False
        assert outcome.reason == "not_configured"

    @pytest.mark.asyncio
    async def test_successful_send(self):
        """Test the provider receives sender, recipient and join link."""
        seen = {}

        async def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "email_1"})

        outcome = await _mailer(handler).send_invite("p@example.com", "https://x/join?token=t")

        assert outcome.sent is True
        assert seen["auth"] == "Bearer re_test"
        assert seen["body"]["to"] == ["p@example.com"]
        assert "https://x/join?token=t" in seen["body"]["html"]

    @pytest.mark.asyncio
    async def test_provider_rejection_is_not_sent(self):
        """Test a non-2xx provider answer is reported, not raised."""
        outcome = await _mailer(lambda request: httpx.Response(422)).send_invite(
            "p@example.com", "https://x/join?token=t"
        )

        assert outcome.sent is False
        assert outcome.reason == "http_422"

    @pytest.mark.asyncio
    async def test_transport_error_is_not_sent(self):
        """Test a connection failure is reported, not raised."""
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        outcome = await _mailer(handler).send_invite("p@example.com", "https://x/join?token=t")

        assert outcome.sent is False
        assert outcome.reason == "transport_error"

    @pytest.mark.asyncio
    async def test_slow_provider_yields_to_event_loop(self):
        """Test other coroutines keep running while the provider is slow to answer."""
        async def handler(request):
            await asyncio.sleep(0.3)
            return httpx.Response(200, json={"id": "email_1"})

        ticks = []

        async def ticker():
            for _ in range(5):
                ticks.append(asyncio.get_running_loop().time())
                await asyncio.sleep(0.02)

        outcome, _ = await asyncio.gather(
            _mailer(handler).send_invite("p@example.com", "https://x/join?token=t"),
            ticker(),
        )

        assert outcome.sent is True
        assert len(ticks) == 5
        assert ticks[-1] - ticks[0] < 0.25
