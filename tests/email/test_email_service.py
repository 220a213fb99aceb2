"""Tests for email service and templates."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from pledgetrack.email.service import TEMPLATES, BaseEmailProvider, EmailService, OutgoingEmail, SMTPProvider, render
from pledgetrack.email.templates import campaign_ended

CONTEXT = {
    "donor_name": "Sam",
    "participant_name": "Alex",
    "challenge_name": "Running",
    "final_progress": 42,
    "goal_amount": 100,
    "unit": "miles",
    "amount_owed": Decimal("84.00"),
    "donation_url": "https://donate.example.org/run",
}


class TestEmailTemplates:
    def test_campaign_ended_returns_tuple(self):
        subject, html, text = campaign_ended(**CONTEXT)
        assert "Alex" in subject
        assert "$84.00" in html
        assert "$84.00" in text
        assert "42 of 100 miles" in text
        assert "https://donate.example.org/run" in html

    def test_campaign_ended_without_donation_link(self):
        _, html, text = campaign_ended(**{**CONTEXT, "donation_url": None})
        assert "Complete Your Donation" not in html
        assert "donation here" not in text

    def test_names_are_escaped_in_html(self):
        _, html, _ = campaign_ended(**{**CONTEXT, "donor_name": "<script>x</script>"})
        assert "<script>x</script>" not in html
        assert "&lt;script&gt;" in html

    def test_donation_url_is_attribute_escaped(self):
        _, html, _ = campaign_ended(**{**CONTEXT, "donation_url": 'https://x.example/?a=1&b="><script>'})
        assert '"><script>' not in html
        assert 'href="https://x.example/?a=1&amp;b=&quot;&gt;&lt;script&gt;"' in html


class TestRender:
    def test_registered_templates(self):
        assert "campaign_ended" in TEMPLATES

    def test_render_tags_message_with_template_name(self):
        message = render("sam@example.com", "campaign_ended", CONTEXT)
        assert message.to == "sam@example.com"
        assert message.tag == "campaign_ended"
        assert "$84.00" in message.text_body

    def test_unknown_template_raises(self):
        with pytest.raises(ValueError, match="Unknown template"):
            render("sam@example.com", "nope", {})

    def test_smtp_message_has_both_parts(self):
        provider = SMTPProvider(
            host="localhost", port=25, username="", password="",
            from_address="noreply@pledgetrack.org", from_name="PledgeTrack",
        )
        msg = provider.build(render("sam@example.com", "campaign_ended", CONTEXT))
        assert msg["From"] == "PledgeTrack <noreply@pledgetrack.org>"
        assert msg["To"] == "sam@example.com"
        assert [part.get_content_type() for part in msg.iter_parts()] == ["text/plain", "text/html"]


def _service(**kwargs) -> tuple[EmailService, MagicMock]:
    provider = MagicMock(spec=BaseEmailProvider)
    provider.send = AsyncMock(return_value=True)
    return EmailService(provider=provider, rate_limit_max=3, **kwargs), provider


class TestEmailService:
    @pytest.mark.asyncio
    async def test_send_template_renders_and_sends(self):
        service, provider = _service()

        assert await service.send_template("sam@example.com", "campaign_ended", CONTEXT) is True
        (message,) = provider.send.call_args.args
        assert isinstance(message, OutgoingEmail)
        assert "Alex" in message.subject

    @pytest.mark.asyncio
    async def test_rate_limited_recipient_not_sent(self):
        redis = MagicMock()
        redis.incr = AsyncMock(return_value=4)
        redis.expire = AsyncMock()
        service, provider = _service(redis=redis)

        message = OutgoingEmail(to="sam@example.com", subject="s", html_body="<p>h</p>", text_body="t")
        assert await service.send(message) is False
        provider.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_first_send_starts_window(self):
        redis = MagicMock()
        redis.incr = AsyncMock(return_value=1)
        redis.expire = AsyncMock()
        service, provider = _service(redis=redis)

        message = OutgoingEmail(to="sam@example.com", subject="s", html_body="<p>h</p>", text_body="t")
        assert await service.send(message) is True
        redis.expire.assert_awaited_once()
        provider.send.assert_awaited_once_with(message)

    @pytest.mark.asyncio
    async def test_final_statements_bypass_rate_limit(self):
        redis = MagicMock()
        redis.incr = AsyncMock(return_value=99)
        redis.expire = AsyncMock()
        service, provider = _service(redis=redis)

        for _ in range(5):
            assert await service.send_template("sam@example.com", "campaign_ended", CONTEXT) is True
        assert provider.send.await_count == 5
        redis.incr.assert_not_called()
