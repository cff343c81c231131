"""Tests for the messaging provider adapter."""

from unittest.mock import MagicMock, patch

import httpx

from sentinel.config import Settings
from sentinel.models.enums import NotificationChannel
from sentinel.services.notification_service import MessagingService


def make_settings(**overrides) -> Settings:
    values = {
        "telegram_bot_token": None,
        "twilio_account_sid": None,
        "twilio_auth_token": None,
        "twilio_whatsapp_number": None,
        "resend_api_key": None,
    }
    values.update(overrides)
    return Settings(**values)


class TestTelegram:
    def test_unconfigured_returns_failure(self):
        service = MessagingService(make_settings())
        result = service.send(NotificationChannel.TELEGRAM, "123", "hello")
        assert not result.success
        assert result.error == "Telegram not configured"

    def test_sends_through_bot_api(self):
        http = MagicMock()
        http.post.return_value.json.return_value = {"ok": True, "result": {"message_id": 42}}
        service = MessagingService(make_settings(telegram_bot_token="bot-token"), http_client=http)

        result = service.send("telegram", "123", "hello")

        assert result.success
        assert result.provider_message_id == "42"
        url = http.post.call_args.args[0]
        assert url.endswith("/botbot-token/sendMessage")
        assert http.post.call_args.kwargs["json"] == {"chat_id": "123", "text": "hello"}

    def test_api_rejection(self):
        http = MagicMock()
        http.post.return_value.json.return_value = {"ok": False, "description": "chat not found"}
        service = MessagingService(make_settings(telegram_bot_token="t"), http_client=http)

        result = service.send_telegram("999", "hello")

        assert not result.success
        assert result.error == "chat not found"

    def test_network_error(self):
        http = MagicMock()
        http.post.side_effect = httpx.ConnectError("boom")
        service = MessagingService(make_settings(telegram_bot_token="t"), http_client=http)

        result = service.send_telegram("999", "hello")

        assert not result.success
        assert "boom" in result.error


class TestWhatsApp:
    def twilio_settings(self, **overrides):
        return make_settings(
            twilio_account_sid="AC123",
            twilio_auth_token="secret",
            twilio_whatsapp_number="+15550000000",
            **overrides,
        )

    def test_sends_via_twilio(self):
        with patch("sentinel.services.notification_service.Client") as mock_client:
            mock_client.return_value.messages.create.return_value.sid = "SM1"
            service = MessagingService(self.twilio_settings())

            result = service.send(NotificationChannel.WHATSAPP, "+966500000000", "hi")

        assert result.success
        assert result.provider_message_id == "SM1"
        mock_client.return_value.messages.create.assert_called_once_with(
            body="hi", from_="whatsapp:+15550000000", to="whatsapp:+966500000000"
        )

    def test_disabled_flag(self):
        with patch("sentinel.services.notification_service.Client"):
            service = MessagingService(self.twilio_settings(twilio_whatsapp_enabled=False))
            result = service.send_whatsapp("+966500000000", "hi")
        assert not result.success
        assert result.error == "WhatsApp disabled"

    def test_transport_error_returns_failure(self):
        with patch("sentinel.services.notification_service.Client") as mock_client:
            mock_client.return_value.messages.create.side_effect = ConnectionError("down")
            service = MessagingService(self.twilio_settings())
            result = service.send_whatsapp("+966500000000", "hi")
        assert not result.success
        assert result.error == "down"

    def test_unconfigured(self):
        result = MessagingService(make_settings()).send_whatsapp("+966500000000", "hi")
        assert not result.success


class TestEmail:
    def test_sends_via_resend(self):
        with patch("sentinel.services.notification_service.resend.Emails.send") as mock_send:
            mock_send.return_value = {"id": "em-1"}
            service = MessagingService(make_settings(resend_api_key="re_test"))

            result = service.send(NotificationChannel.EMAIL, "a@example.com", "Subject line\nBody")

        assert result.success
        assert result.provider_message_id == "em-1"
        params = mock_send.call_args.args[0]
        assert params["to"] == ["a@example.com"]
        assert params["subject"] == "Subject line"

    def test_transport_error_returns_failure(self):
        with patch("sentinel.services.notification_service.resend.Emails.send") as mock_send:
            mock_send.side_effect = TimeoutError("timed out")
            service = MessagingService(make_settings(resend_api_key="re_test"))
            result = service.send_email("a@example.com", "hi")
        assert not result.success
        assert result.error == "timed out"

    def test_disabled_without_api_key(self):
        result = MessagingService(make_settings()).send_email("a@example.com", "hi")
        assert not result.success


def test_in_app_is_not_an_external_channel():
    """In-app delivery is written by the sweeps, never sent through a provider."""
    result = MessagingService(make_settings()).send(NotificationChannel.IN_APP, "user", "hi")
    assert not result.success
