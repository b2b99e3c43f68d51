from unittest.mock import MagicMock, Mock, patch

from relay.services.twilio_service import TwilioService, strip_whatsapp_prefix


class TestStripWhatsappPrefix:
    def test_strips_prefix(self):
        assert strip_whatsapp_prefix("whatsapp:+15551234567") == "+15551234567"

    def test_plain_number_unchanged(self):
        assert strip_whatsapp_prefix("+15551234567") == "+15551234567"


class TestSendMessage:
    def test_returns_false_without_credentials(self):
        assert TwilioService("", "").send_message("whatsapp:+1", "whatsapp:+2", "hi") is False

    @patch("relay.services.twilio_service.httpx.Client")
    def test_posts_message(self, mock_client_class):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.return_value = Mock(status_code=201, text="{}")

        sent = TwilioService("AC123", "secret").send_message(
            "whatsapp:+1000", "whatsapp:+1555", "hello", media_url="https://x/reports/r.png"
        )

        assert sent is True
        call_args = mock_client.post.call_args
        assert call_args[0][0] == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
        assert call_args[1]["auth"] == ("AC123", "secret")
        assert call_args[1]["data"] == {
            "From": "whatsapp:+1000",
            "To": "whatsapp:+1555",
            "Body": "hello",
            "MediaUrl": "https://x/reports/r.png",
        }

    @patch("relay.services.twilio_service.httpx.Client")
    def test_error_status_returns_false(self, mock_client_class):
        mock_client = MagicMock()
        mock_client_class.return_value.__enter__.return_value = mock_client
        mock_client.post.return_value = Mock(status_code=400, text="bad request")

        assert TwilioService("AC123", "secret").send_message("a", "b", "hi") is False

    @patch("relay.services.twilio_service.httpx.Client")
    def test_exception_returns_false(self, mock_client_class):
        mock_client_class.return_value.__enter__.side_effect = Exception("network down")

        assert TwilioService("AC123", "secret").send_message("a", "b", "hi") is False
