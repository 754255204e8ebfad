"""
Tests for SmsService against an in-process gateway (httpx.MockTransport).
"""
import json

import httpx
import pytest

from emr_svc.core.config import settings
from emr_svc.core.exceptions import ConfigError, SmsDeliveryError
from emr_svc.services.sms_service import SmsService


def _service(handler):
    return SmsService(
        url="https://sms.example.test/api/send",
        api_token="token-123",
        sender_id="KENYAEMR",
        gateway="test-gateway",
        transport=httpx.MockTransport(handler),
    )


class TestSend:

    def test_payload_and_headers(self, sms_service, sms_requests):
        sms_service.send("+254700000001", "Your appointment is tomorrow")

        request = sms_requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://sms.example.test/api/send"
        assert request.headers["api-token"] == "token-123"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {
            "destination": "+254700000001",
            "msg": "Your appointment is tomorrow",
            "sender_id": "KENYAEMR",
            "gateway": "test-gateway",
        }

    def test_accepted_message(self, sms_service):
        result = sms_service.send("+254700000001", "Hello")

        assert result.delivered
        assert result.status_code == 200
        assert result.response == 'SMS sent successfully{"status": "queued"}'

    def test_rejected_message_is_not_an_error(self):
        service = _service(lambda request: httpx.Response(500, text="gateway down"))

        result = service.send("+254700000001", "Hello")

        assert not result.delivered
        assert result.to_dict() == {
            "delivered": False,
            "status_code": 500,
            "response": "Failed to send SMS gateway down",
        }

    def test_unreachable_gateway_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SmsDeliveryError) as exc_info:
            _service(handler).send("+254700000001", "Hello")

        assert exc_info.value.status_code == 502
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_one_request_per_message(self, sms_service, sms_requests):
        sms_service.send("+254700000001", "One")
        sms_service.send("+254700000002", "Two")

        assert len(sms_requests) == 2


class TestConfiguration:

    def test_missing_url_is_a_config_error(self, monkeypatch):
        monkeypatch.setattr(settings, "kenyaemr_sms_url", "")

        with pytest.raises(ConfigError):
            SmsService()

    def test_settings_are_the_defaults(self, monkeypatch):
        monkeypatch.setattr(settings, "kenyaemr_sms_url", "https://gateway.example.test/send")
        monkeypatch.setattr(settings, "kenyaemr_sms_api_token", "from-env")

        service = SmsService()

        assert service.url == "https://gateway.example.test/send"
        assert service.headers["api-token"] == "from-env"
