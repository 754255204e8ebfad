"""
Service for sending SMS notifications through the KenyaEMR SMS gateway.

One POST per message, no retries: a non-200 answer comes back as an
undelivered result, an unreachable gateway raises SmsDeliveryError.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from emr_svc.core.config import settings
from emr_svc.core.exceptions import ConfigError, SmsDeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SmsResult:
    """Outcome of one send: gateway status code and a readable response."""

    delivered: bool
    status_code: int
    response: str

    def to_dict(self) -> Dict[str, Any]:
        return {"delivered": self.delivered, "status_code": self.status_code, "response": self.response}


class SmsService:
    """Service for sending SMS messages."""

    def __init__(
        self,
        url: Optional[str] = None,
        api_token: Optional[str] = None,
        sender_id: Optional[str] = None,
        gateway: Optional[str] = None,
        timeout: Optional[int] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the SMS service.

        Args:
            url: Gateway endpoint. If not provided, loads from KENYAEMR_SMS_URL.
            api_token: Sent in the api-token header. Defaults to KENYAEMR_SMS_API_TOKEN.
            sender_id: Defaults to KENYAEMR_SMS_SENDER_ID.
            gateway: Defaults to KENYAEMR_SMS_GATEWAY.
            timeout: Request timeout in seconds. Defaults to KENYAEMR_SMS_TIMEOUT.
            transport: Optional httpx transport, used by tests to stub the gateway.

        Raises:
            ConfigError: If no gateway URL is configured.
        """
        self.url = url or settings.kenyaemr_sms_url
        self.api_token = api_token if api_token is not None else settings.kenyaemr_sms_api_token
        self.sender_id = sender_id if sender_id is not None else settings.kenyaemr_sms_sender_id
        self.gateway = gateway if gateway is not None else settings.kenyaemr_sms_gateway
        self.timeout = timeout or settings.kenyaemr_sms_timeout
        self._transport = transport

        if not self.url:
            raise ConfigError(
                "KENYAEMR_SMS_URL environment variable is required. "
                "Set it or pass the url parameter."
            )

        self.headers = {
            "api-token": self.api_token,
            "Content-Type": "application/json",
        }

    def send(self, recipient: str, message: str) -> SmsResult:
        """
        Send one SMS.

        Returns:
            SmsResult: delivered is True only for an HTTP 200 answer.

        Raises:
            SmsDeliveryError: If the gateway cannot be reached.
        """
        payload = {
            "destination": recipient,
            "msg": message,
            "sender_id": self.sender_id,
            "gateway": self.gateway,
        }

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url, headers=self.headers, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"SMS gateway request failed: {e}")
            raise SmsDeliveryError(f"Failed to send SMS {e}", recipient=recipient) from e

        if response.status_code == 200:
            logger.info("SMS sent successfully", extra={"status_code": response.status_code})
            return SmsResult(True, response.status_code, f"SMS sent successfully{response.text}")

        logger.warning(
            "SMS gateway rejected message",
            extra={"status_code": response.status_code, "body": response.text[:500]}
        )
        return SmsResult(False, response.status_code, f"Failed to send SMS {response.text}")
