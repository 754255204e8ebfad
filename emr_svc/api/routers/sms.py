"""
SMS router - send one notification through the KenyaEMR SMS gateway.
"""
import logging

from fastapi import APIRouter, Depends

from emr_svc.core.dependencies import get_sms_service
from emr_svc.schemas import SmsRequest, SmsResponse
from emr_svc.services.sms_service import SmsService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/sms",
    tags=["SMS"],
)


@router.post(
    "",
    response_model=SmsResponse,
    summary="Send an SMS",
    description="Forward a message to the SMS gateway. A gateway rejection is reported with "
                "delivered=false; an unreachable gateway returns 502. Messages are not retried."
)
def send_sms(request: SmsRequest, sms_service: SmsService = Depends(get_sms_service)):
    result = sms_service.send(request.recipient, request.message)
    return SmsResponse(**result.to_dict())
