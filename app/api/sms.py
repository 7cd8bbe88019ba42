"""
Bulk SMS to attendees through Arkesel, plus an admin-only diagnostic send.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional
import logging
from app.api.deps import get_current_user, require_platform_admin, get_sms_client
from app.core.rate_limit import diagnostics_limiter
from app.models.user import User
from app.schemas.sms import BulkSmsRequest, BulkSmsResponse, SmsMessageId
from app.services.arkesel import ArkeselClient, format_phone_number

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_CONFIGURED = "SMS service not configured. Please configure ARKESEL_API_KEY environment variable."


@router.post("/bulk", response_model=BulkSmsResponse)
def send_bulk_sms(
    body: BulkSmsRequest,
    current_user: User = Depends(get_current_user),
    sms_client: ArkeselClient = Depends(get_sms_client),
):
    if not sms_client.is_configured:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=NOT_CONFIGURED)
    if not body.recipients:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No recipients provided")
    if not body.message or not body.message.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is required")

    recipients = [r.model_dump() for r in body.recipients]
    results = sms_client.send_bulk(recipients, body.message, body.eventName)
    logger.info(f"[SMS] Bulk send: {results.sent} sent, {results.failed} failed")

    if results.sent == 0:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to send any SMS. Errors: {'; '.join(results.errors[:5])}",
        )
    return BulkSmsResponse(
        success=True,
        message=f"SMS sent to {results.sent} recipient(s)" + (f", {results.failed} failed" if results.failed else ""),
        sent=results.sent,
        failed=results.failed,
        errors=results.errors or None,
        messageIds=[SmsMessageId(**m) for m in results.message_ids] or None,
    )


@router.get("/test", dependencies=[Depends(diagnostics_limiter)])
def test_sms(
    phone: Optional[str] = Query(None),
    message: Optional[str] = Query(None),
    admin: User = Depends(require_platform_admin),
    sms_client: ArkeselClient = Depends(get_sms_client),
):
    """Send one SMS and echo what Arkesel answered, with the API key masked."""
    if not sms_client.is_configured:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=NOT_CONFIGURED)
    if not phone:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="phone query parameter is required")

    text = message or "Test SMS from Tikiti"
    formatted = format_phone_number(phone)
    url = sms_client.masked_url(formatted, text)
    logger.info(f"[SMS] Diagnostic send: {url}")
    result = sms_client.send_sms(phone, text)
    return {
        "success": result.success,
        "phone": formatted,
        "senderId": sms_client.sender_id,
        "url": url,
        "statusCode": result.status_code,
        "response": result.response,
        "messageId": result.message_id,
        "error": result.error,
    }
