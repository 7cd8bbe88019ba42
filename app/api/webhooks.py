"""
Paystack webhook receiver.
Verifies the signature over the raw body, then applies the subscription state change.
Once the signature checks out the answer is always 200 so Paystack does not retry.
"""
from fastapi import APIRouter, Request, HTTPException, status, Header, Depends
from sqlalchemy.orm import Session
from typing import Optional
import json
import logging
from app.db.session import get_db
from app.core.config import settings
from app.services.billing_webhook import process_paystack_event
from app.services.paystack import verify_webhook_signature, SIGNATURE_HEADER

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/paystack")
async def paystack_webhook(
    request: Request,
    db: Session = Depends(get_db),
    paystack_signature: Optional[str] = Header(None, alias=SIGNATURE_HEADER),
):
    body = await request.body()

    if not verify_webhook_signature(body, paystack_signature, settings.PAYSTACK_SECRET_KEY):
        logger.warning("[WEBHOOK] Invalid Paystack signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        event = json.loads(body)
    except ValueError as e:
        logger.error(f"[WEBHOOK] Invalid JSON payload: {e}")
        return {"received": True, "error": "Invalid JSON payload"}
    if not isinstance(event, dict):
        logger.error("[WEBHOOK] Payload is not a JSON object")
        return {"received": True, "error": "Invalid payload"}

    try:
        process_paystack_event(db, event)
    except Exception as e:
        db.rollback()
        logger.exception(f"[WEBHOOK] Error processing {event.get('event')}")
        return {"received": True, "error": str(e)}
    return {"received": True}
