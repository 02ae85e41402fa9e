import logging

from fastapi import APIRouter, Depends, Header, Request
from starlette.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.db.session import get_service_db
from app.schemas.billing import WebhookAck
from app.services.billing_webhook_handlers import process_event
from app.services.stripe_service import verify_webhook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing Webhook"])


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(None),
    db: Session = Depends(get_service_db),
):
    """
    Receive Stripe events.

    Signature failures raise WebhookSignatureInvalid (400, no processing).
    Every verified event is acknowledged, applied or not.
    """
    payload = await request.body()
    event = verify_webhook(payload, stripe_signature)

    # Stripe lookup and DB writes block; keep them off the event loop
    outcome = await run_in_threadpool(process_event, event, db)
    logger.info(
        f"Webhook acknowledged: type={outcome.event_type}, id={event.get('id')}, "
        f"handled={outcome.handled}, detail={outcome.detail}"
    )
    return WebhookAck(received=True)
