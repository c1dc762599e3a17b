from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool
import logging
from ..config import settings
from ..database import get_session
from ..errors import ValidationFailed, error_body
from ..services.billing import SubscriptionReconciler
from ..services.payments import BillingProvider, InvalidSignature, get_billing_provider

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    provider: BillingProvider = Depends(get_billing_provider),
    db: Session = Depends(get_session)
):
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    if not signature:
        raise ValidationFailed("No signature")

    try:
        event = provider.verify_event(payload, signature)
    except InvalidSignature as e:
        logger.error(f"Webhook signature verification failed: {str(e)}")
        raise ValidationFailed("Invalid signature")

    reconciler = SubscriptionReconciler(db, provider, settings.price_plans())
    try:
        handled = await run_in_threadpool(reconciler.handle_event, event)
    except Exception as e:
        # The provider redelivers on failure; every transition is safe to re-run
        logger.exception(f"Error processing webhook {event.get('type')}: {str(e)}")
        db.rollback()
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("INTERNAL_ERROR", "Webhook handler failed"),
        )

    if not handled:
        logger.debug(f"Ignoring webhook event {event.get('type')}")
    return {"received": True}
