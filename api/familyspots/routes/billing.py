from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from typing import List
import logging
from ..config import settings
from ..models import SubscriptionPlan, User, UserSubscription
from ..database import get_session
from ..errors import NotFound, ValidationFailed
from ..schemas.common import DataResponse
from ..schemas.subscription import CheckoutRequest, PlanInfo, SessionUrl, SubscriptionRead
from ..services.auth import get_current_user
from ..services.billing import PLANS, SubscriptionReconciler, price_id_for
from ..services.payments import BillingProvider, get_billing_provider

logger = logging.getLogger(__name__)

router = APIRouter()


def get_subscription_record(db: Session, user: User) -> UserSubscription:
    return db.exec(select(UserSubscription).where(UserSubscription.user_id == user.id)).first()


@router.get("/plans", response_model=DataResponse[List[PlanInfo]])
def get_plans():
    return {"data": list(PLANS.values())}


@router.post("/checkout", response_model=DataResponse[SessionUrl])
def create_checkout(
    checkout: CheckoutRequest,
    current_user: User = Depends(get_current_user),
    provider: BillingProvider = Depends(get_billing_provider),
    db: Session = Depends(get_session)
):
    price_id = price_id_for(SubscriptionPlan(checkout.plan))
    if not price_id:
        raise ValidationFailed(f"Plan {checkout.plan} is not available")

    record = get_subscription_record(db, current_user)
    if record is None or not record.stripe_customer_id:
        customer = provider.create_customer(current_user.id, current_user.full_name)
        if record is None:
            record = UserSubscription(user_id=current_user.id)
        record.stripe_customer_id = customer["id"]
        db.add(record)
        db.commit()

    session = provider.create_checkout_session(
        customer_id=record.stripe_customer_id,
        price_id=price_id,
        success_url=f"{settings.app_url}/profile?checkout=success",
        cancel_url=f"{settings.app_url}/pricing?checkout=canceled",
        trial_period_days=settings.trial_period_days,
    )
    return {"data": {"url": session["url"]}}


@router.post("/portal", response_model=DataResponse[SessionUrl])
def create_portal(
    current_user: User = Depends(get_current_user),
    provider: BillingProvider = Depends(get_billing_provider),
    db: Session = Depends(get_session)
):
    record = get_subscription_record(db, current_user)
    if record is None or not record.stripe_customer_id:
        raise NotFound("No billing account found")

    session = provider.create_portal_session(record.stripe_customer_id, f"{settings.app_url}/profile")
    return {"data": {"url": session["url"]}}


def _set_cancel_at_period_end(db: Session, user: User, provider: BillingProvider, cancel: bool):
    record = get_subscription_record(db, user)
    if record is None or not record.stripe_subscription_id:
        raise NotFound("No active subscription")

    subscription = provider.set_cancel_at_period_end(record.stripe_subscription_id, cancel)
    # Same transition a webhook delivery of the updated subscription would run
    reconciler = SubscriptionReconciler(db, provider, settings.price_plans())
    record = reconciler.apply_subscription_change(subscription) or record
    return {"data": SubscriptionRead.model_validate(record)}


@router.post("/cancel", response_model=DataResponse[SubscriptionRead])
def cancel_subscription(
    current_user: User = Depends(get_current_user),
    provider: BillingProvider = Depends(get_billing_provider),
    db: Session = Depends(get_session)
):
    return _set_cancel_at_period_end(db, current_user, provider, True)


@router.post("/resume", response_model=DataResponse[SubscriptionRead])
def resume_subscription(
    current_user: User = Depends(get_current_user),
    provider: BillingProvider = Depends(get_billing_provider),
    db: Session = Depends(get_session)
):
    return _set_cancel_at_period_end(db, current_user, provider, False)
