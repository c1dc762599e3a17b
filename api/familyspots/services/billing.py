"""Subscription reconciliation driven by payment provider events.

Every transition overwrites the stored state instead of incrementing it,
so a redelivered event leaves the records exactly as the first delivery
did. Events whose customer cannot be tied to a user are dropped.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

from sqlmodel import Session, select

from ..config import settings
from ..models import SubscriptionPlan, SubscriptionStatus, User, UserSubscription, utcnow
from .payments import BillingProvider, USER_METADATA_KEY

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
SUBSCRIPTION_CREATED = "customer.subscription.created"
SUBSCRIPTION_UPDATED = "customer.subscription.updated"
SUBSCRIPTION_DELETED = "customer.subscription.deleted"
INVOICE_PAID = "invoice.paid"
INVOICE_PAYMENT_FAILED = "invoice.payment_failed"

RELEVANT_EVENTS = {
    CHECKOUT_COMPLETED,
    SUBSCRIPTION_CREATED,
    SUBSCRIPTION_UPDATED,
    SUBSCRIPTION_DELETED,
    INVOICE_PAID,
    INVOICE_PAYMENT_FAILED,
}

_STATUS_MAP = {
    "past_due": SubscriptionStatus.PAST_DUE,
    "canceled": SubscriptionStatus.CANCELED,
    "trialing": SubscriptionStatus.TRIALING,
}

PLAN_FEATURES = [
    "Personalized feed and recommendations",
    "Unlimited saved searches",
    "Offline access to favorites",
    "Advanced filters",
    "Early access to new features",
    "Ad-free experience",
]

PLANS = {
    SubscriptionPlan.PREMIUM_MONTHLY: {
        "id": SubscriptionPlan.PREMIUM_MONTHLY,
        "name": "Premium Monthly",
        "description": "Full access to all features, billed monthly",
        "price": 9.99,
        "interval": "month",
        "features": PLAN_FEATURES,
    },
    SubscriptionPlan.PREMIUM_ANNUAL: {
        "id": SubscriptionPlan.PREMIUM_ANNUAL,
        "name": "Premium Annual",
        "description": "Full access to all features, billed annually (save 20%)",
        "price": 95.88,
        "interval": "year",
        "features": PLAN_FEATURES + ["2 months free"],
    },
}


def price_id_for(plan: SubscriptionPlan) -> Optional[str]:
    for price_id, plan_name in settings.price_plans().items():
        if plan_name == plan.value:
            return price_id
    return None


def map_status(provider_status: Optional[str]) -> SubscriptionStatus:
    return _STATUS_MAP.get(provider_status, SubscriptionStatus.ACTIVE)


def grants_premium(plan: SubscriptionPlan, status: SubscriptionStatus) -> bool:
    return plan != SubscriptionPlan.FREE and status == SubscriptionStatus.ACTIVE


def _object_id(value) -> Optional[str]:
    # Provider references arrive either as ids or as expanded objects
    if isinstance(value, dict):
        return value.get("id")
    return value


def _timestamp(value) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


def _first_item(subscription: Dict[str, Any]) -> Dict[str, Any]:
    items = (subscription.get("items") or {}).get("data") or []
    return items[0] if items else {}


def _price_id(subscription: Dict[str, Any]) -> Optional[str]:
    price = _first_item(subscription).get("price") or {}
    return _object_id(price)


def _period(subscription: Dict[str, Any], key: str) -> Optional[datetime]:
    # Newer API versions only report billing periods per subscription item
    value = subscription.get(key)
    if value is None:
        value = _first_item(subscription).get(key)
    return _timestamp(value)


def _invoice_subscription_id(invoice: Dict[str, Any]) -> Optional[str]:
    subscription = invoice.get("subscription")
    if subscription is None:
        details = (invoice.get("parent") or {}).get("subscription_details") or {}
        subscription = details.get("subscription")
    return _object_id(subscription)


def _assign(record, values: Dict[str, Any]) -> bool:
    changed = False
    for field, value in values.items():
        if getattr(record, field) != value:
            setattr(record, field, value)
            changed = True
    return changed


class SubscriptionReconciler:
    def __init__(self, db: Session, provider: BillingProvider, price_plans: Dict[str, str]):
        self.db = db
        self.provider = provider
        self.price_plans = price_plans

    def handle_event(self, event: Dict[str, Any]) -> bool:
        """Apply one provider event. Returns False for event types we ignore."""
        event_type = event.get("type")
        if event_type not in RELEVANT_EVENTS:
            return False

        obj = event["data"]["object"]
        logger.info(f"Processing {event_type} for {obj.get('id')}")

        if event_type == CHECKOUT_COMPLETED:
            subscription_id = _object_id(obj.get("subscription"))
            if obj.get("mode") == "subscription" and subscription_id:
                subscription = self.provider.retrieve_subscription(subscription_id)
                self.apply_subscription_change(subscription)
        elif event_type in (SUBSCRIPTION_CREATED, SUBSCRIPTION_UPDATED):
            self.apply_subscription_change(obj)
        elif event_type == SUBSCRIPTION_DELETED:
            self.apply_subscription_canceled(obj)
        elif event_type == INVOICE_PAYMENT_FAILED:
            logger.info(f"Invoice payment failed: {obj.get('id')}")
            self.apply_payment_failed(obj)
        else:
            # TODO: send a receipt notification once notifications exist
            logger.info(f"Invoice paid: {obj.get('id')}")
        return True

    def resolve_user(self, customer_ref) -> Optional[User]:
        customer_id = _object_id(customer_ref)
        if not customer_id:
            return None
        customer = self.provider.retrieve_customer(customer_id)
        if customer.get("deleted"):
            logger.info(f"Customer {customer_id} is deleted, dropping event")
            return None

        user_id = (customer.get("metadata") or {}).get(USER_METADATA_KEY)
        if not user_id:
            logger.error(f"No user id found in metadata of customer {customer_id}")
            return None
        try:
            user = self.db.get(User, int(user_id))
        except ValueError:
            logger.error(f"Customer {customer_id} carries a malformed user id: {user_id}")
            return None
        if user is None:
            logger.error(f"Customer {customer_id} references unknown user {user_id}")
        return user

    def _record_for(self, user: User) -> UserSubscription:
        record = self.db.exec(
            select(UserSubscription).where(UserSubscription.user_id == user.id)
        ).first()
        if record is None:
            record = UserSubscription(user_id=user.id)
        return record

    def _save(self, user: User, record: UserSubscription, values: Dict[str, Any]) -> UserSubscription:
        if _assign(record, values) and record.id is not None:
            record.updated_at = utcnow()
        premium = grants_premium(record.plan, record.status)
        if user.is_premium != premium:
            user.is_premium = premium
            user.updated_at = utcnow()
        self.db.add(record)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(record)
        return record

    def apply_subscription_change(self, subscription: Dict[str, Any]) -> Optional[UserSubscription]:
        user = self.resolve_user(subscription.get("customer"))
        if user is None:
            return None

        price_id = _price_id(subscription)
        plan = SubscriptionPlan(self.price_plans.get(price_id, SubscriptionPlan.FREE.value))
        status = map_status(subscription.get("status"))

        record = self._record_for(user)
        record = self._save(user, record, {
            "stripe_customer_id": _object_id(subscription.get("customer")),
            "stripe_subscription_id": subscription.get("id"),
            "plan": plan,
            "status": status,
            "current_period_start": _period(subscription, "current_period_start"),
            "current_period_end": _period(subscription, "current_period_end"),
            "cancel_at_period_end": bool(subscription.get("cancel_at_period_end")),
        })
        logger.info(f"User {user.id} subscription is now {plan.value}/{status.value}")
        return record

    def apply_subscription_canceled(self, subscription: Dict[str, Any]) -> Optional[UserSubscription]:
        user = self.resolve_user(subscription.get("customer"))
        if user is None:
            return None

        record = self._record_for(user)
        current = record.stripe_subscription_id
        if current is not None and current != subscription.get("id"):
            logger.info(f"Ignoring deletion of superseded subscription {subscription.get('id')}, "
                        f"user {user.id} is on {current}")
            return record

        record = self._save(user, record, {
            "stripe_customer_id": _object_id(subscription.get("customer")),
            "stripe_subscription_id": subscription.get("id"),
            "plan": SubscriptionPlan.FREE,
            "status": SubscriptionStatus.CANCELED,
        })
        logger.info(f"User {user.id} subscription canceled")
        return record

    def apply_payment_failed(self, invoice: Dict[str, Any]) -> Optional[UserSubscription]:
        user = self.resolve_user(invoice.get("customer"))
        if user is None:
            return None

        subscription_id = _invoice_subscription_id(invoice)
        if not subscription_id:
            return None

        record = self.db.exec(
            select(UserSubscription).where(UserSubscription.stripe_subscription_id == subscription_id)
        ).first()
        if record is None:
            logger.warning(f"Payment failed for unknown subscription {subscription_id}")
            return None

        # Only full subscription events move the premium flag
        if record.status != SubscriptionStatus.PAST_DUE:
            record.status = SubscriptionStatus.PAST_DUE
            record.updated_at = utcnow()
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        return record
