"""Payment provider contract and its Stripe implementation.

The provider is built once when the application starts (see ``main.py``)
and handed to routes through ``get_billing_provider``; nothing in this
module keeps a process-wide client.
"""
from typing import Any, Dict, Optional, Protocol
import json
import logging

import stripe
from fastapi import Request

logger = logging.getLogger(__name__)

# Customer metadata key holding our user id
USER_METADATA_KEY = "familyspots_user_id"


class InvalidSignature(Exception):
    """The webhook payload could not be authenticated."""


class BillingProvider(Protocol):
    """Provider operations used by checkout routes and reconciliation."""

    def verify_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """Authenticate a webhook delivery and return the decoded event."""

    def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        ...

    def retrieve_customer(self, customer_id: str) -> Dict[str, Any]:
        ...

    def create_customer(self, user_id: int, name: Optional[str] = None) -> Dict[str, Any]:
        ...

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        trial_period_days: int,
    ) -> Dict[str, Any]:
        ...

    def create_portal_session(self, customer_id: str, return_url: str) -> Dict[str, Any]:
        ...

    def set_cancel_at_period_end(self, subscription_id: str, cancel: bool) -> Dict[str, Any]:
        ...


def _plain(obj) -> Dict[str, Any]:
    return obj.to_dict()


class StripeBillingProvider:
    provider_name = "stripe"

    def __init__(self, api_key: Optional[str], webhook_secret: Optional[str]):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def verify_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        if not self.webhook_secret:
            raise InvalidSignature("Webhook secret is not configured")
        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidSignature("Payload is not valid UTF-8") from e
        try:
            stripe.WebhookSignature.verify_header(body, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise InvalidSignature(str(e)) from e
        try:
            return json.loads(body)
        except ValueError as e:
            raise InvalidSignature("Payload is not valid JSON") from e

    def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        return _plain(stripe.Subscription.retrieve(subscription_id, api_key=self.api_key))

    def retrieve_customer(self, customer_id: str) -> Dict[str, Any]:
        return _plain(stripe.Customer.retrieve(customer_id, api_key=self.api_key))

    def create_customer(self, user_id: int, name: Optional[str] = None) -> Dict[str, Any]:
        customer = stripe.Customer.create(
            api_key=self.api_key,
            name=name,
            metadata={USER_METADATA_KEY: str(user_id)},
        )
        logger.info(f"Created Stripe customer {customer.id} for user {user_id}")
        return _plain(customer)

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        trial_period_days: int,
    ) -> Dict[str, Any]:
        session = stripe.checkout.Session.create(
            api_key=self.api_key,
            customer=customer_id,
            mode="subscription",
            payment_method_types=["card"],
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=success_url,
            cancel_url=cancel_url,
            subscription_data={"trial_period_days": trial_period_days},
        )
        return _plain(session)

    def create_portal_session(self, customer_id: str, return_url: str) -> Dict[str, Any]:
        session = stripe.billing_portal.Session.create(
            api_key=self.api_key,
            customer=customer_id,
            return_url=return_url,
        )
        return _plain(session)

    def set_cancel_at_period_end(self, subscription_id: str, cancel: bool) -> Dict[str, Any]:
        subscription = stripe.Subscription.modify(
            subscription_id,
            api_key=self.api_key,
            cancel_at_period_end=cancel,
        )
        return _plain(subscription)


def get_billing_provider(request: Request) -> BillingProvider:
    return request.app.state.billing_provider
