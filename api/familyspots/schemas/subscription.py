from pydantic import BaseModel
from typing import Optional, List, Literal
from datetime import datetime
from ..models import SubscriptionPlan, SubscriptionStatus

class SubscriptionRead(BaseModel):
    user_id: int
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    plan: SubscriptionPlan
    status: SubscriptionStatus
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class PlanInfo(BaseModel):
    id: SubscriptionPlan
    name: str
    description: str
    price: float
    interval: Literal["month", "year"]
    features: List[str]

class CheckoutRequest(BaseModel):
    plan: Literal["premium_monthly", "premium_annual"]

class SessionUrl(BaseModel):
    url: str
