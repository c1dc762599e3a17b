"""Application configuration."""

from functools import lru_cache
from typing import Dict, Optional
import os

from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables
load_dotenv()


class Settings(BaseModel):
    """Application settings (env values win, otherwise defaults)."""

    env: Optional[str] = os.getenv("ENV")
    database_url: Optional[str] = os.getenv("DATABASE_URL")
    supabase_url: Optional[str] = os.getenv("SUPABASE_URL")

    secret_key: str = os.getenv("SECRET_KEY", "change-me-in-production")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    stripe_secret_key: Optional[str] = os.getenv("STRIPE_SECRET_KEY")
    stripe_webhook_secret: Optional[str] = os.getenv("STRIPE_WEBHOOK_SECRET")
    stripe_premium_monthly_price_id: Optional[str] = os.getenv("STRIPE_PREMIUM_MONTHLY_PRICE_ID")
    stripe_premium_annual_price_id: Optional[str] = os.getenv("STRIPE_PREMIUM_ANNUAL_PRICE_ID")
    trial_period_days: int = int(os.getenv("TRIAL_PERIOD_DAYS", "7"))

    app_url: str = os.getenv("APP_URL", "http://localhost:3000")

    def price_plans(self) -> Dict[str, str]:
        """Map configured provider price ids to local plan names."""
        plans = {}
        if self.stripe_premium_monthly_price_id:
            plans[self.stripe_premium_monthly_price_id] = "premium_monthly"
        if self.stripe_premium_annual_price_id:
            plans[self.stripe_premium_annual_price_id] = "premium_annual"
        return plans


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
