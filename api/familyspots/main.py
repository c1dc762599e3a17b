from fastapi import FastAPI, Depends
from fastapi.security import OAuth2PasswordRequestForm
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session
from datetime import timedelta
from .config import settings
from .database import get_session
from .errors import Unauthorized, register_exception_handlers
from .services.auth import (
    authenticate_user,
    create_access_token,
    ACCESS_TOKEN_EXPIRE_MINUTES
)
from .services.payments import StripeBillingProvider
from .routes import articles, billing, contributions, favorites, places, reviews, users, webhooks
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import text

# Set up logging
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="FamilySpots API",
    description="Family-friendly place directory: search, reviews, favorites, articles and premium billing",
    version="1.0.0"
)

register_exception_handlers(app)

@app.on_event("startup")
async def startup_event():
    logger.debug("Starting up the application")
    try:
        # Test database connection first
        from .database import engine
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            logger.info("Database connection test successful")

        # Initialize tables if they don't exist
        from .database import init_db
        init_db()
        logger.debug("Database tables initialized successfully")
    except SQLAlchemyError as e:
        logger.error(f"Database error during startup: {str(e)}")
        raise
    except Exception as e:
        logger.error(f"Unexpected error during startup: {str(e)}")
        raise

    # Built once; routes receive it through get_billing_provider
    app.state.billing_provider = StripeBillingProvider(
        api_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
    )
    if not settings.stripe_secret_key:
        logger.warning("STRIPE_SECRET_KEY is not set, billing calls will fail")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.app_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.post("/api/token")
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_session)
):
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise Unauthorized("Incorrect username or password")
    access_token_expires = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": user.username}, expires_delta=access_token_expires
    )
    return {"access_token": access_token, "token_type": "bearer"}

# Include routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(places.router, prefix="/api/places", tags=["Places"])
app.include_router(reviews.router, prefix="/api", tags=["Reviews"])
app.include_router(contributions.router, prefix="/api", tags=["Contributions"])
app.include_router(favorites.router, prefix="/api/favorites", tags=["Favorites"])
app.include_router(articles.router, prefix="/api/articles", tags=["Articles"])
app.include_router(billing.router, prefix="/api/billing", tags=["Billing"])
app.include_router(webhooks.router, prefix="/api/stripe", tags=["Stripe"])

@app.get("/")
async def root():
    return {"message": "Welcome to FamilySpots API"}
