from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.pool import StaticPool
from typing import Generator
import logging
from sqlalchemy.exc import SQLAlchemyError

from .config import settings

# Set up logging
logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger(__name__)

VALID_ENVIRONMENTS = ["test", "local", "prod"]

logger.info(f"ENV: {settings.env}")

if settings.env == "test":
    # One shared connection so every session sees the same in-memory database
    DATABASE_URL = "sqlite:///:memory:"
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

elif settings.env == "local":
    logger.info(f"Connecting to local database at: {settings.database_url}")
    DATABASE_URL = settings.database_url
    engine = create_engine(DATABASE_URL, echo=True)

elif settings.env == "prod":
    # Postgres connection string of the hosted Supabase database
    DATABASE_URL = settings.supabase_url
    engine = create_engine(DATABASE_URL, pool_pre_ping=True)
    logger.info("Connected to Supabase database")

else:
    engine = None


def get_session() -> Generator[Session, None, None]:
    """
    Get a database session.
    """
    logger.debug("Establishing database session")
    if settings.env in VALID_ENVIRONMENTS:
        with Session(engine) as session:
            yield session
    else:
        raise ValueError("Invalid environment")


def init_db():
    """
    Initialize the database by creating all tables if they don't exist.
    """
    logger.debug("Initializing database tables")
    if settings.env in VALID_ENVIRONMENTS:
        # Import models so every table is registered on the metadata
        from . import models  # noqa: F401
        try:
            SQLModel.metadata.create_all(engine)
            logger.debug("Database tables initialized successfully")
        except SQLAlchemyError as e:
            logger.error(f"Error initializing database: {str(e)}")
            raise


def drop_all_tables():
    """
    Drop all tables in the database.
    """
    logger.debug("Dropping all tables")
    try:
        SQLModel.metadata.drop_all(engine)
        logger.debug("All tables dropped successfully")
    except SQLAlchemyError as e:
        logger.error(f"Error dropping tables: {str(e)}")
        raise
