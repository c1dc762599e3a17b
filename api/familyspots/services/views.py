import logging

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from .. import database

logger = logging.getLogger(__name__)


def increment_view_count(model, record_id: int):
    """Bump a view counter. Runs after the response is sent; failures are only logged."""
    try:
        with Session(database.engine) as session:
            session.connection().execute(
                update(model)
                .where(model.id == record_id)
                .values(view_count=model.view_count + 1)
            )
            session.commit()
    except SQLAlchemyError as e:
        logger.warning(f"Could not increment view count of {model.__name__} {record_id}: {str(e)}")
