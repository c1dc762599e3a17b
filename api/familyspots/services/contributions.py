from typing import Dict
import logging

from sqlmodel import Session

from ..models import Contribution, ContributionStatus, ContributionType, User
from .auth import is_admin

logger = logging.getLogger(__name__)


def record_contribution(
    db: Session,
    actor: User,
    place_id: int,
    contribution_type: ContributionType,
    data: Dict,
    commit: bool = True,
) -> Contribution:
    """Append a contribution; admins' changes are approved on the spot."""
    status = ContributionStatus.APPROVED if is_admin(actor) else ContributionStatus.PENDING
    contribution = Contribution(
        place_id=place_id,
        user_id=actor.id,
        type=contribution_type,
        data=data,
        status=status,
    )
    db.add(contribution)
    if commit:
        db.commit()
        db.refresh(contribution)
    logger.info(f"Recorded {contribution_type.value} contribution on place {place_id} as {status.value}")
    return contribution
