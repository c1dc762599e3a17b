from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlmodel import Session, select
from ..models import Contribution, User
from ..schemas.common import DataResponse, PageResponse, build_pagination, clamp_per_page, page_offset
from ..schemas.contribution import ContributionCreate, ContributionRead
from ..database import get_session
from ..services.auth import get_current_user
from ..services.contributions import record_contribution
from .places import get_place_or_404

router = APIRouter()

MAX_CONTRIBUTIONS_PER_PAGE = 100


@router.post(
    "/places/{slug}/contributions",
    response_model=DataResponse[ContributionRead],
    status_code=status.HTTP_201_CREATED,
)
def submit_contribution(
    slug: str,
    contribution: ContributionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    place = get_place_or_404(db, slug)
    db_contribution = record_contribution(db, current_user, place.id, contribution.type, contribution.data)
    return {"data": ContributionRead.model_validate(db_contribution)}


@router.get("/contributions/", response_model=PageResponse[ContributionRead])
def get_my_contributions(
    page: int = 1,
    per_page: int = 20,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    per_page = clamp_per_page(per_page, MAX_CONTRIBUTIONS_PER_PAGE)

    total = db.exec(select(func.count(Contribution.id)).where(Contribution.user_id == current_user.id)).one()
    contributions = db.exec(
        select(Contribution)
        .where(Contribution.user_id == current_user.id)
        .order_by(Contribution.created_at.desc(), Contribution.id.desc())
        .offset(page_offset(page, per_page))
        .limit(per_page)
    ).all()

    return {
        "data": [ContributionRead.model_validate(c) for c in contributions],
        "pagination": build_pagination(page, per_page, total),
    }
