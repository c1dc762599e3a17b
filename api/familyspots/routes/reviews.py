from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlmodel import Session, select
from enum import Enum
from ..models import Review, User, utcnow
from ..schemas.common import DataResponse, Deleted, PageResponse, build_pagination, clamp_per_page, page_offset
from ..schemas.review import ReviewCreate, ReviewDetail, ReviewRead, ReviewUpdate
from ..database import get_session
from ..errors import Duplicate, Forbidden, NotFound, ValidationFailed
from ..services.auth import get_current_user, is_admin
from .places import get_place_or_404

router = APIRouter()

MAX_REVIEWS_PER_PAGE = 50

# Fields that may be cleared with an explicit null
NULLABLE_FIELDS = {"title", "visit_date"}


class ReviewSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    HIGHEST = "highest"
    LOWEST = "lowest"
    HELPFUL = "helpful"


REVIEW_ORDER = {
    ReviewSort.NEWEST: (Review.created_at.desc(), Review.id.desc()),
    ReviewSort.OLDEST: (Review.created_at.asc(), Review.id.asc()),
    ReviewSort.HIGHEST: (Review.rating.desc(), Review.created_at.desc()),
    ReviewSort.LOWEST: (Review.rating.asc(), Review.created_at.desc()),
    ReviewSort.HELPFUL: (Review.helpful_count.desc(), Review.created_at.desc()),
}


def get_review_or_404(db: Session, review_id: int) -> Review:
    review = db.get(Review, review_id)
    if not review:
        raise NotFound("Review not found")
    return review


@router.get("/places/{slug}/reviews", response_model=PageResponse[ReviewRead])
def get_place_reviews(
    slug: str,
    page: int = 1,
    per_page: int = 10,
    sort: ReviewSort = ReviewSort.NEWEST,
    db: Session = Depends(get_session)
):
    place = get_place_or_404(db, slug)
    per_page = clamp_per_page(per_page, MAX_REVIEWS_PER_PAGE)

    total = db.exec(select(func.count(Review.id)).where(Review.place_id == place.id)).one()
    reviews = db.exec(
        select(Review)
        .where(Review.place_id == place.id)
        .order_by(*REVIEW_ORDER[sort])
        .offset(page_offset(page, per_page))
        .limit(per_page)
    ).all()

    return {
        "data": [ReviewRead.model_validate(review) for review in reviews],
        "pagination": build_pagination(page, per_page, total),
    }


@router.post("/places/{slug}/reviews", response_model=DataResponse[ReviewRead], status_code=status.HTTP_201_CREATED)
def create_review(
    slug: str,
    review: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    place = get_place_or_404(db, slug)

    # Check if user already reviewed this place
    existing_review = db.exec(
        select(Review)
        .where(Review.user_id == current_user.id)
        .where(Review.place_id == place.id)
    ).first()
    if existing_review:
        raise Duplicate("You have already reviewed this place", code="DUPLICATE_REVIEW")

    db_review = Review(
        place_id=place.id,
        user_id=current_user.id,
        rating=review.rating,
        title=review.title,
        content=review.content,
        visit_date=review.visit_date,
        with_children_ages=review.with_children_ages,
        amenity_ratings=review.amenity_ratings.model_dump(),
        is_verified_visit=False,
    )
    db.add(db_review)
    db.commit()
    db.refresh(db_review)
    return {"data": ReviewRead.model_validate(db_review)}


@router.get("/reviews/{review_id}", response_model=DataResponse[ReviewDetail])
def get_review(review_id: int, db: Session = Depends(get_session)):
    review = get_review_or_404(db, review_id)
    return {"data": ReviewDetail.model_validate(review)}


@router.patch("/reviews/{review_id}", response_model=DataResponse[ReviewRead])
def update_review(
    review_id: int,
    review_update: ReviewUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    db_review = get_review_or_404(db, review_id)

    if db_review.user_id != current_user.id:
        raise Forbidden("You can only edit your own reviews")

    updates = {
        field: value
        for field, value in review_update.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_FIELDS
    }
    if not updates:
        raise ValidationFailed("No valid fields to update")

    # Update review fields
    for field, value in updates.items():
        setattr(db_review, field, value)
    db_review.updated_at = utcnow()

    db.add(db_review)
    db.commit()
    db.refresh(db_review)
    return {"data": ReviewRead.model_validate(db_review)}


@router.delete("/reviews/{review_id}", response_model=DataResponse[Deleted])
def delete_review(
    review_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    review = get_review_or_404(db, review_id)

    if review.user_id != current_user.id and not is_admin(current_user):
        raise Forbidden("You can only delete your own reviews")

    db.delete(review)
    db.commit()
    return {"data": Deleted()}
