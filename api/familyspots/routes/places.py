from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlmodel import Session, select
from typing import List
import logging
from ..models import (
    AmenityType, ContributionType, NoiseLevel, Place, PlaceCategory, PriceRange, User,
    default_amenities, utcnow
)
from ..schemas.common import DataResponse, PageResponse, build_pagination
from ..schemas.place import PlaceCreate, PlaceRead, PlaceUpdate
from ..schemas.review import PlaceDetail
from ..database import get_session
from ..errors import Forbidden, NotFound, ValidationFailed
from ..services.auth import get_current_user, is_admin
from ..services.contributions import record_contribution
from ..services.search import (
    DEFAULT_PER_PAGE, DEFAULT_RADIUS_MILES, SearchParams, SortOption, run_search, to_place_read
)
from ..services.views import increment_view_count
from ..utils.slug import slugify, unique_slug

logger = logging.getLogger(__name__)

router = APIRouter()


def get_place_or_404(db: Session, slug: str) -> Place:
    place = db.exec(select(Place).where(Place.slug == slug)).first()
    if not place:
        raise NotFound("Place not found")
    return place


@router.get("/", response_model=PageResponse[PlaceRead])
def search_places(
    q: str = "",
    category: List[PlaceCategory] = Query(default=[]),
    amenity: List[AmenityType] = Query(default=[]),
    price: List[PriceRange] = Query(default=[]),
    noise: List[NoiseLevel] = Query(default=[]),
    min_rating: float = 0,
    verified: bool = False,
    has_photos: bool = False,
    sort: SortOption = SortOption.RELEVANCE,
    lat: float = 0,
    lng: float = 0,
    radius: float = DEFAULT_RADIUS_MILES,
    page: int = 1,
    per_page: int = DEFAULT_PER_PAGE,
    db: Session = Depends(get_session)
):
    params = SearchParams(
        q=q,
        categories=category,
        amenities=amenity,
        price_ranges=price,
        noise_levels=noise,
        min_rating=min_rating,
        verified=verified,
        has_photos=has_photos,
        sort=sort,
        lat=lat,
        lng=lng,
        radius=radius,
        page=page,
        per_page=per_page,
    )
    result = run_search(db, params)
    return {
        "data": result.places,
        "pagination": build_pagination(result.page, result.per_page, result.total),
    }


@router.post("/", response_model=DataResponse[PlaceRead], status_code=status.HTTP_201_CREATED)
def create_place(
    place: PlaceCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    base = slugify(place.name, place.city) or "place"
    slug = unique_slug(
        base, lambda candidate: db.exec(select(Place.id).where(Place.slug == candidate)).first() is not None
    )

    amenities = place.amenities.model_dump(mode="json") if place.amenities else default_amenities()
    db_place = Place(
        **place.model_dump(exclude={"amenities"}),
        slug=slug,
        amenities=amenities,
        is_verified=False,
        is_claimed=False,
    )
    db.add(db_place)
    db.commit()
    db.refresh(db_place)

    record_contribution(
        db, current_user, db_place.id, ContributionType.NEW_PLACE,
        {"original": place.model_dump(mode="json")}
    )
    db.refresh(db_place)
    return {"data": to_place_read(db_place)}


@router.get("/{slug}", response_model=DataResponse[PlaceDetail])
def get_place(
    slug: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_session)
):
    place = get_place_or_404(db, slug)
    detail = PlaceDetail.model_validate(place)
    detail.reviews.sort(key=lambda review: review.created_at, reverse=True)

    # Not awaited by the response
    background_tasks.add_task(increment_view_count, Place, place.id)
    return {"data": detail}


@router.patch("/{slug}", response_model=DataResponse[PlaceRead])
def update_place(
    slug: str,
    place_update: PlaceUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    db_place = get_place_or_404(db, slug)

    if not is_admin(current_user) and db_place.claimed_by != current_user.id:
        raise Forbidden("You do not have permission to edit this place")

    updates = place_update.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationFailed("No valid fields to update")
    if "amenities" in updates:
        updates["amenities"] = (
            place_update.amenities.model_dump(mode="json") if place_update.amenities else default_amenities()
        )

    previous = to_place_read(db_place).model_dump(mode="json", include=set(updates))

    # Update place fields
    for field, value in updates.items():
        setattr(db_place, field, value)
    db_place.updated_at = utcnow()
    db.add(db_place)

    record_contribution(
        db, current_user, db_place.id, ContributionType.EDIT_PLACE,
        {"updates": place_update.model_dump(mode="json", exclude_unset=True), "previous": previous},
        commit=False,
    )
    db.commit()
    db.refresh(db_place)
    return {"data": to_place_read(db_place)}
