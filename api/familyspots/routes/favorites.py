from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, func
from sqlmodel import Session, select
from typing import Optional
from ..models import Favorite, Place, User
from ..schemas.common import DataResponse, Deleted, PageResponse, build_pagination, clamp_per_page, page_offset
from ..schemas.favorite import FavoriteCreate, FavoriteEntry, FavoriteRead
from ..database import get_session
from ..errors import Duplicate, NotFound, ValidationFailed
from ..services.auth import get_current_user

router = APIRouter()

MAX_FAVORITES_PER_PAGE = 100


@router.get("/", response_model=PageResponse[FavoriteEntry])
def get_favorites(
    page: int = 1,
    per_page: int = 20,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    per_page = clamp_per_page(per_page, MAX_FAVORITES_PER_PAGE)

    total = db.exec(select(func.count(Favorite.id)).where(Favorite.user_id == current_user.id)).one()
    favorites = db.exec(
        select(Favorite)
        .where(Favorite.user_id == current_user.id)
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        .offset(page_offset(page, per_page))
        .limit(per_page)
    ).all()

    return {
        "data": [FavoriteEntry.model_validate(favorite) for favorite in favorites],
        "pagination": build_pagination(page, per_page, total),
    }


@router.post("/", response_model=DataResponse[FavoriteRead], status_code=status.HTTP_201_CREATED)
def add_favorite(
    favorite: FavoriteCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    if not db.get(Place, favorite.place_id):
        raise NotFound("Place not found")

    # Check if already favorited
    existing = db.exec(
        select(Favorite)
        .where(Favorite.user_id == current_user.id)
        .where(Favorite.place_id == favorite.place_id)
    ).first()
    if existing:
        raise Duplicate("Place is already in your favorites")

    db_favorite = Favorite(
        user_id=current_user.id,
        place_id=favorite.place_id,
        note=favorite.note or None,
    )
    db.add(db_favorite)
    db.commit()
    db.refresh(db_favorite)
    return {"data": FavoriteRead.model_validate(db_favorite)}


@router.delete("/", response_model=DataResponse[Deleted])
def remove_favorite(
    place_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    if place_id is None:
        raise ValidationFailed("place_id is required")

    db.connection().execute(
        delete(Favorite)
        .where(Favorite.user_id == current_user.id)
        .where(Favorite.place_id == place_id)
    )
    db.commit()
    return {"data": Deleted()}
