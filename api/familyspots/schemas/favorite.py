from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from ..models import PlaceCategory
from .place import Amenities, PlaceImageRead

class FavoriteCreate(BaseModel):
    place_id: int
    note: Optional[str] = None

class FavoriteRead(BaseModel):
    id: int
    user_id: int
    place_id: int
    note: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class FavoritePlace(BaseModel):
    id: int
    name: str
    slug: str
    category: PlaceCategory
    address: str
    city: str
    state: str
    average_rating: float
    review_count: int
    amenities: Amenities = Amenities()
    images: List[PlaceImageRead] = []

    class Config:
        from_attributes = True

class FavoriteEntry(BaseModel):
    id: int
    note: Optional[str] = None
    created_at: datetime
    place: Optional[FavoritePlace] = None

    class Config:
        from_attributes = True
