from pydantic import BaseModel, Field, confloat, model_validator
from typing import Optional, List, Dict, Literal
from datetime import date, datetime
from ..models import PlaceCategory, PriceRange, NoiseLevel


class ChangingStationInfo(BaseModel):
    available: bool = False
    locations: List[Literal["mens", "womens", "family", "unisex"]] = []
    condition: Literal["excellent", "good", "fair", "poor", "unknown"] = "unknown"
    last_verified: Optional[date] = None

class ParkingInfo(BaseModel):
    available: bool = False
    type: List[Literal["street", "lot", "garage", "valet"]] = []
    stroller_accessible: bool = False

class Amenities(BaseModel):
    changing_station: Optional[ChangingStationInfo] = None
    high_chairs: bool = False
    kids_menu: bool = False
    stroller_friendly: bool = False
    outdoor_seating: bool = False
    play_area: bool = False
    nursing_room: bool = False
    family_restroom: bool = False
    noise_level: NoiseLevel = NoiseLevel.UNKNOWN
    wheelchair_accessible: bool = False
    parking: Optional[ParkingInfo] = None
    additional: List[str] = []


class PlaceImageRead(BaseModel):
    id: int
    url: str
    alt: Optional[str] = None
    is_primary: bool = False
    uploaded_by: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PlaceBase(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    category: PlaceCategory
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: Optional[str] = None
    country: str = "USA"
    latitude: confloat(ge=-90, le=90)
    longitude: confloat(ge=-180, le=180)
    phone: Optional[str] = None
    website: Optional[str] = None
    hours: Optional[Dict] = None
    price_range: Optional[PriceRange] = None

class PlaceCreate(PlaceBase):
    amenities: Optional[Amenities] = None

class PlaceRead(PlaceBase):
    id: int
    slug: str
    amenities: Amenities = Amenities()
    is_verified: bool
    is_claimed: bool
    claimed_by: Optional[int] = None
    average_rating: float
    review_count: int
    contribution_count: int = 0
    view_count: int = 0
    created_at: datetime
    updated_at: datetime
    images: List[PlaceImageRead] = []
    # Miles from the search centre, only set by location searches
    distance: Optional[float] = None

    class Config:
        from_attributes = True

    @model_validator(mode="after")
    def default_image_alt(self):
        for image in self.images:
            if not image.alt:
                image.alt = self.name
        return self

class PlaceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    address: Optional[str] = Field(None, min_length=1)
    city: Optional[str] = Field(None, min_length=1)
    state: Optional[str] = Field(None, min_length=1)
    zip_code: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    hours: Optional[Dict] = None
    price_range: Optional[PriceRange] = None
    amenities: Optional[Amenities] = None

class PlaceSummary(BaseModel):
    id: int
    name: str
    slug: str

    class Config:
        from_attributes = True
