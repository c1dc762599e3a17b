from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional, List
from .place import PlaceRead, PlaceSummary
from .user import UserSummary

MIN_CONTENT_LENGTH = 10


def _check_content(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if len(value) < MIN_CONTENT_LENGTH:
        raise ValueError(f"Review content must be at least {MIN_CONTENT_LENGTH} characters")
    return value


class AmenityRatings(BaseModel):
    cleanliness: Optional[int] = Field(None, ge=0, le=5)
    kid_friendliness: Optional[int] = Field(None, ge=0, le=5)
    staff_helpfulness: Optional[int] = Field(None, ge=0, le=5)
    changing_station_quality: Optional[int] = Field(None, ge=0, le=5)
    stroller_accessibility: Optional[int] = Field(None, ge=0, le=5)
    noise_accuracy: Optional[int] = Field(None, ge=0, le=5)

class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    title: Optional[str] = None
    content: str
    visit_date: Optional[date] = None
    with_children_ages: List[int] = []
    amenity_ratings: AmenityRatings = AmenityRatings()

    @field_validator("content")
    @classmethod
    def content_length(cls, value):
        return _check_content(value)

    @field_validator("with_children_ages")
    @classmethod
    def ages_not_negative(cls, value):
        if any(age < 0 for age in value):
            raise ValueError("Children ages cannot be negative")
        return value

class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = None
    content: Optional[str] = None
    visit_date: Optional[date] = None
    with_children_ages: Optional[List[int]] = None
    amenity_ratings: Optional[AmenityRatings] = None

    @field_validator("content")
    @classmethod
    def content_length(cls, value):
        return _check_content(value)

    @field_validator("with_children_ages")
    @classmethod
    def ages_not_negative(cls, value):
        if value and any(age < 0 for age in value):
            raise ValueError("Children ages cannot be negative")
        return value

class ReviewRead(BaseModel):
    id: int
    place_id: int
    user_id: int
    rating: int
    title: Optional[str] = None
    content: str
    visit_date: Optional[date] = None
    with_children_ages: List[int] = []
    amenity_ratings: AmenityRatings = AmenityRatings()
    is_verified_visit: bool
    helpful_count: int
    created_at: datetime
    updated_at: datetime
    user: Optional[UserSummary] = None

    class Config:
        from_attributes = True

class ReviewDetail(ReviewRead):
    place: Optional[PlaceSummary] = None

class PlaceDetail(PlaceRead):
    reviews: List[ReviewRead] = []
