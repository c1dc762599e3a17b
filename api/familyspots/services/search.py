"""Place search: filtering, distance, ranking and pagination.

Column filters are pushed into SQL by ``candidate_query``. The amenity,
noise, photo and radius predicates work on the typed amenity record and on
computed distances, so they run here over the loaded candidates, before
sorting and pagination. ``search_places`` re-checks every predicate, which
lets it run on any sequence of places, not only on query results.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Sequence
import math

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import or_
from sqlmodel import select

from ..models import AmenityType, NoiseLevel, Place, PlaceCategory, PriceRange
from ..schemas.place import Amenities, PlaceRead
from ..utils.geo import haversine_miles

MAX_PER_PAGE = 100
DEFAULT_PER_PAGE = 20
DEFAULT_RADIUS_MILES = 10.0


class SortOption(str, Enum):
    RELEVANCE = "relevance"
    DISTANCE = "distance"
    RATING = "rating"
    REVIEWS = "reviews"
    NEWEST = "newest"
    ALPHABETICAL = "alphabetical"


class SearchParams(BaseModel):
    q: str = ""
    categories: List[PlaceCategory] = []
    amenities: List[AmenityType] = []
    price_ranges: List[PriceRange] = []
    noise_levels: List[NoiseLevel] = []
    min_rating: float = 0
    verified: bool = False
    has_photos: bool = False
    sort: SortOption = SortOption.RELEVANCE
    lat: float = 0
    lng: float = 0
    radius: float = DEFAULT_RADIUS_MILES
    page: int = 1
    per_page: int = Field(DEFAULT_PER_PAGE)

    @field_validator("per_page")
    @classmethod
    def cap_per_page(cls, value):
        return max(1, min(value, MAX_PER_PAGE))

    @field_validator("q")
    @classmethod
    def strip_query(cls, value):
        return value.strip()

    @property
    def has_location(self) -> bool:
        return self.lat != 0 and self.lng != 0

    @property
    def filters_by_distance(self) -> bool:
        return self.has_location and self.radius > 0

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * self.per_page


@dataclass
class SearchPage:
    places: List[PlaceRead]
    page: int
    per_page: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.per_page)


# Amenities whose filter rule is not "the boolean flag is true"
_STRUCTURED_AMENITIES: Dict[AmenityType, Callable[[Amenities], bool]] = {
    AmenityType.CHANGING_STATION: lambda a: a.changing_station is not None and a.changing_station.available,
    AmenityType.PARKING: lambda a: a.parking is not None and a.parking.available,
    AmenityType.QUIET: lambda a: a.noise_level == NoiseLevel.QUIET,
}


def has_amenity(amenities: Amenities, amenity: AmenityType) -> bool:
    rule = _STRUCTURED_AMENITIES.get(amenity)
    if rule is not None:
        return rule(amenities)
    return getattr(amenities, amenity.value) is True


def matches_text(place: PlaceRead, query: str) -> bool:
    needle = query.lower()
    fields = (place.name, place.description, place.address, place.city)
    return any(needle in field.lower() for field in fields if field)


def place_matches(place: PlaceRead, params: SearchParams) -> bool:
    """True when the place satisfies every requested (non-geographic) filter."""
    if params.q and not matches_text(place, params.q):
        return False
    if params.categories and place.category not in params.categories:
        return False
    if params.price_ranges and place.price_range not in params.price_ranges:
        return False
    if params.min_rating > 0 and place.average_rating < params.min_rating:
        return False
    if params.verified and not place.is_verified:
        return False
    if not all(has_amenity(place.amenities, amenity) for amenity in params.amenities):
        return False
    if params.noise_levels and place.amenities.noise_level not in params.noise_levels:
        return False
    if params.has_photos and not place.images:
        return False
    return True


def _relevance(places: Sequence[PlaceRead]) -> List[PlaceRead]:
    return sorted(places, key=lambda p: (-p.average_rating, -p.review_count))


def sort_places(places: Sequence[PlaceRead], params: SearchParams) -> List[PlaceRead]:
    """Order places by the requested policy; equal keys keep their input order."""
    sort = params.sort
    if sort == SortOption.RATING:
        return sorted(places, key=lambda p: p.average_rating, reverse=True)
    if sort == SortOption.REVIEWS:
        return sorted(places, key=lambda p: p.review_count, reverse=True)
    if sort == SortOption.NEWEST:
        return sorted(places, key=lambda p: p.created_at, reverse=True)
    if sort == SortOption.ALPHABETICAL:
        return sorted(places, key=lambda p: p.name.casefold())
    if sort == SortOption.DISTANCE and params.filters_by_distance:
        return sorted(places, key=lambda p: p.distance)
    return _relevance(places)


def within_radius(places: Sequence[PlaceRead], params: SearchParams) -> List[PlaceRead]:
    """Attach the distance from the search centre and drop places beyond the radius."""
    nearby = []
    for place in places:
        distance = haversine_miles(params.lat, params.lng, place.latitude, place.longitude)
        if distance > params.radius:
            continue
        nearby.append(place.model_copy(update={"distance": distance}))
    return nearby


def search_places(places: Sequence[PlaceRead], params: SearchParams) -> SearchPage:
    hits = [place for place in places if place_matches(place, params)]
    if params.filters_by_distance:
        hits = within_radius(hits, params)
    hits = sort_places(hits, params)

    start = params.offset
    return SearchPage(
        places=hits[start:start + params.per_page],
        page=params.page,
        per_page=params.per_page,
        total=len(hits),
    )


def candidate_query(params: SearchParams):
    """Select the places that pass every filter the database can evaluate."""
    query = select(Place)

    if params.q:
        pattern = f"%{params.q}%"
        query = query.where(or_(
            Place.name.ilike(pattern),
            Place.description.ilike(pattern),
            Place.address.ilike(pattern),
            Place.city.ilike(pattern),
        ))
    if params.categories:
        query = query.where(Place.category.in_(params.categories))
    if params.price_ranges:
        query = query.where(Place.price_range.in_(params.price_ranges))
    if params.min_rating > 0:
        query = query.where(Place.average_rating >= params.min_rating)
    if params.verified:
        query = query.where(Place.is_verified == True)  # noqa: E712

    return query.order_by(Place.id)


def to_place_read(place: Place) -> PlaceRead:
    return PlaceRead.model_validate(place)


def run_search(db, params: SearchParams) -> SearchPage:
    candidates = db.exec(candidate_query(params)).all()
    return search_places([to_place_read(place) for place in candidates], params)
