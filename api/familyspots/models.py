from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import Column, JSON
from datetime import date, datetime, timezone
from typing import Optional, List, Dict
from enum import Enum


"""
This file contains the models for the database tables.

We have 8 tables:
    - User (the public profile, carries the premium flag)
    - Place
    - PlaceImage
    - Review
    - Favorite
    - Contribution
    - UserSubscription
    - Article
"""


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"
    BUSINESS = "business"

class PlaceCategory(str, Enum):
    RESTAURANT = "restaurant"
    CAFE = "cafe"
    PARK = "park"
    PLAYGROUND = "playground"
    MUSEUM = "museum"
    LIBRARY = "library"
    SHOPPING = "shopping"
    ENTERTAINMENT = "entertainment"
    HEALTHCARE = "healthcare"
    OTHER = "other"

class PriceRange(str, Enum):
    INEXPENSIVE = "$"
    MODERATE = "$$"
    EXPENSIVE = "$$$"
    VERY_EXPENSIVE = "$$$$"

class NoiseLevel(str, Enum):
    QUIET = "quiet"
    MODERATE = "moderate"
    LOUD = "loud"
    UNKNOWN = "unknown"

class AmenityType(str, Enum):
    CHANGING_STATION = "changing_station"
    HIGH_CHAIRS = "high_chairs"
    KIDS_MENU = "kids_menu"
    STROLLER_FRIENDLY = "stroller_friendly"
    OUTDOOR_SEATING = "outdoor_seating"
    PLAY_AREA = "play_area"
    NURSING_ROOM = "nursing_room"
    FAMILY_RESTROOM = "family_restroom"
    WHEELCHAIR_ACCESSIBLE = "wheelchair_accessible"
    QUIET = "quiet"
    PARKING = "parking"

class ContributionType(str, Enum):
    NEW_PLACE = "new_place"
    EDIT_PLACE = "edit_place"
    ADD_PHOTO = "add_photo"
    UPDATE_AMENITY = "update_amenity"
    REPORT_ISSUE = "report_issue"

class ContributionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class SubscriptionPlan(str, Enum):
    FREE = "free"
    PREMIUM_MONTHLY = "premium_monthly"
    PREMIUM_ANNUAL = "premium_annual"

class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    TRIALING = "trialing"

class ArticleCategory(str, Enum):
    FEEDING = "feeding"
    SLEEP = "sleep"
    DEVELOPMENT = "development"
    HEALTH = "health"
    ACTIVITIES = "activities"
    TRAVEL = "travel"
    GEAR = "gear"
    PARENTING_TIPS = "parenting_tips"
    DAD_LIFE = "dad_life"
    MOM_LIFE = "mom_life"
    RELATIONSHIPS = "relationships"
    MENTAL_HEALTH = "mental_health"


def default_amenities() -> Dict:
    return {
        "changing_station": None,
        "high_chairs": False,
        "kids_menu": False,
        "stroller_friendly": False,
        "outdoor_seating": False,
        "play_area": False,
        "nursing_room": False,
        "family_restroom": False,
        "noise_level": NoiseLevel.UNKNOWN.value,
        "wheelchair_accessible": False,
        "parking": None,
        "additional": [],
    }


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True)
    hashed_password: str
    full_name: str
    avatar_url: Optional[str] = None
    role: UserRole = Field(default=UserRole.USER)
    is_premium: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Relationships with cascade delete
    reviews: List["Review"] = Relationship(back_populates="user", sa_relationship_kwargs={"cascade": "all, delete-orphan"})
    favorites: List["Favorite"] = Relationship(back_populates="user", sa_relationship_kwargs={"cascade": "all, delete-orphan"})
    subscription: Optional["UserSubscription"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "uselist": False}
    )

class Place(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    slug: str = Field(unique=True, index=True)
    description: Optional[str] = None
    category: PlaceCategory = Field(index=True)
    address: str
    city: str
    state: str
    zip_code: Optional[str] = None
    country: str = Field(default="USA")
    latitude: float
    longitude: float
    phone: Optional[str] = None
    website: Optional[str] = None
    hours: Optional[Dict] = Field(default=None, sa_column=Column(JSON))
    price_range: Optional[PriceRange] = None
    amenities: Dict = Field(default_factory=default_amenities, sa_column=Column(JSON))
    is_verified: bool = Field(default=False)
    is_claimed: bool = Field(default=False)
    claimed_by: Optional[int] = Field(default=None, foreign_key="user.id")
    # Maintained by database triggers, see the initial migration
    average_rating: float = Field(default=0.0)
    review_count: int = Field(default=0)
    contribution_count: int = Field(default=0)
    view_count: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Relationships
    images: List["PlaceImage"] = Relationship(back_populates="place", sa_relationship_kwargs={"cascade": "all, delete-orphan"})
    reviews: List["Review"] = Relationship(back_populates="place", sa_relationship_kwargs={"cascade": "all, delete-orphan"})

class PlaceImage(SQLModel, table=True):
    __tablename__ = "place_image"

    id: Optional[int] = Field(default=None, primary_key=True)
    place_id: int = Field(foreign_key="place.id", nullable=False)
    url: str
    alt: Optional[str] = None
    is_primary: bool = Field(default=False)
    uploaded_by: Optional[int] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=utcnow)

    place: Place = Relationship(back_populates="images")

class Review(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False)
    place_id: int = Field(foreign_key="place.id", nullable=False)
    rating: int = Field(ge=1, le=5)
    title: Optional[str] = None
    content: str
    visit_date: Optional[date] = None
    with_children_ages: List[int] = Field(default_factory=list, sa_column=Column(JSON))
    amenity_ratings: Dict = Field(default_factory=dict, sa_column=Column(JSON))
    is_verified_visit: bool = Field(default=False)
    helpful_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Relationships
    user: User = Relationship(back_populates="reviews")
    place: Place = Relationship(back_populates="reviews")

class Favorite(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False)
    place_id: int = Field(foreign_key="place.id", nullable=False)
    note: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    user: User = Relationship(back_populates="favorites")
    place: Place = Relationship()

class Contribution(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    place_id: int = Field(foreign_key="place.id", nullable=False)
    user_id: int = Field(foreign_key="user.id", nullable=False)
    type: ContributionType
    data: Dict = Field(default_factory=dict, sa_column=Column(JSON))
    status: ContributionStatus = Field(default=ContributionStatus.PENDING)
    reviewed_by: Optional[int] = Field(default=None, foreign_key="user.id")
    reviewed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)

class UserSubscription(SQLModel, table=True):
    __tablename__ = "user_subscription"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", unique=True, nullable=False)
    stripe_customer_id: Optional[str] = Field(default=None, index=True)
    stripe_subscription_id: Optional[str] = Field(default=None, index=True)
    plan: SubscriptionPlan = Field(default=SubscriptionPlan.FREE)
    status: SubscriptionStatus = Field(default=SubscriptionStatus.ACTIVE)
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    user: User = Relationship(back_populates="subscription")

class Article(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    slug: str = Field(unique=True, index=True)
    excerpt: str
    content: str
    cover_image: Optional[str] = None
    author_id: int = Field(foreign_key="user.id", nullable=False)
    category: ArticleCategory = Field(index=True)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    target_ages: List[Dict] = Field(default_factory=list, sa_column=Column(JSON))
    read_time_minutes: int = Field(default=5)
    is_featured: bool = Field(default=False)
    is_published: bool = Field(default=False)
    published_at: Optional[datetime] = None
    view_count: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    author: User = Relationship()
