from fastapi import APIRouter, Depends, status
from sqlmodel import Session, select
from ..models import User, UserSubscription
from ..database import get_session
from ..errors import Duplicate, NotFound
from ..schemas.common import DataResponse
from ..schemas.subscription import SubscriptionRead
from ..schemas.user import UserCreate, UserRead, UserSummary
from ..services.auth import get_current_user, get_password_hash

router = APIRouter()

@router.post("/", response_model=DataResponse[UserRead], status_code=status.HTTP_201_CREATED)
def create_user(user: UserCreate, db: Session = Depends(get_session)):
    # Check if username already exists
    db_user = db.exec(select(User).where(User.username == user.username)).first()
    if db_user:
        raise Duplicate("Username already registered")

    # Create new user with hashed password
    db_user = User(
        username=user.username,
        full_name=user.full_name,
        hashed_password=get_password_hash(user.password),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return {"data": UserRead.model_validate(db_user)}

@router.get("/me", response_model=DataResponse[UserRead])
def read_user_me(current_user: User = Depends(get_current_user)):
    return {"data": UserRead.model_validate(current_user)}

@router.get("/me/subscription", response_model=DataResponse[SubscriptionRead])
def read_my_subscription(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session)
):
    record = db.exec(
        select(UserSubscription).where(UserSubscription.user_id == current_user.id)
    ).first()
    if record is None:
        raise NotFound("No subscription found")
    return {"data": SubscriptionRead.model_validate(record)}

@router.get("/{user_id}", response_model=DataResponse[UserSummary])
def get_user(user_id: int, db: Session = Depends(get_session)):
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return {"data": UserSummary.model_validate(user)}
