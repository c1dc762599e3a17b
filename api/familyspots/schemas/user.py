from pydantic import BaseModel, Field
from typing import Optional
from ..models import UserRole
from datetime import datetime

class UserBase(BaseModel):
    username: str = Field(min_length=3)
    full_name: str

class UserCreate(UserBase):
    password: str = Field(min_length=8)

class UserRead(UserBase):
    id: int
    avatar_url: Optional[str] = None
    role: UserRole
    is_premium: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class UserSummary(BaseModel):
    id: int
    full_name: str
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True
