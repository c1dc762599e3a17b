from pydantic import BaseModel, field_validator
from typing import Optional, Dict
from datetime import datetime
from ..models import ContributionType, ContributionStatus

# Types a user may submit directly; place creation and edits record their own
SUBMITTABLE_TYPES = {
    ContributionType.ADD_PHOTO,
    ContributionType.UPDATE_AMENITY,
    ContributionType.REPORT_ISSUE,
}

class ContributionCreate(BaseModel):
    type: ContributionType
    data: Dict = {}

    @field_validator("type")
    @classmethod
    def submittable(cls, value):
        if value not in SUBMITTABLE_TYPES:
            raise ValueError(f"Contribution type '{value.value}' cannot be submitted directly")
        return value

class ContributionRead(BaseModel):
    id: int
    place_id: int
    user_id: int
    type: ContributionType
    data: Dict
    status: ContributionStatus
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
