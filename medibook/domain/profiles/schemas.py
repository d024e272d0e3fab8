"""Profile domain schemas"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

Role = Literal["user", "doctor", "admin"]


class ProfileResponse(BaseModel):
    id: str
    email: str
    role: Role
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoleUpdate(BaseModel):
    role: Role
