from pydantic import BaseModel
from ..models.enums import UserRole


class RoleUpdate(BaseModel):
    role: UserRole


class StatusUpdate(BaseModel):
    is_active: bool
