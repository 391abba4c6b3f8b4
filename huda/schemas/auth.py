from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from huda.core.records import UserRole


class LoginRequest(BaseModel):
    username: str
    password: str

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

class RefreshTokenRequest(BaseModel):
    refresh_token: str

class UserCreate(BaseModel):
    username: str
    password: str
    name: str
    role: UserRole
    whatsapp: Optional[str] = None
    assigned_classes: List[str] = []
    student_id: Optional[UUID] = None

    @field_validator('password')
    def validate_password(cls, v):
        if len(v) < 4:
            raise ValueError('Password must be at least 4 characters')
        return v

class UserResponse(BaseModel):
    id: UUID
    username: str
    name: str
    role: UserRole
    whatsapp: Optional[str] = None
    assigned_classes: List[str] = []
    student_id: Optional[UUID] = None
    is_active: bool
    last_seen: Optional[datetime] = None

    class Config:
        from_attributes = True
