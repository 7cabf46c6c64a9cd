"""
User schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from scholarship_app.models.user import UserRole


class UserBase(BaseModel):
    """Base user schema"""
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    name: Optional[str] = Field(None, max_length=100)


class UserRegister(UserBase):
    """Schema for applicant self-registration"""
    password: str = Field(..., min_length=8)


class UserResponse(UserBase):
    """Schema for user response"""
    id: int
    role: UserRole
    is_active: bool
    created_at: datetime
    last_login_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    """Schema for token response"""
    access_token: str
    token_type: str = "bearer"


class TokenData(BaseModel):
    """Schema for token data"""
    email: Optional[str] = None
    role: Optional[str] = None
