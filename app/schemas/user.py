from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class UserLogin(BaseModel):
    email: str
    password: str


class UserBase(BaseModel):
    email: str  # str rather than EmailStr so .local test domains pass


class UserCreate(UserBase):
    password: str
    display_name: Optional[str] = None
    phone: Optional[str] = None


class UserUpdate(BaseModel):
    display_name: Optional[str] = None
    phone: Optional[str] = None


class User(UserBase):
    id: str
    display_name: Optional[str] = None
    phone: Optional[str] = None
    is_admin: bool
    created_at: datetime

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str
