from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class User(BaseModel):
    user_id: str
    email: Optional[str] = None


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    username: str = Field(..., min_length=1, max_length=40)
