#built-in Pydantic type that validates email format automatically.
from pydantic import EmailStr
from typing import Optional
from .base import CamelModel
from ..models.user import UserRole

#Represents the request body for user login
class LoginRequest(CamelModel):
    email: EmailStr
    password: str

class RefreshRequest(CamelModel):
    refresh_token: str

class LogoutRequest(CamelModel):
    refresh_token: Optional[str] = None

#authentication response payload
class TokenResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    role: UserRole
    user_id: int
