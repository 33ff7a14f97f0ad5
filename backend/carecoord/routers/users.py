from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
#provides a database session per request
from ..database import get_db
from ..models.user import User
#To prevent accidental exposure of sensitive fields
from ..schemas.user import UserResponse, UserUpdate
from ..services import users as user_service
from ..utils.deps import get_current_active_user

router = APIRouter(prefix="/api/users", tags=["users"])

#Returns only the authenticated user's own profile
@router.get("/profile", response_model=UserResponse)
async def get_user_profile(
    current_user: User = Depends(get_current_active_user)
):
    """Get current user profile."""
    return UserResponse.from_orm(current_user)

#name and phone only; role and email are admin business
@router.put("/profile", response_model=UserResponse)
async def update_user_profile(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Update current user profile."""
    user = user_service.update_profile(db, current_user, user_update)
    return UserResponse.from_orm(user)
