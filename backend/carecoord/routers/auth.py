from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from ..database import get_db
from ..models.user import User
from ..models.audit_log import AuditAction, AuditEntityType
from ..schemas.auth import LoginRequest, LogoutRequest, RefreshRequest, TokenResponse
from ..schemas.user import UserResponse
from ..services import auth as auth_service
from ..utils.audit import get_audit_logger
from ..utils.deps import get_current_active_user
from ..utils.session_store import SessionStore, get_session_store

router = APIRouter(prefix="/api/auth", tags=["authentication"])

@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store)
):
    """Authenticate with email and password and open a session."""
    tokens = auth_service.login(db, store, login_data.email, login_data.password)

    get_audit_logger(db).log_action(
        action=AuditAction.LOGIN,
        entity_type=AuditEntityType.USER,
        entity_id=tokens.user_id,
        description=f"User {login_data.email} logged in",
        request=request,
    )
    return tokens

#Exchange a refresh token for a new token pair
@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    refresh_data: RefreshRequest,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store)
):
    """Rotate the session behind a refresh token."""
    return auth_service.refresh(db, store, refresh_data.refresh_token)

@router.post("/logout")
async def logout(
    logout_data: LogoutRequest,
    request: Request,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    current_user: User = Depends(get_current_active_user)
):
    """Revoke the caller's session."""
    if logout_data.refresh_token:
        auth_service.logout(store, logout_data.refresh_token)

    get_audit_logger(db).log_action(
        action=AuditAction.LOGOUT,
        entity_type=AuditEntityType.USER,
        entity_id=current_user.id,
        user=current_user,
        description=f"User {current_user.email} logged out",
        request=request,
    )
    return {"message": "Successfully logged out"}

@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user)
):
    """Get current user information."""
    return current_user
