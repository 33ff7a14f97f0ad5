import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from ..config import settings
from ..errors import AuthenticationError, PermissionDeniedError
from ..models.user import User
from ..schemas.auth import TokenResponse
from ..utils.auth import create_access_token, create_refresh_token, verify_password
from ..utils.dates import utcnow
from ..utils.session_store import SessionRecord, SessionStore
from .users import get_user_by_email

logger = logging.getLogger(__name__)


def authenticate(db: Session, email: str, password: str) -> User:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        logger.info("Failed login for %s", email)
        raise AuthenticationError("Invalid email or password")
    if not user.is_active:
        raise PermissionDeniedError("Inactive user")
    return user


def issue_tokens(user: User, store: SessionStore) -> TokenResponse:
    """Sign an access token and open a server-side session for the refresh token."""
    access_token = create_access_token(
        data={"sub": str(user.id), "role": user.role.value}
    )
    refresh_token = create_refresh_token()
    store.set(SessionRecord(
        refresh_token=refresh_token,
        user_id=user.id,
        expires_at=utcnow() + timedelta(days=settings.refresh_token_expire_days),
    ))
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expire_minutes * 60,
        role=user.role,
        user_id=user.id,
    )


def login(db: Session, store: SessionStore, email: str, password: str) -> TokenResponse:
    user = authenticate(db, email, password)
    return issue_tokens(user, store)


def refresh(db: Session, store: SessionStore, refresh_token: str) -> TokenResponse:
    """Exchange a live refresh token for a new token pair; the old session is revoked."""
    record = store.get(refresh_token)
    if record is None:
        raise AuthenticationError("Invalid or expired refresh token")

    user = db.get(User, record.user_id)
    if user is None:
        raise AuthenticationError("Invalid or expired refresh token")
    if not user.is_active:
        raise PermissionDeniedError("Inactive user")

    store.remove(refresh_token)
    return issue_tokens(user, store)


def logout(store: SessionStore, refresh_token: str) -> None:
    store.remove(refresh_token)
