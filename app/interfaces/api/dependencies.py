"""FastAPI dependency utilities."""

from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import DeliveryPolicy, NotificationDispatcher
from app.domain.entities import User
from app.infrastructure.channels import EmailChannel, RealtimePushChannel, SmsChannel
from app.infrastructure.database import SessionLocal, get_db
from app.infrastructure.notifications import (
    RealtimeEventPublisher,
    notification_manager,
    realtime_event_publisher,
)
from app.infrastructure.repositories import UserRepository
from app.infrastructure.security import extract_user_id

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def _credentials_error(detail: str = "Invalid credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_current_user(token: str, db: Session) -> User:
    """Resolve the authenticated user for the provided token."""

    try:
        user_id = extract_user_id(token)
    except ValueError as exc:
        raise _credentials_error() from exc

    user = UserRepository(db).get(user_id)
    if user is None:
        raise _credentials_error("User not found")
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Return the authenticated user from the provided token."""

    return resolve_current_user(token, db)


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the authenticated user is active."""

    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user",
        )
    return current_user


def require_admin(current_user: User = Depends(get_current_active_user)) -> User:
    """Ensure the authenticated user has administrator privileges."""

    if not current_user.is_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized",
        )
    return current_user


@lru_cache(maxsize=1)
def get_notification_dispatcher() -> NotificationDispatcher:
    """Return the dispatcher wired to the live channels."""

    policy = DeliveryPolicy(
        SessionLocal,
        realtime=RealtimePushChannel(notification_manager),
        email=EmailChannel(),
        sms=SmsChannel(),
    )
    return NotificationDispatcher(SessionLocal, policy)


def get_realtime_events() -> RealtimeEventPublisher:
    return realtime_event_publisher
