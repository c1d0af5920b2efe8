"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from goalmates.application.use_cases.notifications import NotificationService
from goalmates.config import get_settings
from goalmates.domain.entities import User
from goalmates.infrastructure.database import get_db
from goalmates.infrastructure.repositories import UserRepository
from goalmates.infrastructure.security import decode_user_id

# Tokens are issued by the authentication service; this only reads them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


def _credentials_exception(detail: str = "Invalid credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_current_user(token: str, db: Session) -> User:
    """Resolve the authenticated user for the provided token."""

    try:
        user_id = decode_user_id(token)
    except ValueError as exc:
        raise _credentials_exception() from exc

    user = UserRepository(db).get(user_id)
    if user is None:
        raise _credentials_exception("User not found")
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


def get_notification_service(
    request: Request,
    db: Session = Depends(get_db),
) -> NotificationService:
    """Build a :class:`NotificationService` bound to the request session."""

    state = request.app.state
    return NotificationService(
        db,
        publisher=state.notification_publisher,
        email_queue=state.notification_email_queue,
        list_limit=get_settings().notification_list_limit,
    )
