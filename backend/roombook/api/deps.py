from collections.abc import Callable, Generator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from roombook.core.exceptions import ResourceNotFoundError
from roombook.core.security import decode_token
from roombook.db.session import SessionLocal
from roombook.models.reservation import Reservation
from roombook.models.user import User, UserRole

# Missing credentials are reported by get_current_user as 401, not by HTTPBearer as 403.
bearer_scheme = HTTPBearer(auto_error=False)

MANAGER_ROLES = frozenset({UserRole.admin, UserRole.coordinator})
BOOKING_ROLES = MANAGER_ROLES | {UserRole.professor}


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        user_id = decode_token(credentials.credentials).get("sub")
    except JWTError as exc:
        raise _unauthorized("Could not validate credentials") from exc

    user = db.get(User, user_id) if user_id else None
    if user is None:
        raise _unauthorized("Could not validate credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    return user


def require_roles(*roles: UserRole) -> Callable[..., User]:
    allowed = frozenset(roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return role_checker


def require_reservation_owner_or_roles(*roles: UserRole) -> Callable[..., Reservation]:
    """Resolve the ``reservation_id`` path parameter for its creator or a user holding one of ``roles``."""
    allowed = frozenset(roles)

    def owner_checker(
        reservation_id: str,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> Reservation:
        reservation = db.get(Reservation, reservation_id)
        if reservation is None:
            raise ResourceNotFoundError("Reservation", reservation_id)
        if current_user.role not in allowed and reservation.created_by != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the creator or a manager can change this reservation",
            )
        return reservation

    return owner_checker
