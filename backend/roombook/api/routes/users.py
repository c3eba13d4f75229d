from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from roombook.api.deps import MANAGER_ROLES, get_current_user, get_db, require_roles
from roombook.models.user import User, UserRole
from roombook.schemas.user import UserListOut, UserPublicOut, UserRoleUpdate
from roombook.services.audit import log_activity

router = APIRouter()


# Admins see contact details; coordinators get the directory view.
@router.get("/users", response_model=None)
def list_users(
    role: UserRole | None = None,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> list[UserListOut] | list[UserPublicOut]:
    query = select(User).order_by(User.name)
    if role is not None:
        query = query.where(User.role == role)
    users = list(db.execute(query).scalars())
    if current_user.role == UserRole.admin:
        return [UserListOut.model_validate(user) for user in users]
    return [UserPublicOut.model_validate(user) for user in users]


@router.patch("/users/{user_id}/role", response_model=UserListOut)
def update_user_role(
    user_id: str,
    payload: UserRoleUpdate,
    current_user: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> UserListOut:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if user.id == current_user.id and payload.role != UserRole.admin:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admins cannot demote themselves")

    previous = user.role
    user.role = payload.role
    log_activity(
        db,
        user=current_user,
        action="user.role.update",
        entity_type="user",
        entity_id=user.id,
        details={"from": previous.value, "to": payload.role.value},
    )
    db.commit()
    db.refresh(user)
    return user


@router.get("/professors", response_model=list[UserPublicOut])
def list_professors(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[UserPublicOut]:
    query = (
        select(User)
        .where(User.role == UserRole.professor, User.is_active.is_(True))
        .order_by(User.name)
    )
    return list(db.execute(query).scalars())
