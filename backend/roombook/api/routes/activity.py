from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from roombook.api.deps import MANAGER_ROLES, get_db, require_roles
from roombook.models.activity_log import ActivityLog
from roombook.models.user import User
from roombook.schemas.activity import ActivityLogOut

router = APIRouter()


@router.get("/activity/logs", response_model=list[ActivityLogOut])
def list_activity_logs(
    entity_type: str | None = None,
    entity_id: str | None = None,
    limit: int = Query(default=500, ge=1, le=2000),
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> list[ActivityLogOut]:
    query = select(ActivityLog).order_by(ActivityLog.created_at.desc())
    if entity_type:
        query = query.where(ActivityLog.entity_type == entity_type)
    if entity_id:
        query = query.where(ActivityLog.entity_id == entity_id)
    return list(db.execute(query.limit(limit)).scalars())
