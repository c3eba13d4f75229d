from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from roombook.api.deps import MANAGER_ROLES, get_current_user, get_db, require_roles
from roombook.models.faculty import Faculty
from roombook.models.reservation import Reservation
from roombook.models.room import Room, RoomStatus
from roombook.models.user import User
from roombook.schemas.room import RoomCreate, RoomOut, RoomUpdate
from roombook.services.audit import log_activity

router = APIRouter()


def _ensure_faculty_exists(db: Session, faculty_id: str | None) -> None:
    if faculty_id is not None and db.get(Faculty, faculty_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Faculty does not exist")


@router.get("/", response_model=list[RoomOut])
def list_rooms(
    faculty_id: str | None = None,
    room_status: RoomStatus | None = Query(default=None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[RoomOut]:
    query = select(Room).order_by(Room.name)
    if faculty_id:
        query = query.where(Room.faculty_id == faculty_id)
    if room_status is not None:
        query = query.where(Room.status == room_status)
    return list(db.execute(query).scalars())


@router.get("/{room_id}", response_model=RoomOut)
def get_room(room_id: str, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> RoomOut:
    room = db.get(Room, room_id)
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return room


@router.post("/", response_model=RoomOut, status_code=status.HTTP_201_CREATED)
def create_room(
    payload: RoomCreate,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> RoomOut:
    existing = db.execute(select(Room).where(Room.code == payload.code)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Room code already exists")
    _ensure_faculty_exists(db, payload.faculty_id)
    room = Room(**payload.model_dump())
    db.add(room)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action="room.create",
        entity_type="room",
        entity_id=room.id,
        details={"code": room.code, "capacity": room.capacity},
    )
    db.commit()
    db.refresh(room)
    return room


@router.put("/{room_id}", response_model=RoomOut)
def update_room(
    room_id: str,
    payload: RoomUpdate,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> RoomOut:
    room = db.get(Room, room_id)
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")

    data = payload.model_dump(exclude_unset=True)
    if "code" in data:
        existing = db.execute(select(Room).where(Room.code == data["code"], Room.id != room_id)).scalar_one_or_none()
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Room code already exists")
    if "faculty_id" in data:
        _ensure_faculty_exists(db, data["faculty_id"])

    for key, value in data.items():
        setattr(room, key, value)
    if data:
        log_activity(
            db,
            user=current_user,
            action="room.update",
            entity_type="room",
            entity_id=room.id,
            details={"fields": sorted(data)},
        )
    db.commit()
    db.refresh(room)
    return room


@router.delete("/{room_id}")
def delete_room(
    room_id: str,
    current_user: User = Depends(require_roles(*MANAGER_ROLES)),
    db: Session = Depends(get_db),
) -> dict:
    room = db.get(Room, room_id)
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    booked = db.execute(select(Reservation.id).where(Reservation.room_id == room_id).limit(1)).first()
    if booked:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Room has reservations; mark it inactive instead",
        )
    log_activity(db, user=current_user, action="room.delete", entity_type="room", entity_id=room.id)
    db.delete(room)
    db.commit()
    return {"success": True}
