# routes/scheduled_event.py
# 예약 이벤트 CRUD 라우터. 비즈니스 규칙은 전부 services.scheduled_event_service 에 있고,
# 여기서는 호출자 식별 + 저장소 예외 -> HTTP 상태코드 변환만 담당함
import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from database import get_db
from models.scheduled_event import EventPriority, EventStatus, EventType
from routes.auth import current_user_id
from schemas.scheduled_event_schema import ScheduledEventCreate, ScheduledEventOut, ScheduledEventUpdate
from services import scheduled_event_service as svc
from services.exceptions import ConflictError, NotFoundError, StoreError, ValidationError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/scheduled-events", tags=["scheduled-events"])


def _to_http(e: StoreError) -> HTTPException:
    """
    저장소 예외를 HTTPException 으로 변환한다.
    NotFoundError 는 존재 여부를 드러내지 않도록 고정 문구만 내보냄.

    :param e: 저장소 예외
    :type e: StoreError
    :rtype: HTTPException
    """

    if isinstance(e, NotFoundError):
        return HTTPException(404, "scheduled event not found")
    if isinstance(e, ValidationError):
        errors = [{"loc": list(x.get("loc", ())), "msg": x.get("msg"), "type": x.get("type")} for x in e.errors]
        return HTTPException(422, {"message": e.message, "errors": errors})
    if isinstance(e, ConflictError):
        return HTTPException(409, "conflicting modification, retry")
    logger.error(f"Unmapped store error: {e}")
    return HTTPException(500, "store error")


@router.post("", response_model=ScheduledEventOut, status_code=201)
def create_event(
    payload: ScheduledEventCreate,
    db: Session = Depends(get_db),
    user: UUID = Depends(current_user_id),
):
    try:
        return svc.create(db, payload, user)
    except StoreError as e:
        raise _to_http(e)


@router.get("", response_model=List[ScheduledEventOut])
def list_events(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    status: Optional[EventStatus] = Query(None),
    type: Optional[EventType] = Query(None),
    priority: Optional[EventPriority] = Query(None),
    form_id: Optional[UUID] = Query(None),
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: UUID = Depends(current_user_id),
):
    filters = {
        "date_from": date_from,
        "date_to": date_to,
        "status": status,
        "type": type,
        "priority": priority,
        "form_id": form_id,
        "q": q,
    }
    try:
        return svc.get_list(db, user, filters)
    except StoreError as e:
        raise _to_http(e)


@router.get("/{event_id}", response_model=ScheduledEventOut)
def get_event(event_id: UUID, db: Session = Depends(get_db), user: UUID = Depends(current_user_id)):
    try:
        return svc.get(db, event_id, user)
    except StoreError as e:
        raise _to_http(e)


@router.patch("/{event_id}", response_model=ScheduledEventOut)
def update_event(
    event_id: UUID,
    patch: ScheduledEventUpdate,
    db: Session = Depends(get_db),
    user: UUID = Depends(current_user_id),
):
    try:
        return svc.update(db, event_id, patch, user)
    except StoreError as e:
        raise _to_http(e)


@router.delete("/{event_id}", status_code=204)
def delete_event(event_id: UUID, db: Session = Depends(get_db), user: UUID = Depends(current_user_id)):
    try:
        svc.delete(db, event_id, user)
    except StoreError as e:
        raise _to_http(e)
    return Response(status_code=204)
