# services/scheduled_event_service.py
# 예약 이벤트 저장소. 모든 함수는 acting_user(호출자) 소유 레코드만 다룬다.
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy import and_, func, or_
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from models.scheduled_event import ScheduledEvent
from schemas.scheduled_event_schema import (
    ScheduledEventCreate,
    ScheduledEventFilter,
    ScheduledEventUpdate,
)
from services.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

RESOURCE = "ScheduledEvent"
WEEKDAY_EN = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

# 서버가 관리하는 값. patch 로 넘어와도 무시함
IMMUTABLE_FIELDS = ("id", "created_by", "created_at", "updated_at")
EDITABLE_FIELDS = tuple(ScheduledEventCreate.model_fields)


def _validate(schema, data: Any):
    """
    dict 또는 pydantic 모델을 주어진 스키마로 검증한다.

    :raises ValidationError: pydantic 검증 실패 시(필드 오류 목록 포함)
    """

    if isinstance(data, schema):
        return data
    if isinstance(data, dict):
        data = {k: v for k, v in data.items() if k not in IMMUTABLE_FIELDS}
    elif isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"invalid {RESOURCE}", e.errors(include_url=False)) from e


def _snapshot(ev: ScheduledEvent) -> Dict[str, Any]:
    return {name: getattr(ev, name) for name in EDITABLE_FIELDS}


def _owned(db: Session, acting_user: UUID):
    return db.query(ScheduledEvent).filter(ScheduledEvent.created_by == acting_user)


def _commit(db: Session) -> None:
    # 커밋 실패 시 롤백 후 저장소 예외로 변환(부분 반영 없음). 어떤 예외든 세션은 롤백된 상태로 남김
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(str(e.orig)) from e
    except DataError as e:
        db.rollback()
        raise ValidationError(f"invalid {RESOURCE}", [{"loc": (), "msg": str(e.orig), "type": "data_error"}]) from e
    except StaleDataError as e:
        db.rollback()
        raise NotFoundError(RESOURCE, "stale row") from e
    except Exception:
        db.rollback()
        raise


def _as_uuid(value: Any) -> Optional[UUID]:
    """
    id 값을 UUID 로 정규화한다. str/UUID 모두 받으며, 해석할 수 없으면 None.

    :param value: UUID 또는 UUID 문자열
    :rtype: Optional[UUID]
    """

    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (TypeError, ValueError):
        return None


def _require_uuid(value: Any, action: str, acting_user: UUID) -> UUID:
    # 형식이 틀린 id 도 "없는 id" 와 똑같이 취급
    event_id = _as_uuid(value)
    if event_id is None:
        logger.warning("[ScheduledEvent] %s of malformed id=%r refused for owner=%s", action, value, acting_user)
        raise NotFoundError(RESOURCE, value)
    return event_id


def _uuid_list(ids: Iterable[Any]) -> List[UUID]:
    return [u for u in (_as_uuid(i) for i in ids) if u is not None]


def create(db: Session, payload: Union[ScheduledEventCreate, Dict[str, Any]], acting_user: UUID) -> ScheduledEvent:
    """
    이벤트 생성. created_by 는 payload 와 무관하게 acting_user 로 고정된다.

    :param db: DB 세션
    :type db: Session
    :param payload: 생성 입력(dict 또는 ScheduledEventCreate)
    :param acting_user: 호출자 ID
    :type acting_user: UUID
    :return: id/created_at/updated_at 이 채워진 레코드
    :rtype: ScheduledEvent
    :raises ValidationError: 제목 누락, duration <= 0, reminder_minutes < 0, 허용되지 않은 enum 값 등
    """

    data = _validate(ScheduledEventCreate, payload)
    ev = ScheduledEvent(**data.model_dump(mode="python"), created_by=acting_user)
    db.add(ev)
    _commit(db)
    db.refresh(ev)
    logger.info("[ScheduledEvent] created id=%s owner=%s date=%s", ev.id, acting_user, ev.date)
    return ev


def get(db: Session, event_id: UUID, acting_user: UUID) -> ScheduledEvent:
    event_id = _require_uuid(event_id, "read", acting_user)
    ev = _owned(db, acting_user).filter(ScheduledEvent.id == event_id).first()
    if not ev:
        logger.warning("[ScheduledEvent] id=%s not visible to owner=%s", event_id, acting_user)
        raise NotFoundError(RESOURCE, event_id)
    return ev


def get_many(db: Session, ids: Iterable[UUID], acting_user: UUID) -> List[ScheduledEvent]:
    # 없는 id / 남의 id 는 구분 없이 결과에서 빠진다
    ids = _uuid_list(ids)
    if not ids:
        return []
    return (
        _owned(db, acting_user)
        .filter(ScheduledEvent.id.in_(ids))
        .order_by(ScheduledEvent.date.asc(), ScheduledEvent.time.asc(), ScheduledEvent.id.asc())
        .all()
    )


def get_list(
    db: Session,
    acting_user: UUID,
    filters: Optional[Union[ScheduledEventFilter, Dict[str, Any]]] = None,
) -> List[ScheduledEvent]:
    """
    호출자 소유 이벤트 목록. 정렬은 (date, time, created_at, id) 로 고정.

    :param filters: ScheduledEventFilter 또는 같은 키를 가진 dict(없으면 전체)
    :rtype: List[ScheduledEvent]
    """

    f = _validate(ScheduledEventFilter, filters or {})
    logger.debug(f"[ScheduledEvent] list owner={acting_user} filters={f.model_dump(exclude_none=True)}")

    query = _owned(db, acting_user)
    if f.date_from: query = query.filter(ScheduledEvent.date >= f.date_from)
    if f.date_to:   query = query.filter(ScheduledEvent.date <= f.date_to)
    if f.status:    query = query.filter(ScheduledEvent.status == f.status)
    if f.type:      query = query.filter(ScheduledEvent.type == f.type)
    if f.priority:  query = query.filter(ScheduledEvent.priority == f.priority)
    if f.form_id:   query = query.filter(ScheduledEvent.form_id == f.form_id)
    if f.q:
        like = f"%{f.q.lower()}%"
        query = query.filter(
            or_(func.lower(ScheduledEvent.title).like(like), func.lower(ScheduledEvent.description).like(like))
        )
    return query.order_by(
        ScheduledEvent.date.asc(),
        ScheduledEvent.time.asc(),
        ScheduledEvent.created_at.asc(),
        ScheduledEvent.id.asc(),
    ).all()


def get_in_range(db: Session, start: datetime, end: datetime, acting_user: UUID) -> List[ScheduledEvent]:
    """
    시작 시각 (date, time) 이 [start, end) 안에 있는 이벤트.
    (date, time) 복합 인덱스를 타도록 날짜 경계와 시각 경계를 나눠서 비교한다.

    :param start: 하한(포함), naive datetime
    :param end: 상한(제외), naive datetime
    """

    if end <= start:
        return []
    s_date, s_time = start.date(), start.time()
    e_date, e_time = end.date(), end.time()
    after_start = or_(
        ScheduledEvent.date > s_date,
        and_(ScheduledEvent.date == s_date, ScheduledEvent.time >= s_time),
    )
    before_end = or_(
        ScheduledEvent.date < e_date,
        and_(ScheduledEvent.date == e_date, ScheduledEvent.time < e_time),
    )
    return (
        _owned(db, acting_user)
        .filter(ScheduledEvent.date >= s_date, ScheduledEvent.date <= e_date, after_start, before_end)
        .order_by(ScheduledEvent.date.asc(), ScheduledEvent.time.asc(), ScheduledEvent.id.asc())
        .all()
    )


def _apply_patch(db: Session, event_id: UUID, patch: Any, acting_user: UUID) -> ScheduledEvent:
    event_id = _require_uuid(event_id, "update", acting_user)
    ev = _owned(db, acting_user).filter(ScheduledEvent.id == event_id).with_for_update().first()
    if not ev:
        logger.warning("[ScheduledEvent] update of id=%s refused for owner=%s", event_id, acting_user)
        raise NotFoundError(RESOURCE, event_id)

    changes = _validate(ScheduledEventUpdate, patch).model_dump(exclude_unset=True)
    merged = _validate(ScheduledEventCreate, {**_snapshot(ev), **changes})
    logger.debug(f"[ScheduledEvent] update id={event_id} changes={changes}")

    for k in changes:
        setattr(ev, k, getattr(merged, k))
    # 변경 내용이 없어도 updated_at 은 갱신되어야 하므로 UPDATE 를 강제
    flag_modified(ev, "updated_at")
    return ev


def update(
    db: Session,
    event_id: UUID,
    patch: Union[ScheduledEventUpdate, Dict[str, Any]],
    acting_user: UUID,
) -> ScheduledEvent:
    """
    이벤트 부분 수정. 병합 결과를 생성 규칙으로 다시 검증하고, 성공하면 updated_at 이 항상 증가한다.

    :param event_id: 대상 이벤트 ID
    :param patch: 바꿀 필드만 담은 dict 또는 ScheduledEventUpdate
    :param acting_user: 호출자 ID(소유자가 아니면 NotFoundError)
    :return: 갱신된 레코드
    :rtype: ScheduledEvent
    """

    try:
        ev = _apply_patch(db, event_id, patch, acting_user)
    except Exception:
        db.rollback()
        raise
    _commit(db)
    db.refresh(ev)
    return ev


def update_many(db: Session, items: List[Dict[str, Any]], acting_user: UUID) -> List[ScheduledEvent]:
    """
    여러 건을 한 트랜잭션으로 수정. 하나라도 실패하면 전부 롤백된다.

    :param items: [{"id": ..., "patch": {...}}, ...]
    """

    results: List[ScheduledEvent] = []
    try:
        for i, it in enumerate(items):
            event_id = _as_uuid(it.get("id")) if isinstance(it, dict) else None
            if event_id is None:
                raise ValidationError(
                    f"invalid {RESOURCE} batch item",
                    [{"loc": (i, "id"), "msg": "a valid UUID id is required", "type": "uuid_parsing"}],
                )
            results.append(_apply_patch(db, event_id, it.get("patch") or {}, acting_user))
    except Exception:
        db.rollback()
        raise
    _commit(db)
    for ev in results:
        db.refresh(ev)
    return results


def delete(db: Session, event_id: UUID, acting_user: UUID) -> None:
    # 단일 DELETE 문. 경쟁하는 두 번째 삭제는 0건 -> NotFoundError
    event_id = _require_uuid(event_id, "delete", acting_user)
    rows = (
        _owned(db, acting_user)
        .filter(ScheduledEvent.id == event_id)
        .delete(synchronize_session="fetch")
    )
    if not rows:
        db.rollback()
        logger.warning("[ScheduledEvent] delete of id=%s refused for owner=%s", event_id, acting_user)
        raise NotFoundError(RESOURCE, event_id)
    _commit(db)
    logger.info("[ScheduledEvent] deleted id=%s owner=%s", event_id, acting_user)


def delete_many(db: Session, ids: Iterable[UUID], acting_user: UUID) -> int:
    ids = list(ids)
    if not ids:
        return 0
    valid = _uuid_list(ids)
    if not valid:
        return 0
    rows = (
        _owned(db, acting_user)
        .filter(ScheduledEvent.id.in_(valid))
        .delete(synchronize_session="fetch")
    )
    _commit(db)
    logger.info("[ScheduledEvent] deleted %d of %d requested ids owner=%s", rows, len(ids), acting_user)
    return rows


def human_line(e: ScheduledEvent) -> str:
    """
    한 줄 요약. 예: "2024-06-01 (Sat) 14:00 ~ 15:00 · Sprint Review [scheduled]"

    :param e: 이벤트 레코드
    :rtype: str
    """

    start = datetime.combine(e.date, e.time)
    end = start + timedelta(minutes=e.duration)
    status = e.status.value if hasattr(e.status, "value") else e.status
    return (
        f"{start.strftime('%Y-%m-%d')} ({WEEKDAY_EN[start.weekday()]}) "
        f"{start.strftime('%H:%M')} ~ {end.strftime('%H:%M')} · {e.title} [{status}]"
    )
