# models/scheduled_event.py
# 예약 이벤트(scheduled_events) 테이블 정의 + 타임스탬프 자동 갱신 훅
import enum
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    Index,
    Integer,
    Text,
    Time,
    Uuid,
    event,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm.attributes import get_history

Base = declarative_base()


class EventType(str, enum.Enum):
    form_review = "form_review"
    team_meeting = "team_meeting"
    training = "training"
    maintenance = "maintenance"
    other = "other"


class EventPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class EventStatus(str, enum.Enum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


def _check_in(column: str, enum_cls) -> CheckConstraint:
    values = ", ".join(f"'{m.value}'" for m in enum_cls)
    return CheckConstraint(f"{column} IN ({values})", name=f"ck_scheduled_events_{column}")


def _enum_column(enum_cls, default):
    # DB 에는 태그 문자열 그대로 저장(native enum 타입 미사용)
    return Column(
        Enum(enum_cls, native_enum=False, create_constraint=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=default,
    )


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous=None) -> datetime:
    """
    이전 값보다 반드시 큰 현재 시각을 돌려준다.
    시계 해상도가 낮아 now() 가 같은 값을 돌려주는 경우에도 1µs 이상 증가시킨다.

    :param previous: 직전 updated_at (SQLite 에서 읽으면 tz 정보가 없음 -> UTC 로 간주)
    :type previous: Optional[datetime]
    :return: timezone-aware UTC 시각
    :rtype: datetime
    """

    now = utcnow()
    if previous is None:
        return now
    if previous.tzinfo is None:
        previous = previous.replace(tzinfo=timezone.utc)
    return max(now, previous + timedelta(microseconds=1))


class ScheduledEvent(Base):
    __tablename__ = "scheduled_events"
    __table_args__ = (
        CheckConstraint("duration > 0", name="ck_scheduled_events_duration"),
        CheckConstraint("reminder_minutes >= 0", name="ck_scheduled_events_reminder_minutes"),
        _check_in("type", EventType),
        _check_in("priority", EventPriority),
        _check_in("status", EventStatus),
        Index("idx_scheduled_events_created_by", "created_by"),
        Index("idx_scheduled_events_date", "date"),
        Index("idx_scheduled_events_status", "status"),
        Index("idx_scheduled_events_type", "type"),
        Index("idx_scheduled_events_priority", "priority"),
        Index("idx_scheduled_events_date_time", "date", "time"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False, default=60)
    type = _enum_column(EventType, EventType.other)
    priority = _enum_column(EventPriority, EventPriority.medium)
    attendees = Column(JSON, nullable=False, default=list)
    location = Column(Text, nullable=False, default="")
    form_id = Column(Uuid, nullable=True)  # forms 테이블 약한 참조(FK 없음)
    reminder_minutes = Column(Integer, nullable=False, default=15)
    status = _enum_column(EventStatus, EventStatus.scheduled)
    created_by = Column(Uuid, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<ScheduledEvent {self.id} {self.date} {self.time} {self.title!r}>"


@event.listens_for(ScheduledEvent, "before_insert")
def _stamp_created(mapper, connection, target):
    # 호출자가 넣은 값은 무시하고 같은 시각으로 두 필드를 채움
    now = utcnow()
    target.created_at = now
    target.updated_at = now


@event.listens_for(ScheduledEvent, "before_update")
def _refresh_updated_at(mapper, connection, target):
    hist = get_history(target, "updated_at")
    previous = (hist.deleted or hist.unchanged or hist.added or [None])[0]
    target.updated_at = next_timestamp(previous)
