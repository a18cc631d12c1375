# schemas/scheduled_event_schema.py
import datetime as dt
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.scheduled_event import EventPriority, EventStatus, EventType

# DB integer 컬럼(4바이트) 상한
INT4_MAX = 2**31 - 1


class ScheduledEventCreate(BaseModel):
    # id/created_by/created_at/updated_at 등 서버가 정하는 값은 조용히 버림
    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1)
    description: str = ""
    date: dt.date
    time: dt.time
    duration: int = Field(60, gt=0, le=INT4_MAX)
    type: EventType = EventType.other
    priority: EventPriority = EventPriority.medium
    attendees: List[Any] = Field(default_factory=list)
    location: str = ""
    form_id: Optional[UUID] = None
    reminder_minutes: int = Field(15, ge=0, le=INT4_MAX)
    status: EventStatus = EventStatus.scheduled

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v):
        if not v.strip():
            raise ValueError("title must not be blank")
        return v

    @field_validator("description", "location", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("attendees", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return [] if v is None else v


class ScheduledEventUpdate(BaseModel):
    """
    부분 수정(patch) 입력. 넘어온 필드만 반영하며 최종 검증은 병합 후 ScheduledEventCreate 규칙으로 다시 한다.
    """

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    duration: Optional[int] = None
    type: Optional[EventType] = None
    priority: Optional[EventPriority] = None
    attendees: Optional[List[Any]] = None
    location: Optional[str] = None
    form_id: Optional[UUID] = None
    reminder_minutes: Optional[int] = None
    status: Optional[EventStatus] = None


class ScheduledEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    date: dt.date
    time: dt.time
    duration: int
    type: EventType
    priority: EventPriority
    attendees: List[Any]
    location: str
    form_id: Optional[UUID]
    reminder_minutes: int
    status: EventStatus
    created_by: UUID
    created_at: dt.datetime
    updated_at: dt.datetime


class ScheduledEventFilter(BaseModel):
    """
    목록 조회 조건. 모든 조건은 AND 로 결합된다.
    date_from/date_to 는 양 끝 포함, q 는 제목/설명 부분일치(대소문자 무시).
    """

    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None
    status: Optional[EventStatus] = None
    type: Optional[EventType] = None
    priority: Optional[EventPriority] = None
    form_id: Optional[UUID] = None
    q: Optional[str] = None

    @field_validator("date_to")
    @classmethod
    def _to_after_from(cls, v, info):
        start = info.data.get("date_from")
        if v and start and v < start:
            raise ValueError("date_to must be on or after date_from")
        return v
