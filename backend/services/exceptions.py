# services/exceptions.py
# 저장소(store) 계층 예외. 라우터에서 HTTP 상태코드로 변환함
from typing import Any, Dict, List, Optional


class StoreError(Exception):
    """저장소 예외 공통 부모"""


class ValidationError(StoreError):
    """
    필드 값이 형식/범위를 벗어난 경우

    :param message: 요약 메시지
    :param errors: 필드별 오류 목록(pydantic errors() 형식)
    """

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class NotFoundError(StoreError):
    """
    레코드가 없거나 호출자 소유가 아닌 경우.
    두 경우를 구분하지 않는다(다른 사용자 레코드 존재 여부 노출 방지).
    """

    def __init__(self, resource: str, identifier: Any):
        super().__init__(f"{resource} not found: {identifier}")
        self.resource = resource
        self.identifier = identifier


class ConflictError(StoreError):
    """동시 수정 등으로 DB 제약이 쓰기를 거부한 경우"""
