# routes/auth.py
# 호출자 식별 경계.
# 실제 인증(토큰 검증 등)은 외부 인증 시스템 몫이며, 여기서는 그 결과인 사용자 ID 만 받는다.
# 다른 인증 방식을 붙일 때는 app.dependency_overrides[current_user_id] 로 교체함
import logging
from typing import Optional
from uuid import UUID

from fastapi import Header, HTTPException

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"


def current_user_id(x_user_id: Optional[str] = Header(None)) -> UUID:
    """
    요청 헤더에서 호출자 ID 를 꺼낸다.

    :param x_user_id: X-User-Id 헤더 값(UUID 문자열)
    :type x_user_id: Optional[str]
    :return: 호출자 UUID
    :rtype: UUID
    :raises HTTPException: 헤더가 없거나 UUID 가 아니면 401
    """

    if not x_user_id:
        raise HTTPException(status_code=401, detail="not authenticated")
    try:
        return UUID(x_user_id.strip())
    except ValueError:
        logger.warning("[Auth] malformed %s header", USER_ID_HEADER)
        raise HTTPException(status_code=401, detail="not authenticated")
