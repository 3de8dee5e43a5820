import re
from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class ImageStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    READY = "READY"
    FAILED = "FAILED"

    @property
    def rank(self) -> int:
        """전이 순서상의 위치. READY와 FAILED는 같은 단계(종료 상태)."""
        return _RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (ImageStatus.READY, ImageStatus.FAILED)


_RANK = {
    ImageStatus.PENDING: 0,
    ImageStatus.PROCESSING: 1,
    ImageStatus.READY: 2,
    ImageStatus.FAILED: 2,
}

# 허용되는 상태 전이. PENDING → FAILED는 업로드 URL 발급 실패 시에만 쓴다.
ALLOWED_TRANSITIONS: dict[ImageStatus, frozenset[ImageStatus]] = {
    ImageStatus.PENDING: frozenset({ImageStatus.PROCESSING, ImageStatus.FAILED}),
    ImageStatus.PROCESSING: frozenset({ImageStatus.READY, ImageStatus.FAILED}),
    ImageStatus.READY: frozenset(),
    ImageStatus.FAILED: frozenset(),
}


def can_transition(current: ImageStatus, new: ImageStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current]


def utcnow() -> datetime:
    return datetime.now(UTC)


class ImageRecord(SQLModel, table=True):
    image_id: str = Field(primary_key=True)
    object_key: str
    file_name: str
    content_type: str
    status: ImageStatus = Field(default=ImageStatus.PENDING, index=True)
    keywords: list[str] | None = Field(default=None, sa_column=Column(JSON))  # READY일 때만
    error_detail: str | None = None  # FAILED일 때만
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ImageKeyword(SQLModel, table=True):
    """키워드 역색인. READY 레코드에 대해서만 행이 존재한다 (소문자 저장)."""

    image_id: str = Field(primary_key=True, foreign_key="imagerecord.image_id")
    keyword: str = Field(primary_key=True, index=True)


_TERM_SEPARATORS = re.compile(r"[\s,]+")


def split_terms(text: str) -> list[str]:
    """공백/쉼표로 나눈 소문자 검색어 목록 (순서 유지, 중복 제거).

    검색어 파싱과 키워드 역색인 작성이 같은 규칙을 써야
    "Golden Retriever" 같은 키워드도 검색된다.
    """
    return list(dict.fromkeys(t for t in _TERM_SEPARATORS.split(text.strip().lower()) if t))
