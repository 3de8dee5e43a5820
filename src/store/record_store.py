"""이미지 레코드 저장소.

ImageRecord를 image_id로 보관하고, 현재 status를 조건으로 하는
compare-and-swap 업데이트를 제공한다. 상태 전이의 동시성 제어는
전부 여기의 조건부 UPDATE 한 곳에서만 일어난다 (프로세스 내 락 없음).
"""

from typing import Protocol

from loguru import logger
from sqlalchemy import delete, func, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from core.exceptions import (
    ImageAlreadyExists,
    ImageNotFound,
    InvalidRequest,
    StatusConflict,
    UpstreamUnavailable,
)
from model.image import ImageKeyword, ImageRecord, ImageStatus, split_terms, utcnow


def index_terms(keywords: list[str] | None) -> list[str]:
    """키워드 목록을 역색인 행으로 쓸 검색어 집합으로 바꾼다 (검색어 파싱과 같은 규칙)."""
    return list(dict.fromkeys(t for k in keywords or [] for t in split_terms(k)))


class RecordStore(Protocol):
    def create(self, record: ImageRecord) -> ImageRecord: ...

    def get(self, image_id: str) -> ImageRecord: ...

    def compare_and_swap_status(
        self, image_id: str, expected_status: ImageStatus, new_record: ImageRecord
    ) -> ImageRecord: ...

    def query_by_keyword(self, keyword: str) -> list[ImageRecord]: ...

    def query_by_keywords(self, terms: list[str], limit: int | None = None) -> list[ImageRecord]: ...


class SqlRecordStore:
    """SQLModel 기반 RecordStore 구현.

    연산마다 새 Session을 열기 때문에 요청 간에 공유되는 가변 상태는
    엔진의 커넥션 풀뿐이다.
    """

    def __init__(self, engine: Engine):
        self._engine = engine

    def create(self, record: ImageRecord) -> ImageRecord:
        """새 레코드를 저장한다. 같은 image_id가 있으면 덮어쓰지 않고 실패한다."""
        try:
            with Session(self._engine) as session:
                session.add(record)
                session.commit()
                session.refresh(record)
                return record
        except IntegrityError:
            raise ImageAlreadyExists(f"이미 존재하는 이미지 ID입니다: {record.image_id}")
        except SQLAlchemyError as e:
            logger.error(f"record store create failed: {e}")
            raise UpstreamUnavailable from e

    def get(self, image_id: str) -> ImageRecord:
        try:
            with Session(self._engine) as session:
                record = session.get(ImageRecord, image_id)
        except SQLAlchemyError as e:
            logger.error(f"record store get failed: {e}")
            raise UpstreamUnavailable from e
        if record is None:
            raise ImageNotFound
        return record

    def compare_and_swap_status(
        self, image_id: str, expected_status: ImageStatus, new_record: ImageRecord
    ) -> ImageRecord:
        """현재 status가 expected_status일 때만 new_record의 상태로 교체한다.

        status, keywords, error_detail을 한 트랜잭션에서 갱신하고
        키워드 역색인도 같은 트랜잭션에서 다시 쓴다. 따라서 READY가 보이는
        시점에는 키워드도 항상 완전하다.

        - 레코드가 없으면 ImageNotFound
        - 현재 status가 다르면 StatusConflict (경쟁에서 진 쪽)
        - READY인데 키워드가 없으면 InvalidRequest (쓰기 전에 거부)
        """
        if new_record.status == ImageStatus.READY and not index_terms(new_record.keywords):
            raise InvalidRequest(f"{image_id}: READY 레코드에는 키워드가 필요합니다")

        try:
            with Session(self._engine) as session:
                conn = session.connection()
                result = conn.execute(
                    update(ImageRecord)
                    .where(
                        col(ImageRecord.image_id) == image_id,
                        col(ImageRecord.status) == expected_status,
                    )
                    .values(
                        status=new_record.status,
                        keywords=new_record.keywords,
                        error_detail=new_record.error_detail,
                        updated_at=utcnow(),
                    )
                )
                if result.rowcount == 0:
                    session.rollback()
                    current = session.get(ImageRecord, image_id)
                    if current is None:
                        raise ImageNotFound
                    raise StatusConflict(
                        f"{image_id}: 기대 상태 {expected_status.value}, "
                        f"현재 상태 {current.status.value}"
                    )

                conn.execute(delete(ImageKeyword).where(col(ImageKeyword.image_id) == image_id))
                if new_record.status == ImageStatus.READY:
                    session.add_all(
                        ImageKeyword(image_id=image_id, keyword=kw)
                        for kw in index_terms(new_record.keywords)
                    )
                session.commit()

                stored = session.get(ImageRecord, image_id)
        except SQLAlchemyError as e:
            logger.error(f"record store compare-and-swap failed: {e}")
            raise UpstreamUnavailable from e

        logger.debug(f"{image_id}: {expected_status.value} → {stored.status.value}")
        return stored

    def query_by_keyword(self, keyword: str) -> list[ImageRecord]:
        """키워드 하나(대소문자 무시, 완전 일치)를 가진 READY 레코드."""
        return self.query_by_keywords([keyword])

    def query_by_keywords(self, terms: list[str], limit: int | None = None) -> list[ImageRecord]:
        """모든 키워드를 가진(AND) READY 레코드를 최근 갱신 순으로 반환한다."""
        terms = sorted(index_terms(terms))
        if not terms:
            return []

        stmt = (
            select(ImageRecord)
            .join(ImageKeyword, col(ImageKeyword.image_id) == col(ImageRecord.image_id))
            .where(
                col(ImageRecord.status) == ImageStatus.READY,
                col(ImageKeyword.keyword).in_(terms),
            )
            .group_by(col(ImageRecord.image_id))
            .having(func.count(func.distinct(col(ImageKeyword.keyword))) == len(terms))
            .order_by(col(ImageRecord.updated_at).desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            with Session(self._engine) as session:
                return list(session.exec(stmt).all())
        except SQLAlchemyError as e:
            logger.error(f"record store query failed: {e}")
            raise UpstreamUnavailable from e
