from core.exceptions import InvalidRequest
from model.image import ImageRecord, ImageStatus, split_terms
from model.schemas import ImageStatusResponse, SearchResponse, SearchResult
from store.record_store import RecordStore


def to_status_response(record: ImageRecord) -> ImageStatusResponse:
    """레코드를 상태 응답으로 투영한다.

    keywords는 READY일 때만, errorDetail은 FAILED일 때만 채운다.
    (그 외 상태에서 빈 값을 넣어 잘못된 정보를 주지 않는다)
    """
    return ImageStatusResponse(
        image_id=record.image_id,
        status=record.status,
        keywords=record.keywords if record.status == ImageStatus.READY else None,
        error_detail=record.error_detail if record.status == ImageStatus.FAILED else None,
    )


def get_status(image_id: str, store: RecordStore) -> ImageStatusResponse:
    """현재 레코드의 스냅샷. 없으면 ImageNotFound."""
    return to_status_response(store.get(image_id))


def parse_query(q: str | None) -> list[str]:
    """검색어를 공백/쉼표로 나눠 소문자 키워드 목록으로 만든다."""
    terms = split_terms(q or "")
    if not terms:
        raise InvalidRequest("검색어(q)가 비어 있습니다")
    return terms


def search_images(q: str | None, store: RecordStore, limit: int | None = None) -> SearchResponse:
    """모든 검색어를 키워드로 가진(AND) READY 이미지를 찾는다."""
    terms = parse_query(q)
    records = store.query_by_keywords(terms, limit=limit)
    return SearchResponse(
        results=[
            SearchResult(
                image_id=r.image_id,
                keywords=r.keywords or [],
                object_key=r.object_key,
            )
            for r in records
        ]
    )
