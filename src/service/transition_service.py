"""이미지 상태 전이.

외부 인덱싱 워커가 사용하는 전이 API. 실제 쓰기는 RecordStore의
compare_and_swap_status 한 곳에서만 일어나며, 여기서는 현재 상태를 읽고
전이 가능 여부를 검사한 뒤 조건부 쓰기를 시도한다.

    PENDING ──▶ PROCESSING ──▶ READY   (종료)
       │                  └──▶ FAILED  (종료)
       └──────────────────────▶ FAILED  (업로드 URL 발급 실패)
"""

from loguru import logger

from core.exceptions import InvalidRequest, InvalidTransition, StatusConflict
from model.image import ImageRecord, ImageStatus, can_transition
from store.record_store import RecordStore

DEFAULT_MAX_ATTEMPTS = 3


def normalize_keywords(keywords: list[str] | None) -> list[str]:
    """앞뒤 공백 제거, 빈 값 제거, 대소문자 무시 중복 제거 후 정렬.

    중복이면 처음 나온 표기를 남긴다 (["Cat", "cat"] → ["Cat"]).
    """
    first_seen: dict[str, str] = {}
    for k in keywords or []:
        k = k.strip() if k else ""
        if k:
            first_seen.setdefault(k.lower(), k)
    return [first_seen[key] for key in sorted(first_seen)]


def transition(
    store: RecordStore,
    image_id: str,
    new_status: ImageStatus,
    *,
    keywords: list[str] | None = None,
    error_detail: str | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> ImageRecord:
    """레코드를 new_status로 전이한다.

    조건부 쓰기가 경쟁에서 지면(StatusConflict) 현재 상태를 다시 읽어
    max_attempts까지 재시도한다. 다시 읽은 상태에서 전이가 허용되지 않으면
    InvalidTransition을 즉시 발생시킨다 (예: 이미 READY인데 FAILED로 가려는 경우).

    READY로 갈 때는 키워드를 정규화하고, 하나도 없으면 InvalidRequest.
    """
    if new_status == ImageStatus.READY:
        keywords = normalize_keywords(keywords)
        if not keywords:
            raise InvalidRequest("READY 전이에는 키워드가 하나 이상 필요합니다")

    for attempt in range(1, max_attempts + 1):
        current = store.get(image_id)
        if not can_transition(current.status, new_status):
            raise InvalidTransition(
                f"{image_id}: {current.status.value} → {new_status.value} 전이는 허용되지 않습니다"
            )

        new_record = ImageRecord(
            image_id=current.image_id,
            object_key=current.object_key,
            file_name=current.file_name,
            content_type=current.content_type,
            status=new_status,
            keywords=keywords if new_status == ImageStatus.READY else None,
            error_detail=error_detail if new_status == ImageStatus.FAILED else None,
        )
        try:
            updated = store.compare_and_swap_status(image_id, current.status, new_record)
        except StatusConflict:
            logger.warning(f"{image_id}: 상태 충돌, 재시도 {attempt}/{max_attempts}")
            continue

        logger.info(f"{image_id}: {current.status.value} → {new_status.value}")
        return updated

    raise StatusConflict(f"{image_id}: {max_attempts}회 시도 후에도 상태를 변경하지 못했습니다")


def mark_processing(store: RecordStore, image_id: str, **kwargs) -> ImageRecord:
    return transition(store, image_id, ImageStatus.PROCESSING, **kwargs)


def mark_ready(store: RecordStore, image_id: str, keywords: list[str], **kwargs) -> ImageRecord:
    """키워드와 함께 READY로 전이한다. 키워드는 전이와 동시에 원자적으로 기록된다."""
    return transition(store, image_id, ImageStatus.READY, keywords=keywords, **kwargs)


def mark_failed(store: RecordStore, image_id: str, error_detail: str, **kwargs) -> ImageRecord:
    return transition(store, image_id, ImageStatus.FAILED, error_detail=error_detail, **kwargs)
