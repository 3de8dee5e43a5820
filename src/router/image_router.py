from fastapi import APIRouter, Depends

from core.config import Settings
from core.dependencies import get_app_settings, get_record_store
from model.schemas import ImageStatusResponse, SearchResponse
from service import image_service
from store.record_store import RecordStore

router = APIRouter(prefix="/api", tags=["images"])


@router.get("/search", response_model=SearchResponse)
def search_images(
    q: str | None = None,
    store: RecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_app_settings),
):
    """키워드 검색. READY 상태의 이미지만 결과에 포함된다."""
    return image_service.search_images(q, store, limit=settings.SEARCH_RESULT_LIMIT)


@router.get(
    "/status/{image_id}",
    response_model=ImageStatusResponse,
    response_model_exclude_none=True,
)
def get_image_status(image_id: str, store: RecordStore = Depends(get_record_store)):
    """처리 상태 조회 (클라이언트 폴링용)."""
    return image_service.get_status(image_id, store)
