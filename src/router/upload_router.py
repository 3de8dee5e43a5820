from fastapi import APIRouter, Depends

from core.config import Settings
from core.dependencies import get_app_settings, get_object_storage, get_record_store
from model.schemas import UploadUrlRequest, UploadUrlResponse
from service import upload_service
from store.object_storage import ObjectStorage
from store.record_store import RecordStore

router = APIRouter(prefix="/api", tags=["upload"])


@router.post("/generate-upload-url", response_model=UploadUrlResponse)
def generate_upload_url(
    req: UploadUrlRequest,
    store: RecordStore = Depends(get_record_store),
    storage: ObjectStorage = Depends(get_object_storage),
    settings: Settings = Depends(get_app_settings),
):
    """S3에 직접 업로드할 presigned URL 발급. 이미지는 PENDING 상태로 등록된다."""
    return upload_service.issue_upload_url(
        req.file_name, req.content_type, store, storage, settings
    )
