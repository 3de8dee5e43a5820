import re
import uuid

from loguru import logger

from core.config import Settings
from core.exceptions import AppException, InvalidRequest, UnsupportedContentType
from model.image import ImageRecord, ImageStatus
from model.schemas import UploadUrlResponse
from service import transition_service
from store.object_storage import ObjectStorage
from store.record_store import RecordStore

ISSUANCE_FAILED_DETAIL = "upload credential could not be issued"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_file_name(file_name: str) -> str:
    """경로 부분을 떼어내고 object key에 안전한 문자만 남긴다."""
    base = file_name.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned or "image"


def normalize_content_type(content_type: str) -> str:
    """'image/PNG; charset=x' → 'image/png'"""
    return content_type.split(";", 1)[0].strip().lower()


def build_object_key(prefix: str, image_id: str, file_name: str) -> str:
    prefix = prefix.strip("/")
    key = f"{image_id}/{sanitize_file_name(file_name)}"
    return f"{prefix}/{key}" if prefix else key


def issue_upload_url(
    file_name: str | None,
    content_type: str | None,
    store: RecordStore,
    storage: ObjectStorage,
    settings: Settings,
) -> UploadUrlResponse:
    """업로드용 presigned URL을 발급한다.

    1. fileName, contentType 검증 (이미지 형식만 허용)
    2. 새 imageId와 objectKey 생성
    3. PENDING 레코드 생성
    4. objectKey 범위의 presigned PUT URL 발급
    5. 4가 실패하면 레코드를 FAILED로 표시하고 원래 에러를 다시 발생시킨다
       (URL 없이 PENDING으로 남는 레코드가 생기지 않도록)
    """
    if not file_name or not file_name.strip():
        raise InvalidRequest("fileName은 필수입니다")
    if not content_type or not content_type.strip():
        raise InvalidRequest("contentType은 필수입니다")

    mime = normalize_content_type(content_type)
    allowed = {c.lower() for c in settings.ALLOWED_CONTENT_TYPES}
    if mime not in allowed:
        raise UnsupportedContentType(f"지원하지 않는 이미지 형식입니다: {mime}")

    image_id = str(uuid.uuid4())
    object_key = build_object_key(settings.UPLOAD_KEY_PREFIX, image_id, file_name)

    store.create(
        ImageRecord(
            image_id=image_id,
            object_key=object_key,
            file_name=sanitize_file_name(file_name),
            content_type=mime,
            status=ImageStatus.PENDING,
        )
    )
    logger.info(f"{image_id}: PENDING 레코드 생성 ({object_key})")

    try:
        credential = storage.generate_upload_url(object_key, mime)
    except Exception:
        _abort_issuance(image_id, store, settings)
        raise

    return UploadUrlResponse(
        image_id=image_id,
        upload_url=credential.upload_url,
        expires_at=credential.expires_at,
    )


def _abort_issuance(image_id: str, store: RecordStore, settings: Settings) -> None:
    try:
        transition_service.mark_failed(
            store,
            image_id,
            ISSUANCE_FAILED_DETAIL,
            max_attempts=settings.MAX_CAS_ATTEMPTS,
        )
    except AppException as e:
        # 원래 발급 에러가 호출자에게 전달되므로 여기서는 기록만 한다
        logger.error(f"{image_id}: 발급 실패 레코드를 FAILED로 표시하지 못함: {e.message}")
    else:
        logger.warning(f"{image_id}: 업로드 URL 발급 실패 → FAILED")
