"""API 요청/응답 스키마.

JSON 필드명은 camelCase(imageId, uploadUrl ...)로 주고받는다.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from model.image import ImageStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadUrlRequest(CamelModel):
    # 누락/공백 검증은 서비스에서 400으로 처리한다
    file_name: str | None = None
    content_type: str | None = None


class UploadUrlResponse(CamelModel):
    image_id: str
    upload_url: str
    expires_at: datetime


class ImageStatusResponse(CamelModel):
    image_id: str
    status: ImageStatus
    keywords: list[str] | None = None
    error_detail: str | None = None


class SearchResult(CamelModel):
    image_id: str
    keywords: list[str]
    object_key: str


class SearchResponse(CamelModel):
    results: list[SearchResult]
