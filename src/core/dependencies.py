"""라우터에서 사용하는 FastAPI 의존성.

lifespan에서 app.state에 올려둔 설정과 저장소 객체를 꺼내 준다.
테스트에서는 app.dependency_overrides로 교체한다.
"""

from fastapi import Request

from core.config import Settings
from store.object_storage import ObjectStorage
from store.record_store import RecordStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_record_store(request: Request) -> RecordStore:
    return request.app.state.record_store


def get_object_storage(request: Request) -> ObjectStorage:
    return request.app.state.object_storage
