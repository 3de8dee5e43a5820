"""pytest 공용 fixture.

모든 API 테스트는 in-memory SQLite 레코드 저장소와 가짜 오브젝트 스토리지를 사용하여 격리된다.
- record_store: 테스트마다 새로 만드는 SqlRecordStore
- object_storage: presigned URL을 흉내 내는 FakeObjectStorage (fail=True면 발급 실패)
- client: 위 두 객체로 의존성을 오버라이드한 TestClient
"""

import sys
from datetime import timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

# src/ 디렉토리를 import path에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from core.config import Settings
from core.dependencies import get_app_settings, get_object_storage, get_record_store
from core.exceptions import UpstreamUnavailable
from main import create_app
from model.database import create_db_and_tables, create_db_engine
from model.image import ImageRecord, ImageStatus, utcnow
from store.object_storage import UploadCredential
from store.record_store import SqlRecordStore


class FakeObjectStorage:
    def __init__(self, expires_in: int = 300):
        self.expires_in = expires_in
        self.fail = False
        self.issued: list[tuple[str, str]] = []

    def generate_upload_url(self, object_key: str, content_type: str) -> UploadCredential:
        if self.fail:
            raise UpstreamUnavailable("S3에 접근할 수 없습니다")
        self.issued.append((object_key, content_type))
        return UploadCredential(
            upload_url=f"https://test-bucket.s3.amazonaws.com/{object_key}?X-Amz-Signature=fake",
            expires_at=utcnow() + timedelta(seconds=self.expires_in),
        )


def make_record(image_id: str = "img1", status: ImageStatus = ImageStatus.PENDING) -> ImageRecord:
    return ImageRecord(
        image_id=image_id,
        object_key=f"uploads/{image_id}/photo.png",
        file_name="photo.png",
        content_type="image/png",
        status=status,
    )


@pytest.fixture()
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        S3_BUCKET_NAME="test-bucket",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture()
def record_store():
    """테스트마다 새 in-memory SQLite DB를 생성한다.

    StaticPool(create_db_engine에서 자동 적용)을 사용해야 모든 커넥션이
    같은 in-memory DB를 공유한다.
    """
    engine = create_db_engine("sqlite://")
    create_db_and_tables(engine)
    yield SqlRecordStore(engine)
    engine.dispose()


@pytest.fixture()
def object_storage():
    return FakeObjectStorage()


@pytest.fixture()
def app(settings, record_store, object_storage):
    app = create_app(settings)
    app.dependency_overrides[get_record_store] = lambda: record_store
    app.dependency_overrides[get_object_storage] = lambda: object_storage
    app.dependency_overrides[get_app_settings] = lambda: settings
    yield app
    app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def upload(client):
    """업로드 URL을 발급받고 응답 JSON을 반환하는 헬퍼."""

    def _upload(file_name: str = "cat.png", content_type: str = "image/png") -> dict:
        resp = client.post(
            "/api/generate-upload-url",
            json={"fileName": file_name, "contentType": content_type},
        )
        assert resp.status_code == 200, resp.text
        return resp.json()

    return _upload


def all_records(store: SqlRecordStore) -> list[ImageRecord]:
    """저장소의 전체 레코드 (검증용)."""
    with Session(store._engine) as session:
        return list(session.exec(select(ImageRecord)).all())
