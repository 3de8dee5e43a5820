from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 앱 설정
    APP_NAME: str = "image-search-backend"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 서버 설정
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    FRONTEND_URL: str = "http://localhost:3000"

    # 레코드 저장소 (SQLAlchemy URL)
    DATABASE_URL: str = "sqlite:///./image_records.db"

    # 오브젝트 스토리지 (S3)
    AWS_REGION: str = "us-east-1"
    S3_BUCKET_NAME: str = "image-uploads"
    S3_ENDPOINT_URL: str | None = None
    UPLOAD_KEY_PREFIX: str = "uploads"
    UPLOAD_URL_EXPIRES_SECONDS: int = 300
    ALLOWED_CONTENT_TYPES: list[str] = [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    ]

    # 검색 / 상태 전이
    SEARCH_RESULT_LIMIT: int = 50
    MAX_CAS_ATTEMPTS: int = 3

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """프로세스 시작 시 한 번만 생성되는 설정 객체."""
    return Settings()
