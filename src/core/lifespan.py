from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from model.database import create_db_and_tables, create_db_engine
from store.object_storage import S3ObjectStorage
from store.record_store import SqlRecordStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings

    # === 시작 ===
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION}")

    engine = create_db_engine(settings.DATABASE_URL, echo=settings.DEBUG)
    create_db_and_tables(engine)
    app.state.record_store = SqlRecordStore(engine)
    logger.info(f"Record store ready ({settings.DATABASE_URL})")

    app.state.object_storage = S3ObjectStorage(
        bucket_name=settings.S3_BUCKET_NAME,
        region=settings.AWS_REGION,
        expires_in=settings.UPLOAD_URL_EXPIRES_SECONDS,
        endpoint_url=settings.S3_ENDPOINT_URL,
    )
    logger.info(f"S3 bucket: {settings.S3_BUCKET_NAME} ({settings.AWS_REGION})")
    logger.info(f"CORS enabled for: {settings.FRONTEND_URL}")

    yield

    # === 종료 ===
    engine.dispose()
    logger.info("Shutting down")
