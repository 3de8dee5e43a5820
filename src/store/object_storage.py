"""오브젝트 스토리지(S3) 클라이언트.

클라이언트가 파일 바이트를 백엔드를 거치지 않고 S3에 직접 PUT 할 수 있도록
object_key 하나로 범위가 제한된 presigned URL을 발급한다.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from core.exceptions import UpstreamUnavailable
from model.image import utcnow


@dataclass(frozen=True)
class UploadCredential:
    upload_url: str
    expires_at: datetime


class ObjectStorage(Protocol):
    def generate_upload_url(self, object_key: str, content_type: str) -> UploadCredential: ...


class S3ObjectStorage:
    """boto3 기반 ObjectStorage 구현."""

    def __init__(
        self,
        bucket_name: str,
        region: str = "us-east-1",
        expires_in: int = 300,
        endpoint_url: str | None = None,
        client=None,
    ):
        self.bucket_name = bucket_name
        self.region = region
        self.expires_in = expires_in
        # SigV4로 서명해야 리전 버킷에서 presigned PUT이 동작한다
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
            config=Config(signature_version="s3v4"),
        )

    def generate_upload_url(self, object_key: str, content_type: str) -> UploadCredential:
        """object_key에 대한 PUT 전용 presigned URL을 만든다.

        ContentType도 서명에 포함되므로 클라이언트는 선언한 형식 그대로
        업로드해야 한다.
        """
        issued_at = utcnow()
        try:
            url = self._client.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": self.bucket_name,
                    "Key": object_key,
                    "ContentType": content_type,
                },
                ExpiresIn=self.expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"presigned URL 발급 실패 ({self.bucket_name}/{object_key}): {e}")
            raise UpstreamUnavailable("업로드 URL을 발급할 수 없습니다") from e

        return UploadCredential(
            upload_url=url,
            expires_at=issued_at + timedelta(seconds=self.expires_in),
        )
