import logging
import re
import uuid
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config.settings import settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    pass


def _sanitize_filename(file_name: str) -> str:
    name = (file_name or "archivo").strip()
    name = name.replace("\\", "/").split("/")[-1]
    name = re.sub(r"[^a-zA-Z0-9._-]+", "-", name)
    name = re.sub(r"-{2,}", "-", name).strip("-")
    return name or "archivo"


class StorageService:
    """Subida de tickets y archivos de modelos a S3 (o compatible)"""

    def __init__(self, client=None, bucket: Optional[str] = None):
        self.bucket = bucket or settings.s3_bucket
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.bucket:
                raise StorageError("Bucket S3 no configurado (S3_BUCKET)")
            self._client = boto3.client(
                "s3",
                region_name=settings.s3_region,
                endpoint_url=settings.s3_endpoint_url,
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
            )
        return self._client

    def build_key(self, prefix: str, file_name: str) -> str:
        return f"{prefix.strip('/')}/{uuid.uuid4().hex}-{_sanitize_filename(file_name)}"

    def public_url(self, key: str) -> str:
        if settings.s3_endpoint_url:
            return f"{settings.s3_endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{settings.s3_region}.amazonaws.com/{key}"

    def upload(self, prefix: str, file_name: str, content: bytes, content_type: str) -> dict:
        key = self.build_key(prefix, file_name)
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error subiendo {key} a S3: {e}")
            raise StorageError(str(e)) from e

        logger.info(f"Archivo subido: s3://{self.bucket}/{key} ({len(content)} bytes)")
        return {"key": key, "url": self.public_url(key), "size": len(content)}

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error eliminando {key} de S3: {e}")
            raise StorageError(str(e)) from e


def get_storage() -> StorageService:
    return StorageService()
