# manuorder/files/storage.py
"""
Blob reference stores.

A reference is an opaque string handed to clients and stored on design files.
S3 references point at the download route; local references point at the
static ``/uploads`` mount.
"""

import logging
import os
import time
from functools import lru_cache
from typing import Optional
from urllib.parse import quote, unquote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import settings
from ..core.exceptions import UploadError, NotFoundError, InternalError
from ..monitoring import metrics
from .validation import safe_file_name

logger = logging.getLogger(__name__)

FILES_ROUTE_PREFIX = "/api/v1/files/"
LOCAL_URL_PREFIX = "/uploads/"
S3_KEY_PREFIX = "uploads/"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def key_from_reference(reference: str) -> str:
    """Object key behind an S3 reference; a bare key is returned unchanged."""
    if reference.startswith(FILES_ROUTE_PREFIX):
        return unquote(reference[len(FILES_ROUTE_PREFIX):])
    return reference


def reference_for_key(key: str) -> str:
    return f"{FILES_ROUTE_PREFIX}{quote(key, safe='')}"


class BlobStore:
    backend = "base"

    def put(self, data: bytes, file_name: str, content_type: str) -> str:
        raise NotImplementedError

    def get_retrievable_url(self, reference: str) -> str:
        raise NotImplementedError


class S3BlobStore(BlobStore):
    backend = "s3"

    def __init__(self, bucket: str, client=None, signed_url_ttl: Optional[int] = None):
        self.bucket = bucket
        self.signed_url_ttl = signed_url_ttl or settings.SIGNED_URL_TTL_SECONDS
        self.client = client or self._build_client()

    @staticmethod
    def _build_client():
        config = Config(
            connect_timeout=settings.S3_CONNECT_TIMEOUT_SECONDS,
            read_timeout=settings.S3_READ_TIMEOUT_SECONDS,
            retries={"max_attempts": settings.S3_MAX_ATTEMPTS, "mode": "standard"},
        )
        credentials = {}
        if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            credentials = {
                "aws_access_key_id": settings.AWS_ACCESS_KEY_ID,
                "aws_secret_access_key": settings.AWS_SECRET_ACCESS_KEY,
            }
        return boto3.client("s3", region_name=settings.AWS_REGION, config=config, **credentials)

    def put(self, data: bytes, file_name: str, content_type: str) -> str:
        key = f"{S3_KEY_PREFIX}{_epoch_ms()}-{safe_file_name(file_name)}"
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="private",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error uploading {key} to S3: {e}")
            raise UploadError(technical_details=str(e))
        return reference_for_key(key)

    def get_retrievable_url(self, reference: str) -> str:
        key = key_from_reference(reference)
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=self.signed_url_ttl,
            )
        except ClientError as e:
            logger.warning(f"Error generating signed URL for {key}: {e}")
            raise NotFoundError("File not found", context={"key": key})
        except BotoCoreError as e:
            raise InternalError(technical_details=str(e), context={"key": key}, retryable=True)


class LocalBlobStore(BlobStore):
    backend = "local"

    def __init__(self, root: Optional[str] = None):
        self.root = root or settings.UPLOAD_ROOT

    def put(self, data: bytes, file_name: str, content_type: str) -> str:
        base = safe_file_name(file_name)
        try:
            os.makedirs(self.root, exist_ok=True)
            stamp = _epoch_ms()
            while True:
                stored_name = f"{stamp}-{base}"
                try:
                    # "x" refuses to overwrite an upload made in the same millisecond
                    with open(os.path.join(self.root, stored_name), "xb") as fh:
                        fh.write(data)
                    break
                except FileExistsError:
                    stamp += 1
        except OSError as e:
            logger.error(f"Error writing {base} to {self.root}: {e}")
            raise UploadError(technical_details=str(e))
        return f"{LOCAL_URL_PREFIX}{quote(stored_name)}"

    def get_retrievable_url(self, reference: str) -> str:
        stored_name = unquote(reference[len(LOCAL_URL_PREFIX):]) if reference.startswith(LOCAL_URL_PREFIX) else reference
        if os.path.basename(stored_name) != stored_name or not os.path.isfile(os.path.join(self.root, stored_name)):
            raise NotFoundError("File not found", context={"reference": reference})
        return f"{LOCAL_URL_PREFIX}{quote(stored_name)}"


class FallbackBlobStore(BlobStore):
    """Primary store with a local-disk fallback when the primary is missing or fails."""

    def __init__(self, primary: Optional[BlobStore], fallback: BlobStore):
        self.primary = primary
        self.fallback = fallback

    @property
    def backend(self) -> str:
        return self.primary.backend if self.primary is not None else self.fallback.backend

    def put(self, data: bytes, file_name: str, content_type: str) -> str:
        if self.primary is not None:
            try:
                reference = self.primary.put(data, file_name, content_type)
                metrics.uploads.labels(backend=self.primary.backend).inc()
                return reference
            except UploadError as e:
                logger.warning(f"Primary upload failed, falling back to {self.fallback.backend} storage: {e.technical_details}")

        try:
            reference = self.fallback.put(data, file_name, content_type)
        except UploadError as e:
            raise InternalError(
                technical_details=e.technical_details,
                context={"operation": "upload", "file_name": file_name},
            )
        metrics.uploads.labels(backend=self.fallback.backend).inc()
        return reference

    def get_retrievable_url(self, reference: str) -> str:
        if reference.startswith(LOCAL_URL_PREFIX):
            return self.fallback.get_retrievable_url(reference)
        if self.primary is None:
            raise NotFoundError("File not found", context={"reference": reference})
        return self.primary.get_retrievable_url(reference)


@lru_cache(maxsize=1)
def get_blob_store() -> BlobStore:
    """FastAPI dependency: S3 when a bucket is configured, local disk otherwise."""
    primary = None
    if settings.AWS_S3_BUCKET:
        primary = S3BlobStore(settings.AWS_S3_BUCKET)
    else:
        logger.info("AWS_S3_BUCKET not set, storing uploads on local disk")
    return FallbackBlobStore(primary, LocalBlobStore(settings.UPLOAD_ROOT))
