"""MinIO implementation of the StorageClient interface."""

import io
from datetime import timedelta
from urllib.parse import quote

from media_common import MinioConfig, setup_logging
from minio import Minio
from minio.error import S3Error

from domain import MediaObject
from exceptions import ObjectNotFound, StoreUnavailable, StoreWriteDenied

from .interfaces import ObjectStream, StorageClient

logger = setup_logging(__name__)

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NoSuchBucket", "NoSuchObject"})
_DENIED_CODES = frozenset({"AccessDenied", "AllAccessDisabled", "InvalidAccessKeyId"})


class MinioObjectStream(ObjectStream):
    """Streams an object body from an open MinIO response."""

    def __init__(self, response, object_name: str):
        self._response = response
        self._object_name = object_name
        self._closed = False

    def read(self, size: int) -> bytes:
        if self._closed:
            return b""
        try:
            return self._response.read(size)
        except Exception as e:
            if self._closed:
                return b""
            raise StoreUnavailable(self._object_name, e) from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._response.close()
        self._response.release_conn()


class MinioStorage(StorageClient):
    """Handles object storage operations using MinIO."""

    def __init__(self, client: Minio, config: MinioConfig):
        self._client = client
        self._config = config
        self._bucket_name = config.bucket_name

    def put(self, object_name: str, data: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                bucket_name=self._bucket_name,
                object_name=object_name,
                data=io.BytesIO(data),
                length=len(data),
                content_type=content_type,
            )
            logger.info(
                "File uploaded to object store",
                extra={
                    "object_name": object_name,
                    "size": len(data),
                    "bucket_name": self._bucket_name,
                },
            )
        except S3Error as e:
            logger.exception(
                "Object store upload failed",
                extra={"object_name": object_name, "code": e.code},
            )
            if e.code in _DENIED_CODES:
                raise StoreWriteDenied(object_name, e) from e
            raise StoreUnavailable(object_name, e) from e
        except Exception as e:
            logger.exception(
                "Object store upload failed",
                extra={"object_name": object_name},
            )
            raise StoreUnavailable(object_name, e) from e

    def get(self, object_name: str) -> ObjectStream:
        try:
            response = self._client.get_object(self._bucket_name, object_name)
        except S3Error as e:
            if e.code in _NOT_FOUND_CODES:
                logger.info(
                    "Object not found",
                    extra={"object_name": object_name, "bucket_name": self._bucket_name},
                )
                raise ObjectNotFound(object_name, e) from e
            logger.exception(
                "Object store download failed",
                extra={"object_name": object_name, "code": e.code},
            )
            raise StoreUnavailable(object_name, e) from e
        except Exception as e:
            logger.exception(
                "Object store download failed",
                extra={"object_name": object_name},
            )
            raise StoreUnavailable(object_name, e) from e

        logger.info(
            "Object opened for streaming",
            extra={"object_name": object_name, "bucket_name": self._bucket_name},
        )
        return MinioObjectStream(response, object_name)

    def list(self, prefix: str | None = None) -> list[MediaObject]:
        try:
            objects = [
                MediaObject(key=obj.object_name, size=obj.size or 0)
                for obj in self._client.list_objects(
                    self._bucket_name, prefix=prefix, recursive=True
                )
                if not obj.is_dir
            ]
        except Exception as e:
            logger.exception(
                "Object store listing failed",
                extra={"bucket_name": self._bucket_name, "prefix": prefix},
            )
            raise StoreUnavailable(prefix or self._bucket_name, e) from e

        logger.info(
            "Objects listed",
            extra={"bucket_name": self._bucket_name, "count": len(objects)},
        )
        return objects

    def object_url(self, object_name: str) -> str:
        return (
            f"{self._config.scheme}://{self._config.endpoint}/"
            f"{self._bucket_name}/{quote(object_name)}"
        )

    def presigned_url(self, object_name: str) -> str:
        try:
            return self._client.presigned_get_object(
                self._bucket_name,
                object_name,
                expires=timedelta(seconds=self._config.presign_expiry_seconds),
            )
        except Exception as e:
            logger.exception(
                "Presigning failed",
                extra={"object_name": object_name},
            )
            raise StoreUnavailable(object_name, e) from e

    def ensure_bucket_exists(self) -> None:
        if not self._client.bucket_exists(self._bucket_name):
            self._client.make_bucket(self._bucket_name, location=self._config.region)
            logger.info("Bucket created", extra={"bucket_name": self._bucket_name})
        else:
            logger.info("Bucket already exists", extra={"bucket_name": self._bucket_name})
