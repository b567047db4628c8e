"""Abstract interface for object store operations."""

from abc import ABC, abstractmethod
from collections.abc import Iterator

from domain import MediaObject


class ObjectStream(ABC):
    """A lazy, finite producer of an object's bytes."""

    @abstractmethod
    def read(self, size: int) -> bytes:
        """
        Reads the next chunk.

        Args:
            size: Maximum number of bytes to return.

        Returns:
            Up to ``size`` bytes; an empty bytes object at end of stream.

        Raises:
            StoreUnavailable: If the transfer breaks mid-stream.
        """

    @abstractmethod
    def close(self) -> None:
        """Releases the underlying connection. Safe to call more than once."""

    def iter_chunks(self, size: int) -> Iterator[bytes]:
        """Yields chunks until end of stream, closing the stream afterwards."""
        try:
            while chunk := self.read(size):
                yield chunk
        finally:
            self.close()


class StorageClient(ABC):
    """Abstract base class for object store backends."""

    @abstractmethod
    def put(self, object_name: str, data: bytes, content_type: str) -> None:
        """
        Stores bytes under a key, overwriting any existing object.

        Args:
            object_name: The destination key.
            data: The object contents.
            content_type: MIME type recorded with the object.

        Raises:
            StoreWriteDenied: If the store refuses the write.
            StoreUnavailable: If the store cannot be reached.
        """

    @abstractmethod
    def get(self, object_name: str) -> ObjectStream:
        """
        Opens an object for streaming.

        Raises:
            ObjectNotFound: If the key does not exist.
            StoreUnavailable: If the store cannot be reached.
        """

    @abstractmethod
    def list(self, prefix: str | None = None) -> list[MediaObject]:
        """
        Enumerates stored objects, optionally filtered by key prefix.

        Returns:
            Matching objects; an empty list when none match.

        Raises:
            StoreUnavailable: If the store cannot be reached.
        """

    @abstractmethod
    def object_url(self, object_name: str) -> str:
        """Returns the public URL of an object."""

    @abstractmethod
    def presigned_url(self, object_name: str) -> str:
        """
        Returns a time-limited download URL for an object.

        Raises:
            StoreUnavailable: If the URL cannot be signed.
        """

    @abstractmethod
    def ensure_bucket_exists(self) -> None:
        """Ensures the configured bucket exists, creating it if necessary."""
