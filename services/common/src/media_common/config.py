"""Shared configuration models for infrastructure components."""

from pydantic import BaseModel, Field


class MinioConfig(BaseModel, frozen=True):
    """S3-compatible object store connection configuration."""

    endpoint: str = "s3.amazonaws.com"
    access_key: str = Field(min_length=1)
    secret_key: str = Field(min_length=1)
    bucket_name: str = Field(min_length=1)
    region: str | None = None
    secure: bool = True
    presign_expiry_seconds: int = Field(default=3600, gt=0)

    @property
    def scheme(self) -> str:
        return "https" if self.secure else "http"
