from media_common.config import MinioConfig
from media_common.logging import setup_logging

__all__ = [
    "setup_logging",
    "MinioConfig",
]
