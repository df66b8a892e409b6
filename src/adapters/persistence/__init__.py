from .http_gtfs_repository import HttpGtfsRepository
from .local_gtfs_repository import LocalGtfsRepository
from .s3_gtfs_repository import S3GtfsRepository

__all__ = [
    "HttpGtfsRepository",
    "LocalGtfsRepository",
    "S3GtfsRepository",
]
