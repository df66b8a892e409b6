from __future__ import annotations

import logging
import os
import zipfile
from dataclasses import dataclass

from botocore.exceptions import BotoCoreError, ClientError

from src.adapters.aws import s3_client
from src.adapters.persistence.gtfs_parser import build_schedule_from_zip
from src.app.ports.output import IGtfsRepository
from src.domain.exceptions import ScheduleUnavailable
from src.domain.models.gtfs import ScheduleStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class S3GtfsRepository(IGtfsRepository):
    """GTFS repository backed by a zip archive stored in S3.

    Env vars:
      - GTFS_S3_BUCKET: bucket name
      - GTFS_S3_KEY: object key (e.g. gtfs/google_transit.zip)
            - ENDPOINT_URL: preferred LocalStack endpoint (e.g. http://localhost:4566)
            - USE_LOCALSTACK: 1|true to enable LocalStack (legacy toggle)
      - AWS_REGION: defaults to eu-west-1
    """

    bucket: str | None = None
    key: str | None = None

    def _bucket(self) -> str:
        value = self.bucket or os.getenv("GTFS_S3_BUCKET")
        if not value:
            raise ScheduleUnavailable("Missing GTFS_S3_BUCKET")
        return value

    def _key(self) -> str:
        value = self.key or os.getenv("GTFS_S3_KEY")
        if not value:
            raise ScheduleUnavailable("Missing GTFS_S3_KEY")
        return value

    def load_schedule(self) -> ScheduleStore:
        bucket = self._bucket()
        key = self._key()

        logger.info("Reading GTFS archive s3://%s/%s", bucket, key)
        try:
            obj = s3_client().get_object(Bucket=bucket, Key=key)
            body = obj["Body"].read()
        except (BotoCoreError, ClientError) as exc:
            raise ScheduleUnavailable(
                f"Failed to read s3://{bucket}/{key}: {exc}"
            ) from exc

        try:
            return build_schedule_from_zip(body)
        except zipfile.BadZipFile as exc:
            raise ScheduleUnavailable(
                f"s3://{bucket}/{key} is not a zip archive"
            ) from exc
