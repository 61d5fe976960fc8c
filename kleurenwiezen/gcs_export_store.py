from __future__ import annotations

import logging
from datetime import datetime, timezone

from google.cloud import storage

from kleurenwiezen.config import settings

logger = logging.getLogger(__name__)


class GCSExportStore:
    def __init__(self, bucket_name: str | None = None, prefix: str | None = None) -> None:
        self.bucket_name = bucket_name or settings.gcs_bucket_name
        self.prefix = (prefix or settings.gcs_export_prefix).strip("/")
        self._client: storage.Client | None = None

    def _get_client(self) -> storage.Client:
        if self._client is None:
            self._client = storage.Client()
        return self._client

    def save(self, join_code: str, text: str) -> dict:
        if not self.bucket_name:
            raise ValueError("GCS bucket is not configured")

        now = datetime.now(timezone.utc)
        object_name = f"{self.prefix}/{join_code}/{now.strftime('%Y%m%dT%H%M%S')}-{settings.export_filename}"

        bucket = self._get_client().bucket(self.bucket_name)
        blob = bucket.blob(object_name)
        blob.upload_from_string(text, content_type="text/tab-separated-values; charset=utf-8")
        logger.info("archived export for group %s to gs://%s/%s", join_code, self.bucket_name, object_name)
        return {"bucket": self.bucket_name, "object_name": object_name}
