# achievement_tracker/services/blob_store.py
from datetime import datetime
from typing import Optional
from urllib.parse import unquote, urlparse
import logging
import os
import uuid

from achievement_tracker.config import settings
from achievement_tracker.core.firebase import get_storage_bucket

logger = logging.getLogger(__name__)

class FirebaseBlobStore:
    """Achievement PDFs in Firebase Storage, addressed by public URL"""

    def __init__(self, bucket=None, prefix: str = settings.BLOB_PREFIX):
        self._bucket = bucket
        self.prefix = prefix.strip("/")

    @property
    def bucket(self):
        if self._bucket is None:
            self._bucket = get_storage_bucket()
        return self._bucket

    async def put(self, data: bytes, content_type: str, filename: Optional[str] = None) -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        # Client filenames may carry directory parts; keep only the last segment
        name = os.path.basename((filename or "").replace("\\", "/")) or "upload.pdf"
        blob_name = f"{self.prefix}/{timestamp}_{uuid.uuid4().hex[:8]}_{name}"

        blob = self.bucket.blob(blob_name)
        blob.upload_from_string(data, content_type=content_type)
        blob.make_public()

        logger.info(f"Stored blob {blob_name} ({len(data)} bytes)")
        return blob.public_url

    async def delete(self, url: str) -> None:
        blob_name = self._blob_name(url)
        self.bucket.blob(blob_name).delete()
        logger.info(f"Deleted blob {blob_name}")

    def _blob_name(self, url: str) -> str:
        # https://storage.googleapis.com/<bucket>/<blob name>
        path = unquote(urlparse(url).path).lstrip("/")
        bucket_name = self.bucket.name
        if path.startswith(f"{bucket_name}/"):
            path = path[len(bucket_name) + 1:]
        return path
