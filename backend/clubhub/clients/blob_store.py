"""Blob store for event posters and QR images.

Objects are written under MEDIA_ROOT and served by the app under MEDIA_URL.
Any object store with the same ``put``/``delete`` surface can replace it via
the ``get_blob_store`` dependency.
"""
import logging
import os
import uuid

from clubhub.config import settings
from clubhub.errors import UpstreamError

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


class LocalBlobStore:
    def __init__(self, root: str, base_url: str):
        self.root = root
        self.base_url = base_url.rstrip("/")

    def put(self, data: bytes, content_type: str, prefix: str = "uploads") -> str:
        """Store ``data`` and return its public URL."""
        key = f"{prefix}/{uuid.uuid4().hex}{_EXTENSIONS.get(content_type, '')}"
        path = os.path.join(self.root, *key.split("/"))
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as fh:
                fh.write(data)
        except OSError:
            logger.exception("Blob upload failed for key %s", key)
            raise UpstreamError("File upload failed")
        logger.info("Stored blob %s (%d bytes, %s)", key, len(data), content_type)
        return f"{self.base_url}/{key}"

    def delete(self, url: str) -> None:
        """Remove a blob previously returned by ``put``; unknown URLs are ignored."""
        if not url.startswith(self.base_url + "/"):
            return
        key = url[len(self.base_url) + 1:]
        path = os.path.join(self.root, *key.split("/"))
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError:
            logger.exception("Blob delete failed for key %s", key)
            return
        logger.info("Deleted blob %s", key)


def get_blob_store() -> LocalBlobStore:
    return LocalBlobStore(settings.MEDIA_ROOT, settings.MEDIA_URL)
