"""Google Cloud Storage backend"""

import contextlib
import logging
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from google.api_core import exceptions as gexc
from google.auth import exceptions as auth_exc
from google.cloud import storage

from ..errors import BackendError, NotExistError
from .objectstore import ObjectEntry, ObjectStoreBackend

logger = logging.getLogger(__name__)

_EPOCH = datetime.fromtimestamp(0)


@contextlib.contextmanager
def _gcs_errors(op: str, target: str):
    try:
        yield
    except gexc.NotFound as e:
        raise NotExistError(f"{op} {target}: no such file or directory") from e
    except gexc.GoogleAPIError as e:
        raise BackendError(f"{op} {target}: {e}") from e
    except auth_exc.GoogleAuthError as e:
        raise BackendError(f"{op} {target}: {e}") from e


class GCSBackend(ObjectStoreBackend):
    """Objects of one GCS bucket (host is the bucket name)"""

    def __init__(self, host: str, client=None):
        super().__init__(host)
        self._client = client
        self._bucket = None

    @property
    def client(self):
        # Application default credentials are looked up on first use
        if self._client is None:
            logger.debug("creating gcs client for bucket %s", self.host)
            self._client = storage.Client()
        return self._client

    @property
    def bucket(self):
        if self._bucket is None:
            self._bucket = self.client.bucket(self.host)
        return self._bucket

    def _bucket_exists(self) -> bool:
        with _gcs_errors("stat", self.host):
            return self.bucket.exists()

    def _head(self, key: str) -> Optional[Tuple[int, datetime]]:
        with _gcs_errors("stat", key):
            blob = self.bucket.get_blob(key)
        if blob is None:
            return None
        return blob.size or 0, blob.updated or _EPOCH

    def _has_prefix(self, prefix: str) -> bool:
        with _gcs_errors("stat", prefix):
            blobs = self.client.list_blobs(self.host, prefix=prefix, max_results=1)
            return any(True for _ in blobs)

    def _list(self, prefix: str) -> Tuple[List[str], List[ObjectEntry]]:
        with _gcs_errors("readdir", prefix or self.host):
            iterator = self.client.list_blobs(self.host, prefix=prefix or None, delimiter="/")
            objects = [(b.name, b.size or 0, b.updated or _EPOCH) for b in iterator]
            # prefixes is only populated once the iterator has been consumed
            prefixes = sorted(iterator.prefixes)
        return prefixes, objects

    def _list_keys(self, prefix: str) -> Iterator[str]:
        with _gcs_errors("list", prefix or self.host):
            for blob in self.client.list_blobs(self.host, prefix=prefix or None):
                yield blob.name

    def _get(self, key: str) -> bytes:
        with _gcs_errors("open", key):
            return self.bucket.blob(key).download_as_bytes()

    def _put(self, key: str, data: bytes) -> None:
        with _gcs_errors("create", key):
            self.bucket.blob(key).upload_from_string(data)

    def _delete(self, keys: List[str]) -> None:
        with _gcs_errors("remove", keys[0] if keys else self.host):
            for key in keys:
                try:
                    self.bucket.delete_blob(key)
                except gexc.NotFound:
                    continue
