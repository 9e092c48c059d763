"""Amazon S3 backend"""

import contextlib
import logging
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import BackendError, NotExistError
from .objectstore import ObjectEntry, ObjectStoreBackend

logger = logging.getLogger(__name__)

_EPOCH = datetime.fromtimestamp(0)
_MISSING_CODES = {"404", "NoSuchKey", "NotFound", "NoSuchBucket"}


def _missing(e: ClientError) -> bool:
    return e.response.get("Error", {}).get("Code") in _MISSING_CODES


@contextlib.contextmanager
def _s3_errors(op: str, target: str):
    try:
        yield
    except ClientError as e:
        if _missing(e):
            raise NotExistError(f"{op} {target}: no such file or directory") from e
        raise BackendError(f"{op} {target}: {e}") from e
    except BotoCoreError as e:
        raise BackendError(f"{op} {target}: {e}") from e


class S3Backend(ObjectStoreBackend):
    """Objects of one S3 bucket (host is the bucket name)"""

    def __init__(self, host: str, client=None):
        super().__init__(host)
        self._client = client

    @property
    def client(self):
        # Credentials are read from the environment on first use
        if self._client is None:
            logger.debug("creating s3 client for bucket %s", self.host)
            self._client = boto3.client("s3")
        return self._client

    def _bucket_exists(self) -> bool:
        try:
            with _s3_errors("stat", self.host):
                self.client.head_bucket(Bucket=self.host)
        except NotExistError:
            return False
        return True

    def _head(self, key: str) -> Optional[Tuple[int, datetime]]:
        try:
            with _s3_errors("stat", key):
                resp = self.client.head_object(Bucket=self.host, Key=key)
        except NotExistError:
            return None
        return resp.get("ContentLength", 0), resp.get("LastModified") or _EPOCH

    def _has_prefix(self, prefix: str) -> bool:
        with _s3_errors("stat", prefix):
            resp = self.client.list_objects_v2(Bucket=self.host, Prefix=prefix, MaxKeys=1)
        return resp.get("KeyCount", 0) > 0

    def _list(self, prefix: str) -> Tuple[List[str], List[ObjectEntry]]:
        prefixes: List[str] = []
        objects: List[ObjectEntry] = []
        paginator = self.client.get_paginator("list_objects_v2")
        with _s3_errors("readdir", prefix or self.host):
            for page in paginator.paginate(Bucket=self.host, Prefix=prefix, Delimiter="/"):
                prefixes.extend(p["Prefix"] for p in page.get("CommonPrefixes", []))
                objects.extend(
                    (o["Key"], o.get("Size", 0), o.get("LastModified") or _EPOCH)
                    for o in page.get("Contents", [])
                )
        return prefixes, objects

    def _list_keys(self, prefix: str) -> Iterator[str]:
        paginator = self.client.get_paginator("list_objects_v2")
        with _s3_errors("list", prefix or self.host):
            for page in paginator.paginate(Bucket=self.host, Prefix=prefix):
                for o in page.get("Contents", []):
                    yield o["Key"]

    def _get(self, key: str) -> bytes:
        with _s3_errors("open", key):
            return self.client.get_object(Bucket=self.host, Key=key)["Body"].read()

    def _put(self, key: str, data: bytes) -> None:
        with _s3_errors("create", key):
            self.client.put_object(Bucket=self.host, Key=key, Body=data)

    def _delete(self, keys: List[str]) -> None:
        if not keys:
            return
        with _s3_errors("remove", keys[0]):
            self.client.delete_objects(
                Bucket=self.host,
                Delete={"Objects": [{"Key": k} for k in keys], "Quiet": True},
            )
