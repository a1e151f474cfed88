import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

import envput
from envput import StorageNotFoundError, StorageTransferError

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class BlobStorage(object):
    """Stores opaque blobs under path-like keys."""

    def put(self, key: str, data: bytes):
        raise NotImplementedError("put() not implemented.")

    def get(self, key: str) -> bytes:
        """Return the blob stored under `key`.

        Raise StorageNotFoundError if there is none.

        """
        raise NotImplementedError("get() not implemented.")

    def exists(self, key: str) -> bool:
        raise NotImplementedError("exists() not implemented.")

    def url(self, key: str) -> str:
        return key


class S3Storage(BlobStorage):
    """Blob storage in an S3 bucket.

    Credentials given explicitly win, otherwise boto3's standard credential
    chain (environment, ~/.aws, instance roles, SSO) is used.

    """

    def __init__(
        self,
        bucket: str,
        region: str,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
    ):
        self.bucket = bucket
        self.region = region
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self._client = None

    @property
    def client(self):
        if self._client is None:
            if self.access_key_id and self.secret_access_key:
                session = boto3.session.Session(
                    aws_access_key_id=self.access_key_id,
                    aws_secret_access_key=self.secret_access_key,
                    region_name=self.region,
                )
                self._client = session.client("s3")
            else:
                self._client = boto3.client("s3", region_name=self.region)
        return self._client

    def url(self, key: str) -> str:
        return f"s3://{self.bucket}/{key}"

    def put(self, key: str, data: bytes):
        logger.debug("PUT %s (%d bytes)", self.url(key), len(data))
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType="application/octet-stream",
                # On top of our own encryption.
                ServerSideEncryption="AES256",
                Metadata={
                    "envput-version": envput.__version__,
                    "content-type": "encrypted-env-file",
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageTransferError.from_context(
                "upload to", self.url(key), e
            ) from e

    def _head(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return False
            raise StorageTransferError.from_context(
                "access", self.url(key), e
            ) from e
        except BotoCoreError as e:
            raise StorageTransferError.from_context(
                "access", self.url(key), e
            ) from e
        return True

    def exists(self, key: str) -> bool:
        logger.debug("HEAD %s", self.url(key))
        return self._head(key)

    def get(self, key: str) -> bytes:
        logger.debug("GET %s", self.url(key))
        if not self._head(key):
            raise StorageNotFoundError.from_context(self.url(key))
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            data = response["Body"].read()
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                raise StorageNotFoundError.from_context(self.url(key)) from e
            raise StorageTransferError.from_context(
                "download", self.url(key), e
            ) from e
        except BotoCoreError as e:
            raise StorageTransferError.from_context(
                "download", self.url(key), e
            ) from e
        logger.debug("Received %d bytes from %s", len(data), self.url(key))
        return data
