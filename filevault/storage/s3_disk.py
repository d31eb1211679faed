import boto3
from botocore.exceptions import BotoCoreError, ClientError

from filevault.core.exceptions import AccessDenied, NotFound, StorageError
from filevault.core.logging_config import storage_logger, error_logger
from filevault.core.settings import S3_PART_SIZE


NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}
ACCESS_DENIED_CODES = {"403", "AccessDenied", "Forbidden"}


# ============================================================
# HELPER: map botocore errors onto storage errors
# ============================================================
def _translate_error(e, location) -> StorageError:
    if isinstance(e, ClientError):
        code = e.response.get("Error", {}).get("Code")
        if code in NOT_FOUND_CODES:
            return NotFound(f"S3 object not found: {location}", location)
        if code in ACCESS_DENIED_CODES:
            return AccessDenied(f"Access denied to S3 object: {location}", location)
    return StorageError(f"S3 request failed for {location}: {e}", location)


# ============================================================
# STREAMING READ
# ============================================================
class S3Reader:
    """Readable wrapper around a get_object streaming body."""

    def __init__(self, body, location):
        self._body = body
        self.location = location

    def read(self, size=-1) -> bytes:
        try:
            return self._body.read(None if size is None or size < 0 else size)
        except (BotoCoreError, ClientError) as e:
            raise _translate_error(e, self.location) from e

    def close(self):
        self._body.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


# ============================================================
# MULTIPART WRITE
# ============================================================
class S3Writer:
    """
    Writable sink that uploads to S3 while data is produced.

    Data is buffered into parts of `part_size` bytes. The first full part
    starts a multipart upload; objects that never fill a part are sent with
    a single put_object on close. Leaving the context with an exception
    aborts the multipart upload so no partial object is left behind.
    """

    def __init__(self, client, bucket, key, part_size=S3_PART_SIZE):
        self._client = client
        self.bucket = bucket
        self.key = key
        self._part_size = part_size
        self._buffer = bytearray()
        self._upload_id = None
        self._parts = []
        self.closed = False

    def writable(self):
        return True

    def write(self, data) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed S3Writer")

        self._buffer += data
        try:
            while len(self._buffer) >= self._part_size:
                part = bytes(self._buffer[:self._part_size])
                del self._buffer[:self._part_size]
                self._upload_part(part)
        except (BotoCoreError, ClientError) as e:
            raise _translate_error(e, self.key) from e

        return len(data)

    def _upload_part(self, body: bytes):
        if self._upload_id is None:
            mp = self._client.create_multipart_upload(Bucket=self.bucket, Key=self.key)
            self._upload_id = mp["UploadId"]

        part_number = len(self._parts) + 1
        resp = self._client.upload_part(
            Bucket=self.bucket,
            Key=self.key,
            UploadId=self._upload_id,
            PartNumber=part_number,
            Body=body,
        )
        self._parts.append({"PartNumber": part_number, "ETag": resp["ETag"]})

    def close(self):
        if self.closed:
            return

        try:
            if self._upload_id is None:
                self._client.put_object(Bucket=self.bucket, Key=self.key, Body=bytes(self._buffer))
            else:
                if self._buffer:
                    self._upload_part(bytes(self._buffer))
                self._client.complete_multipart_upload(
                    Bucket=self.bucket,
                    Key=self.key,
                    UploadId=self._upload_id,
                    MultipartUpload={"Parts": self._parts},
                )
        except (BotoCoreError, ClientError) as e:
            self.abort()
            raise _translate_error(e, self.key) from e

        self.closed = True
        self._buffer.clear()
        storage_logger.info(
            f"UPLOAD OK | s3://{self.bucket}/{self.key} | parts={len(self._parts) or 1}"
        )

    def abort(self):
        self.closed = True
        self._buffer.clear()

        if self._upload_id is None:
            return

        try:
            self._client.abort_multipart_upload(
                Bucket=self.bucket,
                Key=self.key,
                UploadId=self._upload_id,
            )
        except (BotoCoreError, ClientError) as e:
            error_logger.error(f"ABORT FAIL | s3://{self.bucket}/{self.key} | {e}")
        finally:
            self._upload_id = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        else:
            self.abort()
        return False


# ============================================================
# DISK
# ============================================================
class S3Disk:
    """S3 bucket disk, locations are object keys below `prefix`."""

    name = "s3"

    def __init__(self, bucket, prefix="", client=None, region=None, part_size=S3_PART_SIZE):
        if not bucket:
            raise StorageError("S3 bucket name not configured")

        self.bucket = bucket
        self.prefix = (prefix or "").strip("/")
        self.part_size = part_size
        self.client = client if client is not None else boto3.client("s3", region_name=region)

    def _key(self, location) -> str:
        location = str(location).lstrip("/")
        return f"{self.prefix}/{location}" if self.prefix else location

    def path(self, location) -> str:
        return f"s3://{self.bucket}/{self._key(location)}"

    def exists(self, location) -> bool:
        key = self._key(location)
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in NOT_FOUND_CODES:
                return False
            raise _translate_error(e, key) from e

    def open_read(self, location):
        key = self._key(location)
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise _translate_error(e, key) from e

        return S3Reader(obj["Body"], key)

    def open_write(self, location):
        return S3Writer(self.client, self.bucket, self._key(location), self.part_size)

    def delete(self, location):
        key = self._key(location)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise _translate_error(e, key) from e

        storage_logger.info(f"DELETED | s3://{self.bucket}/{key}")

    def __repr__(self):
        return f"S3Disk(bucket={self.bucket!r}, prefix={self.prefix!r})"
