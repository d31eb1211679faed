"""
Unit tests for storage disks.

Tests:
- Local disk read / write / delete
- S3 disk with a mocked boto3 client (streaming reads, multipart writes)
- Error translation and disk registry
"""

import io
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from filevault.core.exceptions import AccessDenied, NotFound, StorageError
from filevault.storage.disks import get_disk
from filevault.storage.local_disk import LocalDisk
from filevault.storage.s3_disk import S3Disk, S3Reader, S3Writer


def client_error(code, operation="GetObject"):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakeBody:
    def __init__(self, data):
        self._buf = io.BytesIO(data)
        self.closed = False

    def read(self, amt=None):
        return self._buf.read(amt)

    def close(self):
        self.closed = True


class TestLocalDisk:

    def test_write_then_read(self, disk):
        with disk.open_write("nested/dir/file.bin") as f:
            f.write(b"payload")

        with disk.open_read("nested/dir/file.bin") as f:
            assert f.read() == b"payload"

    def test_write_truncates(self, disk):
        (disk.root / "f").write_bytes(b"old content that is long")
        with disk.open_write("f") as f:
            f.write(b"new")
        assert (disk.root / "f").read_bytes() == b"new"

    def test_missing_file(self, disk):
        with pytest.raises(NotFound):
            disk.open_read("missing.txt")

    def test_directory_is_not_readable(self, disk):
        (disk.root / "sub").mkdir()
        with pytest.raises(StorageError):
            disk.open_read("sub")

    def test_delete(self, disk):
        (disk.root / "gone").write_bytes(b"x")
        assert disk.exists("gone")
        disk.delete("gone")
        assert not disk.exists("gone")

    def test_delete_missing(self, disk):
        with pytest.raises(NotFound):
            disk.delete("never-there")

    def test_path(self, tmp_path):
        assert LocalDisk(tmp_path).path("a/b.txt") == str(tmp_path / "a" / "b.txt")


class TestS3Reader:

    def test_read_and_close(self):
        body = FakeBody(b"abcdef")
        with S3Reader(body, "k") as reader:
            assert reader.read(4) == b"abcd"
            assert reader.read(-1) == b"ef"
        assert body.closed

    def test_read_error_translated(self):
        body = MagicMock()
        body.read.side_effect = client_error("AccessDenied")
        with pytest.raises(AccessDenied):
            S3Reader(body, "k").read(10)


class TestS3Writer:

    def test_small_object_single_put(self):
        client = MagicMock()
        with S3Writer(client, "bucket", "key", part_size=10) as writer:
            writer.write(b"tiny")

        client.put_object.assert_called_once_with(Bucket="bucket", Key="key", Body=b"tiny")
        client.create_multipart_upload.assert_not_called()

    def test_multipart(self):
        client = MagicMock()
        client.create_multipart_upload.return_value = {"UploadId": "up-1"}
        client.upload_part.side_effect = [{"ETag": f"e{i}"} for i in range(1, 4)]

        with S3Writer(client, "bucket", "key", part_size=10) as writer:
            writer.write(b"0123456789ab")
            writer.write(b"cdefghij")
            writer.write(b"xyz")

        bodies = [call.kwargs["Body"] for call in client.upload_part.call_args_list]
        assert bodies == [b"0123456789", b"abcdefghij", b"xyz"]
        client.complete_multipart_upload.assert_called_once_with(
            Bucket="bucket",
            Key="key",
            UploadId="up-1",
            MultipartUpload={"Parts": [
                {"PartNumber": 1, "ETag": "e1"},
                {"PartNumber": 2, "ETag": "e2"},
                {"PartNumber": 3, "ETag": "e3"},
            ]},
        )
        client.put_object.assert_not_called()

    def test_error_aborts_upload(self):
        client = MagicMock()
        client.create_multipart_upload.return_value = {"UploadId": "up-2"}
        client.upload_part.return_value = {"ETag": "e"}

        with pytest.raises(RuntimeError):
            with S3Writer(client, "bucket", "key", part_size=4) as writer:
                writer.write(b"12345678")
                raise RuntimeError("producer failed")

        client.abort_multipart_upload.assert_called_once_with(
            Bucket="bucket", Key="key", UploadId="up-2"
        )
        client.complete_multipart_upload.assert_not_called()

    def test_failed_complete_aborts(self):
        client = MagicMock()
        client.create_multipart_upload.return_value = {"UploadId": "up-3"}
        client.upload_part.return_value = {"ETag": "e"}
        client.complete_multipart_upload.side_effect = client_error("500", "CompleteMultipartUpload")

        writer = S3Writer(client, "bucket", "key", part_size=4)
        writer.write(b"12345")
        with pytest.raises(StorageError):
            writer.close()

        client.abort_multipart_upload.assert_called_once()

    def test_write_after_close(self):
        writer = S3Writer(MagicMock(), "bucket", "key")
        writer.close()
        with pytest.raises(ValueError):
            writer.write(b"late")


class TestS3Disk:

    def test_requires_bucket(self):
        with pytest.raises(StorageError):
            S3Disk("", client=MagicMock())

    def test_prefix_and_path(self):
        disk = S3Disk("bucket", prefix="/vault/", client=MagicMock())
        assert disk.path("a/b.enc") == "s3://bucket/vault/a/b.enc"

    def test_open_read(self):
        client = MagicMock()
        client.get_object.return_value = {"Body": FakeBody(b"ciphertext")}
        disk = S3Disk("bucket", client=client)

        with disk.open_read("file.enc") as reader:
            assert reader.read() == b"ciphertext"
        client.get_object.assert_called_once_with(Bucket="bucket", Key="file.enc")

    @pytest.mark.parametrize("code, error", [
        ("NoSuchKey", NotFound),
        ("404", NotFound),
        ("AccessDenied", AccessDenied),
        ("InternalError", StorageError),
    ])
    def test_open_read_errors(self, code, error):
        client = MagicMock()
        client.get_object.side_effect = client_error(code)
        with pytest.raises(error):
            S3Disk("bucket", client=client).open_read("file.enc")

    def test_open_write(self):
        client = MagicMock()
        disk = S3Disk("bucket", prefix="p", client=client)
        with disk.open_write("out.enc") as writer:
            writer.write(b"data")
        client.put_object.assert_called_once_with(Bucket="bucket", Key="p/out.enc", Body=b"data")

    def test_exists(self):
        client = MagicMock()
        disk = S3Disk("bucket", client=client)
        assert disk.exists("there")

        client.head_object.side_effect = client_error("404", "HeadObject")
        assert not disk.exists("missing")

        client.head_object.side_effect = client_error("403", "HeadObject")
        with pytest.raises(AccessDenied):
            disk.exists("forbidden")

    def test_delete(self):
        client = MagicMock()
        S3Disk("bucket", client=client).delete("old.txt")
        client.delete_object.assert_called_once_with(Bucket="bucket", Key="old.txt")


class TestDiskRegistry:

    def test_local(self, tmp_path):
        disk = get_disk("local", {"local": {"root": str(tmp_path)}})
        assert isinstance(disk, LocalDisk)
        assert disk.root == tmp_path

    def test_named_disk_with_driver(self, tmp_path):
        disk = get_disk("archive", {"archive": {"driver": "local", "root": str(tmp_path)}})
        assert isinstance(disk, LocalDisk)

    def test_s3_without_bucket(self):
        with pytest.raises(StorageError):
            get_disk("s3", {"s3": {"bucket": ""}})

    def test_unknown(self):
        with pytest.raises(StorageError):
            get_disk("ftp", {})
