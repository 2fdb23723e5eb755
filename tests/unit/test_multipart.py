#!/usr/bin/env python3
"""
Multipart upload-and-verify protocol tests against an in-memory client
"""

import hashlib

import pytest

from s3functional import checksums
from s3functional.errors import ChecksumMismatch
from s3functional.multipart import (
    ComposeSource,
    compose_object,
    expected_checksum,
    iter_parts,
    upload_in_parts,
    verify_checksum,
)
from s3functional.sse import SSEC


class FakeRawClient:
    def __init__(self, owner):
        self.owner = owner

    def upload_part_copy(self, **kwargs):
        self.owner.calls.append(("upload_part_copy", kwargs))
        return {"CopyPartResult": {"ETag": f'"copy-{kwargs["PartNumber"]}"'}}


class FakeS3Client:
    """Records calls and answers like a server that echoes part checksums"""

    def __init__(self, fail_on_part=None):
        self.calls = []
        self.fail_on_part = fail_on_part
        self.client = FakeRawClient(self)
        self.aborted = []

    def create_multipart_upload(self, bucket, key, **kwargs):
        self.calls.append(("create", kwargs))
        return "upload-1"

    def upload_part(self, bucket, key, upload_id, part_number, data, **kwargs):
        self.calls.append(("part", part_number, len(data), kwargs))
        if part_number == self.fail_on_part:
            raise RuntimeError("connection reset")
        response = {"ETag": '"%s"' % hashlib.md5(data).hexdigest()}
        for name, value in kwargs.items():
            if name.startswith("Checksum") and name != "ChecksumAlgorithm":
                response[name] = value
        return response

    def complete_multipart_upload(self, bucket, key, upload_id, parts, **kwargs):
        self.calls.append(("complete", parts, kwargs))
        return {"Bucket": bucket, "Key": key, "ETag": '"done-%d"' % len(parts)}

    def abort_multipart_upload(self, bucket, key, upload_id):
        self.aborted.append(upload_id)


def test_iter_parts():
    assert list(iter_parts(b"abcdefg", 3)) == [(1, b"abc"), (2, b"def"), (3, b"g")]
    assert list(iter_parts(b"", 3)) == [(1, b"")]
    with pytest.raises(ValueError):
        list(iter_parts(b"abc", 0))


def test_upload_in_parts_sends_part_checksums():
    client = FakeS3Client()
    data = bytes(range(256)) * 100
    part_size = 10000

    result = upload_in_parts(client, "bucket", "key", data, part_size, algorithm="CRC32C")

    create = client.calls[0]
    assert create[1]["ChecksumAlgorithm"] == "CRC32C"

    part_calls = [c for c in client.calls if c[0] == "part"]
    assert [c[1] for c in part_calls] == [1, 2, 3]
    for (_, number, _, kwargs) in part_calls:
        assert kwargs["ChecksumCRC32C"] == checksums.part_digest(data, part_size, number, "CRC32C")

    assert [p["PartNumber"] for p in result.parts] == [1, 2, 3]
    assert all("ChecksumCRC32C" in p for p in result.parts)
    assert result.expected == checksums.compute_multipart_digest(data, part_size, "CRC32C")
    assert result.expected.endswith("-3")
    assert client.aborted == []


def test_upload_in_parts_full_object():
    client = FakeS3Client()
    data = b"z" * 2500

    result = upload_in_parts(
        client, "bucket", "key", data, 1000, algorithm="CRC64NVME", checksum_type="FULL_OBJECT"
    )

    assert client.calls[0][1]["ChecksumType"] == "FULL_OBJECT"
    assert client.calls[-1][2]["ChecksumType"] == "FULL_OBJECT"
    assert result.expected == checksums.digest(data, "CRC64NVME")


def test_upload_in_parts_without_checksum():
    client = FakeS3Client()
    result = upload_in_parts(client, "bucket", "key", b"abc", 2)
    assert result.expected is None
    assert "ChecksumAlgorithm" not in client.calls[0][1]


def test_upload_in_parts_with_ssec():
    client = FakeS3Client()
    key = SSEC(b"k" * 32)
    upload_in_parts(client, "bucket", "key", b"abcd", 2, sse=key)

    assert client.calls[0][1]["SSECustomerKey"] == key.key_b64
    for call in client.calls[1:3]:
        assert call[3]["SSECustomerKeyMD5"] == key.key_md5


def test_upload_aborted_on_error():
    client = FakeS3Client(fail_on_part=2)
    with pytest.raises(RuntimeError):
        upload_in_parts(client, "bucket", "key", b"x" * 30, 10, algorithm="SHA256")
    assert client.aborted == ["upload-1"]
    assert not [c for c in client.calls if c[0] == "complete"]


def test_compose_object_rotates_keys():
    client = FakeS3Client()
    old_key, new_key = SSEC(b"a" * 32), SSEC(b"b" * 32)
    sources = [
        ComposeSource("src", "one", sse=old_key),
        ComposeSource("src", "two", sse=old_key, byte_range=(0, 99)),
    ]

    result = compose_object(client, "dst", "composed", sources, sse=new_key)

    copies = [c[1] for c in client.calls if c[0] == "upload_part_copy"]
    assert len(copies) == 2
    for copy in copies:
        assert copy["CopySourceSSECustomerKey"] == old_key.key_b64
        assert copy["SSECustomerKey"] == new_key.key_b64
    assert "CopySourceRange" not in copies[0]
    assert copies[1]["CopySourceRange"] == "bytes=0-99"
    assert [p["ETag"] for p in result.parts] == ['"copy-1"', '"copy-2"']


def test_expected_checksum_types():
    data = b"q" * 3000
    assert expected_checksum(data, 1000, "SHA1").endswith("-3")
    assert expected_checksum(data, 1000, "CRC32", "FULL_OBJECT") == checksums.digest(data, "CRC32")


def test_verify_checksum():
    verify_checksum({"ChecksumSHA256": "abc-2"}, "SHA256", "abc-2")
    with pytest.raises(ChecksumMismatch) as exc_info:
        verify_checksum({"ChecksumSHA256": "abc-2"}, "SHA256", "abd-2")
    assert exc_info.value.actual == "abc-2"
    with pytest.raises(ChecksumMismatch):
        verify_checksum({}, "CRC32", "AAAAAA==")
