"""
Checksum helpers for S3 object and multipart verification

Two unrelated CRC32 flavours live here and must not be mixed up:

- crc32_ieee() is the plain zlib CRC32 used to remember the content of
  a data file between reads.
- ChecksumAlgorithm.CRC32C is the Castagnoli CRC the server reports in
  x-amz-checksum-crc32c.

compose() reproduces the value a server reports for a multipart object:
every part is hashed on its own, the raw part digests are concatenated
in part order and hashed once more. The textual form is
"<base64>-<parts>" for more than one part and plain "<base64>" for a
single part or a full object checksum.
"""

import base64
import enum
import zlib
from dataclasses import dataclass, field
from typing import BinaryIO, List, Union

from botocore.httpchecksum import (
    Crc32Checksum,
    CrtCrc32cChecksum,
    CrtCrc64NvmeChecksum,
    Sha1Checksum,
    Sha256Checksum,
)

from s3functional.errors import InvalidComposerInput

CRC32_READ_SIZE = 64 * 1024


class ChecksumAlgorithm(enum.Enum):
    """S3 additional checksum algorithms"""

    CRC32 = "CRC32"
    CRC32C = "CRC32C"
    SHA1 = "SHA1"
    SHA256 = "SHA256"
    CRC64NVME = "CRC64NVME"

    @classmethod
    def parse(cls, value) -> "ChecksumAlgorithm":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.upper())
            except ValueError:
                pass
        raise InvalidComposerInput(f"unsupported checksum algorithm: {value!r}")

    @property
    def response_field(self) -> str:
        """Key used by boto3 responses and part entries, e.g. ChecksumCRC32C"""
        return f"Checksum{self.value}"

    def hasher(self):
        return _HASHERS[self]()


_HASHERS = {
    ChecksumAlgorithm.CRC32: Crc32Checksum,
    ChecksumAlgorithm.CRC32C: CrtCrc32cChecksum,
    ChecksumAlgorithm.SHA1: Sha1Checksum,
    ChecksumAlgorithm.SHA256: Sha256Checksum,
    ChecksumAlgorithm.CRC64NVME: CrtCrc64NvmeChecksum,
}


class ChecksumType(enum.Enum):
    COMPOSITE = "COMPOSITE"
    FULL_OBJECT = "FULL_OBJECT"


@dataclass
class MultipartChecksum:
    """Result of compose()"""

    per_part_digests: List[bytes] = field(default_factory=list)
    part_count: int = 0
    composite_digest: str = ""
    display_form: str = ""


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("utf-8")


def _hash(data, algorithm: ChecksumAlgorithm) -> bytes:
    hasher = algorithm.hasher()
    hasher.update(data)
    return hasher.digest()


def digest(data: bytes, algorithm) -> str:
    """Base64 checksum of a whole buffer, as sent in x-amz-checksum-*"""
    return _b64(_hash(data, ChecksumAlgorithm.parse(algorithm)))


def _windows(buffer: bytes, part_size: int):
    if not buffer:
        # an empty object is still uploaded as one empty part
        yield buffer
        return
    for offset in range(0, len(buffer), part_size):
        yield buffer[offset:offset + part_size]


def compose(buffer: bytes, part_size: int, algorithm, full_object: bool = False) -> MultipartChecksum:
    """
    Compute the checksum a server reports for buffer uploaded in parts

    Args:
        buffer: complete object content
        part_size: part size the uploader used; the last part may be shorter
        algorithm: ChecksumAlgorithm or its name
        full_object: hash the whole buffer as one part

    Raises:
        InvalidComposerInput: part_size is not positive for a non-empty
            buffer, or the algorithm is unknown
    """
    algorithm = ChecksumAlgorithm.parse(algorithm)
    if full_object:
        part_size = len(buffer)
    if buffer and (not isinstance(part_size, int) or part_size <= 0):
        raise InvalidComposerInput(f"part size must be positive, got {part_size!r}")

    digests = [_hash(window, algorithm) for window in _windows(buffer, part_size)]

    if len(digests) == 1:
        single = _b64(digests[0])
        return MultipartChecksum(digests, 1, single, single)

    composite = _b64(_hash(b"".join(digests), algorithm))
    return MultipartChecksum(
        per_part_digests=digests,
        part_count=len(digests),
        composite_digest=composite,
        display_form=f"{composite}-{len(digests)}",
    )


def compute_multipart_digest(buffer: bytes, part_size: int, algorithm, full_object: bool = False) -> str:
    return compose(buffer, part_size, algorithm, full_object).display_form


def part_count(size: int, part_size: int) -> int:
    if size == 0:
        return 1
    return (size + part_size - 1) // part_size


def part_digest(buffer: bytes, part_size: int, part_number: int, algorithm) -> str:
    """Base64 checksum of 1-based part part_number, clipped at the buffer end"""
    algorithm = ChecksumAlgorithm.parse(algorithm)
    if part_size <= 0:
        raise InvalidComposerInput(f"part size must be positive, got {part_size!r}")
    if not 1 <= part_number <= part_count(len(buffer), part_size):
        raise InvalidComposerInput(
            f"part {part_number} out of range for {len(buffer)} bytes in {part_size} byte parts"
        )
    start = (part_number - 1) * part_size
    return _b64(_hash(buffer[start:start + part_size], algorithm))


def crc32_ieee(data: Union[bytes, BinaryIO]) -> int:
    """
    CRC32 (IEEE polynomial) of a bytes object or of everything left in a
    binary stream. Streams are read to EOF; read errors propagate.
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        return zlib.crc32(data) & 0xFFFFFFFF
    crc = 0
    while True:
        chunk = data.read(CRC32_READ_SIZE)
        if not chunk:
            break
        crc = zlib.crc32(chunk, crc)
    return crc & 0xFFFFFFFF
