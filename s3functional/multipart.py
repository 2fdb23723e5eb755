"""
Multipart upload and verify

upload_in_parts() drives one complete multipart upload with optional
additional checksums and encryption and returns, next to the server
response, the checksum the server is expected to report for the object.
compose_object() builds an object from existing ones with UploadPartCopy.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from s3functional import checksums, sse as ssemod
from s3functional.checksums import ChecksumAlgorithm, ChecksumType
from s3functional.errors import ChecksumMismatch
from s3functional.s3_client import S3Client

logger = logging.getLogger(__name__)

MIN_PART_SIZE = 5 * 1024 * 1024


@dataclass
class UploadResult:
    response: Dict[str, Any]
    parts: List[Dict[str, Any]] = field(default_factory=list)
    expected: Optional[str] = None
    upload_id: str = ""


@dataclass
class ComposeSource:
    """An existing object used as one part of a composed object"""

    bucket: str
    key: str
    sse: Any = None
    byte_range: Optional[Tuple[int, int]] = None


def iter_parts(data: bytes, part_size: int) -> Iterator[Tuple[int, bytes]]:
    """Yield (part_number, chunk) pairs; an empty buffer is one empty part"""
    if part_size <= 0:
        raise ValueError(f"part size must be positive, got {part_size}")
    if not data:
        yield 1, data
        return
    for part_number, offset in enumerate(range(0, len(data), part_size), start=1):
        yield part_number, data[offset:offset + part_size]


def expected_checksum(data: bytes, part_size: int, algorithm, checksum_type=None) -> str:
    """Checksum the server should report for data uploaded in part_size parts"""
    full_object = ChecksumType(checksum_type or "COMPOSITE") == ChecksumType.FULL_OBJECT
    return checksums.compute_multipart_digest(data, part_size, algorithm, full_object)


def upload_in_parts(
    client: S3Client,
    bucket: str,
    key: str,
    data: bytes,
    part_size: int,
    algorithm=None,
    checksum_type=None,
    sse=None,
    **create_args,
) -> UploadResult:
    """
    Upload data as a multipart object

    Args:
        client: S3Client to use
        bucket: destination bucket
        key: destination key
        data: object content
        part_size: size of every part but the last
        algorithm: ChecksumAlgorithm (or name) to send with every part
        checksum_type: "COMPOSITE" or "FULL_OBJECT"
        sse: SSEC, SSES3 or SSEKMS parameters

    The upload is aborted when any step fails and the error is re-raised.
    """
    if algorithm is not None:
        algorithm = ChecksumAlgorithm.parse(algorithm)
        create_args["ChecksumAlgorithm"] = algorithm.value
        if checksum_type is not None:
            create_args["ChecksumType"] = ChecksumType(checksum_type).value

    upload_id = client.create_multipart_upload(
        bucket, key, **ssemod.put_args(sse), **create_args
    )
    logger.debug("started upload %s for %s/%s", upload_id, bucket, key)

    try:
        parts = []
        for part_number, chunk in iter_parts(data, part_size):
            part_args = dict(ssemod.get_args(sse))
            if algorithm is not None:
                part_args["ChecksumAlgorithm"] = algorithm.value
                part_args[algorithm.response_field] = checksums.digest(chunk, algorithm)
            response = client.upload_part(
                bucket, key, upload_id, part_number, chunk, **part_args
            )
            part = {"PartNumber": part_number, "ETag": response["ETag"]}
            if algorithm is not None:
                field_name = algorithm.response_field
                part[field_name] = response.get(field_name) or part_args[field_name]
            parts.append(part)

        complete_args = dict(ssemod.get_args(sse))
        expected = None
        if algorithm is not None:
            expected = expected_checksum(data, part_size, algorithm, checksum_type)
            if checksum_type is not None:
                complete_args["ChecksumType"] = ChecksumType(checksum_type).value
        response = client.complete_multipart_upload(
            bucket, key, upload_id, parts, **complete_args
        )
    except Exception:
        logger.debug("aborting upload %s", upload_id)
        client.abort_multipart_upload(bucket, key, upload_id)
        raise

    return UploadResult(response=response, parts=parts, expected=expected, upload_id=upload_id)


def compose_object(
    client: S3Client,
    bucket: str,
    key: str,
    sources: Sequence[ComposeSource],
    sse=None,
) -> UploadResult:
    """
    Concatenate sources server side into bucket/key

    Every source is copied as one part with UploadPartCopy, decrypted
    with its own SSE-C key and re-encrypted with sse, so compose can
    rotate keys.
    """
    upload_id = client.create_multipart_upload(bucket, key, **ssemod.put_args(sse))
    try:
        parts = []
        for part_number, source in enumerate(sources, start=1):
            copy_args = dict(ssemod.get_args(sse))
            copy_args.update(ssemod.copy_source_args(source.sse))
            if source.byte_range is not None:
                start, end = source.byte_range
                copy_args["CopySourceRange"] = f"bytes={start}-{end}"
            response = client.client.upload_part_copy(
                Bucket=bucket,
                Key=key,
                UploadId=upload_id,
                PartNumber=part_number,
                CopySource={"Bucket": source.bucket, "Key": source.key},
                **copy_args,
            )
            parts.append(
                {"PartNumber": part_number, "ETag": response["CopyPartResult"]["ETag"]}
            )
        response = client.complete_multipart_upload(
            bucket, key, upload_id, parts, **ssemod.get_args(sse)
        )
    except Exception:
        client.abort_multipart_upload(bucket, key, upload_id)
        raise

    return UploadResult(response=response, parts=parts, upload_id=upload_id)


def verify_checksum(response: Dict[str, Any], algorithm, expected: str) -> None:
    """Compare the checksum a response reports for algorithm with expected"""
    algorithm = ChecksumAlgorithm.parse(algorithm)
    actual = response.get(algorithm.response_field)
    if actual != expected:
        raise ChecksumMismatch(expected, actual, what=algorithm.response_field)
