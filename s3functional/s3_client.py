"""
Thin boto3 wrapper used by the functional tests

Tests call the helpers below for the common paths and reach for the raw
boto3 client through S3Client.client for anything else.
"""

import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class S3Client:
    """
    S3 client bound to one endpoint

    Args:
        endpoint_url: server URL, https:// enables TLS
        access_key: access key id
        secret_key: secret access key
        region: signing region
        use_ssl: talk TLS to the endpoint
        verify_ssl: verify the server certificate
    """

    def __init__(
        self,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        region: str = "us-east-1",
        use_ssl: bool = False,
        verify_ssl: bool = False,
    ):
        self.endpoint_url = endpoint_url
        self.region = region
        self.client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            use_ssl=use_ssl,
            verify=verify_ssl,
            config=Config(
                signature_version="s3v4",
                s3={"addressing_style": "path"},
                retries={"max_attempts": 3, "mode": "standard"},
                # checksums are chosen explicitly by each test
                request_checksum_calculation="when_required",
                response_checksum_validation="when_required",
            ),
        )

    def ping(self) -> None:
        """Raise if the endpoint can't be reached or rejects our credentials"""
        self.client.list_buckets()

    # Buckets

    def create_bucket(self, bucket: str, **kwargs) -> Dict[str, Any]:
        if self.region != "us-east-1" and "CreateBucketConfiguration" not in kwargs:
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        logger.debug("create bucket %s", bucket)
        return self.client.create_bucket(Bucket=bucket, **kwargs)

    def delete_bucket(self, bucket: str) -> None:
        logger.debug("delete bucket %s", bucket)
        self.client.delete_bucket(Bucket=bucket)

    # Objects

    def put_object(self, bucket: str, key: str, data=b"", **kwargs) -> Dict[str, Any]:
        return self.client.put_object(Bucket=bucket, Key=key, Body=data, **kwargs)

    def get_object(self, bucket: str, key: str, **kwargs) -> Dict[str, Any]:
        return self.client.get_object(Bucket=bucket, Key=key, **kwargs)

    def get_object_range(self, bucket: str, key: str, start: int, end: int, **kwargs) -> bytes:
        """Bytes start..end inclusive"""
        response = self.get_object(bucket, key, Range=f"bytes={start}-{end}", **kwargs)
        return response["Body"].read()

    def head_object(self, bucket: str, key: str, **kwargs) -> Dict[str, Any]:
        return self.client.head_object(Bucket=bucket, Key=key, **kwargs)

    def delete_object(self, bucket: str, key: str, **kwargs) -> Dict[str, Any]:
        return self.client.delete_object(Bucket=bucket, Key=key, **kwargs)

    def copy_object(
        self, src_bucket: str, src_key: str, dst_bucket: str, dst_key: str, **kwargs
    ) -> Dict[str, Any]:
        return self.client.copy_object(
            Bucket=dst_bucket,
            Key=dst_key,
            CopySource={"Bucket": src_bucket, "Key": src_key},
            **kwargs,
        )

    def object_exists(self, bucket: str, key: str) -> bool:
        try:
            self.head_object(bucket, key)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchKey", "NotFound"):
                return False
            raise

    def list_objects(self, bucket: str, prefix: str = "") -> List[Dict[str, Any]]:
        objects = []
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            objects.extend(page.get("Contents", []))
        return objects

    # Multipart

    def create_multipart_upload(self, bucket: str, key: str, **kwargs) -> str:
        response = self.client.create_multipart_upload(Bucket=bucket, Key=key, **kwargs)
        return response["UploadId"]

    def upload_part(
        self, bucket: str, key: str, upload_id: str, part_number: int, data, **kwargs
    ) -> Dict[str, Any]:
        return self.client.upload_part(
            Bucket=bucket,
            Key=key,
            UploadId=upload_id,
            PartNumber=part_number,
            Body=data,
            **kwargs,
        )

    def complete_multipart_upload(
        self, bucket: str, key: str, upload_id: str, parts: List[Dict[str, Any]], **kwargs
    ) -> Dict[str, Any]:
        return self.client.complete_multipart_upload(
            Bucket=bucket,
            Key=key,
            UploadId=upload_id,
            MultipartUpload={"Parts": parts},
            **kwargs,
        )

    def abort_multipart_upload(self, bucket: str, key: str, upload_id: str) -> None:
        self.client.abort_multipart_upload(Bucket=bucket, Key=key, UploadId=upload_id)

    # Cleanup

    def empty_bucket(self, bucket: str) -> None:
        """Delete every object version, delete marker and pending upload"""
        uploads = self.client.list_multipart_uploads(Bucket=bucket).get("Uploads", [])
        for upload in uploads:
            self.abort_multipart_upload(bucket, upload["Key"], upload["UploadId"])

        paginator = self.client.get_paginator("list_object_versions")
        for page in paginator.paginate(Bucket=bucket):
            for entry in page.get("Versions", []) + page.get("DeleteMarkers", []):
                self.delete_object(bucket, entry["Key"], VersionId=entry["VersionId"])

        for obj in self.list_objects(bucket):
            self.delete_object(bucket, obj["Key"])

    def remove_bucket(self, bucket: str) -> Optional[Exception]:
        """Empty and delete bucket, returning the error instead of raising"""
        try:
            self.empty_bucket(bucket)
            self.delete_bucket(bucket)
        except ClientError as e:
            if e.response["Error"]["Code"] == "NoSuchBucket":
                return None
            logger.warning("failed to remove bucket %s: %s", bucket, e)
            return e
        return None
