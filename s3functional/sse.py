"""
Server-side encryption request parameters

Each class turns one encryption mode into the keyword arguments boto3
expects on put_object, upload_part, create_multipart_upload and the
copy calls.
"""

import base64
import hashlib
import random
from typing import Dict, Optional

SSEC_KEY_SIZE = 32


def new_ssec_key(source: random.Random) -> bytes:
    return source.randbytes(SSEC_KEY_SIZE)


class SSEC:
    """SSE-C with a caller supplied 256 bit key"""

    def __init__(self, key: bytes):
        if len(key) != SSEC_KEY_SIZE:
            raise ValueError(f"SSE-C key must be {SSEC_KEY_SIZE} bytes, got {len(key)}")
        self.key = key

    @property
    def key_b64(self) -> str:
        return base64.b64encode(self.key).decode("utf-8")

    @property
    def key_md5(self) -> str:
        return base64.b64encode(hashlib.md5(self.key).digest()).decode("utf-8")

    def put_args(self) -> Dict[str, str]:
        """Arguments for requests that write or read the object"""
        return {
            "SSECustomerAlgorithm": "AES256",
            "SSECustomerKey": self.key_b64,
            "SSECustomerKeyMD5": self.key_md5,
        }

    def get_args(self) -> Dict[str, str]:
        return self.put_args()

    def copy_source_args(self) -> Dict[str, str]:
        """Arguments describing the key of an encrypted copy source"""
        return {
            "CopySourceSSECustomerAlgorithm": "AES256",
            "CopySourceSSECustomerKey": self.key_b64,
            "CopySourceSSECustomerKeyMD5": self.key_md5,
        }

    def __repr__(self):
        return f"SSEC(md5={self.key_md5})"


class SSES3:
    """SSE-S3, keys managed by the server"""

    def put_args(self) -> Dict[str, str]:
        return {"ServerSideEncryption": "AES256"}

    def get_args(self) -> Dict[str, str]:
        return {}

    def copy_source_args(self) -> Dict[str, str]:
        return {}

    def __repr__(self):
        return "SSES3()"


class SSEKMS:
    """SSE-KMS with an optional encryption context"""

    def __init__(self, key_id: str, context: Optional[str] = None):
        self.key_id = key_id
        self.context = context

    def put_args(self) -> Dict[str, str]:
        args = {"ServerSideEncryption": "aws:kms", "SSEKMSKeyId": self.key_id}
        if self.context:
            args["SSEKMSEncryptionContext"] = base64.b64encode(
                self.context.encode("utf-8")
            ).decode("utf-8")
        return args

    def get_args(self) -> Dict[str, str]:
        return {}

    def copy_source_args(self) -> Dict[str, str]:
        return {}

    def __repr__(self):
        return f"SSEKMS(key_id={self.key_id!r})"


def put_args(sse) -> Dict[str, str]:
    return sse.put_args() if sse is not None else {}


def get_args(sse) -> Dict[str, str]:
    return sse.get_args() if sse is not None else {}


def copy_source_args(sse) -> Dict[str, str]:
    return sse.copy_source_args() if sse is not None else {}
