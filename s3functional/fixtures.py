"""
Per-test resource tracking

A TestFixture hands out bucket names and test data and removes every
bucket it created when cleanup() is called.
"""

import logging
import random
import threading
import time
from typing import Any, Dict, List, Optional

from s3functional import names
from s3functional.datafiles import DataFiles
from s3functional.s3_client import S3Client

logger = logging.getLogger(__name__)

_session_sources: Dict[int, random.Random] = {}
_session_lock = threading.Lock()


def make_source(config: Dict[str, Any]) -> random.Random:
    """
    Random source for one test

    With S3_TEST_SEED set, every call draws a fresh seed from one session
    source for that seed: a run is repeatable while tests still get
    distinct bucket names, data and keys.
    """
    seed = config.get("seed")
    if seed is None:
        return random.Random(time.time_ns())
    with _session_lock:
        session = _session_sources.setdefault(seed, random.Random(seed))
        return random.Random(session.getrandbits(64))


class TestFixture:
    """
    Buckets, names and data for a single test

    Args:
        s3_client: S3Client the test talks to
        config: configuration dictionary
        source: random source for names and data; seeded from config
            when omitted
        datafiles: shared DataFiles reader
    """

    __test__ = False

    def __init__(
        self,
        s3_client: S3Client,
        config: Dict[str, Any],
        source: Optional[random.Random] = None,
        datafiles: Optional[DataFiles] = None,
    ):
        self.s3_client = s3_client
        self.config = config
        self.source = source if source is not None else make_source(config)
        self.datafiles = datafiles if datafiles is not None else DataFiles(config.get("data_dir"))
        self.buckets: List[str] = []

    def generate_bucket_name(self, prefix: str = "test") -> str:
        """Bucket name tracked for cleanup; the bucket itself is not created"""
        bucket = names.bucket_name(
            self.source, f"{self.config['s3_bucket_prefix']}-{prefix}"
        )
        self.buckets.append(bucket)
        return bucket

    def create_bucket(self, prefix: str = "test", **kwargs) -> str:
        bucket = self.generate_bucket_name(prefix)
        self.s3_client.create_bucket(bucket, **kwargs)
        return bucket

    def generate_object_name(self, prefix: str = "obj") -> str:
        return names.object_name(self.source, prefix)

    def generate_random_data(self, size: int) -> bytes:
        return self.source.randbytes(size)

    def datafile(self, name: str) -> bytes:
        return self.datafiles.read(name)

    def cleanup(self) -> None:
        for bucket in self.buckets:
            if self.s3_client.remove_bucket(bucket) is None:
                logger.debug("removed bucket %s", bucket)
        self.buckets = []
