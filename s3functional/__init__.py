"""
s3functional - functional test harness for S3-compatible object storage

Deterministic data files, multipart checksum composition and seeded
naming used by the functional test suite under tests/.
"""

__version__ = "0.1.0"
