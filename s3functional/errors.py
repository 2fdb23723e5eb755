"""
Exceptions raised by the s3functional helpers

Server side failures are not wrapped: they surface as
botocore.exceptions.ClientError and the calling test decides whether
that is a failure or a skip.
"""


class S3FunctionalError(Exception):
    """Base class for harness errors"""


class FixtureNotFound(S3FunctionalError, KeyError):
    """Data file name is not in the registry"""

    def __init__(self, name):
        super().__init__(name)
        self.name = name

    def __str__(self):
        return f"unknown data file: {self.name}"


class FixtureReadError(S3FunctionalError):
    """Reading a data file, or a stream being verified, failed"""

    def __init__(self, name, cause=None):
        super().__init__(name, cause)
        self.name = name
        self.cause = cause

    def __str__(self):
        if self.cause is None:
            return f"failed to read {self.name}"
        return f"failed to read {self.name}: {self.cause}"


class ChecksumMismatch(S3FunctionalError):
    """Computed checksum differs from the expected one"""

    def __init__(self, expected, actual, what="checksum"):
        super().__init__(expected, actual)
        self.expected = expected
        self.actual = actual
        self.what = what

    def __str__(self):
        return f"{self.what} mismatch: expected {self.expected}, got {self.actual}"


class InvalidComposerInput(S3FunctionalError, ValueError):
    """Bad part size, part number or algorithm passed to the composer"""
