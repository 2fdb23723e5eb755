"""
Deterministic test data files

Every data file has a fixed name and size. Without a data directory the
content is generated from random.Random seeded with the file size, so
the same name always yields the same bytes. With a data directory the
file of that name is read verbatim instead.

The CRC32 of each file is remembered the first time it is opened so that
data read back from the server can be verified later without keeping
the original bytes around.
"""

import io
import random
import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from botocore.exceptions import BotoCoreError

from s3functional.checksums import crc32_ieee
from s3functional.errors import ChecksumMismatch, FixtureNotFound, FixtureReadError

KiB = 1024
MiB = 1024 * KiB

DATA_FILES: Dict[str, int] = {
    "datafile-0-b": 0,
    "datafile-1-b": 1,
    "datafile-1-kB": 1 * KiB,
    "datafile-10-kB": 10 * KiB,
    "datafile-33-kB": 33 * KiB,
    "datafile-100-kB": 100 * KiB,
    "datafile-1.03-MB": 1056 * KiB,
    "datafile-1-MB": 1 * MiB,
    "datafile-5-MB": 5 * MiB,
    "datafile-6-MB": 6 * MiB,
    "datafile-11-MB": 11 * MiB,
    "datafile-65-MB": 65 * MiB,
    "datafile-129-MB": 129 * MiB,
}

# multiple of 4 so that randbytes() output does not depend on the read pattern
GENERATE_BLOCK = 64 * KiB


class RandomDataStream(io.RawIOBase):
    """
    Raw stream of size pseudo-random bytes

    Bytes are produced in GENERATE_BLOCK sized blocks from
    random.Random(seed) and never held in memory as a whole.
    """

    def __init__(self, size: int, seed: Optional[int] = None):
        super().__init__()
        self.size = size
        self._random = random.Random(size if seed is None else seed)
        self._pos = 0
        self._block = b""
        self._block_pos = 0

    def readable(self):
        return True

    def readinto(self, b):
        remaining = self.size - self._pos
        if remaining <= 0 or len(b) == 0:
            return 0
        if self._block_pos >= len(self._block):
            self._block = self._random.randbytes(GENERATE_BLOCK)
            self._block_pos = 0
        n = min(len(b), remaining, len(self._block) - self._block_pos)
        b[:n] = self._block[self._block_pos:self._block_pos + n]
        self._block_pos += n
        self._pos += n
        return n


class ChecksumCache:
    """
    Data file name -> CRC32 map shared by every reader in the process

    Entries are set once and never overwritten. get_or_compute() runs the
    computation at most once per name even when several threads open the
    same data file for the first time concurrently.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, int] = {}
        self._pending: Dict[str, threading.Lock] = {}

    def __contains__(self, name):
        with self._lock:
            return name in self._entries

    def get(self, name: str) -> Optional[int]:
        with self._lock:
            return self._entries.get(name)

    def set_if_absent(self, name: str, crc: int) -> int:
        with self._lock:
            return self._entries.setdefault(name, crc)

    def get_or_compute(self, name: str, compute: Callable[[], int]) -> int:
        with self._lock:
            if name in self._entries:
                return self._entries[name]
            name_lock = self._pending.setdefault(name, threading.Lock())

        with name_lock:
            with self._lock:
                if name in self._entries:
                    return self._entries[name]
            try:
                crc = compute()
                with self._lock:
                    return self._entries.setdefault(name, crc)
            finally:
                with self._lock:
                    self._pending.pop(name, None)


class DataFiles:
    """
    Reader for the named data files

    Args:
        data_dir: directory holding pre-generated files; None generates
            content on the fly
        cache: ChecksumCache to record CRC32 values in
    """

    def __init__(self, data_dir: Optional[str] = None, cache: Optional[ChecksumCache] = None):
        self.data_dir = data_dir
        self.cache = cache if cache is not None else ChecksumCache()

    @staticmethod
    def names() -> List[str]:
        return list(DATA_FILES)

    @staticmethod
    def size(name: str) -> int:
        try:
            return DATA_FILES[name]
        except KeyError:
            raise FixtureNotFound(name) from None

    def path(self, name: str) -> Optional[Path]:
        if not self.data_dir:
            return None
        return Path(self.data_dir) / name

    def _open_stream(self, name: str, size: int):
        path = self.path(name)
        if path is None:
            return io.BufferedReader(RandomDataStream(size))
        try:
            return open(path, "rb")
        except OSError as e:
            raise FixtureReadError(name, e) from e

    def _compute_crc(self, name: str, size: int) -> int:
        with self._open_stream(name, size) as stream:
            try:
                return crc32_ieee(stream)
            except OSError as e:
                raise FixtureReadError(name, e) from e

    def open(self, name: str):
        """
        Open data file name for reading

        The first open of a name reads the whole file once to record its
        CRC32; the returned stream is always unconsumed.

        Raises:
            FixtureNotFound: name is not a known data file
            FixtureReadError: the file in the data directory can't be read
        """
        size = self.size(name)
        self.cache.get_or_compute(name, lambda: self._compute_crc(name, size))
        return self._open_stream(name, size)

    def read(self, name: str) -> bytes:
        with self.open(name) as stream:
            try:
                return stream.read()
            except OSError as e:
                raise FixtureReadError(name, e) from e

    def crc32(self, name: str) -> int:
        size = self.size(name)
        return self.cache.get_or_compute(name, lambda: self._compute_crc(name, size))

    def checksum_matches(self, stream, expected: int) -> None:
        """
        Read stream to the end and compare its CRC32 with expected

        Raises:
            ChecksumMismatch: the CRC32 differs
            FixtureReadError: reading the stream failed
        """
        try:
            actual = crc32_ieee(stream)
        except (OSError, BotoCoreError) as e:
            raise FixtureReadError(getattr(stream, "name", "<stream>"), e) from e
        if actual != expected:
            raise ChecksumMismatch(expected, actual, what="crc32")

    def checksum_matches_fixture(self, stream, name: str) -> None:
        """Like checksum_matches() with the recorded CRC32 of data file name"""
        self.checksum_matches(stream, self.crc32(name))


def write_data_files(datafiles: DataFiles, directory, names: Optional[Iterable[str]] = None) -> Dict[str, dict]:
    """
    Write generated data files into directory

    Returns a manifest of name -> {"size": ..., "crc32": ...}.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    manifest = {}
    for name in names or datafiles.names():
        with datafiles.open(name) as src, open(directory / name, "wb") as dst:
            while True:
                chunk = src.read(GENERATE_BLOCK)
                if not chunk:
                    break
                dst.write(chunk)
        manifest[name] = {"size": datafiles.size(name), "crc32": datafiles.crc32(name)}
    return manifest
