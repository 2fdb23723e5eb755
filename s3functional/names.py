"""
Random bucket and object names

Names are drawn from a random source the caller passes in, never from a
module level generator, so a seeded random.Random reproduces the same
names run after run.
"""

import random

ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"

NAME_LENGTH = 60

# 6 bits index the 36 symbols; values 36-63 are rejected
_INDEX_BITS = 6
_INDEX_MASK = (1 << _INDEX_BITS) - 1
_INDEXES_PER_DRAW = 63 // _INDEX_BITS


def random_name(total_length: int, source: random.Random, prefix: str = "") -> str:
    """
    Return prefix followed by random symbols, total_length characters long

    Each 63 bit draw from source is cut into ten 6 bit indexes; indexes
    past the end of ALPHABET are skipped.
    """
    if len(prefix) > total_length:
        raise ValueError(f"prefix {prefix!r} longer than {total_length}")

    suffix = []
    needed = total_length - len(prefix)
    cache, remain = source.getrandbits(63), _INDEXES_PER_DRAW
    while len(suffix) < needed:
        if remain == 0:
            cache, remain = source.getrandbits(63), _INDEXES_PER_DRAW
        index = cache & _INDEX_MASK
        if index < len(ALPHABET):
            suffix.append(ALPHABET[index])
        cache >>= _INDEX_BITS
        remain -= 1
    return prefix + "".join(suffix)


def bucket_name(source: random.Random, prefix: str) -> str:
    """S3 bucket names must be lowercase and at most 63 characters"""
    return random_name(NAME_LENGTH, source, prefix.lower() + "-")


def object_name(source: random.Random, prefix: str = "obj") -> str:
    return random_name(NAME_LENGTH, source, prefix + "-")
