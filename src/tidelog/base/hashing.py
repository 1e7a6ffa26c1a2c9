"""Stable name hashing for colour assignment.

Python's builtin ``hash()`` is salted per process, so emitter colours would
change between runs. This module implements 32-bit MurmurHash2 instead.
"""

_MASK = 0xFFFFFFFF
_SEED = 0x9747B28C
_M = 0x5BD1E995
_R = 24

PALETTE_SIZE = 36
PALETTE_BASE = 124


def murmur32(name: str) -> int:
    """Hash a name with MurmurHash2 over its UTF-8 bytes.

    Args:
        name: Text to hash.

    Returns:
        The hash as a signed 32-bit integer.
    """
    data = name.encode("utf-8")
    length = len(data)
    h = (_SEED ^ length) & _MASK

    body = length - (length % 4)
    for i in range(0, body, 4):
        k = int.from_bytes(data[i:i + 4], "little")
        k = (k * _M) & _MASK
        k ^= k >> _R
        k = (k * _M) & _MASK
        h = (h * _M) & _MASK
        h ^= k

    tail = length % 4
    if tail == 3:
        h ^= data[body + 2] << 16
    if tail >= 2:
        h ^= data[body + 1] << 8
    if tail >= 1:
        h ^= data[body]
        h = (h * _M) & _MASK

    h ^= h >> 13
    h = (h * _M) & _MASK
    h ^= h >> 15

    if h & 0x80000000:
        return h - 0x100000000
    return h


def color_seed(name: str) -> int:
    """Map a name onto the 36-entry palette band starting at colour 124."""
    return abs(murmur32(name)) % PALETTE_SIZE + PALETTE_BASE
