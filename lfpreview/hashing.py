"""File fingerprints used as cache keys: sampled murmur3 hashes plus a name digest."""

from __future__ import annotations

import hashlib
import os
import struct

from .textfmt import limit_string_to_bytes

CACHE_BYTE_LIMIT = 200
SAMPLE_SIZE = 16 * 1024
SAMPLE_THRESHOLD = 128 * 1024

_MASK = (1 << 64) - 1
_C1 = 0x87C37B91114253D5
_C2 = 0x4CF5AD432745937F


def _rotl(value: int, shift: int) -> int:
    return ((value << shift) | (value >> (64 - shift))) & _MASK


def _fmix(k: int) -> int:
    k ^= k >> 33
    k = (k * 0xFF51AFD7ED558CCD) & _MASK
    k ^= k >> 33
    k = (k * 0xC4CEB9FE1A85EC53) & _MASK
    k ^= k >> 33
    return k


def _mix_k1(k1: int) -> int:
    return (_rotl((k1 * _C1) & _MASK, 31) * _C2) & _MASK


def _mix_k2(k2: int) -> int:
    return (_rotl((k2 * _C2) & _MASK, 33) * _C1) & _MASK


def murmur3_128(data: bytes, seed: int = 0) -> bytes:
    """MurmurHash3 x64 128-bit digest, as 16 bytes (h1 then h2, big-endian)."""
    h1 = h2 = seed & _MASK
    length = len(data)
    body = length - length % 16

    for k1, k2 in struct.iter_unpack("<QQ", data[:body]):
        h1 ^= _mix_k1(k1)
        h1 = _rotl(h1, 27)
        h1 = (h1 + h2) & _MASK
        h1 = (h1 * 5 + 0x52DCE729) & _MASK
        h2 ^= _mix_k2(k2)
        h2 = _rotl(h2, 31)
        h2 = (h2 + h1) & _MASK
        h2 = (h2 * 5 + 0x38495AB5) & _MASK

    tail = data[body:]
    if len(tail) > 8:
        h2 ^= _mix_k2(int.from_bytes(tail[8:], "little"))
    if tail:
        h1 ^= _mix_k1(int.from_bytes(tail[:8], "little"))

    h1 ^= length
    h2 ^= length
    h1 = (h1 + h2) & _MASK
    h2 = (h2 + h1) & _MASK
    h1 = _fmix(h1)
    h2 = _fmix(h2)
    h1 = (h1 + h2) & _MASK
    h2 = (h2 + h1) & _MASK
    return h1.to_bytes(8, "big") + h2.to_bytes(8, "big")


def _uvarint(value: int) -> bytes:
    out = bytearray()
    while value >= 0x80:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def imohash_file(
    path: str | os.PathLike[str],
    sample_size: int = SAMPLE_SIZE,
    sample_threshold: int = SAMPLE_THRESHOLD,
) -> bytes:
    """Constant-time 16-byte file fingerprint.

    Small files are hashed whole; larger ones by three samples taken from the
    start, the middle and the end.  The file size, as a varint, overwrites the
    leading bytes of the digest.
    """
    with open(path, "rb") as handle:
        size = os.fstat(handle.fileno()).st_size
        if size < sample_threshold or sample_size < 1:
            data = handle.read()
        else:
            samples = []
            for offset in (0, size // 2, size - sample_size):
                handle.seek(offset)
                samples.append(handle.read(sample_size))
            data = b"".join(samples)
    digest = murmur3_128(data)
    prefix = _uvarint(size)
    return prefix + digest[len(prefix):]


def name_digest(name: str, limit: int = CACHE_BYTE_LIMIT) -> str:
    """Hex digest of a name, cut to ``limit`` bytes."""
    digest = hashlib.blake2b(name.encode("utf-8"), digest_size=32).hexdigest()
    return limit_string_to_bytes(digest, limit)


def file_key(path: str | os.PathLike[str], limit: int = CACHE_BYTE_LIMIT) -> str:
    """Cache key for a file: its content fingerprint followed by a digest of its base name."""
    content = limit_string_to_bytes(imohash_file(path).hex(), limit)
    name = name_digest(os.path.basename(os.fspath(path)), limit)
    return limit_string_to_bytes(content + name, limit)