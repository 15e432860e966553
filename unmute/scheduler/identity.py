"""Deterministic request identifiers.

Backend request ids are derived from a seed string so that cancel and
reschedule always address the same entries across process restarts.
"""
import uuid

FNV_OFFSET_BASIS = 14695981039346656037
FNV_PRIME = 1099511628211
_MASK_64 = 0xFFFFFFFFFFFFFFFF


def fnv1a_64(data: bytes, basis: int = FNV_OFFSET_BASIS) -> int:
    """64-bit FNV-1a hash."""
    h = basis
    for byte in data:
        h = ((h ^ byte) * FNV_PRIME) & _MASK_64
    return h


def derive(seed: str) -> uuid.UUID:
    """Map a seed string to a version-4 shaped UUID.

    Layout: 32+16+12 bits of the seed hash, a 14-bit fold from a second
    hashing round, and the first six seed bytes as the node field.
    """
    raw = seed.encode("utf-8")
    h = fnv1a_64(raw)

    a = h & 0xFFFFFFFF
    h >>= 32
    b = h & 0xFFFF
    h >>= 16
    c = (h & 0x0FFF) | 0x4000

    tail = fnv1a_64(raw, basis=h ^ FNV_OFFSET_BASIS)
    d = (tail & 0x3FFF) | 0x8000

    e = 0
    for byte in raw[:6]:
        e = (e << 8) | byte

    return uuid.UUID(int=(a << 96) | (b << 80) | (c << 64) | (d << 48) | e)


def instance_seed(seed: str, index: int) -> str:
    """Seed of one schedule slot of an alarm."""
    return f"{seed}_{index}"


def instance_id(seed: str, index: int) -> uuid.UUID:
    return derive(instance_seed(seed, index))
