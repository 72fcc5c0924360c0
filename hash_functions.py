"""Базовые 32-битные хеш-функции для seeded k-hashing."""

from typing import Tuple
import mmh3


class HashFunction:
    """Хеш-функция: bytes -> беззнаковое 32-битное целое."""

    name = "abstract"

    def __call__(self, data: bytes) -> int:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class Murmur3Hash(HashFunction):
    """MurmurHash3 x86_32 (через mmh3)."""

    name = "murmur3_32"

    def __init__(self, seed: int = 0):
        self.seed = seed

    def __call__(self, data: bytes) -> int:
        return mmh3.hash(data, self.seed, signed=False)

    def __repr__(self) -> str:
        return f"Murmur3Hash(name={self.name!r}, seed={self.seed})"


class FNV1aHash(HashFunction):
    """FNV-1a, 32 бита."""

    name = "fnv1a_32"
    OFFSET_BASIS = 0x811C9DC5
    PRIME = 0x01000193

    def __call__(self, data: bytes) -> int:
        h = self.OFFSET_BASIS
        for b in data:
            h ^= b
            h = (h * self.PRIME) & 0xFFFFFFFF
        return h


# порядок важен: hashes() обходит функции именно в нём
DEFAULT_HASH_FUNCTIONS: Tuple[HashFunction, ...] = (Murmur3Hash(), FNV1aHash())
