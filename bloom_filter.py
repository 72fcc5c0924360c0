"""Bloom Filter - вероятностная структура для проверки принадлежности.

Размер массива и число раундов считаются из ожидаемого числа элементов
и целевого false positive rate. Вместо k разных алгоритмов используются
две базовые хеш-функции, "подсоленные" случайными seed'ами.
"""

import logging
import math
import secrets
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from bit_vector import BitVector
from hash_functions import DEFAULT_HASH_FUNCTIONS, HashFunction

logger = logging.getLogger(__name__)

DEFAULT_FALSE_POSITIVE_RATE = 1.0e-7
SEED_BYTES = 16


def random_seed() -> str:
    """16 случайных байт в hex (32 символа)."""
    return secrets.token_hex(SEED_BYTES)


class InvalidParameter(ValueError):
    """Недопустимые параметры фильтра (только при создании)."""


def _check_rate(false_positive_rate: float) -> None:
    # NaN тоже не проходит: сравнения с NaN ложны
    if not 0.0 < false_positive_rate < 1.0:
        raise InvalidParameter(
            f"false_positive_rate must be in (0, 1), got {false_positive_rate}"
        )


def _check_elements(expected_elements: int) -> None:
    if expected_elements < 1:
        raise InvalidParameter(
            f"expected_elements must be positive, got {expected_elements}"
        )


def calculate_size(expected_elements: int, false_positive_rate: float) -> int:
    """Оптимальный размер битового массива: m = -n * ln(p) / ln(2)^2.

    Округление вверх: меньший массив дал бы FPR выше запрошенного.
    """
    _check_elements(expected_elements)
    _check_rate(false_positive_rate)
    m = -expected_elements * math.log(false_positive_rate) / math.log(2) ** 2
    return max(1, math.ceil(m))


def calculate_hash_rounds(size: int, expected_elements: int) -> int:
    """Оптимальное число хеш-функций: k = (m / n) * ln(2), вверх."""
    _check_elements(expected_elements)
    if size < 1:
        raise InvalidParameter(f"size must be positive, got {size}")
    return max(1, math.ceil(size / expected_elements * math.log(2)))


@dataclass(frozen=True)
class BloomConfig:
    expected_elements: int
    false_positive_rate: float = DEFAULT_FALSE_POSITIVE_RATE

    def __post_init__(self):
        _check_elements(self.expected_elements)
        _check_rate(self.false_positive_rate)

    @property
    def size(self) -> int:
        return calculate_size(self.expected_elements, self.false_positive_rate)

    @property
    def hash_rounds(self) -> int:
        return calculate_hash_rounds(self.size, self.expected_elements)


class BloomFilter:
    """Bloom Filter с O(k) add/member.

    Ложноотрицательных ответов не бывает: после add(key) member(key)
    всегда True. Ложноположительные возможны с вероятностью около
    false_positive_rate, когда добавлено ~expected_elements ключей.

    Не потокобезопасен: конкурентные add требуют внешней блокировки.
    """

    def __init__(self,
                 expected_elements: int,
                 false_positive_rate: float = DEFAULT_FALSE_POSITIVE_RATE,
                 hash_functions: Optional[Sequence[HashFunction]] = None,
                 seed_source: Optional[Callable[[], str]] = None):
        self.config = BloomConfig(expected_elements, false_positive_rate)
        self.hash_functions: Tuple[HashFunction, ...] = tuple(
            DEFAULT_HASH_FUNCTIONS if hash_functions is None else hash_functions
        )
        if not self.hash_functions:
            raise InvalidParameter("at least one hash function is required")

        self.size = self.config.size
        self.hash_rounds = calculate_hash_rounds(self.size, expected_elements)
        self.seeds = self._generate_seeds(seed_source or random_seed)
        self.bits = BitVector(self.size)
        self.n = 0

        logger.debug(
            "bloom filter: n=%d p=%g -> size=%d bits, hash_rounds=%d, seeds=%d, hashes=%s",
            expected_elements, false_positive_rate,
            self.size, self.hash_rounds, len(self.seeds),
            ",".join(getattr(hf, "name", repr(hf)) for hf in self.hash_functions),
        )

    @classmethod
    def from_config(cls, config: BloomConfig, **kwargs) -> 'BloomFilter':
        return cls(config.expected_elements, config.false_positive_rate, **kwargs)

    def _generate_seeds(self, seed_source: Callable[[], str]) -> Tuple[str, ...]:
        # вверх: иначе при нечётном k раундов получилось бы меньше расчётного
        count = math.ceil(self.hash_rounds / len(self.hash_functions))
        return tuple(str(seed_source()) for _ in range(count))

    @property
    def effective_hash_rounds(self) -> int:
        return len(self.seeds) * len(self.hash_functions)

    @staticmethod
    def _salt(key, seed: str) -> bytes:
        if isinstance(key, (bytes, bytearray)):
            return bytes(key) + b"_" + seed.encode("utf-8")
        return f"{key}_{seed}".encode("utf-8")

    def hashes(self, key) -> List[int]:
        """Все хеши ключа: для каждого seed, для каждой базовой функции.

        По модулю size значения не приводятся, это делает BitVector.
        """
        return [hf(self._salt(key, seed))
                for seed in self.seeds
                for hf in self.hash_functions]

    def add(self, key) -> 'BloomFilter':
        self.bits.set_bits(self.hashes(key))
        self.n += 1
        return self

    def update(self, keys: Iterable) -> 'BloomFilter':
        for key in keys:
            self.add(key)
        return self

    def member(self, key) -> bool:
        return self.bits.all_set(self.hashes(key))

    def __contains__(self, key) -> bool:
        return self.member(key)

    def saturation(self) -> float:
        """Доля установленных бит, в [0, 1]."""
        return self.bits.count() / float(self.size)

    def bytesize(self) -> int:
        return self.bits.bytesize

    @property
    def fpr(self) -> float:
        """Теоретический FPR сейчас: (1 - e^(-kn/m))^k."""
        if self.n == 0:
            return 0.0
        k = self.effective_hash_rounds
        return float((1 - np.exp(-k * self.n / self.size)) ** k)

    def __str__(self) -> str:
        return str(self.bits)

    def __repr__(self) -> str:
        return (f"BloomFilter(size={self.size}, hash_rounds={self.hash_rounds}, "
                f"seeds={len(self.seeds)}, saturation={self.saturation():.4f})")
