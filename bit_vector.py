"""Битовый массив фиксированной длины поверх numpy uint8."""

from typing import Iterable, Tuple
import numpy as np


# число единичных бит для каждого значения байта
_POPCOUNT = np.array([bin(i).count("1") for i in range(256)], dtype=np.uint8)


class BitVector:
    """Плотный битовый вектор: биты только устанавливаются, не сбрасываются.

    Любой индекс приводится по модулю size, поэтому запись и чтение
    всегда попадают в [0, size).
    """

    def __init__(self, size: int):
        if size < 1:
            raise ValueError(f"BitVector size must be positive, got {size}")
        self.size = int(size)
        self._bytes = np.zeros((self.size + 7) // 8, dtype=np.uint8)

    def _locate(self, indices: Iterable[int]) -> Tuple[np.ndarray, np.ndarray]:
        positions = np.array([i % self.size for i in indices], dtype=np.int64)
        masks = np.left_shift(1, positions & 7).astype(np.uint8)
        return positions >> 3, masks

    def set_bits(self, indices: Iterable[int]) -> None:
        byte_idx, masks = self._locate(indices)
        # .at корректно обрабатывает повторяющиеся байты
        np.bitwise_or.at(self._bytes, byte_idx, masks)

    def all_set(self, indices: Iterable[int]) -> bool:
        byte_idx, masks = self._locate(indices)
        return bool(np.all(self._bytes[byte_idx] & masks))

    def __getitem__(self, index: int) -> int:
        pos = index % self.size
        return int(self._bytes[pos >> 3] >> (pos & 7)) & 1

    def __setitem__(self, index: int, value: int) -> None:
        if not value:
            raise ValueError("bits can only be set, clearing is not supported")
        pos = index % self.size
        self._bytes[pos >> 3] |= np.uint8(1 << (pos & 7))

    def __len__(self) -> int:
        return self.size

    def count(self) -> int:
        """Popcount через таблицу на 256 значений."""
        return int(_POPCOUNT[self._bytes].sum(dtype=np.int64))

    @property
    def bytesize(self) -> int:
        return int(self._bytes.nbytes)

    def __str__(self) -> str:
        bits = np.unpackbits(self._bytes, bitorder="little")[:self.size]
        return "".join("1" if b else "0" for b in bits)
