# famtime/seeded.py
from typing import List, Sequence, TypeVar

T = TypeVar("T")

_MASK = 0xFFFFFFFF
_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193
_ZERO_STATE = 0x9E3779B9   # xorshift never leaves an all-zero state


def hash_seed(text: str) -> int:
    """32-bit FNV-1a over the UTF-8 bytes of `text`."""
    value = _FNV_OFFSET
    for byte in text.encode("utf-8"):
        value ^= byte
        value = (value * _FNV_PRIME) & _MASK
    return value


class SeededSequence:
    """Reproducible xorshift32 stream. The only source of randomness in the engine."""

    def __init__(self, seed: int) -> None:
        self._state = (seed & _MASK) or _ZERO_STATE

    @classmethod
    def from_key(cls, *parts: object) -> "SeededSequence":
        return cls(hash_seed("|".join(str(p) for p in parts)))

    def next_uint(self) -> int:
        x = self._state
        x ^= (x << 13) & _MASK
        x ^= x >> 17
        x ^= (x << 5) & _MASK
        self._state = x
        return x

    def next_float(self) -> float:
        return self.next_uint() / 2 ** 32

    def randint_below(self, upper: int) -> int:
        if upper <= 0:
            raise ValueError("upper must be positive")
        return int(self.next_float() * upper)

    def shuffle(self, items: Sequence[T]) -> List[T]:
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.randint_below(i + 1)
            result[i], result[j] = result[j], result[i]
        return result

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("choice from an empty sequence")
        return items[self.randint_below(len(items))]
