import numpy as np
from typing import Optional, Sequence, TypeVar

T = TypeVar('T')


class RNG:
    """Seedable randomness source shared by every generated name, IP and node pick."""

    def __init__(self, seed: Optional[int] = None):
        self.rng = np.random.default_rng(seed)

    def choice(self, items: Sequence[T]) -> T:
        """Return a random element from the given non-empty sequence."""
        # Index instead of rng.choice so strings and models come back untouched
        return items[int(self.rng.integers(0, len(items)))]

    def randint(self, low: int, high: int) -> int:
        """Random integer in [low, high)."""
        if low == high:
            return low
        return int(self.rng.integers(low, high))

    def token(self, length: int, alphabet: str) -> str:
        return "".join(alphabet[self.randint(0, len(alphabet))] for _ in range(length))
