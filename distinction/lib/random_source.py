from __future__ import annotations
from typing import Optional, Union
import numpy as np # type: ignore

MAX_SEED = 1 << 64


class RandomSource:
    """Uniform random draws in [0, 1) backed by a numpy Generator.

    Draws are pulled from the generator in blocks, so single draws and
    bulk draws consume the same underlying sequence. Two sources built
    from the same seed produce identical values no matter how the calls
    are mixed.
    """

    def __init__(self, seed: Optional[int] = None, block_size: int = 4096):
        """Initialize a random source.

        Args:
            seed: 64-bit seed for reproducible draws. None seeds from OS entropy.
            block_size: Number of draws generated per refill
        """
        if seed is not None:
            if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
                raise TypeError(f"Seed must be an integer, got {type(seed).__name__}")
            if not 0 <= int(seed) < MAX_SEED:
                raise ValueError("Seed must be in [0, 2**64)")
            seed = int(seed)
        if block_size < 1:
            raise ValueError("block_size must be positive")

        self._seed = seed
        self.block_size = block_size
        self._generator = np.random.default_rng(seed)
        self._block = np.empty(0, dtype=np.float64)
        self._pos = 0

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def _refill(self) -> None:
        self._block = self._generator.random(self.block_size)
        self._pos = 0

    def random(self) -> float:
        """Return the next uniform draw in [0, 1)."""
        if self._pos >= len(self._block):
            self._refill()
        value = self._block[self._pos]
        self._pos += 1
        return float(value)

    def random_array(self, n: int) -> np.ndarray:
        """Return the next n uniform draws in [0, 1), in order."""
        if n < 0:
            raise ValueError("n must be non-negative")
        out = np.empty(n, dtype=np.float64)
        filled = 0
        while filled < n:
            if self._pos >= len(self._block):
                self._refill()
            take = min(n - filled, len(self._block) - self._pos)
            out[filled:filled + take] = self._block[self._pos:self._pos + take]
            self._pos += take
            filled += take
        return out

    def integers(self, low: int, high: int,
                 size: Optional[int] = None) -> Union[int, np.ndarray]:
        """Uniform integers in [low, high).

        Used to build synthetic streams. Shares the generator with the
        float draws but not the block buffer.
        """
        if size is None:
            return int(self._generator.integers(low, high))
        return self._generator.integers(low, high, size=size)

    def __repr__(self) -> str:
        return f"RandomSource(seed={self._seed!r}, block_size={self.block_size})"
