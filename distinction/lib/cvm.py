"""CVM distinct-element estimator.

Single pass over a stream, keeping a randomly thinned sample of the
elements whose most recent occurrence survived sampling. Every time the
sample fills up to the threshold, each member is kept with probability
1/2 and the sampling probability p is halved. The estimate is the sample
size divided by the final p.

References:
    Chakraborty, Vinodchandran and Meel, "Distinct Elements in Streams:
    An Algorithm for the (Text) Book", 2023. https://arxiv.org/abs/2301.10191
"""
from __future__ import annotations
import logging
import math
import numbers
from collections.abc import Sized
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence
from distinction.lib.abstractsketch import AbstractSketch
from distinction.lib.random_source import RandomSource

logger = logging.getLogger(__name__)

DEFAULT_EPS = 0.1
DEFAULT_DELTA = 0.005


def validate_parameters(eps: float, delta: float) -> None:
    """Reject accuracy parameters the threshold formula cannot use.

    Raises:
        ValueError: if eps is not a positive finite number or delta is
            not in (0, 1)
    """
    if not (isinstance(eps, numbers.Real) and math.isfinite(eps) and eps > 0):
        raise ValueError(f"eps must be a positive finite number, got {eps!r}")
    if not (isinstance(delta, numbers.Real) and math.isfinite(delta) and 0 < delta < 1):
        raise ValueError(f"delta must be in (0, 1), got {delta!r}")


def compute_threshold(stream_length: int, eps: float, delta: float) -> int:
    """Sample-set capacity for a stream of the given length.

    thresh = ceil((12 / eps^2) * log2(8 * m / delta))

    Args:
        stream_length: Number of elements m in the stream (at least 1)
        eps: Relative error bound
        delta: Failure probability

    Returns:
        The threshold as a positive integer
    """
    validate_parameters(eps, delta)
    if isinstance(stream_length, bool) or not isinstance(stream_length, numbers.Integral) or stream_length < 1:
        raise ValueError(f"stream_length must be a positive integer, got {stream_length!r}")
    eps_squared = eps * eps
    if eps_squared == 0.0:
        raise ValueError(f"eps={eps!r} gives a non-finite threshold")
    raw = (12.0 / eps_squared) * math.log2(8 * stream_length / delta)
    if not math.isfinite(raw):
        raise ValueError(f"eps={eps!r} gives a non-finite threshold")
    thresh = math.ceil(raw)
    if thresh < 1:
        raise ValueError(f"eps={eps!r} gives an empty threshold")
    return thresh


class SampleSet:
    """Unordered buffer holding at most one reference per distinct value.

    Hashable elements are located through a dict of list positions.
    Elements that cannot be hashed are found by an equality scan, so any
    type with == works, at linear cost for those elements only. Removal
    swaps the last element into the freed slot.
    """

    def __init__(self):
        self._items: List[Any] = []
        self._positions: Dict[Any, int] = {}
        self._unhashable = 0

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __contains__(self, item: Any) -> bool:
        return self._find(item) >= 0

    def _scan(self, item: Any) -> int:
        for i, stored in enumerate(self._items):
            if stored == item:
                return i
        return -1

    def _find(self, item: Any) -> int:
        try:
            pos = self._positions.get(item, -1)
        except TypeError:
            return self._scan(item)
        if pos < 0 and self._unhashable:
            return self._scan(item)
        return pos

    def _index(self, item: Any, pos: int) -> None:
        try:
            self._positions[item] = pos
        except TypeError:
            self._unhashable += 1

    def add(self, item: Any) -> bool:
        """Insert item unless an equal value is already present."""
        if self._find(item) >= 0:
            return False
        self._items.append(item)
        self._index(item, len(self._items) - 1)
        return True

    def discard(self, item: Any) -> bool:
        """Remove the value equal to item, if present."""
        pos = self._find(item)
        if pos < 0:
            return False
        removed = self._items[pos]
        try:
            del self._positions[removed]
        except TypeError:
            self._unhashable -= 1
        last = self._items.pop()
        if pos < len(self._items):
            self._items[pos] = last
            try:
                self._positions[last] = pos
            except TypeError:
                pass
        return True

    def thin(self, keep: Sequence[bool]) -> None:
        """Keep only the members whose flag in keep is true.

        keep is aligned with iteration order.
        """
        if len(keep) != len(self._items):
            raise ValueError("keep mask length does not match sample size")
        survivors = [item for item, k in zip(self._items, keep) if k]
        self.clear()
        for item in survivors:
            self._items.append(item)
            self._index(item, len(self._items) - 1)

    def clear(self) -> None:
        self._items = []
        self._positions = {}
        self._unhashable = 0


class CVMSketch(AbstractSketch):
    """Streaming distinct-count sketch using the CVM sampling algorithm.

    The stream length must be known up front because it sizes the
    threshold. Memory is bounded by the threshold, not by the number of
    elements fed in.

    A returned estimate of 0 is ambiguous: it means either that nothing
    was added or that the threshold was exhausted after thinning. Check
    `exhausted` to tell the two apart.

    Example:
        >>> sketch = CVMSketch(stream_length=5, seed=7)
        >>> sketch.add_batch(["a", "b", "a", "c", "b"])
        >>> sketch.estimate_cardinality()
        3
    """

    def __init__(self,
                 stream_length: int,
                 eps: float = DEFAULT_EPS,
                 delta: float = DEFAULT_DELTA,
                 seed: Optional[int] = None,
                 rng: Optional[Any] = None,
                 debug: bool = False):
        """Initialize CVM sketch.

        Args:
            stream_length: Total number of elements that will be added
            eps: Relative error bound (e.g. 0.1 for 10%)
            delta: Probability that the error exceeds eps
            seed: Seed for a new RandomSource (mutually exclusive with rng)
            rng: Random source with a random() method returning floats in [0, 1)
            debug: Whether to print debug information on each thinning round
        """
        super().__init__()

        if rng is not None and seed is not None:
            raise ValueError("Pass either rng or seed, not both")
        if isinstance(stream_length, bool) or not isinstance(stream_length, numbers.Integral) or stream_length < 0:
            raise ValueError(f"stream_length must be a non-negative integer, got {stream_length!r}")

        validate_parameters(eps, delta)
        self.stream_length = int(stream_length)
        self.eps = eps
        self.delta = delta
        self.debug = debug
        self.rng = rng if rng is not None else RandomSource(seed)
        # An empty stream never reaches the threshold check
        self.threshold = compute_threshold(stream_length, eps, delta) if stream_length else 0

        self.items_seen = 0
        self._p = 1.0
        self._sample = SampleSet()
        self._exhausted = False

        logger.info("Initializing; p = %s m = %d thresh = %d",
                    self._p, self.stream_length, self.threshold)

    @property
    def p(self) -> float:
        """Current sampling probability, always a power of 1/2."""
        return self._p

    @property
    def sample_size(self) -> int:
        return len(self._sample)

    @property
    def exhausted(self) -> bool:
        """True once thinning failed to bring the sample below the threshold."""
        return self._exhausted

    def _draws(self, n: int) -> List[float]:
        bulk = getattr(self.rng, "random_array", None)
        if bulk is not None:
            return list(bulk(n))
        return [self.rng.random() for _ in range(n)]

    def _thin(self) -> None:
        before = len(self._sample)
        draws = self._draws(before)
        self._sample.thin([u >= 0.5 for u in draws])
        self._p /= 2.0

        logger.debug("Thinned sample %d -> %d; p = %s",
                     before, len(self._sample), self._p)
        if self.debug:
            print(f"DEBUG: thinned {before} -> {len(self._sample)}, p={self._p}")

        if len(self._sample) == self.threshold:
            logger.warning("Exiting due to small threshold after removal of elements "
                           "(thresh = %d, items seen = %d); estimate is 0",
                           self.threshold, self.items_seen)
            self._exhausted = True
            self._sample.clear()

    def add(self, item: Any) -> None:
        """Add one stream element.

        Elements added after the sketch is exhausted are ignored.
        """
        if self._exhausted:
            return
        if self.items_seen >= self.stream_length:
            raise ValueError(f"More than stream_length={self.stream_length} elements added")
        self.items_seen += 1

        # The latest occurrence decides membership, so drop any earlier one
        self._sample.discard(item)
        if self.rng.random() < self._p:
            self._sample.add(item)

        if len(self._sample) == self.threshold:
            self._thin()

    def estimate_cardinality(self) -> int:
        """Estimate the number of distinct elements added so far.

        Returns:
            round(sample size / p), capped at the number of elements seen.
            0 if nothing was added or the sketch is exhausted.
        """
        if self._exhausted or self.items_seen == 0:
            return 0
        estimate = round(len(self._sample) / self._p)
        return min(estimate, self.items_seen)

    def __repr__(self) -> str:
        return (f"CVMSketch(stream_length={self.stream_length}, eps={self.eps}, "
                f"delta={self.delta}, threshold={self.threshold}, p={self._p}, "
                f"sample_size={len(self._sample)})")


def find_n_distinct(stream: Iterable[Any],
                    eps: float = DEFAULT_EPS,
                    delta: float = DEFAULT_DELTA,
                    rng: Optional[Any] = None,
                    *,
                    seed: Optional[int] = None,
                    stream_length: Optional[int] = None) -> int:
    """Estimate the number of distinct elements in a stream.

    The stream is consumed once and never copied; only references to
    sampled elements are held, and only for the duration of the call.
    Elements need only support ==, though hashable ones are faster.

    Args:
        stream: Elements to count. Must be sized unless stream_length is given.
        eps: Relative error bound
        delta: Failure probability
        rng: Random source with random() in [0, 1). A fresh entropy-seeded
             RandomSource is used when omitted.
        seed: Seed for a fresh RandomSource, as an alternative to rng
        stream_length: Number of elements, for iterables without len()

    Returns:
        Estimated distinct count. 0 for an empty stream, and also 0 when
        the threshold is exhausted, so 0 only certifies an empty stream.

    Example:
        >>> find_n_distinct([1, 10, 20, 10, 10, 30, 20, 10, 20, 20, 1, 1, 1], seed=1)
        4
    """
    if rng is not None and seed is not None:
        raise ValueError("Pass either rng or seed, not both")
    validate_parameters(eps, delta)

    if stream_length is None:
        if not isinstance(stream, Sized):
            raise TypeError("stream has no len(); pass stream_length")
        stream_length = len(stream)
    if stream_length == 0:
        return 0

    sketch = CVMSketch(stream_length, eps, delta,
                       rng=rng if rng is not None else RandomSource(seed))
    for item in stream:
        sketch.add(item)
        if sketch.exhausted:
            return 0

    logger.info("Finished calculating; p = %s sample size = %d",
                sketch.p, sketch.sample_size)
    return sketch.estimate_cardinality()
