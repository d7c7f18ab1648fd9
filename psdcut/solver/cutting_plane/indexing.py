import math
from numbers import Integral
from typing import Iterator, List, Sequence, Tuple

from psdcut.solver.cutting_plane.exceptions import InvalidIndex


def _check_int(value, name):
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidIndex(f"{name} must be an integer, got {value!r}")
    return int(value)


class TriangularIndex:
    """
    Bijection between unordered variable pairs (x, y), x > y, and the flat
    (1-based) index of the relaxation variable standing for x_x * x_y.

    The pairs are laid out row by row of the strictly lower triangle:
    (1, 0) -> 1, (2, 0) -> 2, (2, 1) -> 3, (3, 0) -> 4, ...
    """

    def __init__(self, n: int):
        n = _check_int(n, "n")
        if n < 0:
            raise InvalidIndex(f"Number of variables must be non-negative, got {n}")
        self.n = n

    @property
    def size(self) -> int:
        return self.n * (self.n - 1) // 2

    def __len__(self):
        return self.size

    def to_flat(self, x: int, y: int) -> int:
        x, y = _check_int(x, "x"), _check_int(y, "y")
        if x == y:
            raise InvalidIndex(f"Bad pair: {x}, {y}")
        if y > x:
            x, y = y, x
        if y < 0 or x >= self.n:
            raise InvalidIndex(f"Bad pair: {x}, {y} for {self.n} variables")
        return 1 + y + x * (x - 1) // 2

    def to_pair(self, v: int) -> Tuple[int, int]:
        v = _check_int(v, "v")
        if v < 1 or v > self.size:
            raise InvalidIndex(f"Bad flat index: {v} not in [1, {self.size}]")

        x = math.floor(math.sqrt(2 * v) + 0.5)
        y = v - 1 - x * (x - 1) // 2

        # the closed form can misround near perfect squares
        if not 0 <= y < x:
            raise InvalidIndex(f"Bad pair from flat index {v}: {x}, {y}")
        return x, y

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        for x in range(1, self.n):
            for y in range(x):
                yield x, y

    def pairs_of(self, indices: Sequence[int]) -> List[int]:
        """
        Global flat index of every local pair of `indices`, in the local flat order
        of a TriangularIndex of size len(indices).
        """
        local = TriangularIndex(len(indices))
        return [self.to_flat(indices[x], indices[y]) for x, y in local]
