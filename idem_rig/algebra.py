# algebra.py - monomial rule, coefficient saturation, index codec, dense tables

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence, Tuple
import logging

import numpy as np

logger = logging.getLogger(__name__)

Coeffs = Tuple[int, ...]
Index = int

# Coefficients live in {0,1,2,3}: (1+1)^2 = (1+1) gives 4=2, 5=3, 6=2, ...
NCOEFF = 4
COEFF_BITS = 2

# -------------------------------------------------------------------
# Monomial rule
@dataclass(frozen=True)
class MonomialRule:
    names: Tuple[str, ...]
    table: Tuple[Tuple[int, ...], ...]   # table[i][j] = tag of names[i]*names[j]

    def __post_init__(self):
        n = len(self.names)
        if n == 0:
            raise ValueError("rule needs at least one monomial")
        if len(self.table) != n or any(len(row) != n for row in self.table):
            raise ValueError(f"multiplication table must be {n}x{n}")
        for row in self.table:
            for tag in row:
                if not 0 <= tag < n:
                    raise ValueError(f"monomial tag out of range: {tag}")

    @classmethod
    def from_lists(cls, names: Sequence[str], table: Sequence[Sequence[int]]) -> "MonomialRule":
        return cls(tuple(names), tuple(tuple(row) for row in table))

    @property
    def size(self) -> int:
        return len(self.names)

    @property
    def universe(self) -> int:
        return NCOEFF ** self.size


# 1, a, b, ab, ba, aba, bab: every word in a, b collapses onto one of these
# once xx = x is imposed (abab = ab, and so on).
IDEMPOTENT_RIG_RULE = MonomialRule.from_lists(
    ["1", "a", "b", "ab", "ba", "aba", "bab"],
    [
        [0, 1, 2, 3, 4, 5, 6],
        [1, 1, 3, 3, 5, 5, 3],
        [2, 4, 2, 6, 4, 4, 6],
        [3, 5, 3, 3, 5, 5, 3],
        [4, 4, 6, 6, 4, 4, 6],
        [5, 5, 3, 3, 5, 5, 3],
        [6, 4, 6, 6, 4, 4, 6],
    ],
)

# -------------------------------------------------------------------
# Coefficients
def saturate(c: int) -> int:
    if c < 0:
        raise ValueError(f"negative coefficient: {c}")
    return c if c < NCOEFF else 2 + (c % 2)

def saturate_array(c: np.ndarray) -> np.ndarray:
    return np.where(c < NCOEFF, c, 2 + (c % 2))

# -------------------------------------------------------------------
# Index <-> tuple codec
def tuple_to_index(coeffs: Sequence[int]) -> Index:
    res = 0
    for k, c in enumerate(coeffs):
        if not 0 <= c < NCOEFF:
            raise ValueError(f"coefficient out of range: {c}")
        res |= c << (COEFF_BITS * k)
    return res

def index_to_tuple(index: Index, n: int = IDEMPOTENT_RIG_RULE.size) -> Coeffs:
    if not 0 <= index < NCOEFF ** n:
        raise ValueError(f"index out of range: {index}")
    return tuple((index >> (COEFF_BITS * k)) & (NCOEFF - 1) for k in range(n))

def index_digits(n: int) -> np.ndarray:
    """Coefficient matrix of the whole universe: row i is index_to_tuple(i, n)."""
    idx = np.arange(NCOEFF ** n, dtype=np.int64)
    shifts = COEFF_BITS * np.arange(n, dtype=np.int64)
    return ((idx[:, None] >> shifts[None, :]) & (NCOEFF - 1)).astype(np.int16)

# -------------------------------------------------------------------
# Arithmetic on tuples
def mult_tuples(t1: Sequence[int], t2: Sequence[int],
                rule: MonomialRule = IDEMPOTENT_RIG_RULE) -> Coeffs:
    acc = [0] * rule.size
    for i, c1 in enumerate(t1):
        if c1 == 0:
            continue
        for j, c2 in enumerate(t2):
            acc[rule.table[i][j]] += c1 * c2
    return tuple(saturate(c) for c in acc)

def add_tuples(t1: Sequence[int], t2: Sequence[int]) -> Coeffs:
    return tuple(saturate(c1 + c2) for c1, c2 in zip(t1, t2))

def mult_indices(i1: Index, i2: Index, rule: MonomialRule = IDEMPOTENT_RIG_RULE) -> Index:
    n = rule.size
    return tuple_to_index(mult_tuples(index_to_tuple(i1, n), index_to_tuple(i2, n), rule))

def add_indices(i1: Index, i2: Index, rule: MonomialRule = IDEMPOTENT_RIG_RULE) -> Index:
    n = rule.size
    return tuple_to_index(add_tuples(index_to_tuple(i1, n), index_to_tuple(i2, n)))

# -------------------------------------------------------------------
# Rendering
def format_tuple(coeffs: Sequence[int], rule: MonomialRule = IDEMPOTENT_RIG_RULE,
                 par: bool = False) -> str:
    terms: List[str] = []
    for k, c in enumerate(coeffs):
        if c == 0:
            continue
        if k == 0 and rule.names[0] == "1":
            terms.append(str(c))
        else:
            terms.append(("" if c == 1 else str(c)) + rule.names[k])
    body = "+".join(terms) if terms else "0"
    return f"({body})" if par else body

def format_index(index: Index, rule: MonomialRule = IDEMPOTENT_RIG_RULE,
                 par: bool = False) -> str:
    return format_tuple(index_to_tuple(index, rule.size), rule, par)

# -------------------------------------------------------------------
# Dense tables
class AlgebraTables:
    """
    Multiplication and addition over the whole formal universe.

    mtab[x1, x2] is the index of x1*x2, atab[x1, x2] the index of x1+x2.
    Both are square uint16 arrays of side rule.universe and are read-only.
    """

    def __init__(self, rule: MonomialRule, mtab: np.ndarray, atab: np.ndarray):
        size = rule.universe
        if mtab.shape != (size, size) or atab.shape != (size, size):
            raise ValueError(f"tables must be {size}x{size}")
        self.rule = rule
        self.mtab = mtab
        self.atab = atab
        self.mtab.flags.writeable = False
        self.atab.flags.writeable = False

    @property
    def universe(self) -> int:
        return self.rule.universe

    def mult(self, x1: Index, x2: Index) -> Index:
        return int(self.mtab[x1, x2])

    def add(self, x1: Index, x2: Index) -> Index:
        return int(self.atab[x1, x2])

    def square(self, x: Index) -> Index:
        return int(self.mtab[x, x])

    def squares(self) -> np.ndarray:
        return np.diagonal(self.mtab).copy()

    @classmethod
    def build(cls, rule: MonomialRule = IDEMPOTENT_RIG_RULE,
              block: int = 256) -> "AlgebraTables":
        n = rule.size
        size = rule.universe
        digits = index_digits(n)                        # (size, n)
        weights = (1 << (COEFF_BITS * np.arange(n))).astype(np.int64)

        # (i, j) monomial pairs landing on each product slot
        slots: List[List[Tuple[int, int]]] = [[] for _ in range(n)]
        for i in range(n):
            for j in range(n):
                slots[rule.table[i][j]].append((i, j))

        mtab = np.empty((size, size), dtype=np.uint16)
        atab = np.empty((size, size), dtype=np.uint16)
        for lo in range(0, size, block):
            hi = min(lo + block, size)
            left = digits[lo:hi]                        # (b, n)
            prod = np.zeros((hi - lo, size), dtype=np.int64)
            summ = np.zeros((hi - lo, size), dtype=np.int64)
            for k in range(n):
                acc = np.zeros((hi - lo, size), dtype=np.int16)
                for i, j in slots[k]:
                    acc += left[:, i, None] * digits[None, :, j]
                prod += saturate_array(acc).astype(np.int64) * weights[k]
                coord = left[:, k, None] + digits[None, :, k]
                summ += saturate_array(coord).astype(np.int64) * weights[k]
            mtab[lo:hi] = prod
            atab[lo:hi] = summ
            logger.debug("tables: rows %d..%d / %d", lo, hi, size)
        logger.info("built %dx%d multiplication and addition tables", size, size)
        return cls(rule, mtab, atab)
