# closure.py - congruence closure of the idempotent quotient over dense tables

from __future__ import annotations
from enum import Enum
from typing import Callable, List, Optional, Tuple
import logging

import numpy as np

from .algebra import AlgebraTables
from .partition import NIL, Label, PartitionStore

logger = logging.getLogger(__name__)

# The square fold is run a fixed number of times, not to a fixed point.
SQUARE_FOLD_PASSES = 2
STRATEGIES = ("batch", "restart")

MergeHook = Callable[[Label, Label], None]
PassHook = Callable[["ClosureEngine", int, int], None]


class EngineState(Enum):
    SEEDING = "seeding"
    REFINING = "refining"
    STABLE = "stable"


class ClosureEngine:
    """
    Coarsest quotient of the formal universe compatible with + and *
    in which every element is identified with its square.

    The engine owns the partition; the tables are only read.
    """

    def __init__(self, tables: AlgebraTables, block: int = 256,
                 on_merge: Optional[MergeHook] = None,
                 on_pass: Optional[PassHook] = None):
        self.tables = tables
        self.store = PartitionStore(tables.universe)
        self.state = EngineState.SEEDING
        self.block = block
        self.on_merge = on_merge
        self.on_pass = on_pass
        self.merges = 0
        self.passes = 0

    # --------- seeding ---------
    def seed(self) -> int:
        """Put every element in the class labelled by its square."""
        if self.state is not EngineState.SEEDING or len(self.store):
            raise RuntimeError("partition already seeded")
        store = self.store
        for x, sq in enumerate(self.tables.squares().tolist()):
            if store.is_live(sq):
                store.add_member(sq, x)
            else:
                store.new_class(sq, x)
        logger.info("initially created %d equivalence classes based on elements "
                    "having the same square", len(store))
        return len(store)

    def fold_squares(self, passes: int = SQUARE_FOLD_PASSES) -> List[int]:
        """
        Absorb, into each class, the class that actually holds its label.

        A label is the square of its members, so the element it names
        belongs with them. Folds made during a pass can leave new cases
        behind; only `passes` sweeps are made.
        """
        store = self.store
        folded: List[int] = []
        for p in range(passes):
            seen = nic = 0
            label = store.first
            while label != NIL:
                seen += 1
                holder = store.class_of(label)
                if holder != label:
                    nic += 1
                    self._merge(label, holder)
                label = store.arena[label].next
            folded.append(nic)
            logger.info("fold pass %d: classes checked = %d, labels not in own class = %d, "
                        "now %d classes", p + 1, seen, nic, len(store))
        return folded

    def validate(self) -> int:
        checked = self.store.validate()
        logger.info("validated equivalence classes, total elements checked = %d", checked)
        return checked

    # --------- violation scan ---------
    def _class_violations(self, members: List[int], labels: np.ndarray,
                          first_only: bool) -> np.ndarray:
        """
        Element pairs (u, v) that must be equal but sit in different classes.

        Each member is compared with the first one, as left and as right
        operand of both tables. Agreement with one member on every y is
        agreement between all of them, so this sees a violation whenever
        some quadruple x1~x2, y1~y2 does.
        """
        found: List[np.ndarray] = []
        lead = members[0]
        rest = np.asarray(members[1:], dtype=np.intp)
        for table in (self.tables.mtab, self.tables.atab):
            lead_row = table[lead].astype(np.intp)
            lead_col = table[:, lead].astype(np.intp)
            for lo in range(0, len(rest), self.block):
                xs = rest[lo:lo + self.block]
                for ref, out in ((lead_row[None, :], table[xs].astype(np.intp)),
                                 (lead_col[None, :], table[:, xs].T.astype(np.intp))):
                    ref = np.broadcast_to(ref, out.shape)
                    bad = labels[ref] != labels[out]
                    if not bad.any():
                        continue
                    pairs = np.stack((ref[bad], out[bad]), axis=1)
                    if first_only:
                        return pairs[:1]
                    found.append(_distinct_by_class(pairs, labels))
        if not found:
            return np.empty((0, 2), dtype=np.intp)
        return _distinct_by_class(np.concatenate(found), labels)

    def scan_order(self) -> List[Label]:
        """Live classes, smallest first; ties keep list order."""
        return sorted(self.store.classes(), key=self.store.size)

    def first_violation(self) -> Optional[Tuple[int, int]]:
        labels = self.store.labels()
        for label in self.scan_order():
            members = self.store.members(label)
            if len(members) < 2:
                continue
            pairs = self._class_violations(members, labels, first_only=True)
            if len(pairs):
                return int(pairs[0, 0]), int(pairs[0, 1])
        return None

    def violations(self) -> np.ndarray:
        """Every violation against the current partition, one pair per class pair."""
        labels = self.store.labels().copy()
        found = [self._class_violations(self.store.members(label), labels, first_only=False)
                 for label in self.scan_order() if self.store.size(label) > 1]
        if not found:
            return np.empty((0, 2), dtype=np.intp)
        return _distinct_by_class(np.concatenate(found), labels)

    # --------- refining ---------
    def _merge(self, keep: Label, absorb: Label) -> None:
        self.store.merge(keep, absorb)
        self.merges += 1
        if self.on_merge is not None:
            self.on_merge(keep, absorb)

    def _merge_elements(self, u: int, v: int) -> bool:
        cu, cv = self.store.class_of(u), self.store.class_of(v)
        if cu == cv:
            return False
        self._merge(cu, cv)
        return True

    def refine(self, strategy: str = "batch") -> int:
        """Merge classes until no violation remains; returns the merge count."""
        if strategy not in STRATEGIES:
            raise ValueError(f"unknown strategy: {strategy}")
        if self.state is EngineState.STABLE:
            return 0
        self.state = EngineState.REFINING
        before = self.merges
        while True:
            if strategy == "restart":
                pair = self.first_violation()
                merged = 0 if pair is None else int(self._merge_elements(*pair))
            else:
                merged = sum(self._merge_elements(int(u), int(v))
                             for u, v in self.violations())
            if not merged:
                break
            self.passes += 1
            logger.info("pass %d: %d merges, %d classes", self.passes, merged, len(self.store))
            if self.on_pass is not None:
                self.on_pass(self, self.passes, merged)
        self.state = EngineState.STABLE
        logger.info("stable with %d equivalence classes after %d merges",
                    len(self.store), self.merges - before)
        return self.merges - before

    def run(self, strategy: str = "batch",
            fold_passes: int = SQUARE_FOLD_PASSES) -> PartitionStore:
        self.seed()
        self.fold_squares(fold_passes)
        self.validate()
        self.refine(strategy)
        return self.store

    # --------- properties of the result ---------
    def is_congruence(self) -> bool:
        return len(self.violations()) == 0

    def is_idempotent(self) -> bool:
        labels = self.store.labels()
        return bool((labels[self.tables.squares()] == labels).all())


def _distinct_by_class(pairs: np.ndarray, labels: np.ndarray) -> np.ndarray:
    """Keep one element pair per (class, class) combination, in sorted class order."""
    if len(pairs) == 0:
        return pairs
    keys = np.stack((labels[pairs[:, 0]], labels[pairs[:, 1]]), axis=1)
    _, first = np.unique(keys, axis=0, return_index=True)
    return pairs[first]
