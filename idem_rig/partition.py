# partition.py - equivalence classes with explicit member lists

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional
import logging

import numpy as np

logger = logging.getLogger(__name__)

Label = int
Element = int

NIL = -1


class PartitionInvariantError(RuntimeError):
    """The recorded class of some element disagrees with actual membership."""


@dataclass
class EqClass:
    prev: Label = NIL
    next: Label = NIL
    members: List[Element] = field(default_factory=list)


class PartitionStore:
    """
    Partition of range(universe) into labelled classes.

    Live classes are threaded on a doubly-linked list (new classes go to
    the head), and eqc maps every element to the label of its class.
    Merging absorbs one class's members into another; classes never split.
    """

    def __init__(self, universe: int):
        self.universe = universe
        self.arena: Dict[Label, EqClass] = {}
        self.first: Label = NIL
        self.count: int = 0
        self.eqc = np.full(universe, NIL, dtype=np.int64)

    # --------- construction ---------
    def new_class(self, label: Label, element: Optional[Element] = None) -> Label:
        if element is None:
            element = label
        if label in self.arena:
            raise PartitionInvariantError(f"class {label} already exists")
        if self.eqc[element] != NIL:
            raise PartitionInvariantError(
                f"element {element} already in class {int(self.eqc[element])}")
        old_first = self.first
        self.arena[label] = EqClass(prev=NIL, next=old_first, members=[element])
        if old_first != NIL:
            self.arena[old_first].prev = label
        self.first = label
        self.count += 1
        self.eqc[element] = label
        return label

    def add_member(self, label: Label, element: Element) -> None:
        if self.eqc[element] != NIL:
            raise PartitionInvariantError(
                f"element {element} already in class {int(self.eqc[element])}")
        self.arena[label].members.append(element)
        self.eqc[element] = label

    # --------- queries ---------
    def class_of(self, element: Element) -> Label:
        return int(self.eqc[element])

    def members(self, label: Label) -> List[Element]:
        return self.arena[label].members

    def size(self, label: Label) -> int:
        return len(self.arena[label].members)

    def is_live(self, label: Label) -> bool:
        return label in self.arena

    def __len__(self) -> int:
        return self.count

    def classes(self) -> Iterator[Label]:
        """Live labels in list order; each call starts a fresh traversal."""
        label = self.first
        while label != NIL:
            nxt = self.arena[label].next
            yield label
            label = nxt

    def labels(self) -> np.ndarray:
        return self.eqc

    # --------- merging ---------
    def merge(self, keep: Label, absorb: Label) -> Label:
        """Move every member of `absorb` into `keep` and drop `absorb`."""
        assert keep != absorb and keep in self.arena and absorb in self.arena
        gone = self.arena.pop(absorb)
        self.arena[keep].members.extend(gone.members)
        self.eqc[gone.members] = keep

        if gone.prev == NIL:
            self.first = gone.next
        else:
            self.arena[gone.prev].next = gone.next
        if gone.next != NIL:
            self.arena[gone.next].prev = gone.prev
        self.count -= 1
        return keep

    # --------- checking ---------
    def validate(self) -> int:
        """Check the partition invariants; returns the number of elements checked."""
        checked = 0
        for label in self.classes():
            members = self.arena[label].members
            if not members:
                raise PartitionInvariantError(f"class {label} is empty")
            wrong = self.eqc[members] != label
            if wrong.any():
                bad = members[int(np.argmax(wrong))]
                raise PartitionInvariantError(
                    f"element {bad} recorded in class {int(self.eqc[bad])}, found in {label}")
            checked += len(members)
        if checked != self.universe:
            raise PartitionInvariantError(
                f"{checked} elements in live classes, expected {self.universe}")
        if (self.eqc == NIL).any():
            raise PartitionInvariantError("some elements belong to no class")
        logger.debug("validated %d elements in %d classes", checked, self.count)
        return checked
