# report.py - listing of the final classes

from __future__ import annotations
from pathlib import Path
from typing import List, Tuple, Union
import logging

from .algebra import IDEMPOTENT_RIG_RULE, MonomialRule, format_index
from .partition import Label, PartitionStore

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "IdempotentRig.txt"

FinalClass = Tuple[Label, List[int]]


def final_classes(store: PartitionStore) -> List[FinalClass]:
    """(label, sorted members) for every live class, ordered by smallest member."""
    classes = [(label, sorted(store.members(label))) for label in store.classes()]
    classes.sort(key=lambda c: c[1][0])
    return classes


def representatives(store: PartitionStore) -> List[int]:
    return [members[0] for _, members in final_classes(store)]


def format_listing(classes: List[FinalClass],
                   rule: MonomialRule = IDEMPOTENT_RIG_RULE) -> str:
    """
    Two brace-delimited lists: the smallest element of each class, then
    every class in full, both in order of smallest element.
    """
    reps = ",\n".join(format_index(members[0], rule) for _, members in classes)
    full = ",\n".join(
        "{" + ", ".join(format_index(x, rule) for x in members) + "}"
        for _, members in classes
    )
    return "{" + reps + "}\n\n{" + full + "}\n"


def write_listing(path: Union[str, Path], store: PartitionStore,
                  rule: MonomialRule = IDEMPOTENT_RIG_RULE) -> Path:
    path = Path(path)
    path.write_text(format_listing(final_classes(store), rule))
    logger.info("wrote %d classes to %s", len(store), path)
    return path
