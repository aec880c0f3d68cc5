from .algebra import (
    IDEMPOTENT_RIG_RULE,
    AlgebraTables,
    MonomialRule,
    add_indices,
    add_tuples,
    format_index,
    format_tuple,
    index_to_tuple,
    mult_indices,
    mult_tuples,
    saturate,
    saturate_array,
    tuple_to_index,
)
from .partition import EqClass, PartitionInvariantError, PartitionStore
from .closure import SQUARE_FOLD_PASSES, ClosureEngine, EngineState
from .report import DEFAULT_OUTPUT, final_classes, format_listing, representatives, write_listing

__all__ = [
    "IDEMPOTENT_RIG_RULE",
    "AlgebraTables",
    "MonomialRule",
    "add_indices",
    "add_tuples",
    "format_index",
    "format_tuple",
    "index_to_tuple",
    "mult_indices",
    "mult_tuples",
    "saturate",
    "saturate_array",
    "tuple_to_index",
    "EqClass",
    "PartitionInvariantError",
    "PartitionStore",
    "SQUARE_FOLD_PASSES",
    "ClosureEngine",
    "EngineState",
    "DEFAULT_OUTPUT",
    "final_classes",
    "format_listing",
    "representatives",
    "write_listing",
]
