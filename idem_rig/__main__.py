"""
Elements of the idempotent rig on two generators.

Builds the multiplication and addition tables of the 4^7 formal sums of
the monomials 1, a, b, ab, ba, aba, bab (coefficients saturating at
4 = 2), identifies every element with its square, and closes the
identification under + and * until the quotient is a rig.

Usage:
  python -m idem_rig                       # full run, listing to IdempotentRig.txt
  python -m idem_rig --strategy restart    # merge one violation at a time
  python -m idem_rig --snapshot --verify   # rewrite listing every pass, check result
"""

from __future__ import annotations
import argparse
import logging
import sys
import time
from typing import List, Optional

from .algebra import (
    IDEMPOTENT_RIG_RULE,
    AlgebraTables,
    MonomialRule,
    format_index,
    format_tuple,
    index_to_tuple,
    mult_tuples,
    tuple_to_index,
)
from .closure import SQUARE_FOLD_PASSES, STRATEGIES, ClosureEngine
from .partition import PartitionInvariantError
from .report import DEFAULT_OUTPUT, write_listing

logger = logging.getLogger("idem_rig")


def print_rule(rule: MonomialRule) -> None:
    print("Monomial multiplication table")
    print("     " + "".join(f"{name:>5}" for name in rule.names))
    print("     " + "  ===" * rule.size)
    for name, row in zip(rule.names, rule.table):
        print(f"{name:>4}|" + "".join(f"{rule.names[tag]:>5}" for tag in row))
    print()


def check_codec(rule: MonomialRule) -> bool:
    for k in range(rule.universe):
        if tuple_to_index(index_to_tuple(k, rule.size)) != k:
            print(f"index_to_tuple/tuple_to_index failure for index={k}")
            return False
    return True


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="idem_rig", description=__doc__.split("\n\n")[0])
    parser.add_argument("--output", "-o", default=DEFAULT_OUTPUT,
                        help=f"listing file (default: {DEFAULT_OUTPUT})")
    parser.add_argument("--strategy", choices=STRATEGIES, default="batch",
                        help="merge every violation found in a scan, or only the first")
    parser.add_argument("--fold-passes", type=int, default=SQUARE_FOLD_PASSES,
                        help="sweeps folding each square's class into its label's")
    parser.add_argument("--snapshot", action="store_true",
                        help="rewrite the listing after every refining pass")
    parser.add_argument("--verify", action="store_true",
                        help="re-scan the final partition for violations")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    rule = IDEMPOTENT_RIG_RULE

    print_rule(rule)
    print("Checking index_to_tuple/tuple_to_index ...")
    check_codec(rule)
    print("Done\n")

    print("First few sums ...")
    for k in range(20):
        print(format_index(k, rule))
    print()

    a_plus_b = (0, 1, 1, 0, 0, 0, 0)
    print("Test multiplication")
    print(f"{format_tuple(a_plus_b, rule, par=True)}^2 = "
          f"{format_tuple(mult_tuples(a_plus_b, a_plus_b, rule), rule)}\n")

    t0 = time.time()
    tables = AlgebraTables.build(rule)
    logger.info("tables ready in %.1fs", time.time() - t0)

    def snapshot(engine: ClosureEngine, pass_no: int, merged: int) -> None:
        write_listing(args.output, engine.store, rule)

    engine = ClosureEngine(tables, on_pass=snapshot if args.snapshot else None)
    try:
        store = engine.run(strategy=args.strategy, fold_passes=args.fold_passes)
    except PartitionInvariantError as e:
        logger.error("equivalence class validation failed: %s", e)
        return 1
    logger.info("closure finished in %.1fs", time.time() - t0)

    write_listing(args.output, store, rule)
    print(f"We now have {len(store)} equivalence classes")

    if args.verify:
        bad = engine.violations()
        if len(bad):
            logger.error("%d congruence violations remain", len(bad))
            return 1
        if not engine.is_idempotent():
            logger.error("quotient is not idempotent")
            return 1
        logger.info("verified: congruence and idempotence hold")
    return 0


if __name__ == "__main__":
    sys.exit(main())
