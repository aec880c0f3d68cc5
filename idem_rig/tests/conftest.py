import pytest

from .. import AlgebraTables, MonomialRule

# {1, a} with aa = a
ONE_GENERATOR = MonomialRule.from_lists(["1", "a"], [[0, 1], [1, 1]])

# {a, b} with xy = x (left-zero band), no unit
LEFT_ZERO = MonomialRule.from_lists(["a", "b"], [[0, 0], [1, 1]])


@pytest.fixture(scope="module")
def one_gen_tables():
    return AlgebraTables.build(ONE_GENERATOR)


@pytest.fixture(scope="module")
def left_zero_tables():
    return AlgebraTables.build(LEFT_ZERO)
