import pytest

from .. import (
    AlgebraTables,
    ClosureEngine,
    EngineState,
    PartitionInvariantError,
    final_classes,
    tuple_to_index,
)


def partition_of(store):
    return [members for _, members in final_classes(store)]


class TestSeeding:
    def test_classes_by_square(self, one_gen_tables):
        engine = ClosureEngine(one_gen_tables)
        # squares of c0 + c1*a keep c0; 1+a, 1+3a share the square 1+3a
        assert engine.seed() == 13
        assert list(engine.store.classes()) == [12, 11, 10, 9, 8, 15, 14, 13, 4, 3, 2, 1, 0]
        assert engine.store.members(13) == [5, 13]
        assert engine.store.class_of(tuple_to_index((1, 1))) == tuple_to_index((1, 3))

    def test_seed_twice(self, one_gen_tables):
        engine = ClosureEngine(one_gen_tables)
        engine.seed()
        with pytest.raises(RuntimeError):
            engine.seed()

    def test_fold_passes(self, one_gen_tables):
        engine = ClosureEngine(one_gen_tables)
        engine.seed()
        assert engine.fold_squares() == [0, 0]

    def test_labels_belong_to_own_class_after_fold(self, left_zero_tables):
        engine = ClosureEngine(left_zero_tables)
        engine.seed()
        engine.fold_squares(1)
        for label in engine.store.classes():
            assert engine.store.class_of(label) == label

    def test_validation_failure_is_fatal(self, one_gen_tables):
        engine = ClosureEngine(one_gen_tables)
        engine.seed()
        engine.store.eqc[5] = 0
        with pytest.raises(PartitionInvariantError):
            engine.validate()


class TestRefining:
    def test_states(self, left_zero_tables):
        engine = ClosureEngine(left_zero_tables)
        assert engine.state is EngineState.SEEDING
        engine.run()
        assert engine.state is EngineState.STABLE
        assert engine.refine() == 0

    def test_forced_merge(self, left_zero_tables):
        engine = ClosureEngine(left_zero_tables)
        store = engine.run()
        # a+b ~ 2a+2b (same square), so adding a gives 2a+b ~ 3a+2b
        assert engine.merges > 0
        assert store.class_of(tuple_to_index((2, 1))) == store.class_of(tuple_to_index((3, 2)))

    @pytest.mark.parametrize("strategy", ["batch", "restart"])
    def test_result_is_congruence(self, left_zero_tables, strategy):
        engine = ClosureEngine(left_zero_tables)
        store = engine.run(strategy=strategy)
        assert engine.is_congruence()
        assert engine.is_idempotent()
        assert store.validate() == 16

    def test_full_quadruple_check(self, left_zero_tables):
        engine = ClosureEngine(left_zero_tables)
        store = engine.run()
        mtab, atab = left_zero_tables.mtab, left_zero_tables.atab
        for label_x in store.classes():
            for label_y in store.classes():
                for x1 in store.members(label_x):
                    for x2 in store.members(label_x):
                        for y1 in store.members(label_y):
                            for y2 in store.members(label_y):
                                assert store.class_of(mtab[x1, y1]) == store.class_of(mtab[x2, y2])
                                assert store.class_of(atab[x1, y1]) == store.class_of(atab[x2, y2])

    @pytest.mark.parametrize("tables", ["one_gen_tables", "left_zero_tables"])
    def test_strategies_agree(self, tables, request):
        tables = request.getfixturevalue(tables)
        batch = ClosureEngine(tables).run(strategy="batch")
        restart = ClosureEngine(tables).run(strategy="restart")
        assert partition_of(batch) == partition_of(restart)

    def test_hooks(self, left_zero_tables):
        merged = []
        passes = []
        engine = ClosureEngine(
            left_zero_tables,
            on_merge=lambda keep, absorb: merged.append((keep, absorb)),
            on_pass=lambda eng, n, count: passes.append(count),
        )
        engine.run()
        assert len(merged) == engine.merges
        assert sum(passes) <= engine.merges
        assert all(keep != absorb for keep, absorb in merged)

    def test_unknown_strategy(self, one_gen_tables):
        engine = ClosureEngine(one_gen_tables)
        engine.seed()
        with pytest.raises(ValueError):
            engine.refine("random")

    def test_distinct_elements_stay_apart(self, one_gen_tables):
        store = ClosureEngine(one_gen_tables).run()
        zero, one, a = 0, tuple_to_index((1, 0)), tuple_to_index((0, 1))
        assert len({store.class_of(zero), store.class_of(one), store.class_of(a)}) == 3


@pytest.mark.slow
class TestIdempotentRig:
    def test_284_classes(self):
        tables = AlgebraTables.build()
        engine = ClosureEngine(tables)
        store = engine.run()
        assert len(store) == 284
        assert store.validate() == 4 ** 7
        assert engine.is_congruence()
        assert engine.is_idempotent()
