import pytest # type: ignore
from basichll.lib.exact import ExactCounter
from basichll.lib.hyperloglog import HyperLogLog

@pytest.mark.quick
class TestExactCounter:

    def test_counts_distinct(self):
        counter = ExactCounter()
        assert counter.insert("a")
        assert not counter.insert("a")
        counter.add_batch(["b", "c", "a"])
        assert counter.count() == 3.0
        assert counter.estimate_cardinality() == 3.0

    def test_merge(self):
        first = ExactCounter()
        second = ExactCounter()
        first.add_batch(["a", "b", "c"])
        second.add_batch(["a", "d", "e"])
        merged = first + second
        assert merged.count() == 5.0
        assert first.count() == 3.0

    def test_merge_type_check(self):
        with pytest.raises(TypeError):
            ExactCounter().merge(HyperLogLog(0.26))

    def test_agrees_with_estimator(self):
        counter = ExactCounter()
        sketch = HyperLogLog(0.0040625)
        items = [f"item_{i % 700}" for i in range(3000)]
        counter.add_batch(items)
        sketch.add_batch(items)
        assert counter.count() == 700.0
        assert abs(sketch.count() - counter.count()) / counter.count() < 0.05
