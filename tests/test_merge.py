from __future__ import annotations
import pytest # type: ignore
import numpy as np # type: ignore
from basichll.lib.hyperloglog import (HyperLogLog, IdentityHyperLogLog, InvalidConfiguration,
                                      IncompatibleConfiguration, merge, merge_all)

EXACT_ERROR = 0.0040625

def filled(elements, error=EXACT_ERROR):
    sketch = HyperLogLog(error)
    sketch.add_batch(elements)
    return sketch

@pytest.mark.quick
class TestMerge:
    """Element-wise maximum merge."""

    def test_two_empty_give_empty(self):
        merged = HyperLogLog(0.26) + HyperLogLog(0.26)
        assert np.count_nonzero(merged.registers()) == 0

    def test_sum_of_disjoint_counts(self):
        first = filled(["a", "b", "c"])
        second = filled(["d", "e", "f"])
        assert round(first.count()) == 3
        assert round(second.count()) == 3
        assert round((first + second).count()) == 6

    def test_no_double_counting(self):
        first = filled(["a", "b", "c"])
        second = filled(["a", "d", "e"])
        assert round(first.count()) == 3
        assert round(second.count()) == 3
        assert round((first + second).count()) == 5

    def test_union_matches_single_estimator(self):
        first = filled(str(i) for i in range(0, 3000))
        second = filled(str(i) for i in range(2000, 5000))
        combined = filled(str(i) for i in range(0, 5000))
        assert merge(first, second) == combined

    def test_operands_untouched(self):
        first = filled(["a", "b"])
        second = filled(["c"])
        before = first.registers()
        merged = merge(first, second)
        assert np.array_equal(first.registers(), before)
        assert merged is not first and merged is not second
        merged.insert("z")
        assert np.array_equal(first.registers(), before)

    def test_method_and_operator_agree(self):
        first = filled(["a"])
        second = filled(["b"])
        assert first.merge(second) == first + second == merge(first, second)

    def test_incompatible_configurations(self):
        with pytest.raises(IncompatibleConfiguration):
            merge(HyperLogLog(0.26), HyperLogLog(0.13))
        with pytest.raises(ValueError):
            HyperLogLog(EXACT_ERROR) + HyperLogLog.with_register_budget_128()

    def test_different_hash_functions(self):
        first = HyperLogLog(0.26, hash_function=lambda x: 1)
        second = HyperLogLog(0.26, hash_function=lambda x: 2)
        with pytest.raises(IncompatibleConfiguration):
            merge(first, second)
        with pytest.raises(IncompatibleConfiguration):
            merge(first, HyperLogLog(0.26))

    def test_shared_hash_function(self):
        def fixed(x):
            return 0x1000000000000000
        first = HyperLogLog(0.26, hash_function=fixed)
        second = HyperLogLog(0.26, hash_function=fixed)
        second.insert("x")
        merged = merge(first, second)
        assert merged.registers()[1] == 61
        assert merged.hash_function is fixed

    def test_non_estimator_operand(self):
        with pytest.raises(TypeError):
            merge(HyperLogLog(0.26), "not a sketch")
        with pytest.raises(TypeError):
            HyperLogLog(0.26) + 3

    def test_merge_all(self):
        parts = [filled([f"{p}_{i}" for i in range(100)]) for p in "abc"]
        total = merge_all(parts)
        assert total == parts[0] + parts[1] + parts[2]
        assert total == sum(parts, HyperLogLog.identity())
        assert merge_all([]) == HyperLogLog.identity()


@pytest.mark.quick
class TestMonoidLaws:
    """Identity, associativity and commutativity, with structural equality."""

    @pytest.fixture
    def sketches(self):
        return filled(["foo"]), filled(["bar"]), filled(["quux"])

    def test_left_and_right_identity(self, sketches):
        first, _, _ = sketches
        zero = HyperLogLog.identity()
        assert first + zero == first
        assert zero + first == first
        assert merge(first, zero) is not first

    def test_identity_with_any_configuration(self):
        for error in [0.26, 0.13, EXACT_ERROR, 0.004]:
            sketch = filled(["x", "y"], error=error)
            assert merge(HyperLogLog.identity(), sketch) == sketch

    def test_identity_plus_identity(self):
        zero = HyperLogLog.identity()
        assert (zero + HyperLogLog.identity()).is_identity

    def test_associativity(self, sketches):
        first, second, third = sketches
        assert (first + second) + third == first + (second + third)

    def test_commutativity(self, sketches):
        first, second, _ = sketches
        assert first + second == second + first


@pytest.mark.quick
class TestIdentity:
    """The zero-configuration estimator."""

    def test_configuration(self):
        zero = HyperLogLog.identity()
        assert isinstance(zero, IdentityHyperLogLog)
        assert zero.is_identity
        assert (zero.alpha, zero.precision, zero.num_registers) == (0.0, 0, 0)
        assert len(zero.registers()) == 0
        assert zero.count() == 0.0

    def test_not_equal_to_empty_estimator(self):
        assert HyperLogLog.identity() != HyperLogLog(0.26)
        assert HyperLogLog(0.26) != HyperLogLog.identity()

    def test_insert_rejected(self):
        with pytest.raises(InvalidConfiguration):
            HyperLogLog.identity().insert("foo")

    def test_repr(self):
        assert repr(HyperLogLog.identity()) == "IdentityHyperLogLog(alpha=0.0, b=0, m=0)"
