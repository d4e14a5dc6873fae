"""Distribution tests across many selections, with plots.

Run:
    pytest tests/integration/test_distribution.py -v

Output:
    test_output/test_distribution/<test_name>/
"""

from __future__ import annotations

import pytest

from providerbalancer import (
    ConsistentHash,
    Provider,
    Random,
    RoundRobin,
    WeightedRandom,
    WeightedRoundRobin,
)
from providerbalancer.analysis import (
    chi_square,
    plot_frequencies,
    remapped_fraction,
    selection_frequencies,
)

# Chi-square critical value, 3 degrees of freedom, p = 0.001
CHI2_CRITICAL_DF3 = 16.27


def weighted_fleet() -> list[Provider]:
    return [
        Provider(f"10.2.0.{i}", 8000, "com.example.Search", weight=w)
        for i, w in enumerate([1, 2, 3, 4])
    ]


def fleet(count: int) -> list[Provider]:
    return [Provider(f"10.3.0.{i}", 9000, "com.example.Cache") for i in range(count)]


class TestWeightedFairness:

    def test_weighted_random_matches_weights(self, test_output_dir):
        frame = selection_frequencies(WeightedRandom(seed=99), weighted_fleet(), trials=20000)

        assert chi_square(frame) < CHI2_CRITICAL_DF3
        for row in frame.itertuples():
            assert row.share == pytest.approx(row.expected_share, abs=0.02)

        plot_frequencies(frame, test_output_dir / "weighted_random.png", title="WeightedRandom")
        assert (test_output_dir / "weighted_random.png").exists()

    def test_one_to_three_example(self):
        candidates = [
            Provider("A", 1, weight=1),
            Provider("B", 1, weight=3),
        ]
        frame = selection_frequencies(WeightedRandom(seed=4), candidates, trials=4000)
        counts = dict(zip(frame["provider"], frame["count"], strict=True))

        assert counts["B:1"] == pytest.approx(3000, abs=150)
        assert counts["A:1"] == pytest.approx(1000, abs=150)

    def test_weighted_round_robin_is_exact(self):
        frame = selection_frequencies(WeightedRoundRobin(), weighted_fleet(), trials=1000)
        assert list(frame["count"]) == [100, 200, 300, 400]
        assert chi_square(frame) == pytest.approx(0.0, abs=1e-9)

    def test_zero_weight_has_no_expected_share(self):
        candidates = [Provider("a", 1, weight=0), Provider("b", 1, weight=1)]
        frame = selection_frequencies(WeightedRandom(seed=1), candidates, trials=100)
        assert list(frame["count"]) == [0, 100]
        assert chi_square(frame) == pytest.approx(0.0, abs=1e-9)


class TestUniformStrategies:

    def test_round_robin_is_even(self):
        frame = selection_frequencies(RoundRobin(), fleet(5), trials=500, expected="uniform")
        assert set(frame["count"]) == {100}

    def test_random_is_close_to_uniform(self, test_output_dir):
        frame = selection_frequencies(Random(seed=8), fleet(4), trials=8000, expected="uniform")

        assert chi_square(frame) < CHI2_CRITICAL_DF3
        plot_frequencies(frame, test_output_dir / "random.png")


class TestConsistentHashRemapping:

    def test_adding_a_provider_moves_a_minority_of_keys(self):
        keys = [f"customer-{i}" for i in range(1000)]
        before = fleet(3)
        after = fleet(4)

        moved = remapped_fraction(ConsistentHash(virtual_nodes=50), before, after, keys)

        # Ideal is 1/4; modulo hashing would move ~3/4
        assert 0 < moved < 0.5

    def test_removing_a_provider_only_moves_its_keys(self):
        keys = [f"customer-{i}" for i in range(1000)]
        candidates = fleet(5)
        strategy = ConsistentHash(virtual_nodes=50)
        frame = selection_frequencies(strategy, candidates, trials=len(keys), routing_keys=keys)
        removed_share = float(frame.loc[frame["provider"] == candidates[2].address, "share"].iloc[0])

        moved = remapped_fraction(strategy, candidates, candidates[:2] + candidates[3:], keys)

        assert moved == pytest.approx(removed_share)

    def test_key_distribution_plot(self, test_output_dir):
        keys = [f"session-{i}" for i in range(5000)]
        frame = selection_frequencies(
            ConsistentHash(virtual_nodes=100), fleet(5), trials=len(keys),
            routing_keys=keys, expected="uniform",
        )

        assert frame["count"].sum() == 5000
        assert (frame["count"] > 0).all()
        plot_frequencies(frame, test_output_dir / "consistent_hash.png", title="100 vnodes")


class TestValidation:

    def test_rejects_zero_trials(self):
        with pytest.raises(ValueError):
            selection_frequencies(RoundRobin(), fleet(2), trials=0)

    def test_rejects_empty_keys(self):
        with pytest.raises(ValueError):
            remapped_fraction(RoundRobin(), fleet(2), fleet(2), [])
