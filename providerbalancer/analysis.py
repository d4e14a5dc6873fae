"""Empirical distribution checks for selection strategies.

Runs a strategy many times against a fixed candidate list and tabulates how
often each provider was chosen, so weighted fairness, round-robin evenness
and consistent-hash remapping can be measured and plotted.

Example:
    frame = selection_frequencies(WeightedRandom(seed=1), providers, trials=4000)
    print(frame[["provider", "count", "share", "expected_share"]])
    print(chi_square(frame))
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from pathlib import Path
from typing import Literal

import pandas as pd

from providerbalancer.provider import Provider
from providerbalancer.strategies import SelectionStrategy

__all__ = [
    "chi_square",
    "plot_frequencies",
    "remapped_fraction",
    "selection_frequencies",
]

COLUMNS = ["provider", "weight", "count", "share", "expected_share"]


def selection_frequencies(
    strategy: SelectionStrategy,
    candidates: Sequence[Provider],
    trials: int,
    routing_keys: Sequence[str] | None = None,
    expected: Literal["weight", "uniform"] = "weight",
) -> pd.DataFrame:
    """Select ``trials`` times and count the picks per provider.

    Args:
        strategy: Strategy under test.
        candidates: Fixed candidate list used for every trial.
        trials: Number of selections.
        routing_keys: Keys cycled through trial by trial. None selects
            without a key.
        expected: Basis for ``expected_share``: proportional to weight, or
            equal for every provider.

    Returns:
        One row per candidate, in input order, with columns provider,
        weight, count, share and expected_share.
    """
    if trials < 1:
        raise ValueError(f"trials must be >= 1, got {trials}")
    if routing_keys is not None and not routing_keys:
        raise ValueError("routing_keys must not be empty")

    counts: Counter[str] = Counter()
    for i in range(trials):
        key = None if routing_keys is None else routing_keys[i % len(routing_keys)]
        counts[strategy.select(candidates, key).address] += 1

    total_weight = sum(max(p.weight, 0) for p in candidates)
    rows = []
    for provider in candidates:
        if expected == "weight" and total_weight > 0:
            expected_share = max(provider.weight, 0) / total_weight
        else:
            expected_share = 1 / len(candidates)
        rows.append(
            {
                "provider": provider.address,
                "weight": provider.weight,
                "count": counts[provider.address],
                "share": counts[provider.address] / trials,
                "expected_share": expected_share,
            }
        )
    return pd.DataFrame(rows, columns=COLUMNS)


def chi_square(frame: pd.DataFrame) -> float:
    """Pearson goodness-of-fit statistic of ``count`` against ``expected_share``.

    Providers with zero expected share are left out of the sum.
    """
    total = frame["count"].sum()
    expected = frame["expected_share"] * total
    observed = frame["count"]
    mask = expected > 0
    return float((((observed[mask] - expected[mask]) ** 2) / expected[mask]).sum())


def remapped_fraction(
    strategy: SelectionStrategy,
    before: Sequence[Provider],
    after: Sequence[Provider],
    keys: Sequence[str],
) -> float:
    """Share of keys whose selected provider differs between two lists."""
    if not keys:
        raise ValueError("keys must not be empty")
    moved = sum(
        strategy.select(before, key).address != strategy.select(after, key).address
        for key in keys
    )
    return moved / len(keys)


def plot_frequencies(frame: pd.DataFrame, path: str | Path, title: str = "") -> Path:
    """Bar chart of observed vs expected share, written to path as PNG."""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    positions = range(len(frame))
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.bar([p - 0.2 for p in positions], frame["share"], width=0.4, label="observed")
    ax.bar([p + 0.2 for p in positions], frame["expected_share"], width=0.4, label="expected")
    ax.set_xticks(list(positions))
    ax.set_xticklabels(frame["provider"], rotation=45, ha="right")
    ax.set_ylabel("share of selections")
    if title:
        ax.set_title(title)
    ax.legend()
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)
    return path
