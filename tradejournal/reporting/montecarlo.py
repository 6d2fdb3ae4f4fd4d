"""
Trade ordering simulation.

Shuffles a fixed sample of trades many times and records, for each
ordering, the total P&L and the worst drawdown met along the way.  The
same trades in a different order give the same total but a different
path, which is what the drawdown distribution shows.

Pass a seeded `numpy.random.Generator` to get reproducible output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence
import numpy as np

from ..data.normalize import to_float


logger = logging.getLogger(__name__)


@dataclass
class SampleTrade:
    """A planned trade with its entry, stop, target and actual exit."""
    entry: float
    stop: float
    target: float
    exit: float
    symbol: str = ""

    @property
    def outcome(self) -> float:
        """Price distance won or lost: the full target on a winner, the stop otherwise."""
        if self.exit > self.entry:
            return self.target - self.entry
        return self.stop - self.entry

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "SampleTrade":
        return cls(
            entry=to_float(raw.get('entry')),
            stop=to_float(raw.get('stop')),
            target=to_float(raw.get('target')),
            exit=to_float(raw.get('exit')),
            symbol=str(raw.get('pair') or raw.get('symbol') or ''),
        )


@dataclass
class Histogram:
    bin_edges: List[float] = field(default_factory=list)
    counts: List[int] = field(default_factory=list)


@dataclass
class MonteCarloResult:
    """Distribution of simulated totals across all orderings."""
    simulations: int = 0
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    histogram: Histogram = field(default_factory=Histogram)
    outcomes: List[float] = field(default_factory=list)
    max_drawdowns: List[float] = field(default_factory=list)
    drawdown_histogram: Histogram = field(default_factory=Histogram)

    @property
    def worst_drawdown(self) -> float:
        return max(self.max_drawdowns) if self.max_drawdowns else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'simulations': self.simulations,
            'min': self.min,
            'max': self.max,
            'mean': self.mean,
            'worstDrawdown': self.worst_drawdown,
            'histogram': {
                'binEdges': self.histogram.bin_edges,
                'counts': self.histogram.counts,
            },
            'drawdownHistogram': {
                'binEdges': self.drawdown_histogram.bin_edges,
                'counts': self.drawdown_histogram.counts,
            },
        }


def _histogram(values: np.ndarray, bins: int) -> Histogram:
    lo = float(values.min())
    hi = float(values.max())
    # Reordering only moves totals by float rounding; such a spread
    # puts everything in the first bin
    if math.isclose(hi, lo, rel_tol=1e-9, abs_tol=1e-9):
        counts = [0] * bins
        counts[0] = int(values.size)
        return Histogram(bin_edges=[lo] * (bins + 1), counts=counts)
    counts, edges = np.histogram(values, bins=bins, range=(lo, hi))
    return Histogram(bin_edges=[float(e) for e in edges], counts=[int(c) for c in counts])


def simulate_trade_orderings(
    samples: Sequence[SampleTrade],
    simulations: int = 1000,
    bins: int = 20,
    rng: Optional[np.random.Generator] = None,
) -> MonteCarloResult:
    """Run `simulations` random reorderings of `samples`.

    Parameters
    ----------
    samples : sequence of SampleTrade
        Trades to shuffle.
    simulations : int
        Number of orderings to evaluate.
    bins : int
        Histogram bin count for the total P&L distribution.
    rng : numpy.random.Generator, optional
        Random source.  A fresh unseeded generator is used when omitted.

    Returns
    -------
    MonteCarloResult
        Zeroed result when `samples` is empty.

    Raises
    ------
    ValueError
        If `simulations` or `bins` is less than one.
    """
    if simulations < 1:
        raise ValueError(f"simulations must be at least 1, got {simulations}")
    if bins < 1:
        raise ValueError(f"bins must be at least 1, got {bins}")
    if not samples:
        return MonteCarloResult()
    if rng is None:
        rng = np.random.default_rng()

    base = np.array([s.outcome for s in samples], dtype=float)
    totals = np.empty(simulations)
    drawdowns = np.empty(simulations)
    for i in range(simulations):
        path = np.cumsum(rng.permutation(base))
        running_peak = np.maximum.accumulate(np.maximum(path, 0.0))
        totals[i] = path[-1]
        drawdowns[i] = float(np.max(running_peak - path))

    logger.debug("Simulated %d orderings of %d trades", simulations, len(samples))
    return MonteCarloResult(
        simulations=simulations,
        min=float(totals.min()),
        max=float(totals.max()),
        mean=float(totals.mean()),
        histogram=_histogram(totals, bins),
        outcomes=totals.tolist(),
        max_drawdowns=drawdowns.tolist(),
        drawdown_histogram=_histogram(drawdowns, bins),
    )
