"""
Plot and series value types.

A Plot is one timestamped observation, NaN meaning "no data". A Series is an
ordered list of plots plus derived summary statistics (min/max/avg/last and
percentiles), filled in place by Series.summarize().
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

NAN = float("nan")


@dataclass
class Plot:
    """Single observation: unix time in seconds and a float value (NaN = no data)."""
    time: float
    value: float = NAN

    def is_nan(self) -> bool:
        return math.isnan(self.value)

    def to_json(self) -> list:
        """Serialize as [unix_seconds, value] for the presentation layer."""
        return [int(self.time), serialize_value(self.value)]


def serialize_value(value: float):
    """
    Wire representation of a plot value.

    NaN (and other non-finite values) become None, values for which
    exp(value) == 1 are written as a clean 0.
    """
    if not math.isfinite(value):
        return None
    if abs(value) < 1 and math.exp(value) == 1:
        return 0
    return float(value)


def percentile_key(percentile: float) -> str:
    """Summary key for a percentile: "95th" when integral, "95.50th" otherwise."""
    if float(percentile).is_integer():
        return f"{int(percentile)}th"
    return f"{percentile:.2f}th"


@dataclass
class Series:
    """Named series of plots with its step (seconds) and summary statistics."""
    name: str = ""
    plots: List[Plot] = field(default_factory=list)
    step: int = 0
    summary: Dict[str, float] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.plots)

    def values(self) -> np.ndarray:
        return np.array([plot.value for plot in self.plots], dtype=float)

    def scale(self, factor: float) -> None:
        """Multiply every non-NaN value by factor, in place."""
        for plot in self.plots:
            if not plot.is_nan():
                plot.value *= factor

    def downsample(self, start_time: float, end_time: float, sample: int, consolidation_type) -> None:
        """Consolidate the series against itself and replace its plots."""
        from .consolidate import consolidate_series

        consolidated = consolidate_series([self], start_time, end_time, sample, consolidation_type)[0]
        self.plots = consolidated.plots
        self.step = consolidated.step

    def summarize(self, percentiles: Optional[Sequence[float]] = None) -> None:
        """
        Compute min/max/avg/last and the requested percentiles into self.summary.

        min/max ignore NaN values, avg is NaN when the series holds no valid
        value, last is the value of the final plot whatever it is.
        """
        values = self.values()
        valid = values[~np.isnan(values)]

        if len(values) > 0:
            self.summary["last"] = float(values[-1])

        if len(valid) > 0:
            self.summary["min"] = float(valid.min())
            self.summary["max"] = float(valid.max())
            self.summary["avg"] = float(valid.sum() / len(valid))
        else:
            self.summary["min"] = NAN
            self.summary["max"] = NAN
            self.summary["avg"] = NAN

        if percentiles:
            self.percentiles(percentiles)

    def percentiles(self, percentiles: Sequence[float]) -> None:
        """
        Linear interpolation between closest ranks.

        rank = p/100 * (N+1); ranks below the first order statistic clamp to
        the minimum and ranks past the last one clamp to the maximum.
        """
        values = self.values()
        ordered = np.sort(values[~np.isnan(values)])
        size = len(ordered)

        if size == 0:
            return

        for percentile in percentiles:
            rank = (percentile / 100.0) * (size + 1)
            rank_int = int(rank)
            rank_frac = rank - rank_int

            if rank <= 0:
                result = ordered[0]
            elif rank - 1 >= size:
                result = ordered[size - 1]
            elif rank_int < 1:
                # 0 < rank < 1: below the first order statistic
                result = ordered[0]
            elif rank_int >= size:
                result = ordered[size - 1]
            else:
                lower = ordered[rank_int - 1]
                result = lower + rank_frac * (ordered[rank_int] - lower)

            self.summary[percentile_key(percentile)] = float(result)

    def to_json(self) -> list:
        return [plot.to_json() for plot in self.plots]
