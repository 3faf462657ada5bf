"""
Series consolidation.

Resamples raw series onto a uniform grid of `sample` buckets between
start_time and end_time, reducing each bucket to a single plot with the
selected consolidation function.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence

from ..errors import InvalidArgument
from .series import NAN, Plot, Series


class ConsolidationType(str, Enum):
    AVERAGE = "average"
    LAST = "last"
    MAX = "max"
    MIN = "min"
    SUM = "sum"


@dataclass
class PlotBucket:
    start_time: float
    plots: List[Plot] = field(default_factory=list)

    def consolidate(self, consolidation_type: ConsolidationType) -> Plot:
        """Reduce the bucket to one plot. Empty buckets yield NaN at the bucket start."""
        if not self.plots:
            return Plot(time=self.start_time, value=NAN)

        first, last = self.plots[0], self.plots[-1]

        if consolidation_type == ConsolidationType.AVERAGE:
            valid = [p.value for p in self.plots if not p.is_nan()]
            value = sum(valid) / len(valid) if valid else NAN
            # Midpoint between first and last member rather than the bucket boundary
            return Plot(time=first.time + (last.time - first.time) / 2, value=value)

        if consolidation_type == ConsolidationType.SUM:
            valid = [p.value for p in self.plots if not p.is_nan()]
            return Plot(time=last.time, value=sum(valid) if valid else NAN)

        if consolidation_type == ConsolidationType.LAST:
            return Plot(time=last.time, value=last.value)

        if consolidation_type in (ConsolidationType.MAX, ConsolidationType.MIN):
            pick_max = consolidation_type == ConsolidationType.MAX
            result = Plot(time=self.start_time, value=NAN)
            for plot in self.plots:
                if plot.is_nan():
                    continue
                if result.is_nan() or (plot.value > result.value if pick_max else plot.value < result.value):
                    result = plot
            return Plot(time=result.time, value=result.value)

        raise InvalidArgument(f"unknown consolidation type: {consolidation_type}")


def consolidate_series(
    series_list: Sequence[Series],
    start_time: float,
    end_time: float,
    sample: int,
    consolidation_type: ConsolidationType = ConsolidationType.AVERAGE,
) -> List[Series]:
    """
    Align series on a common grid of `sample` buckets.

    Args:
        series_list: Raw series, possibly of different resolutions
        start_time: Window start (unix seconds)
        end_time: Window end (unix seconds)
        sample: Requested number of buckets, capped at the longest series length
        consolidation_type: Reduction applied to each bucket

    Returns:
        One consolidated series per input, in input order, each with exactly
        the effective sample count of plots and an empty summary.
    """
    if sample <= 0:
        raise InvalidArgument("sample must be greater than zero")
    if not series_list:
        raise InvalidArgument("no series provided")

    consolidation_type = ConsolidationType(consolidation_type)

    # Never upsample: fall back to the longest series length
    max_length = max(len(series.plots) for series in series_list)
    if 0 < max_length < sample:
        sample = max_length

    step = (end_time - start_time) / sample

    result = []
    for series in series_list:
        buckets = [PlotBucket(start_time=start_time + index * step) for index in range(sample)]

        for plot in series.plots:
            if plot.time < start_time or plot.time > end_time:
                continue
            if step <= 0:
                index = 0
            else:
                index = math.floor((plot.time - start_time) / step)
            if index < 0 or index >= sample:
                continue
            buckets[index].plots.append(plot)

        for bucket in buckets:
            bucket.plots.sort(key=lambda p: p.time)

        result.append(Series(
            name=series.name,
            plots=[bucket.consolidate(consolidation_type) for bucket in buckets],
            step=int(step),
        ))

    return result
