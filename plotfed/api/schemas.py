#!/usr/bin/env python3
"""
plotfed API Schemas - Pydantic Models for Request Validation
"""

from datetime import datetime, timezone
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from ..library import GraphDef
from ..timerange import apply_range


class PlotRequest(BaseModel):
    # Exactly one way of naming the graph: library id, inline definition or single metric
    id: Optional[str] = None
    graph: Optional[GraphDef] = None
    origin: Optional[str] = None
    source: Optional[str] = None
    metric: Optional[str] = None
    # Time window: reference time plus a range ("-1h" ends at `time`, "1h" starts at it)
    time: Optional[datetime] = None
    range: Optional[str] = None
    sample: Optional[int] = Field(None, gt=0)
    percentiles: List[float] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_target(self):
        metric_ref = [self.origin, self.source, self.metric]
        targets = sum([
            self.id is not None,
            self.graph is not None,
            any(part is not None for part in metric_ref),
        ])
        if targets != 1:
            raise ValueError("request must name exactly one of: id, graph, origin+source+metric")
        if any(part is not None for part in metric_ref) and not all(metric_ref):
            raise ValueError("origin, source and metric must be given together")

        for percentile in self.percentiles:
            if not 0 <= percentile <= 100:
                raise ValueError(f"percentile out of range: {percentile}")
        return self

    def resolve_window(self, default_range: str, now: Optional[datetime] = None) -> Tuple[float, float]:
        """
        Return (start_time, end_time) in unix seconds.

        A negative range ends the window at the reference time, a positive
        one starts it there. The reference time defaults to now.
        """
        ref_time = self.time or now or datetime.now(timezone.utc)
        if ref_time.tzinfo is None:
            ref_time = ref_time.replace(tzinfo=timezone.utc)

        range_str = (self.range or default_range).strip()
        other = apply_range(ref_time, range_str)

        if range_str.startswith("-"):
            return other.timestamp(), ref_time.timestamp()
        return ref_time.timestamp(), other.timestamp()
