"""
Plot model and consolidation core

- series.py: Plot / Series value types, scale, downsample, summary and percentiles
- consolidate.py: bucket-based resampling onto a common time grid
- operators.py: point-wise sum/average of aligned series
- query.py: connector query types
"""

from .series import NAN, Plot, Series, percentile_key, serialize_value
from .consolidate import ConsolidationType, PlotBucket, consolidate_series
from .operators import OperatorType, apply_operator, average_series, sum_series
from .query import Query, QueryGroup, QueryMetric, QuerySeries

__all__ = [
    'NAN',
    'Plot',
    'Series',
    'percentile_key',
    'serialize_value',

    'ConsolidationType',
    'PlotBucket',
    'consolidate_series',

    'OperatorType',
    'apply_operator',
    'average_series',
    'sum_series',

    'Query',
    'QueryGroup',
    'QueryMetric',
    'QuerySeries',
]
