"""
Cross-series operators.

Inputs must already share length and timestamps (see consolidate_series);
this is not re-validated beyond using the first series' point count.
"""

import math
from enum import Enum
from typing import Sequence

from ..errors import InvalidArgument
from .series import NAN, Plot, Series


class OperatorType(str, Enum):
    NONE = "none"
    AVERAGE = "average"
    SUM = "sum"


def average_series(series_list: Sequence[Series]) -> Series:
    """Point-wise average, skipping NaN contributors."""
    return _oper_series(series_list, OperatorType.AVERAGE)


def sum_series(series_list: Sequence[Series]) -> Series:
    """Point-wise sum, skipping NaN contributors."""
    return _oper_series(series_list, OperatorType.SUM)


def apply_operator(series_list: Sequence[Series], operator_type: OperatorType) -> Series:
    operator_type = OperatorType(operator_type)
    if operator_type == OperatorType.NONE:
        raise InvalidArgument("operator type `none' does not combine series")
    return _oper_series(series_list, operator_type)


def _oper_series(series_list: Sequence[Series], operator_type: OperatorType) -> Series:
    if not series_list:
        raise InvalidArgument("no series provided")

    first = series_list[0]
    result = Series(name=first.name, step=first.step)

    for index in range(len(first.plots)):
        total = 0.0
        count = 0

        for series in series_list:
            value = series.plots[index].value
            if math.isnan(value):
                continue
            total += value
            count += 1

        if count == 0:
            value = NAN
        elif operator_type == OperatorType.AVERAGE:
            value = total / count
        else:
            value = total

        result.plots.append(Plot(time=first.plots[index].time, value=value))

    return result
