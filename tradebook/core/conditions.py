# tradebook/core/conditions.py
"""
Entry condition evaluation.

Conditions are combined as a left-to-right fold: the first result seeds the
accumulator and every later condition joins it with its own combinator.
`A OR B AND C` therefore means `(A OR B) AND C`, not standard precedence.
"""

from typing import Sequence
import logging

from ..models.config import Combinator, ConditionOperator, EntryCondition
from ..models.market_data import IndicatorSnapshot


logger = logging.getLogger(__name__)

EQUALITY_TOLERANCE = 0.01


def _macd_cross(snapshots: Sequence[IndicatorSnapshot], index: int, above: bool) -> bool:
    if index <= 0:
        return False

    prev, curr = snapshots[index - 1].macd, snapshots[index].macd
    if None in (prev.value, prev.signal, curr.value, curr.signal):
        return False

    if above:
        return prev.value <= prev.signal and curr.value > curr.signal
    return prev.value >= prev.signal and curr.value < curr.signal


def evaluate_condition(
    condition: EntryCondition,
    snapshots: Sequence[IndicatorSnapshot],
    index: int,
) -> bool:
    """
    Evaluate one condition at a candle index.

    An indicator still in its warm-up window evaluates false. Crossover and
    crossunder always compare the MACD line against its signal line on the
    previous and current candles.
    """
    value = snapshots[index].value(condition.indicator)
    if value is None:
        return False

    operator = condition.operator
    if operator == ConditionOperator.CROSSOVER:
        return _macd_cross(snapshots, index, above=True)
    if operator == ConditionOperator.CROSSUNDER:
        return _macd_cross(snapshots, index, above=False)

    if operator == ConditionOperator.LT:
        return value < condition.value
    if operator == ConditionOperator.GT:
        return value > condition.value
    if operator == ConditionOperator.EQ:
        return abs(value - condition.value) < EQUALITY_TOLERANCE
    return False


def evaluate_entry(
    conditions: Sequence[EntryCondition],
    snapshots: Sequence[IndicatorSnapshot],
    index: int,
) -> bool:
    """Fold the ordered entry conditions into a single decision."""
    if not conditions:
        return False

    result = evaluate_condition(conditions[0], snapshots, index)
    for condition in conditions[1:]:
        outcome = evaluate_condition(condition, snapshots, index)
        if condition.combinator == Combinator.OR:
            result = result or outcome
        else:
            result = result and outcome
    return result
