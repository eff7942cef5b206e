"""Rounding that matches the stored metrics."""

import math
from typing import Union


def round_half_up(value: float, digits: int = 0) -> Union[int, float]:
    """
    Round with halves going up (towards +infinity).

    Python's ``round`` sends halves to the even neighbour, so 2.5 becomes 2.
    Stored TSS, fitness and stimulus values were produced with halves
    rounded up, and recomputed values have to agree with them.

    Args:
        value: Number to round
        digits: Decimal places to keep

    Returns:
        An int when ``digits`` is 0, otherwise a float
    """
    if digits == 0:
        return int(math.floor(value + 0.5))
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
