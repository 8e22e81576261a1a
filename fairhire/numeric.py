import math
from typing import Union

Number = Union[int, float]


def clamp(value: Number, lower: Number, upper: Number) -> Number:
    return max(lower, min(upper, value))


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to ``digits`` places with exact halves rounded up.

    Python's ``round`` rounds halves to even (``round(2.5) == 2``), which makes
    displayed scores disagree with the browser demo for exact halves.
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_to_int(value: float) -> int:
    return int(round_half_up(value))
