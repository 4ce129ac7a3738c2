"""Numeric helpers shared by the server aggregation and the client store."""

import math


def round_half_up(value: float) -> int:
    """Round like ``Math.round``: halves go towards positive infinity.

    Python's ``round`` uses banker's rounding (``round(72.5) == 72``), which
    would make stored percentages disagree with scores recorded by browsers.
    """
    return int(math.floor(value + 0.5))


def percentage(score: float, total: float) -> int:
    if not total:
        return 0
    return round_half_up((score / total) * 100)
