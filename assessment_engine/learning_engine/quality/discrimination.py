"""
Item discrimination (point-biserial correlation).

For one question, correlates the 0/1 correctness of each response with the
total score of the attempt it came from. High positive values mean strong
candidates tend to get the item right; values near zero or negative flag
items worth reviewing.
"""

from typing import Sequence

import numpy as np


def discrimination_index(item_correct: Sequence[bool], total_scores: Sequence[float]) -> float | None:
    """
    Point-biserial correlation between item correctness and attempt score.

    Returns:
        Correlation in [-1, 1], or None when undefined (fewer than two
        responses, everyone right or everyone wrong, or constant totals)
    """
    if len(item_correct) != len(total_scores):
        raise ValueError("item_correct and total_scores must have the same length")
    if len(item_correct) < 2:
        return None

    x = np.asarray(item_correct, dtype=float)
    y = np.asarray(total_scores, dtype=float)

    p = x.mean()
    if p in (0.0, 1.0):
        return None
    sd = y.std()
    if sd == 0:
        return None

    mean_right = y[x == 1.0].mean()
    mean_wrong = y[x == 0.0].mean()
    r = (mean_right - mean_wrong) / sd * np.sqrt(p * (1.0 - p))
    return float(np.clip(r, -1.0, 1.0))
