"""
ERP Lens Core - Smart Sampler
Bounded head / random-middle / tail subsets for prompt-sized contexts
"""

from typing import Any, Optional

import numpy as np

DEFAULT_SAMPLE_LIMIT = 150
HEAD_SHARE = 0.2
TAIL_SHARE = 0.2


def smart_sample(rows: list[dict[str, Any]], limit: int = DEFAULT_SAMPLE_LIMIT, seed: Optional[int] = None) -> list[dict[str, Any]]:
    """
    Keep the first and last 20% of `limit` rows in order and fill the remaining 60%
    with uniform draws (with replacement) from the rows in between.
    Datasets within the limit come back whole.
    """
    if limit <= 0:
        return []
    if len(rows) <= limit:
        return list(rows)

    head_count = int(limit * HEAD_SHARE)
    tail_count = int(limit * TAIL_SHARE)
    random_count = limit - head_count - tail_count

    head = rows[:head_count]
    tail = rows[len(rows) - tail_count:]

    middle_start = head_count
    middle_end = len(rows) - tail_count
    random_samples = []
    if middle_end > middle_start:
        rng = np.random.default_rng(seed)
        indices = rng.integers(middle_start, middle_end, size=random_count)
        random_samples = [rows[int(i)] for i in indices]

    return head + random_samples + tail
