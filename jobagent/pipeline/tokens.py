"""Token budget estimation and prefix truncation.

The estimate is linear in text length: one unit per 2.5 characters plus a
20% surcharge for serialization overhead. It is an admission-control
heuristic, not the model's real tokenizer.
"""

import bisect
import math

CHARS_PER_TOKEN = 2.5
OVERHEAD_RATIO = 0.2


def estimate_tokens_for_length(length: int) -> int:
    """Estimated units for a text of ``length`` characters."""
    if length <= 0:
        return 0
    return math.ceil(length / CHARS_PER_TOKEN) + math.ceil(length * OVERHEAD_RATIO)


def estimate_tokens(text: str) -> int:
    """Estimated units for ``text``. Monotonic in length; 0 for ""."""
    return estimate_tokens_for_length(len(text))


def truncate_to_budget(text: str, max_units: int) -> str:
    """Return the longest prefix of ``text`` whose estimate is <= ``max_units``.

    Text already within budget is returned unchanged.
    """
    if estimate_tokens(text) <= max_units:
        return text
    if max_units <= 0:
        return ""
    # First cut at 2.5 chars/unit, then shrink to the largest prefix that fits.
    upper = min(len(text), math.floor(max_units * CHARS_PER_TOKEN))
    keep = bisect.bisect_right(range(upper + 1), max_units, key=estimate_tokens_for_length) - 1
    return text[:keep]
