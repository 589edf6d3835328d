from __future__ import annotations

import math
import re

WORDS_PER_MINUTE = 200

_TAG_PATTERN = re.compile(r"<[^>]*>")


def read_time(content: str | None) -> int:
    """Estimated reading time in whole minutes, never less than 1."""
    if not content:
        return 1
    words = len(_TAG_PATTERN.sub("", content).split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))
