import math
import re
from typing import List, Optional

INGREDIENT_SEPARATORS = re.compile(r"[,;\n]")

# Tokens of two characters or fewer are label noise ("aq", "ci", stray letters)
MIN_INGREDIENT_LENGTH = 3


def normalize_text(s: str) -> str:
    return " ".join(s.strip().lower().split())


def parse_ingredients(text: Optional[str]) -> List[str]:
    """Split a free-text ingredient list into lowercase ingredient names.

    Order and duplicates are preserved. Empty input yields an empty list.
    """
    if not text:
        return []
    names = (i.strip() for i in INGREDIENT_SEPARATORS.split(text.lower()))
    return [n for n in names if len(n) >= MIN_INGREDIENT_LENGTH]


def lookup_key(name: str) -> str:
    """Cache key for an ingredient name."""
    return name.strip().lower()


def percentage(part: int, whole: int) -> int:
    """Integer percentage rounded half up, with a zero-safe denominator."""
    return int(math.floor(part / max(whole, 1) * 100 + 0.5))
