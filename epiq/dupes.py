"""
Dupe Matching.

Responsibilities:
- Compare a source product's ingredients against a pool of candidates.
- Explain each match with human-readable reasons.
- Rank candidates by ingredient overlap.

Non-Responsibilities:
- No database access; the candidate pool is supplied by the caller.
- No scoring of individual ingredients.

Invariant:
Ranking always runs over the full candidate pool. Result limits are applied
afterwards and never change which matches rank first.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from .models import DupeMatch, Product
from .normalize import parse_ingredients, percentage

DEFAULT_MIN_OVERLAP = 30
MAX_SHARED_SHOWN = 5
SIMILAR_SCORE_RANGE = 10

DUPE_LIMITS: Dict[str, Optional[int]] = {
    "free": 2,
    "premium": 5,
    "pro": None,
}


def shared_ingredients(source: Sequence[str], target: Sequence[str]) -> List[str]:
    """Source ingredients contained in, or containing, some target ingredient."""
    return [i for i in source if any(t in i or i in t for t in target)]


def overlap_reason(overlap_percent: int) -> Optional[str]:
    if overlap_percent >= 70:
        return f"{overlap_percent}% ingredient overlap"
    if overlap_percent >= 50:
        return f"{overlap_percent}% similar formula"
    if overlap_percent >= 30:
        return f"{overlap_percent}% shared ingredients"
    return None


def price_delta(source: Product, candidate: Product) -> Optional[float]:
    """How much cheaper the candidate is; negative when it costs more."""
    # An unpriced (or zero-priced) product has no meaningful delta
    if not source.price or not candidate.price:
        return None
    return round(source.price - candidate.price, 2)


def match_reasons(source: Product, candidate: Product, overlap_percent: int, delta: Optional[float]) -> List[str]:
    reasons: List[str] = []

    phrase = overlap_reason(overlap_percent)
    if phrase:
        reasons.append(phrase)

    if delta is not None and delta > 0:
        reasons.append(f"${delta:.2f} cheaper")

    if source.score is not None and candidate.score is not None:
        if abs(source.score - candidate.score) <= SIMILAR_SCORE_RANGE:
            reasons.append("Similar EpiQ score")

    return reasons


def compare_products(source: Product, candidate: Product) -> DupeMatch:
    """Build the match record for one candidate against the source."""
    source_ingredients = parse_ingredients(source.ingredients_raw)
    target_ingredients = parse_ingredients(candidate.ingredients_raw)

    shared = shared_ingredients(source_ingredients, target_ingredients)
    overlap = percentage(len(shared), len(source_ingredients))
    delta = price_delta(source, candidate)

    return DupeMatch(
        candidate=candidate,
        overlap_percent=overlap,
        shared_ingredients=shared[:MAX_SHARED_SHOWN],
        price_delta=delta,
        reasons=match_reasons(source, candidate, overlap, delta),
    )


def find_dupes(
    source: Product,
    candidates: Sequence[Product],
    min_overlap: int = DEFAULT_MIN_OVERLAP,
    limit: Optional[int] = None,
) -> List[DupeMatch]:
    """Rank candidates by ingredient overlap with the source.

    Candidates below ``min_overlap`` are dropped. Ties keep input order.
    The source itself is skipped when it appears in the pool.
    """
    matches = [
        compare_products(source, c)
        for c in candidates
        if source.id is None or c.id != source.id
    ]
    ranked = sorted(
        (m for m in matches if m.overlap_percent >= min_overlap),
        key=lambda m: m.overlap_percent,
        reverse=True,
    )
    if limit is not None:
        return ranked[:limit]
    return ranked


def dupe_limit_for_tier(tier: Optional[str]) -> Optional[int]:
    """Number of dupes shown per subscription tier; None means unlimited."""
    if tier in DUPE_LIMITS:
        return DUPE_LIMITS[tier]
    return DUPE_LIMITS["free"]


def visible_dupes(matches: List[DupeMatch], tier: Optional[str]) -> Tuple[List[DupeMatch], int]:
    """Split ranked matches into the ones shown for a tier and a hidden count."""
    limit = dupe_limit_for_tier(tier)
    if limit is None:
        return matches, 0
    return matches[:limit], max(0, len(matches) - limit)
