"""
EpiQ Scoring.

Responsibilities:
- Classify looked-up ingredients as safe (found) or of concern (not found).
- Apply skin-profile bonuses and penalties from the static tables.
- Emit a 0-100 score, a summary sentence and routine suggestions.

Non-Responsibilities:
- No ingredient lookup.
- No persistence.

Invariant:
The score is always within [0, 100], and scoring an empty list without a
profile yields 50.
"""

from typing import Iterable, List, Optional, Sequence

from .models import IngredientRecord, ScoreResult, SkinProfile
from .normalize import percentage
from .tables import (
    BENEFICIAL_INGREDIENTS,
    DEFAULT_ROUTINE,
    PROBLEMATIC_INGREDIENTS,
    ROUTINE_SUGGESTIONS,
)

EMPTY_LIST_SCORE = 50
WARNING_PENALTY = 5
BENEFICIAL_BONUS = 3

GREAT_MATCH_THRESHOLD = 70
DECENT_MATCH_THRESHOLD = 50


def _matches(name_lower: str, fragments: Iterable[str]) -> bool:
    return any(f in name_lower for f in fragments)


def clamp_score(value: int) -> int:
    return max(0, min(100, value))


def _skin_phrase(skin_type: Optional[str]) -> str:
    return f"{skin_type} skin" if skin_type else "skin"


def summarize(score: int, skin_type: Optional[str] = None) -> str:
    skin = _skin_phrase(skin_type)
    if score >= GREAT_MATCH_THRESHOLD:
        return f"Great match for your {skin}! This product has a strong ingredient profile."
    if score >= DECENT_MATCH_THRESHOLD:
        return f"Decent option. Some ingredients may need attention for your {skin}."
    return f"Not ideal for your {skin} profile. Consider alternatives with safer formulations."


def routine_suggestions(skin_type: Optional[str] = None) -> List[str]:
    return list(ROUTINE_SUGGESTIONS.get(skin_type, DEFAULT_ROUTINE))


def score_ingredients(
    ingredients: Sequence[IngredientRecord],
    profile: Optional[SkinProfile] = None,
) -> ScoreResult:
    """Score a looked-up ingredient list, optionally personalized to a profile."""
    safe: List[str] = []
    concern: List[str] = []
    warnings: List[str] = []
    beneficial: List[str] = []

    skin_type = profile.skin_type if profile else None
    concerns = sorted(profile.concerns) if profile else []

    for record in ingredients:
        name_lower = record.name.lower()

        if record.found:
            safe.append(record.name)
            if profile is not None:
                if skin_type and _matches(name_lower, BENEFICIAL_INGREDIENTS.get(skin_type, ())):
                    beneficial.append(f"{record.name} (beneficial for {skin_type} skin)")
                for c in concerns:
                    if _matches(name_lower, BENEFICIAL_INGREDIENTS.get(c, ())):
                        beneficial.append(f"{record.name} (targets {c})")
        else:
            concern.append(record.name)

        if profile is not None:
            if skin_type and _matches(name_lower, PROBLEMATIC_INGREDIENTS.get(skin_type, ())):
                warnings.append(f"{record.name} may not suit {skin_type} skin")
            for c in concerns:
                if _matches(name_lower, PROBLEMATIC_INGREDIENTS.get(c, ())):
                    warnings.append(f"{record.name} may worsen {c}")

    if ingredients:
        score = percentage(len(safe), len(ingredients))
    else:
        score = EMPTY_LIST_SCORE

    if profile is not None:
        score = clamp_score(
            score - WARNING_PENALTY * len(warnings) + BENEFICIAL_BONUS * len(beneficial)
        )

    return ScoreResult(
        score=score,
        safe_ingredients=safe,
        concern_ingredients=concern,
        warnings=warnings,
        summary=summarize(score, skin_type),
        routine_suggestions=routine_suggestions(skin_type),
        beneficial_matches=beneficial,
        personalized=profile is not None,
    )
