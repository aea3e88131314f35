"""
Tests for EpiQ scoring.
"""

import pytest

from epiq.models import IngredientRecord, SkinProfile
from epiq.scoring import routine_suggestions, score_ingredients, summarize


def _rec(name, found=True):
    return IngredientRecord(name=name, found=found)


class TestBaseScore:
    """Scoring without a skin profile."""

    def test_empty_list_scores_fifty(self):
        result = score_ingredients([], None)
        assert result.score == 50
        assert result.safe_ingredients == []
        assert result.personalized is False

    def test_all_found_scores_hundred(self, found_records):
        result = score_ingredients(found_records)
        assert result.score == 100
        assert result.safe_ingredients == ["water", "glycerin", "niacinamide"]
        assert result.concern_ingredients == []

    def test_partition_by_found(self):
        result = score_ingredients([_rec("water"), _rec("glycerin"), _rec("mystery extract", found=False)])
        assert result.score == 67
        assert result.safe_ingredients == ["water", "glycerin"]
        assert result.concern_ingredients == ["mystery extract"]

    def test_no_profile_means_no_warnings(self):
        result = score_ingredients([_rec("fragrance"), _rec("coconut oil")])
        assert result.warnings == []
        assert result.beneficial_matches == []
        assert result.score == 100


class TestProfileScore:
    """Scoring personalized to a skin profile."""

    def test_beneficial_match_boosts_score(self, oily_profile):
        result = score_ingredients([_rec("salicylic acid"), _rec("unknown thing", found=False)], oily_profile)
        assert result.beneficial_matches == ["salicylic acid (beneficial for oily skin)"]
        assert result.warnings == []
        assert result.score == 50 + 3
        assert result.personalized is True

    def test_single_beneficial_ingredient_clamps_at_hundred(self, oily_profile):
        result = score_ingredients([_rec("salicylic acid")], oily_profile)
        assert len(result.beneficial_matches) == 1
        assert result.warnings == []
        assert result.score == 100

    def test_warnings_and_concern_matches(self, sensitive_acne_profile):
        ingredients = [
            _rec("fragrance"),
            _rec("coconut oil", found=False),
            _rec("centella asiatica extract"),
        ]
        result = score_ingredients(ingredients, sensitive_acne_profile)

        assert result.warnings == [
            "fragrance may not suit sensitive skin",
            "coconut oil may worsen acne",
        ]
        assert result.beneficial_matches == [
            "centella asiatica extract (beneficial for sensitive skin)"
        ]
        # 67 base, two warnings, one beneficial match
        assert result.score == 67 - 10 + 3

    def test_concern_beneficial_annotation(self):
        profile = SkinProfile(skin_type=None, concerns=frozenset({"acne"}))
        result = score_ingredients([_rec("Niacinamide")], profile)
        assert result.beneficial_matches == ["Niacinamide (targets acne)"]

    def test_unknown_ingredients_are_not_beneficial(self, oily_profile):
        result = score_ingredients([_rec("niacinamide", found=False)], oily_profile)
        assert result.beneficial_matches == []
        assert result.score == 0

    def test_unknown_ingredients_still_warn(self):
        profile = SkinProfile(skin_type="sensitive")
        result = score_ingredients([_rec("menthol", found=False)], profile)
        assert result.warnings == ["menthol may not suit sensitive skin"]

    def test_score_clamped_at_zero(self):
        profile = SkinProfile(skin_type="sensitive", concerns=frozenset({"acne"}))
        ingredients = [_rec(n, found=False) for n in ("fragrance", "parfum fragrance", "menthol", "coconut oil")]
        result = score_ingredients(ingredients, profile)
        assert result.score == 0

    def test_malformed_profile_fields_treated_as_absent(self, found_records):
        profile = SkinProfile.from_dict({"skin_type": "alien", "skin_concerns": "acne"})
        assert profile.skin_type is None
        assert profile.concerns == frozenset()

        result = score_ingredients(found_records, profile)
        assert result.score == 100
        assert result.warnings == []
        assert result.personalized is True

    @pytest.mark.parametrize("stored", [["oily"], "oily", 42])
    def test_non_mapping_profile_treated_as_absent(self, found_records, stored):
        assert SkinProfile.from_dict(stored) is None
        assert score_ingredients(found_records, SkinProfile.from_dict(stored)).personalized is False

    @pytest.mark.parametrize("names,found", [
        (["fragrance"] * 30, False),
        (["salicylic acid niacinamide zinc"] * 30, True),
        (["coconut oil", "water", "menthol", "alcohol denat"], True),
    ])
    def test_score_always_in_range(self, names, found):
        profile = SkinProfile(skin_type="oily", concerns=frozenset({"acne", "sensitive", "aging"}))
        result = score_ingredients([_rec(n, found) for n in names], profile)
        assert 0 <= result.score <= 100


class TestSummaryAndRoutine:
    """Summary bands and routine suggestions."""

    def test_summary_bands(self):
        assert summarize(70, "oily").startswith("Great match for your oily skin!")
        assert summarize(50, "dry").startswith("Decent option.")
        assert "dry skin" in summarize(50, "dry")
        assert summarize(49).startswith("Not ideal for your skin profile.")

    def test_summary_without_skin_type(self):
        assert summarize(90) == "Great match for your skin! This product has a strong ingredient profile."

    def test_routine_by_skin_type(self):
        assert routine_suggestions("sensitive")[0] == "Patch test before full application"
        assert routine_suggestions("oily")[1] == "Follow with oil-free moisturizer if needed"
        assert routine_suggestions("dry")[0] == "Layer over hydrating toner for best results"

    def test_default_routine(self):
        assert routine_suggestions(None) == routine_suggestions("combination")
        assert routine_suggestions(None)[0] == "Use consistently for best results"

    def test_result_carries_routine_and_summary(self, oily_profile):
        result = score_ingredients([_rec("water")], oily_profile)
        assert result.summary.startswith("Great match for your oily skin!")
        assert result.routine_suggestions == routine_suggestions("oily")
