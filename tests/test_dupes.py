"""
Tests for dupe matching.
"""

import pytest

from epiq.dupes import (
    compare_products,
    dupe_limit_for_tier,
    find_dupes,
    overlap_reason,
    shared_ingredients,
    visible_dupes,
)
from epiq.models import Product


def _product(pid, ingredients, price=None, score=None, name=None):
    return Product(
        id=pid,
        name=name or f"product {pid}",
        ingredients_raw=ingredients,
        price=price,
        score=score,
    )


def _numbered(count, start=1):
    """Comma-separated fixed-width ingredient names, so none contains another."""
    return ", ".join(f"ingredient{i:02d}" for i in range(start, start + count))


class TestCompareProducts:
    """Test a single source/candidate comparison."""

    def test_overlap_example(self, source_product):
        candidate = _product(2, "Water, Glycerin, Retinol", price=20.0, score=75)
        match = compare_products(source_product, candidate)

        assert match.shared_ingredients == ["water", "glycerin"]
        assert match.overlap_percent == 67
        assert match.price_delta == 28.0
        assert match.reasons == ["67% similar formula", "$28.00 cheaper", "Similar EpiQ score"]

    def test_self_overlap_is_hundred(self, source_product):
        assert compare_products(source_product, source_product).overlap_percent == 100

    def test_containment_is_directional(self):
        short = _product(1, "oil")
        long = _product(2, "mineral oil, water")
        assert compare_products(short, long).overlap_percent == 100
        assert compare_products(long, short).overlap_percent == 50

    def test_shared_ingredients_truncated_to_five(self):
        text = _numbered(8)
        match = compare_products(_product(1, text), _product(2, text))
        assert match.overlap_percent == 100
        assert len(match.shared_ingredients) == 5
        assert match.shared_ingredients[0] == "ingredient01"

    def test_empty_candidate_yields_zero(self, source_product):
        match = compare_products(source_product, _product(2, ""))
        assert match.overlap_percent == 0
        assert match.shared_ingredients == []

    def test_empty_source_yields_zero(self):
        match = compare_products(_product(1, ""), _product(2, "water, glycerin"))
        assert match.overlap_percent == 0

    def test_more_expensive_candidate_has_no_price_reason(self, source_product):
        match = compare_products(source_product, _product(2, "water, glycerin, niacinamide", price=60.0))
        assert match.price_delta == -12.0
        assert not any("cheaper" in r for r in match.reasons)

    def test_missing_price_or_score(self, source_product):
        match = compare_products(source_product, _product(2, "water, glycerin, niacinamide"))
        assert match.price_delta is None
        assert match.reasons == ["100% ingredient overlap"]

    def test_score_difference_boundary(self, source_product):
        near = compare_products(source_product, _product(2, "water", score=70))
        far = compare_products(source_product, _product(3, "water", score=69))
        assert "Similar EpiQ score" in near.reasons
        assert "Similar EpiQ score" not in far.reasons


class TestOverlapReason:
    """Tiered overlap phrases."""

    @pytest.mark.parametrize("percent,expected", [
        (100, "100% ingredient overlap"),
        (70, "70% ingredient overlap"),
        (69, "69% similar formula"),
        (50, "50% similar formula"),
        (30, "30% shared ingredients"),
        (29, None),
    ])
    def test_tiers(self, percent, expected):
        assert overlap_reason(percent) == expected

    def test_shared_is_symmetric_containment(self):
        assert shared_ingredients(["hyaluronic acid", "zinc"], ["sodium hyaluronic acid", "zinc oxide"]) == [
            "hyaluronic acid",
            "zinc",
        ]
        assert shared_ingredients(["sodium hyaluronate"], ["sodium"]) == ["sodium hyaluronate"]


class TestFindDupes:
    """Ranking, filtering and limits."""

    @pytest.fixture
    def pool(self):
        source = _product(1, _numbered(20))
        candidates = [
            _product(2, _numbered(16)),             # 80%
            _product(3, _numbered(6)),              # 30%
            _product(4, _numbered(11)),             # 55%
            _product(5, _numbered(5)),              # 25%, filtered
            _product(6, _numbered(10, start=50)),   # 0%, filtered
        ]
        return source, candidates

    def test_sorted_descending_by_overlap(self, pool):
        source, candidates = pool
        result = find_dupes(source, candidates)
        assert [m.overlap_percent for m in result] == [80, 55, 30]
        assert [m.candidate.id for m in result] == [2, 4, 3]

    def test_below_min_overlap_never_returned(self, pool):
        source, candidates = pool
        assert all(m.overlap_percent >= 30 for m in find_dupes(source, candidates))
        assert [m.overlap_percent for m in find_dupes(source, candidates, min_overlap=60)] == [80]

    def test_ties_keep_input_order(self):
        source = _product(1, "water, glycerin")
        candidates = [_product(i, "water, glycerin", name=f"tie {i}") for i in (7, 3, 9)]
        result = find_dupes(source, candidates)
        assert [m.candidate.id for m in result] == [7, 3, 9]

    def test_limit_applied_after_ranking(self, pool):
        source, candidates = pool
        result = find_dupes(source, candidates, limit=2)
        assert [m.overlap_percent for m in result] == [80, 55]

    def test_source_skipped_in_pool(self, pool):
        source, candidates = pool
        result = find_dupes(source, [source] + candidates)
        assert source.id not in [m.candidate.id for m in result]

    def test_shared_never_exceeds_five(self, pool):
        source, candidates = pool
        assert all(len(m.shared_ingredients) <= 5 for m in find_dupes(source, candidates))


class TestTierLimits:
    """Subscription tier presentation limits."""

    def test_limits(self):
        assert dupe_limit_for_tier("free") == 2
        assert dupe_limit_for_tier("premium") == 5
        assert dupe_limit_for_tier("pro") is None

    def test_unknown_tier_falls_back_to_free(self):
        assert dupe_limit_for_tier("platinum") == 2
        assert dupe_limit_for_tier(None) == 2

    def test_visible_dupes(self):
        source = _product(1, "water, glycerin")
        matches = find_dupes(source, [_product(i, "water, glycerin") for i in range(2, 6)])

        shown, hidden = visible_dupes(matches, "free")
        assert len(shown) == 2
        assert hidden == 2

        shown, hidden = visible_dupes(matches, "pro")
        assert len(shown) == 4
        assert hidden == 0
