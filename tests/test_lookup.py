"""
Tests for cache-first ingredient and product lookups.
"""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from epiq import storage
from epiq.database import ProductCache
from epiq.lookup import IngredientLookup, lookup_product
from epiq.retry import CircuitBreaker
from epiq.sources.common import SourceError

WATER = {"cid": "962", "molecular_weight": 18.015, "compound": {"id": {"id": {"cid": 962}}}}


class TestIngredientLookup:
    """Test the PubChem-backed ingredient lookup."""

    def test_order_and_length_preserved(self, db_session):
        answers = {"water": WATER, "mystery extract": None}
        with patch("epiq.sources.pubchem.fetch_compound", side_effect=lambda n: answers[n]):
            records = IngredientLookup(db_session, delay_seconds=0).lookup(["Water", "mystery extract"])

        assert [r.name for r in records] == ["Water", "mystery extract"]
        assert records[0].found is True
        assert records[0].external_id == "962"
        assert records[0].molecular_weight == pytest.approx(18.015)
        assert records[0].source == "api"
        assert records[1].found is False
        assert records[1].external_id is None
        assert records[1].source == "api"

    def test_hits_are_cached(self, db_session):
        with patch("epiq.sources.pubchem.fetch_compound", return_value=WATER) as fetch:
            lookup = IngredientLookup(db_session, delay_seconds=0)
            lookup.lookup(["water"])
            records = lookup.lookup([" WATER "])

        assert fetch.call_count == 1
        assert records[0].source == "cache"
        assert records[0].found is True
        assert storage.get_cached_ingredient(db_session, "water").pubchem_cid == "962"

    def test_misses_are_not_cached(self, db_session):
        with patch("epiq.sources.pubchem.fetch_compound", return_value=None) as fetch:
            lookup = IngredientLookup(db_session, delay_seconds=0)
            lookup.lookup(["unobtainium"])
            lookup.lookup(["unobtainium"])
        assert fetch.call_count == 2

    def test_errors_become_not_found(self, db_session):
        with patch("epiq.sources.pubchem.fetch_compound", side_effect=SourceError("down")):
            records = IngredientLookup(db_session, delay_seconds=0).lookup(["water"])
        assert records[0].found is False
        assert records[0].source == "error"

    def test_open_circuit_stops_remote_calls(self, db_session):
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60, expected_exception=SourceError)
        with patch("epiq.sources.pubchem.fetch_compound", side_effect=SourceError("down")) as fetch:
            records = IngredientLookup(db_session, delay_seconds=0, breaker=breaker).lookup(
                ["water", "glycerin", "niacinamide", "squalane"]
            )
        assert fetch.call_count == 2
        assert all(r.source == "error" for r in records)
        assert len(records) == 4

    def test_open_circuit_skips_pacing(self, db_session):
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60, expected_exception=SourceError)
        with patch("epiq.sources.pubchem.fetch_compound", side_effect=SourceError("down")) as fetch, \
                patch("epiq.lookup.time.sleep") as sleep:
            records = IngredientLookup(db_session, delay_seconds=1.5, breaker=breaker).lookup(
                ["alpha", "beta", "gamma", "delta"]
            )
        assert fetch.call_count == 1
        assert sleep.call_count <= fetch.call_count - 1
        assert [r.source for r in records] == ["error"] * 4

    def test_delay_between_remote_requests(self, db_session):
        with patch("epiq.sources.pubchem.fetch_compound", return_value=None), \
                patch("epiq.lookup.time.sleep") as sleep:
            IngredientLookup(db_session, delay_seconds=1.5).lookup(["alpha", "beta", "gamma"])
        assert sleep.call_count == 2
        assert all(0 < call.args[0] <= 1.5 for call in sleep.call_args_list)

    def test_cache_hits_are_not_paced(self, db_session):
        storage.cache_ingredient(db_session, "water", WATER)
        storage.cache_ingredient(db_session, "glycerin", WATER)
        with patch("epiq.sources.pubchem.fetch_compound") as fetch, \
                patch("epiq.lookup.time.sleep") as sleep:
            IngredientLookup(db_session, delay_seconds=1.5).lookup(["water", "glycerin"])
        fetch.assert_not_called()
        sleep.assert_not_called()


class TestLookupProduct:
    """Test barcode lookup with the 30-day product cache."""

    def test_miss_fetches_and_caches(self, db_session):
        product = {"product_name": "Daily Lotion"}
        with patch("epiq.sources.open_beauty_facts.fetch_product", return_value=product) as fetch:
            first = lookup_product(db_session, "123")
            second = lookup_product(db_session, "123")

        assert first == (product, "api")
        assert second == (product, "cache")
        assert fetch.call_count == 1

    def test_expired_entry_refetched(self, db_session):
        db_session.add(ProductCache(
            barcode="123",
            obf_data_json={"product_name": "Old"},
            cached_at=datetime.now() - timedelta(days=31),
        ))
        db_session.commit()

        with patch("epiq.sources.open_beauty_facts.fetch_product", return_value={"product_name": "New"}):
            product, source = lookup_product(db_session, "123")

        assert source == "api"
        assert product == {"product_name": "New"}
        assert storage.get_cached_product(db_session, "123") == {"product_name": "New"}

    def test_unknown_barcode(self, db_session):
        with patch("epiq.sources.open_beauty_facts.fetch_product", return_value=None):
            assert lookup_product(db_session, "000") == (None, "api")
        assert storage.get_cached_product(db_session, "000") is None
