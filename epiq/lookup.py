"""
Cache-first lookups against PubChem and Open Beauty Facts.
"""

import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from . import storage
from .logger import get_logger
from .models import IngredientRecord
from .normalize import lookup_key
from .retry import CircuitBreaker, CircuitOpenError
from .sources import open_beauty_facts, pubchem
from .sources.common import SourceError

logger = get_logger()

DEFAULT_REQUEST_DELAY = 1.5  # seconds between PubChem requests
DEFAULT_PRODUCT_CACHE_DAYS = 30


class IngredientLookup:
    """
    Resolve ingredient names to PubChem records.

    The returned list always matches the input in order and length. Unknown
    names and failed requests come back with found=False rather than raising.
    """

    def __init__(
        self,
        session: Session,
        delay_seconds: float = DEFAULT_REQUEST_DELAY,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.session = session
        self.delay_seconds = delay_seconds
        self.breaker = breaker or CircuitBreaker(
            failure_threshold=3,
            recovery_timeout=60,
            expected_exception=SourceError,
        )
        self._last_request: Optional[float] = None

    def lookup(self, names: Sequence[str]) -> List[IngredientRecord]:
        records = [self._lookup_one(name) for name in names]
        found = sum(1 for r in records if r.found)
        logger.info("Ingredient lookup complete", total=len(records), found=found)
        return records

    def _lookup_one(self, name: str) -> IngredientRecord:
        key = lookup_key(name)

        cached = storage.get_cached_ingredient(self.session, key)
        if cached is not None:
            logger.record_cache_hit()
            logger.debug("Ingredient cache hit", ingredient=key)
            return IngredientRecord(
                name=name,
                external_id=cached.pubchem_cid,
                molecular_weight=cached.molecular_weight,
                found=True,
                source="cache",
            )

        logger.record_cache_miss()
        try:
            compound = self.breaker.call(self._paced_fetch, key)
        except (SourceError, CircuitOpenError) as e:
            logger.warning("PubChem lookup failed", ingredient=key, error=str(e))
            return IngredientRecord(name=name, found=False, source="error")

        if compound is None:
            return IngredientRecord(name=name, found=False, source="api")

        storage.cache_ingredient(self.session, key, compound)
        return IngredientRecord(
            name=name,
            external_id=compound.get("cid"),
            molecular_weight=compound.get("molecular_weight"),
            found=True,
            source="api",
        )

    def _paced_fetch(self, key: str) -> Optional[Dict[str, Any]]:
        # Runs inside the breaker, so an open circuit skips the wait
        self._pace()
        return pubchem.fetch_compound(key)

    def _pace(self) -> None:
        """Keep at least delay_seconds between consecutive remote requests."""
        now = time.monotonic()
        if self._last_request is not None:
            wait = self.delay_seconds - (now - self._last_request)
            if wait > 0:
                time.sleep(wait)
        self._last_request = time.monotonic()


def lookup_product(
    session: Session,
    barcode: str,
    max_age_days: int = DEFAULT_PRODUCT_CACHE_DAYS,
) -> Tuple[Optional[Dict[str, Any]], str]:
    """Product data for a barcode, from the cache when fresh, else from OBF.

    Returns (product or None, source) where source is 'cache' or 'api'.
    Raises SourceError when OBF cannot be reached.
    """
    cached = storage.get_cached_product(session, barcode, max_age_days=max_age_days)
    if cached is not None:
        logger.record_cache_hit()
        logger.info("Product cache hit", barcode=barcode)
        return cached, "cache"

    logger.record_cache_miss()
    logger.info("Product cache miss", barcode=barcode)
    product = open_beauty_facts.fetch_product(barcode)
    if product is not None:
        storage.upsert_product_cache(session, barcode, product)
    return product, "api"
