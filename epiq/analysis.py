"""
Product analysis and dupe comparison workflows.

Ties the parser, lookup, scorer, matcher and storage together the way the
CLI (or any other front end) calls them.
"""

from dataclasses import asdict
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from . import storage
from .dupes import DEFAULT_MIN_OVERLAP, find_dupes, visible_dupes
from .logger import get_logger
from .lookup import DEFAULT_PRODUCT_CACHE_DAYS, IngredientLookup, lookup_product
from .normalize import parse_ingredients
from .schema import validate_analysis_request
from .scoring import score_ingredients
from .sources.common import SourceError

logger = get_logger()


def analyze_product(
    session: Session,
    request: Dict[str, Any],
    lookup: IngredientLookup,
    product_cache_days: int = DEFAULT_PRODUCT_CACHE_DAYS,
) -> Dict[str, Any]:
    """Score a product for a user and store the analysis.

    ``request`` carries product_name, ingredients_list and user_id, plus
    optional barcode, brand, category and product_price.
    """
    errors = validate_analysis_request(request)
    if errors:
        return {"analysis_id": None, "status": "validation_error", "errors": errors}

    product_name = request["product_name"].strip()
    user_id = request["user_id"]
    barcode = request.get("barcode") or None
    logger.info("Analyzing product", product=product_name, user_id=user_id)

    profile = storage.get_profile(session, user_id)

    product_data = None
    if barcode:
        try:
            product_data, source = lookup_product(session, barcode, max_age_days=product_cache_days)
            logger.debug("Barcode resolved", barcode=barcode, source=source, found=product_data is not None)
        except SourceError as e:
            logger.warning("Barcode lookup failed, continuing without it", barcode=barcode, error=str(e))

    names = parse_ingredients(request["ingredients_list"])
    records = lookup.lookup(names)
    result = score_ingredients(records, profile)
    recommendations = asdict(result)
    del recommendations["score"]

    analysis = storage.record_analysis(
        session,
        user_id=user_id,
        product_name=product_name,
        ingredients_list=request["ingredients_list"],
        epiq_score=result.score,
        recommendations=recommendations,
        product_id=storage.find_catalog_product_id(session, barcode),
        brand=request.get("brand"),
        category=request.get("category"),
        product_price=request.get("product_price"),
    )
    logger.info("Analysis complete", product=product_name, epiq_score=result.score, analysis_id=analysis.id)

    return {
        "analysis_id": analysis.id,
        "status": "scored",
        "epiq_score": result.score,
        "recommendations": recommendations,
        "ingredient_data": [r.to_dict() for r in records],
        "product_data": product_data,
    }


def compare_for_user(
    session: Session,
    user_id: str,
    analysis_id: int,
    tier: Optional[str] = "free",
    min_overlap: int = DEFAULT_MIN_OVERLAP,
) -> Dict[str, Any]:
    """Find dupes for one of a user's analyses among their other analyses.

    Raises LookupError when the analysis is not one of the user's.
    """
    products = storage.list_user_products(session, user_id)
    source = next((p for p in products if p.id == analysis_id), None)
    if source is None:
        raise LookupError(f"Analysis {analysis_id} not found for user {user_id}")

    ranked = find_dupes(source, products, min_overlap=min_overlap)
    shown, hidden = visible_dupes(ranked, tier)
    logger.info("Dupe search complete", analysis_id=analysis_id, found=len(ranked), shown=len(shown))
    return {
        "source": source,
        "matches": shown,
        "total_found": len(ranked),
        "hidden_count": hidden,
    }
