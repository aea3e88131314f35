"""
Repository functions over the SQLAlchemy models.

Every function takes an open session. Each write commits its own
transaction.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models
from .database import (
    Analysis,
    IngredientCache,
    IngredientValidation,
    Product,
    ProductCache,
    ProductIngredient,
    Profile,
)
from .normalize import lookup_key


# Ingredient cache

def get_cached_ingredient(session: Session, name: str) -> Optional[IngredientCache]:
    return session.get(IngredientCache, lookup_key(name))


def cache_ingredient(session: Session, name: str, compound: Dict[str, Any]) -> IngredientCache:
    """Store a PubChem hit. Re-caching a name overwrites the previous row."""
    row = session.get(IngredientCache, lookup_key(name))
    if row is None:
        row = IngredientCache(ingredient_name=lookup_key(name))
        session.add(row)
    row.pubchem_cid = compound.get("cid")
    row.molecular_weight = compound.get("molecular_weight")
    row.properties_json = {"compound": compound.get("compound")}
    row.cached_at = datetime.now()
    session.commit()
    return row


# Product cache

def get_cached_product(session: Session, barcode: str, max_age_days: int = 30) -> Optional[Dict[str, Any]]:
    """Cached OBF product for a barcode, or None when missing or older than the TTL."""
    cutoff = datetime.now() - timedelta(days=max_age_days)
    row = (
        session.query(ProductCache)
        .filter(ProductCache.barcode == barcode, ProductCache.cached_at >= cutoff)
        .first()
    )
    return row.obf_data_json if row else None


def upsert_product_cache(session: Session, barcode: str, product: Dict[str, Any]) -> None:
    row = session.get(ProductCache, barcode)
    if row is None:
        row = ProductCache(barcode=barcode)
        session.add(row)
    row.obf_data_json = product
    row.cached_at = datetime.now()
    session.commit()


# Profiles

def get_profile(session: Session, user_id: str) -> Optional[models.SkinProfile]:
    row = session.get(Profile, user_id)
    if row is None:
        return None
    return models.SkinProfile.from_dict(
        {"skin_type": row.skin_type, "skin_concerns": row.skin_concerns}
    )


def upsert_profile(session: Session, user_id: str, skin_type: Optional[str], concerns: Sequence[str]) -> models.SkinProfile:
    profile = models.SkinProfile.from_dict({"skin_type": skin_type, "skin_concerns": list(concerns)})
    row = session.get(Profile, user_id)
    if row is None:
        row = Profile(user_id=user_id)
        session.add(row)
    row.skin_type = profile.skin_type
    row.skin_concerns = sorted(profile.concerns)
    session.commit()
    return profile


# Analyses

def record_analysis(
    session: Session,
    user_id: str,
    product_name: str,
    ingredients_list: str,
    epiq_score: int,
    recommendations: Dict[str, Any],
    product_id: Optional[int] = None,
    brand: Optional[str] = None,
    category: Optional[str] = None,
    product_price: Optional[float] = None,
) -> Analysis:
    row = Analysis(
        user_id=user_id,
        product_id=product_id,
        product_name=product_name,
        brand=brand,
        category=category,
        product_price=product_price,
        ingredients_list=ingredients_list,
        epiq_score=epiq_score,
        recommendations_json=recommendations,
    )
    session.add(row)
    session.commit()
    return row


def analysis_to_product(row: Analysis) -> models.Product:
    return models.Product(
        id=row.id,
        name=row.product_name,
        brand=row.brand,
        ingredients_raw=row.ingredients_list or "",
        price=row.product_price,
        score=row.epiq_score,
        category=row.category,
    )


def list_user_products(session: Session, user_id: str) -> List[models.Product]:
    """A user's analyses as match-ready products, newest first."""
    rows = (
        session.query(Analysis)
        .filter(Analysis.user_id == user_id)
        .order_by(Analysis.created_at.desc(), Analysis.id.desc())
        .all()
    )
    return [analysis_to_product(r) for r in rows]


def find_catalog_product_id(session: Session, barcode: Optional[str]) -> Optional[int]:
    if not barcode:
        return None
    row = session.query(Product.id).filter(Product.barcode == barcode).first()
    return row[0] if row else None


# Catalog products

def _find_existing_product(session: Session, product_name: str, barcode: Optional[str]) -> Optional[Product]:
    if barcode:
        existing = session.query(Product).filter(Product.barcode == barcode).first()
        if existing is not None:
            return existing
    return (
        session.query(Product)
        .filter(func.lower(Product.product_name) == product_name.strip().lower())
        .first()
    )


def save_product(
    session: Session,
    product_name: str,
    ingredients: Sequence[Union[str, Dict[str, Any]]],
    user_id: str,
    barcode: Optional[str] = None,
    brand: Optional[str] = None,
    category: Optional[str] = None,
    analysis_id: Optional[int] = None,
) -> Dict[str, Any]:
    """Add a product to the catalog, or count another verification of it.

    Matches an existing product by barcode first, then by case-insensitive
    name. Returns product_id, verification_count and is_new.
    """
    existing = _find_existing_product(session, product_name, barcode)

    if existing is not None:
        existing.verification_count = (existing.verification_count or 1) + 1
        existing.last_verified_date = datetime.now()
        product = existing
        is_new = False
    else:
        product = Product(
            product_name=product_name,
            barcode=barcode,
            brand=brand,
            category=category,
            contributed_by_user_id=user_id,
            verification_count=1,
        )
        session.add(product)
        session.flush()
        for index, ingredient in enumerate(ingredients, start=1):
            if isinstance(ingredient, dict):
                name = ingredient.get("name", "")
                cid = ingredient.get("pubchem_cid")
            else:
                name, cid = ingredient, None
            session.add(ProductIngredient(
                product_id=product.id,
                ingredient_name=name,
                ingredient_order=index,
                pubchem_cid=cid,
            ))
        is_new = True

    if analysis_id is not None:
        analysis = session.get(Analysis, analysis_id)
        if analysis is not None:
            analysis.product_id = product.id

    session.commit()
    return {
        "product_id": product.id,
        "verification_count": product.verification_count,
        "is_new": is_new,
    }


def product_ingredients(session: Session, product_id: int) -> List[str]:
    rows = (
        session.query(ProductIngredient)
        .filter(ProductIngredient.product_id == product_id)
        .order_by(ProductIngredient.ingredient_order)
        .all()
    )
    return [r.ingredient_name for r in rows]


# Reviewer validations

def upsert_validation(session: Session, data: Dict[str, Any]) -> IngredientValidation:
    """Insert or replace the validation keyed by (analysis, ingredient, validator)."""
    row = (
        session.query(IngredientValidation)
        .filter_by(
            analysis_id=data["analysis_id"],
            ingredient_name=data["ingredient_name"],
            validator_id=data["validator_id"],
        )
        .first()
    )
    if row is None:
        row = IngredientValidation()
        session.add(row)
    for key, value in data.items():
        setattr(row, key, value)
    session.commit()
    return row
