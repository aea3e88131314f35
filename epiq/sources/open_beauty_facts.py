from typing import Any, Dict, Optional
import re

from bs4 import BeautifulSoup

from .common import fetch_json

OBF_BASE = "https://world.openbeautyfacts.org"

INGREDIENT_TEXT_FIELDS = (
    "ingredients_text_en",
    "ingredients_text",
    "ingredients_text_with_allergens_en",
    "ingredients_text_with_allergens",
)


def product_url(barcode: str) -> str:
    return f"{OBF_BASE}/api/v0/product/{barcode}.json"


def fetch_product(barcode: str) -> Optional[Dict[str, Any]]:
    """Fetch a product by barcode. Returns None when OBF does not list it.

    Raises SourceError when Open Beauty Facts cannot be reached.
    """
    data = fetch_json(product_url(barcode), source="open_beauty_facts")
    if not data or data.get("status") != 1 or not data.get("product"):
        return None
    return data["product"]


def ingredients_text(product: Dict[str, Any]) -> str:
    """Plain ingredient text from an OBF product.

    The *_with_allergens fields wrap allergens in <span> markup, so every
    field goes through the HTML parser before use.
    """
    for f in INGREDIENT_TEXT_FIELDS:
        raw = product.get(f)
        if isinstance(raw, str) and raw.strip():
            text = BeautifulSoup(raw, "html.parser").get_text(" ", strip=True)
            text = re.sub(r"\s+([,;])", r"\1", text)
            return re.sub(r"\s+", " ", text).strip()
    return ""


def product_summary(product: Dict[str, Any]) -> Dict[str, Any]:
    """Name, brand and category fields the analysis layer cares about."""
    brands = product.get("brands") or ""
    categories = product.get("categories") or ""
    return {
        "product_name": (product.get("product_name") or "").strip() or None,
        "brand": brands.split(",")[0].strip() or None,
        "category": categories.split(",")[-1].strip() or None,
        "ingredients_list": ingredients_text(product),
    }
