from typing import Any, Dict, List

from .models import SKIN_TYPES

ANALYSIS_REQUIRED_FIELDS = ["product_name", "ingredients_list", "user_id"]
ANALYSIS_OPTIONAL_STR_FIELDS = ["barcode", "brand", "category"]

PRODUCT_REQUIRED_FIELDS = ["product_name", "user_id"]

INGREDIENT_ROLES = [
    "humectant",
    "emollient",
    "surfactant",
    "preservative",
    "antioxidant",
    "fragrance",
    "colorant",
    "emulsifier",
    "thickener",
    "pH adjuster",
    "solvent",
    "active ingredient",
    "other",
]

SAFETY_LEVELS = ["safe", "caution", "avoid"]

REFERENCE_SOURCES = [
    "PubChem",
    "CIR (Cosmetic Ingredient Review)",
    "EWG Skin Deep",
    "Paula's Choice Dictionary",
    "Academic Textbook",
    "Peer-Reviewed Paper",
    "Other",
]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _check_required(data: Dict[str, Any], fields: List[str], errors: List[str]) -> None:
    for f in fields:
        if f not in data or data[f] is None:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def validate_analysis_request(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    errors: List[str] = []
    _check_required(data, ANALYSIS_REQUIRED_FIELDS, errors)

    for f in ANALYSIS_OPTIONAL_STR_FIELDS:
        if data.get(f) is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")

    price = data.get("product_price")
    if price is not None and (not _is_number(price) or price < 0):
        errors.append("Field 'product_price' must be a non-negative number")

    return errors


def validate_product_submission(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    _check_required(data, PRODUCT_REQUIRED_FIELDS, errors)

    ingredients = data.get("ingredients")
    if not isinstance(ingredients, list):
        errors.append("Field 'ingredients' must be an array")
    else:
        for i, item in enumerate(ingredients):
            name = item.get("name") if isinstance(item, dict) else item
            if not _is_non_empty_str(name):
                errors.append(f"ingredients[{i}] must be a name or an object with a name")
    return errors


def validate_profile(data: Dict[str, Any]) -> List[str]:
    """Strict check for profile input coming from a user.

    Scoring itself tolerates malformed profiles; this is for writes.
    """
    errors: List[str] = []
    skin_type = data.get("skin_type")
    if skin_type is not None and skin_type not in SKIN_TYPES:
        errors.append(f"Unknown skin type: {skin_type!r} (allowed: {', '.join(SKIN_TYPES)})")
    concerns = data.get("skin_concerns", [])
    if not isinstance(concerns, list) or not all(_is_non_empty_str(c) for c in concerns):
        errors.append("Field 'skin_concerns' must be a list of non-empty strings")
    return errors


def validate_review(data: Dict[str, Any]) -> List[str]:
    """Check a reviewer's ingredient validation before it is stored."""
    errors: List[str] = []

    if not isinstance(data.get("analysis_id"), int) or isinstance(data.get("analysis_id"), bool):
        errors.append("Field 'analysis_id' must be an integer")
    _check_required(data, ["ingredient_name", "validator_id"], errors)

    for f in ("pubchem_data_correct", "ai_explanation_accurate"):
        if not isinstance(data.get(f), bool):
            errors.append(f"Field '{f}' must be answered (true or false)")

    role = data.get("corrected_role")
    if role and role not in INGREDIENT_ROLES:
        errors.append(f"Unknown ingredient role: {role!r}")

    level = data.get("corrected_safety_level")
    if level and level not in SAFETY_LEVELS:
        errors.append(f"Unknown safety level: {level!r}")

    sources = data.get("reference_sources") or []
    if not isinstance(sources, list):
        errors.append("Field 'reference_sources' must be a list")
    else:
        unknown = [s for s in sources if s not in REFERENCE_SOURCES]
        if unknown:
            errors.append(f"Unknown reference sources: {unknown}")

    return errors
