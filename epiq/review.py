"""
Reviewer validation of looked-up ingredient data.

Reviewers confirm or correct the PubChem data and the AI explanation shown
for an ingredient in an analysis. One validation is kept per analysis,
ingredient and reviewer; resubmitting replaces it.
"""

from typing import Any, Dict, Optional, Sequence

from sqlalchemy.orm import Session

from . import storage
from .logger import get_logger
from .schema import validate_review

logger = get_logger()

VALIDATED = "validated"
NEEDS_CORRECTION = "needs_correction"


def validation_status(pubchem_correct: bool, ai_accurate: bool) -> str:
    if pubchem_correct and ai_accurate:
        return VALIDATED
    return NEEDS_CORRECTION


def build_validation(
    analysis_id: int,
    ingredient_name: str,
    validator_id: str,
    pubchem_data_correct: Optional[bool],
    ai_explanation_accurate: Optional[bool],
    institution: Optional[str] = None,
    pubchem_cid: Optional[str] = None,
    corrected_role: Optional[str] = None,
    corrected_safety_level: Optional[str] = None,
    correction_notes: Optional[str] = None,
    reference_sources: Sequence[str] = (),
) -> Dict[str, Any]:
    """Assemble the stored validation row. Raises ValueError on invalid input."""
    data = {
        "analysis_id": analysis_id,
        "ingredient_name": ingredient_name,
        "validator_id": validator_id,
        "validator_institution": institution or None,
        "pubchem_data_correct": pubchem_data_correct,
        "pubchem_cid_verified": pubchem_cid or None,
        "molecular_weight_correct": pubchem_data_correct,
        "ai_explanation_accurate": ai_explanation_accurate,
        "corrected_role": corrected_role or None,
        "corrected_safety_level": corrected_safety_level or None,
        "correction_notes": correction_notes or None,
        "reference_sources": list(reference_sources),
    }
    errors = validate_review(data)
    if errors:
        raise ValueError("Invalid validation: " + " | ".join(errors))

    data["ai_role_classification_correct"] = ai_explanation_accurate and not corrected_role
    data["validation_status"] = validation_status(pubchem_data_correct, ai_explanation_accurate)
    return data


def submit_validation(session: Session, **kwargs) -> Dict[str, Any]:
    """Validate and upsert a reviewer verdict. Returns the stored fields."""
    data = build_validation(**kwargs)
    row = storage.upsert_validation(session, data)
    logger.info(
        "Ingredient validation saved",
        analysis_id=row.analysis_id,
        ingredient=row.ingredient_name,
        status=row.validation_status,
    )
    return {"id": row.id, **data}
