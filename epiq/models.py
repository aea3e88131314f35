"""
Plain data records passed between the lookup, scoring and matching layers.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from .normalize import normalize_text

SKIN_TYPES = ("oily", "dry", "combination", "normal", "sensitive")


@dataclass(frozen=True)
class IngredientRecord:
    name: str
    external_id: Optional[str] = None
    molecular_weight: Optional[float] = None
    found: bool = False
    source: str = "api"  # cache, api or error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "pubchem_cid": self.external_id,
            "molecular_weight": self.molecular_weight,
            "found": self.found,
            "source": self.source,
        }


@dataclass(frozen=True)
class SkinProfile:
    skin_type: Optional[str] = None
    concerns: FrozenSet[str] = frozenset()

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["SkinProfile"]:
        """Build a profile from loosely shaped input.

        Returns None when there is no profile at all, or when the stored value
        is not a mapping. Malformed fields are treated as absent rather than
        rejected.
        """
        if not isinstance(data, dict):
            return None

        skin_type = data.get("skin_type")
        if isinstance(skin_type, str):
            skin_type = normalize_text(skin_type)
        if skin_type not in SKIN_TYPES:
            skin_type = None

        raw_concerns = data.get("skin_concerns", data.get("concerns"))
        if not isinstance(raw_concerns, (list, tuple, set, frozenset)):
            raw_concerns = ()
        concerns = frozenset(
            normalize_text(c) for c in raw_concerns if isinstance(c, str) and c.strip()
        )
        return cls(skin_type=skin_type, concerns=concerns)


@dataclass
class ScoreResult:
    score: int
    safe_ingredients: List[str] = field(default_factory=list)
    concern_ingredients: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    summary: str = ""
    routine_suggestions: List[str] = field(default_factory=list)
    beneficial_matches: List[str] = field(default_factory=list)
    personalized: bool = False


@dataclass(frozen=True)
class Product:
    id: Optional[Any]
    name: str
    brand: Optional[str] = None
    ingredients_raw: str = ""
    price: Optional[float] = None
    score: Optional[float] = None
    category: Optional[str] = None


@dataclass
class DupeMatch:
    candidate: Product
    overlap_percent: int
    shared_ingredients: List[str] = field(default_factory=list)
    price_delta: Optional[float] = None
    reasons: List[str] = field(default_factory=list)
