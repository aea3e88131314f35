from typing import Any, Dict, Optional
from urllib.parse import quote

from .common import fetch_json

PUBCHEM_BASE = "https://pubchem.ncbi.nlm.nih.gov/rest/pug"
NOT_FOUND_STATUSES = (400, 404)


def compound_url(name: str) -> str:
    return f"{PUBCHEM_BASE}/compound/name/{quote(name, safe='')}/JSON"


def _molecular_weight(compound: Dict[str, Any]) -> Optional[float]:
    for prop in compound.get("props", []):
        if prop.get("urn", {}).get("label") != "Molecular Weight":
            continue
        value = prop.get("value", {})
        # Older records carry a float, newer ones a numeric string
        if "fval" in value:
            return float(value["fval"])
        if "sval" in value:
            try:
                return float(value["sval"])
            except (TypeError, ValueError):
                return None
    return None


def parse_compound(data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Extract cid and molecular weight from a PUG REST compound document."""
    if not data:
        return None
    compounds = data.get("PC_Compounds") or []
    if not compounds:
        return None
    compound = compounds[0]
    cid = compound.get("id", {}).get("id", {}).get("cid")
    return {
        "cid": str(cid) if cid is not None else None,
        "molecular_weight": _molecular_weight(compound),
        "compound": compound,
    }


def fetch_compound(name: str) -> Optional[Dict[str, Any]]:
    """Look a compound up by name. Returns None when PubChem does not know it.

    PubChem answers 400 for names it cannot parse; that is a miss, not an
    outage.

    Raises SourceError when PubChem cannot be reached.
    """
    return parse_compound(fetch_json(compound_url(name), source="pubchem", missing_statuses=NOT_FOUND_STATUSES))
