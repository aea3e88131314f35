"""
Pytest configuration and shared fixtures.
"""

from unittest.mock import Mock

import pytest
import requests

from epiq.database import init_database, get_session
from epiq.models import IngredientRecord, Product, SkinProfile


@pytest.fixture
def db_path(tmp_path):
    """Initialized temporary database file."""
    path = tmp_path / "epiq.db"
    init_database(path)
    return path


@pytest.fixture
def db_session(db_path):
    """Open session on the temporary database."""
    session = get_session(db_path)
    yield session
    session.close()


@pytest.fixture
def oily_profile() -> SkinProfile:
    return SkinProfile(skin_type="oily")


@pytest.fixture
def sensitive_acne_profile() -> SkinProfile:
    return SkinProfile(skin_type="sensitive", concerns=frozenset({"acne"}))


@pytest.fixture
def found_records():
    """Ingredients PubChem knows about."""
    return [
        IngredientRecord(name="water", external_id="962", molecular_weight=18.015, found=True),
        IngredientRecord(name="glycerin", external_id="753", molecular_weight=92.09, found=True),
        IngredientRecord(name="niacinamide", external_id="936", molecular_weight=122.12, found=True),
    ]


@pytest.fixture
def source_product() -> Product:
    return Product(
        id=1,
        name="Hydrating Serum",
        brand="Lux",
        ingredients_raw="Water, Glycerin, Niacinamide",
        price=48.0,
        score=80,
        category="serum",
    )


@pytest.fixture
def make_response():
    """Factory for fake requests responses."""
    def _make(status=200, payload=None):
        resp = Mock()
        resp.status_code = status
        if isinstance(payload, Exception):
            resp.json.side_effect = payload
        else:
            resp.json.return_value = payload
        if status >= 400:
            resp.raise_for_status.side_effect = requests.exceptions.HTTPError(response=resp)
        return resp
    return _make


@pytest.fixture
def pubchem_water() -> dict:
    """Trimmed PUG REST compound document for water."""
    return {
        "PC_Compounds": [
            {
                "id": {"id": {"cid": 962}},
                "props": [
                    {"urn": {"label": "IUPAC Name", "name": "Preferred"}, "value": {"sval": "oxidane"}},
                    {"urn": {"label": "Molecular Weight"}, "value": {"sval": "18.015"}},
                ],
            }
        ]
    }
