"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for caches, products, analyses and reviewer
validations.
"""

from datetime import datetime
from pathlib import Path
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class IngredientCache(Base):
    """PubChem lookups. Entries never expire."""

    __tablename__ = "ingredient_cache"

    ingredient_name = Column(String, primary_key=True)  # trimmed, lowercase
    pubchem_cid = Column(String, nullable=True)
    molecular_weight = Column(Float, nullable=True)
    properties_json = Column(JSON, nullable=True)
    cached_at = Column(DateTime, nullable=False, default=datetime.now)


class ProductCache(Base):
    """Open Beauty Facts products by barcode. Read with a TTL."""

    __tablename__ = "product_cache"

    barcode = Column(String, primary_key=True)
    obf_data_json = Column(JSON, nullable=False)
    cached_at = Column(DateTime, nullable=False, default=datetime.now)


class Profile(Base):
    """User skin profile."""

    __tablename__ = "profiles"

    user_id = Column(String, primary_key=True)
    skin_type = Column(String, nullable=True)
    skin_concerns = Column(JSON, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class Product(Base):
    """Community product catalog."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_name = Column(String, nullable=False)
    barcode = Column(String, nullable=True, unique=True)
    brand = Column(String, nullable=True)
    category = Column(String, nullable=True)
    contributed_by_user_id = Column(String, nullable=True)
    verification_count = Column(Integer, nullable=False, default=1)
    last_verified_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class ProductIngredient(Base):
    """Ordered ingredient rows for a catalog product."""

    __tablename__ = "product_ingredients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    ingredient_name = Column(String, nullable=False)
    ingredient_order = Column(Integer, nullable=False)
    pubchem_cid = Column(String, nullable=True)


class Analysis(Base):
    """A scored product analysis run by a user."""

    __tablename__ = "analyses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    product_name = Column(String, nullable=False)
    brand = Column(String, nullable=True)
    category = Column(String, nullable=True)
    product_price = Column(Float, nullable=True)
    ingredients_list = Column(Text, nullable=False)
    epiq_score = Column(Integer, nullable=False)
    recommendations_json = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class IngredientValidation(Base):
    """Reviewer verdict on one ingredient of one analysis."""

    __tablename__ = "ingredient_validations"
    __table_args__ = (
        UniqueConstraint("analysis_id", "ingredient_name", "validator_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    analysis_id = Column(Integer, ForeignKey("analyses.id"), nullable=False)
    ingredient_name = Column(String, nullable=False)
    validator_id = Column(String, nullable=False)
    validator_institution = Column(String, nullable=True)
    pubchem_data_correct = Column(Boolean, nullable=False)
    pubchem_cid_verified = Column(String, nullable=True)
    molecular_weight_correct = Column(Boolean, nullable=False)
    ai_explanation_accurate = Column(Boolean, nullable=False)
    ai_role_classification_correct = Column(Boolean, nullable=False)
    corrected_role = Column(String, nullable=True)
    corrected_safety_level = Column(String, nullable=True)
    correction_notes = Column(Text, nullable=True)
    reference_sources = Column(JSON, nullable=False, default=list)
    validation_status = Column(String, nullable=False)  # validated, needs_correction
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    engine = create_engine(f"sqlite:///{db_path}")
    Session = sessionmaker(bind=engine)
    return Session()
