import argparse
import json
from pathlib import Path

from . import __version__
from .analysis import analyze_product, compare_for_user
from .cleanup import purge_stale_product_cache
from .database import init_database, get_session
from .env import Settings, load_env
from .logger import get_logger
from .lookup import IngredientLookup, lookup_product
from .normalize import parse_ingredients
from .review import submit_validation
from .schema import validate_product_submission, validate_profile
from .sources.common import SourceError
from .sources.extractor import ExtractionError, extract_label, image_to_data_url
from .sources.open_beauty_facts import product_summary
from . import storage


def _open_session(args: argparse.Namespace):
    db_path = Path(args.db)
    init_database(db_path)
    return get_session(db_path)


def _read_ingredients(args: argparse.Namespace) -> str:
    if getattr(args, "ingredients_file", None):
        path = Path(args.ingredients_file)
        if not path.exists():
            raise SystemExit(f"Ingredients file not found: {path}")
        return path.read_text(encoding="utf-8")
    if getattr(args, "ingredients", None):
        return args.ingredients
    raise SystemExit("Provide --ingredients or --ingredients-file")


def cmd_analyze(args: argparse.Namespace) -> None:
    settings: Settings = args.settings
    session = _open_session(args)
    try:
        request = {
            "product_name": args.name,
            "ingredients_list": _read_ingredients(args),
            "user_id": args.user,
            "barcode": args.barcode,
            "brand": args.brand,
            "category": args.category,
            "product_price": args.price,
        }
        lookup = IngredientLookup(session, delay_seconds=settings.pubchem_delay_seconds)
        outcome = analyze_product(session, request, lookup, product_cache_days=settings.product_cache_days)
    finally:
        session.close()

    if outcome["status"] == "validation_error":
        print("Invalid:")
        for e in outcome["errors"]:
            print(f" - {e}")
        raise SystemExit(2)

    rec = outcome["recommendations"]
    print(f"Analysis: {outcome['analysis_id']}")
    print(f"EpiQ score: {outcome['epiq_score']}")
    print(rec["summary"])
    if rec["beneficial_matches"]:
        print("Beneficial:")
        for b in rec["beneficial_matches"]:
            print(f"  + {b}")
    if rec["warnings"]:
        print("Warnings:")
        for w in rec["warnings"]:
            print(f"  ! {w}")
    if rec["concern_ingredients"]:
        print(f"Unverified ingredients: {', '.join(rec['concern_ingredients'])}")
    print("Routine:")
    for s in rec["routine_suggestions"]:
        print(f"  - {s}")


def cmd_lookup(args: argparse.Namespace) -> None:
    settings: Settings = args.settings
    session = _open_session(args)
    try:
        lookup = IngredientLookup(session, delay_seconds=settings.pubchem_delay_seconds)
        records = lookup.lookup(parse_ingredients(_read_ingredients(args)))
    finally:
        session.close()
    get_logger().log_metrics_summary()
    print(json.dumps([r.to_dict() for r in records], indent=2))


def cmd_product(args: argparse.Namespace) -> None:
    settings: Settings = args.settings
    session = _open_session(args)
    try:
        product, source = lookup_product(session, args.barcode, max_age_days=settings.product_cache_days)
    except SourceError as e:
        raise SystemExit(str(e))
    finally:
        session.close()
    if product is None:
        print(f"Product not found in Open Beauty Facts: {args.barcode}")
        return
    print(f"Source: {source}")
    print(json.dumps(product_summary(product), indent=2, ensure_ascii=False))


def cmd_extract(args: argparse.Namespace) -> None:
    image = args.image
    path = Path(image)
    if path.exists():
        image = image_to_data_url(path)
    try:
        label = extract_label(image, args.settings)
    except ExtractionError as e:
        raise SystemExit(str(e))
    print(json.dumps(label, indent=2, ensure_ascii=False))


def cmd_profile(args: argparse.Namespace) -> None:
    concerns = [c.strip() for c in args.concerns.split(",") if c.strip()] if args.concerns else []
    errors = validate_profile({"skin_type": args.skin_type, "skin_concerns": concerns})
    if errors:
        raise SystemExit("; ".join(errors))
    session = _open_session(args)
    try:
        profile = storage.upsert_profile(session, args.user, args.skin_type, concerns)
    finally:
        session.close()
    print(f"Profile saved: skin_type={profile.skin_type} concerns={sorted(profile.concerns)}")


def cmd_save_product(args: argparse.Namespace) -> None:
    ingredients = parse_ingredients(_read_ingredients(args))
    payload = {"product_name": args.name, "user_id": args.user, "ingredients": ingredients}
    errors = validate_product_submission(payload)
    if errors:
        raise SystemExit("; ".join(errors))
    session = _open_session(args)
    try:
        outcome = storage.save_product(
            session,
            product_name=args.name,
            ingredients=ingredients,
            user_id=args.user,
            barcode=args.barcode,
            brand=args.brand,
            category=args.category,
            analysis_id=args.analysis_id,
        )
    finally:
        session.close()
    status = "new" if outcome["is_new"] else "verified"
    print(f"[{status}] product={outcome['product_id']} verifications={outcome['verification_count']}")


def cmd_dupes(args: argparse.Namespace) -> None:
    session = _open_session(args)
    try:
        result = compare_for_user(
            session, args.user, args.analysis_id, tier=args.tier, min_overlap=args.min_overlap
        )
    except LookupError as e:
        raise SystemExit(str(e))
    finally:
        session.close()

    source = result["source"]
    print(f"Dupes for: {source.name}" + (f" ({source.brand})" if source.brand else ""))
    if not result["matches"]:
        print("No dupes found.")
        return
    for m in result["matches"]:
        c = m.candidate
        print(f"{m.overlap_percent:>3}%  {c.name}" + (f" ({c.brand})" if c.brand else ""))
        print(f"      shared: {', '.join(m.shared_ingredients)}")
        for r in m.reasons:
            print(f"      - {r}")
    if result["hidden_count"]:
        print(f"+{result['hidden_count']} more dupes found (upgrade to see them)")


def cmd_review(args: argparse.Namespace) -> None:
    sources = [s.strip() for s in args.sources.split(",") if s.strip()] if args.sources else []
    session = _open_session(args)
    try:
        saved = submit_validation(
            session,
            analysis_id=args.analysis_id,
            ingredient_name=args.ingredient,
            validator_id=args.validator,
            institution=args.institution,
            pubchem_data_correct=args.pubchem_correct == "yes",
            ai_explanation_accurate=args.ai_accurate == "yes",
            pubchem_cid=args.cid,
            corrected_role=args.role,
            corrected_safety_level=args.safety,
            correction_notes=args.notes,
            reference_sources=sources,
        )
    except ValueError as e:
        raise SystemExit(str(e))
    finally:
        session.close()
    print(f"Validation {saved['id']}: {saved['validation_status']}")


def cmd_list(args: argparse.Namespace) -> None:
    db_path = Path(args.db)
    if not db_path.exists():
        print(f"Database not found: {db_path}")
        return
    session = get_session(db_path)
    try:
        products = storage.list_user_products(session, args.user)
    finally:
        session.close()
    if not products:
        print("No analyses for this user.")
        return
    print(f"Found {len(products)} analyses:\n")
    for p in products:
        print(f"ID: {p.id}")
        print(f"  Product: {p.name}")
        print(f"  Brand: {p.brand}")
        print(f"  EpiQ score: {p.score}")
        print(f"  Price: {p.price}")
        print()


def cmd_cleanup(args: argparse.Namespace) -> None:
    days = args.days or args.settings.product_cache_days
    before, after = purge_stale_product_cache(Path(args.db), days=days)
    print(f"Product cache: {before - after} removed, {after} remaining")


def main():
    load_env()
    settings = Settings.from_env()
    get_logger().set_level(settings.log_level)
    default_db = str(settings.db_path)

    parser = argparse.ArgumentParser(prog="epiq", description="EpiQ skincare ingredient analysis")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")

    def add_db(p):
        p.add_argument("--db", default=default_db, help=f"Path to SQLite database (default: {default_db})")

    def add_ingredients(p):
        p.add_argument("--ingredients", help="Ingredient list, comma/semicolon/newline separated")
        p.add_argument("--ingredients-file", help="Text file holding the ingredient list")

    ana = subparsers.add_parser("analyze", help="Score a product for a user and store the analysis")
    ana.add_argument("--name", required=True, help="Product name")
    ana.add_argument("--user", required=True, help="User id")
    add_ingredients(ana)
    ana.add_argument("--barcode", help="Product barcode (resolved through Open Beauty Facts)")
    ana.add_argument("--brand", help="Brand name")
    ana.add_argument("--category", help="Product category")
    ana.add_argument("--price", type=float, help="Product price")
    add_db(ana)
    ana.set_defaults(func=cmd_analyze)

    lkp = subparsers.add_parser("lookup", help="Look ingredients up in the cache and PubChem")
    add_ingredients(lkp)
    add_db(lkp)
    lkp.set_defaults(func=cmd_lookup)

    prd = subparsers.add_parser("product", help="Fetch a product by barcode from Open Beauty Facts")
    prd.add_argument("--barcode", required=True, help="Product barcode")
    add_db(prd)
    prd.set_defaults(func=cmd_product)

    ext = subparsers.add_parser("extract", help="Extract a label's ingredients from a photo via the AI gateway")
    ext.add_argument("--image", required=True, help="Image URL or local file path")
    ext.set_defaults(func=cmd_extract)

    prf = subparsers.add_parser("profile", help="Set a user's skin profile")
    prf.add_argument("--user", required=True, help="User id")
    prf.add_argument("--skin-type", help="oily, dry, combination, normal or sensitive")
    prf.add_argument("--concerns", help="Comma-separated concerns (e.g. acne,aging)")
    add_db(prf)
    prf.set_defaults(func=cmd_profile)

    sav = subparsers.add_parser("save-product", help="Add a product to the catalog or verify an existing one")
    sav.add_argument("--name", required=True, help="Product name")
    sav.add_argument("--user", required=True, help="Contributing user id")
    add_ingredients(sav)
    sav.add_argument("--barcode", help="Product barcode")
    sav.add_argument("--brand", help="Brand name")
    sav.add_argument("--category", help="Product category")
    sav.add_argument("--analysis-id", type=int, help="Analysis to link to the product")
    add_db(sav)
    sav.set_defaults(func=cmd_save_product)

    dup = subparsers.add_parser("dupes", help="Find dupes for one of a user's analyses")
    dup.add_argument("--user", required=True, help="User id")
    dup.add_argument("--analysis-id", required=True, type=int, help="Source analysis id")
    dup.add_argument("--tier", default="free", choices=["free", "premium", "pro"], help="Subscription tier (default: free)")
    dup.add_argument("--min-overlap", type=int, default=30, help="Minimum ingredient overlap percent (default: 30)")
    add_db(dup)
    dup.set_defaults(func=cmd_dupes)

    rev = subparsers.add_parser("review", help="Record a reviewer validation of an ingredient")
    rev.add_argument("--analysis-id", required=True, type=int, help="Analysis id")
    rev.add_argument("--ingredient", required=True, help="Ingredient name")
    rev.add_argument("--validator", required=True, help="Reviewer user id")
    rev.add_argument("--institution", help="Reviewer institution")
    rev.add_argument("--pubchem-correct", required=True, choices=["yes", "no"], help="Is the PubChem data correct?")
    rev.add_argument("--ai-accurate", required=True, choices=["yes", "no"], help="Is the AI explanation accurate?")
    rev.add_argument("--cid", help="Verified PubChem CID")
    rev.add_argument("--role", help="Corrected ingredient role")
    rev.add_argument("--safety", help="Corrected safety level (safe, caution, avoid)")
    rev.add_argument("--notes", help="Correction notes")
    rev.add_argument("--sources", help="Comma-separated reference sources")
    add_db(rev)
    rev.set_defaults(func=cmd_review)

    lst = subparsers.add_parser("list", help="List a user's analyses")
    lst.add_argument("--user", required=True, help="User id")
    add_db(lst)
    lst.set_defaults(func=cmd_list)

    cln = subparsers.add_parser("cleanup", help="Remove expired product cache entries")
    cln.add_argument("--days", type=int, help="Keep entries newer than this many days (default: PRODUCT_CACHE_DAYS)")
    add_db(cln)
    cln.set_defaults(func=cmd_cleanup)

    args = parser.parse_args()
    args.settings = settings

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
