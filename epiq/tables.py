"""
Static ingredient classification tables.

Keys are skin types or concern tags; values are lowercase name fragments
matched by substring against ingredient names.
"""

BENEFICIAL_INGREDIENTS = {
    "oily": ("salicylic acid", "niacinamide", "zinc", "tea tree"),
    "dry": ("hyaluronic acid", "ceramide", "glycerin", "squalane", "shea butter"),
    "sensitive": ("centella", "aloe", "oat", "chamomile", "allantoin"),
    "aging": ("retinol", "vitamin c", "peptide", "niacinamide", "aha"),
    "acne": ("salicylic acid", "benzoyl peroxide", "niacinamide", "azelaic acid"),
}

PROBLEMATIC_INGREDIENTS = {
    "sensitive": ("fragrance", "alcohol denat", "essential oil", "citrus", "menthol"),
    "oily": ("coconut oil", "palm oil", "heavy oils"),
    "acne": ("coconut oil", "isopropyl myristate", "lauric acid"),
}

ROUTINE_SUGGESTIONS = {
    "sensitive": (
        "Patch test before full application",
        "Use in the evening to minimize sun sensitivity",
    ),
    "oily": (
        "Apply to clean, dry skin morning and night",
        "Follow with oil-free moisturizer if needed",
    ),
    "dry": (
        "Layer over hydrating toner for best results",
        "Seal with rich moisturizer to prevent water loss",
    ),
}

DEFAULT_ROUTINE = (
    "Use consistently for best results",
    "Follow with moisturizer and SPF in AM",
)
