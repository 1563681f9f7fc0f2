"""
Ingredient category classification (English and Spanish).

Categories are resolved by an ordered rule table: the first pattern that
matches the normalised ingredient name wins.  More specific rules (e.g.
"leche de coco", "pan rallado") are listed before the generic ones they would
otherwise collide with.
"""

import logging
import re
import unicodedata

logger = logging.getLogger(__name__)

# Valid canonical categories (store sections)
VALID_CATEGORIES: frozenset[str] = frozenset({
    "produce", "meat", "seafood", "dairy", "bakery", "pantry",
    "spices", "beverages", "cleaning", "other",
})


def _words(*keywords: str) -> re.Pattern:
    """Compile keywords into a whole-word pattern that also accepts plurals."""
    alternatives = "|".join(re.escape(k) for k in keywords)
    return re.compile(rf"\b(?:{alternatives})(?:s|es)?\b")


# Ordered (pattern, category).  Names are matched without diacritics.
CATEGORY_RULES: tuple[tuple[re.Pattern, str], ...] = (
    # Specific multi-word items first
    (_words("leche de coco", "coconut milk", "leche condensada", "condensed milk"), "pantry"),
    (_words("pan rallado", "breadcrumbs", "bread crumbs"), "pantry"),
    (_words("crema de leche", "dulce de leche"), "dairy"),
    (_words("caldo", "stock", "broth", "bouillon"), "pantry"),
    (_words("pimienta", "black pepper", "pimenton", "paprika", "comino", "cumin", "oregano",
            "canela", "cinnamon", "nuez moscada", "nutmeg", "curry", "aji molido", "laurel",
            "bay leaf", "sal", "salt"), "spices"),

    # Seafood must precede meat ("filet de merluza")
    (_words("pescado", "fish", "merluza", "salmon", "atun", "tuna", "camaron", "shrimp",
            "langostino", "calamar", "squid", "mejillon", "mussel"), "seafood"),
    (_words("carne", "beef", "pollo", "chicken", "cerdo", "pork", "milanesa", "asado",
            "bife", "molida", "ground beef", "chorizo", "sausage", "bacon", "panceta",
            "jamon", "ham", "pavo", "turkey", "cordero", "lamb", "steak"), "meat"),
    (_words("leche", "milk", "queso", "cheese", "yogur", "yogurt", "manteca", "butter",
            "crema", "cream", "huevo", "egg"), "dairy"),
    (_words("pan", "bread", "facturas", "medialuna", "galletita", "cracker", "tortilla",
            "baguette", "bun"), "bakery"),
    (_words("tomate", "tomato", "cebolla", "onion", "ajo", "garlic", "papa", "potato",
            "zanahoria", "carrot", "lechuga", "lettuce", "perejil", "parsley", "limon",
            "lemon", "pimiento", "bell pepper", "zapallo", "pumpkin", "squash", "manzana",
            "apple", "banana", "naranja", "orange", "espinaca", "spinach", "zucchini",
            "zapallito", "brocoli", "broccoli", "champinon", "mushroom", "palta", "avocado",
            "albahaca", "basil", "choclo", "corn", "apio", "celery", "pepino", "cucumber"),
     "produce"),
    (_words("arroz", "rice", "fideo", "pasta", "noodle", "spaghetti", "aceite", "oil",
            "azucar", "sugar", "harina", "flour", "lenteja", "lentil", "garbanzo",
            "chickpea", "poroto", "bean", "avena", "oat", "vinagre", "vinegar", "lata",
            "conserva", "canned", "pure de tomate", "salsa", "sauce", "mayonesa",
            "mayonnaise", "mostaza", "mustard", "miel", "honey"), "pantry"),
    (_words("yerba", "cafe", "coffee", "te", "tea", "jugo", "juice", "agua", "water",
            "vino", "wine", "cerveza", "beer", "gaseosa", "soda"), "beverages"),
    (_words("detergente", "detergent", "lavandina", "bleach", "jabon", "soap",
            "esponja", "sponge"), "cleaning"),
)

# Aliases -> canonical category (Spanish store sections and variant names)
CATEGORY_ALIASES: dict[str, str] = {
    "verduleria": "produce",
    "verduras": "produce",
    "frutas": "produce",
    "vegetables": "produce",
    "fruits": "produce",
    "fruit": "produce",
    "carniceria": "meat",
    "carnes": "meat",
    "proteins": "meat",
    "pescaderia": "seafood",
    "fish": "seafood",
    "lacteos": "dairy",
    "eggs": "dairy",
    "cheese": "dairy",
    "panaderia": "bakery",
    "bread": "bakery",
    "grains": "pantry",
    "almacen": "pantry",
    "condiments": "pantry",
    "canned goods": "pantry",
    "especias": "spices",
    "condimentos": "spices",
    "spice": "spices",
    "seasonings": "spices",
    "bebidas": "beverages",
    "drinks": "beverages",
    "limpieza": "cleaning",
    "otros": "other",
    "varios": "other",
    "snacks": "other",
}


def fold_accents(text: str) -> str:
    """Strip diacritics and lowercase (jalapeño -> jalapeno, Limón -> limon)."""
    nfkd = unicodedata.normalize("NFKD", text.strip())
    return "".join(c for c in nfkd if not unicodedata.combining(c)).lower()


def infer_category(name: str) -> str:
    """Return the category of the first matching rule, or 'other'."""
    if not name:
        return "other"
    folded = fold_accents(name)
    for pattern, category in CATEGORY_RULES:
        if pattern.search(folded):
            return category
    return "other"


def canonicalise_category(raw: str | None) -> str | None:
    """Return the canonical category for *raw*, or None when it is blank.

    Logs a warning when *raw* is not a recognised category or alias so
    that unexpected values surface in application logs.
    """
    if not raw or not raw.strip():
        return None
    normalised = fold_accents(raw)
    if normalised in VALID_CATEGORIES:
        return normalised
    if normalised in CATEGORY_ALIASES:
        return CATEGORY_ALIASES[normalised]
    logger.warning("Unknown ingredient category %r, mapping to 'other'", raw)
    return "other"


def resolve_category(name: str, raw_category: str | None = None) -> str:
    """Explicit category when usable, otherwise inferred from the name."""
    category = canonicalise_category(raw_category)
    if category is None or category == "other":
        return infer_category(name)
    return category
