import os
import sys


# Check if we're running in a test environment
def _is_testing():
    """Check if code is running under pytest."""
    return "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ


# OpenAI API key (only needed for AI week-plan generation)
# Get your API key at: https://platform.openai.com/api-keys
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "test-key" if _is_testing() else None)
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Read-only snapshots served by the JSON surface
RECIPES_FILE = os.environ.get("RECIPES_FILE", "data/recipes.json")
PANTRY_FILE = os.environ.get("PANTRY_FILE", "data/pantry.json")

# Grid layout: one slot per (day, meal type)
MEAL_TYPES = ["breakfast", "lunch", "snack", "dinner"]

# Spanish meal names used by the plan producer and older saved plans
MEAL_TYPE_ALIASES: dict[str, str] = {
    "desayuno": "breakfast",
    "almuerzo": "lunch",
    "merienda": "snack",
    "snacks": "snack",
    "cena": "dinner",
}

SUPPORTED_RANGE_DAYS = (7, 14, 28)
DEFAULT_RANGE_DAYS = 7

# Used when a recipe arrives without a usable base servings count
DEFAULT_RECIPE_SERVINGS = 4
DEFAULT_UNIT = "u"

# Minimum availability percentage for the "can cook now" bucket
CAN_COOK_THRESHOLD = 80
