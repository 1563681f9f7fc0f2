"""
AI week-plan producer backed by OpenAI chat completions.

The model only picks recipes from the catalog it is given; it never invents
recipes.  The call is made once (no retries) and its JSON is returned as the
flat entry list that ``planner.apply_generated_plan`` ingests.
"""

import json
import logging
from datetime import date, datetime
from typing import Any

from openai import OpenAI

from mealplan import config
from mealplan.dates import grid_dates
from mealplan.models import Recipe

logger = logging.getLogger(__name__)


class PlanGenerationError(Exception):
    """Raised when the AI plan producer fails."""
    pass


_SYSTEM_PROMPT = """\
You are planning home meals for a household.

Given a list of calendar dates, the meal types to fill and a catalog of
recipes, choose one recipe for each (date, meal type) pair.

RULES:
1. Only use recipe ids that appear in the catalog.
2. Avoid repeating the same recipe on consecutive days.
3. Use the recipe tags to match meal types when possible (e.g. "breakfast").
4. "servings" is optional; include it only when asked for a specific number.

Return ONLY valid JSON in this exact format (no markdown, no extra keys):
{"meals": [{"date": "YYYY-MM-DD", "mealType": string, "recipeRef": string, "servings": number|null}]}
"""


class PlanGenerator:
    """Produces a week-shaped payload of meal assignments."""

    def __init__(self, api_key: str | None = None, model: str | None = None):
        self.client = OpenAI(api_key=api_key or config.OPENAI_API_KEY, timeout=60.0, max_retries=0)
        self.model = model or config.OPENAI_MODEL

    def _build_request(
        self,
        recipes: list[Recipe],
        dates: list[str],
        meal_types: list[str],
        servings: float | None,
    ) -> str:
        return json.dumps({
            "dates": dates,
            "meal_types": meal_types,
            "servings": servings,
            "catalog": [
                {"id": r.id, "name": r.name, "tags": list(r.tags)}
                for r in recipes
            ],
        })

    def generate(
        self,
        recipes: list[Recipe],
        anchor: date | datetime | str,
        range_days: int = config.DEFAULT_RANGE_DAYS,
        meal_types: list[str] | None = None,
        servings: float | None = None,
    ) -> list[dict[str, Any]]:
        """Ask the model for a plan covering *range_days* from *anchor*.

        Raises:
            PlanGenerationError: If the API call fails or the reply is not
                the expected JSON.
        """
        if not recipes:
            raise PlanGenerationError("Recipe catalog is empty")

        dates = grid_dates(anchor, range_days)
        meal_types = meal_types or list(config.MEAL_TYPES)
        logger.info(
            "Requesting generated plan",
            extra={"days": len(dates), "meal_types": meal_types, "catalog_size": len(recipes)},
        )

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": self._build_request(recipes, dates, meal_types, servings)},
                ],
                response_format={"type": "json_object"},
                temperature=0.7,
            )
            result = json.loads(response.choices[0].message.content)
        except json.JSONDecodeError as e:
            raise PlanGenerationError(f"Failed to parse AI response as JSON: {str(e)}") from e
        except Exception as e:
            raise PlanGenerationError(f"AI plan generation failed: {str(e)}") from e

        meals = result.get("meals") if isinstance(result, dict) else None
        if not isinstance(meals, list):
            raise PlanGenerationError("AI response does not contain a 'meals' list")

        logger.info("Generated plan received", extra={"entry_count": len(meals)})
        return meals
