import logging
from typing import Any

from flask import Flask, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from mealplan import config
from mealplan.availability import RecipeAvailability, can_cook_now, rank_recipes
from mealplan.dates import map_slots_to_grid, normalize_meal_type, parse_date, validate_range_days
from mealplan.logging_config import configure_logging
from mealplan.models import (
    MealSlot,
    PantryItem,
    PantryLoadError,
    Recipe,
    RecipeLoadError,
    RequiredIngredient,
    WeekPlan,
    load_pantry,
    load_recipes,
)
from mealplan.pantry import check_plan_against_pantry
from mealplan.plan_generator import PlanGenerator
from mealplan.planner import assign_recipe, generate_and_apply, initialize_week, toggle_lock, week_summary
from mealplan.shopping_list import build_shopping_list, format_quantity

configure_logging(config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = Flask(__name__)
limiter = Limiter(
    get_remote_address,
    app=app,
    default_limits=[],          # no global limit; apply per-route only
    storage_uri="memory://",
)


class InvalidPlanRequest(Exception):
    """Request body can't be turned into a week plan."""
    pass


@app.errorhandler(InvalidPlanRequest)
def handle_bad_request(e):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(RecipeLoadError)
@app.errorhandler(PantryLoadError)
def handle_load_error(e):
    logger.error("Failed to load snapshot: %s", e)
    return jsonify({"error": str(e)}), 500


def _load_catalog() -> list[Recipe]:
    return load_recipes(config.RECIPES_FILE)


def _request_json() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidPlanRequest("Invalid JSON")
    return data


def _pantry_from(data: dict[str, Any]) -> list[PantryItem]:
    """Pantry snapshot from the request body, falling back to the pantry file."""
    items = data.get("pantry")
    if items is None:
        return load_pantry(config.PANTRY_FILE)
    if not isinstance(items, list):
        raise InvalidPlanRequest("pantry must be a list")
    return [PantryItem.from_dict(i) for i in items if isinstance(i, dict)]


def _string_list(data: dict[str, Any], field: str) -> list[str] | None:
    """Optional list-of-strings field from the request body."""
    value = data.get(field)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidPlanRequest(f"{field} must be a list of strings")
    return value


def _plan_from(data: dict[str, Any], catalog: list[Recipe]) -> WeekPlan:
    """Build a WeekPlan from ``{"plan": {anchor, range_days, slots}}``.

    The plan starts as an empty grid for the anchor's week; listed slots are
    filled in from the catalog by recipe id.  Unknown ids and slots outside
    the grid are ignored.
    """
    raw = data.get("plan")
    if not isinstance(raw, dict):
        raise InvalidPlanRequest("Missing required field: plan")

    anchor = parse_date(raw.get("anchor") or "")
    if anchor is None:
        raise InvalidPlanRequest("plan.anchor must be a YYYY-MM-DD date")

    try:
        range_days = validate_range_days(int(raw.get("range_days", config.DEFAULT_RANGE_DAYS)))
    except (TypeError, ValueError) as e:
        raise InvalidPlanRequest(str(e))

    recipes_by_id = {r.id: r for r in catalog}
    plan = initialize_week(anchor, range_days)
    for s in raw.get("slots") or []:
        if not isinstance(s, dict):
            continue
        day = s.get("date")
        meal_type = normalize_meal_type(s.get("meal_type") or s.get("mealType"))
        if not isinstance(day, str) or meal_type is None:
            continue

        recipe = recipes_by_id.get(str(s.get("recipe_id") or s.get("recipeId")))
        if recipe is not None:
            servings = s.get("servings")
            if not isinstance(servings, (int, float)) or isinstance(servings, bool) or servings <= 0:
                servings = None
            plan = assign_recipe(plan, day, meal_type, recipe, servings)
        if s.get("locked"):
            plan = toggle_lock(plan, day, meal_type)

    return plan


def _serialize_slot(slot: MealSlot | None) -> dict[str, Any] | None:
    if slot is None:
        return None
    return {
        "date": slot.date,
        "meal_type": slot.meal_type,
        "recipe_id": slot.recipe.id if slot.recipe else None,
        "recipe_name": slot.recipe.name if slot.recipe else None,
        "servings": slot.actual_servings,
        "locked": slot.locked,
    }


def _serialize_plan(plan: WeekPlan) -> dict[str, Any]:
    return {
        "anchor": plan.anchor.isoformat(),
        "range_days": plan.range_days,
        "slots": [_serialize_slot(s) for s in plan.slots],
    }


def _serialize_requirement(req: RequiredIngredient) -> dict[str, Any]:
    return {
        "name": req.name,
        "quantity": round(req.quantity, 2),
        "unit": req.unit,
        "category": req.category,
    }


def _serialize_availability(a: RecipeAvailability) -> dict[str, Any]:
    return {
        "recipe_id": a.recipe.id,
        "recipe_name": a.recipe.name,
        "matched": a.matched,
        "total": a.total,
        "percentage": a.percentage,
        "missing": a.missing_names,
    }


@app.route("/api/plan/grid", methods=["POST"])
def plan_grid():
    """Week plan laid out by day index and meal type, plus its summary."""
    plan = _plan_from(_request_json(), _load_catalog())
    grid = map_slots_to_grid(plan.slots, plan.anchor, plan.range_days)
    summary = week_summary(plan)

    return jsonify({
        "anchor": plan.anchor.isoformat(),
        "range_days": plan.range_days,
        "days": [
            {
                "index": index,
                "meals": {meal_type: _serialize_slot(slot) for meal_type, slot in meals.items()},
            }
            for index, meals in grid.items()
        ],
        "summary": {
            "total_meals": summary.total_meals,
            "unique_recipes": summary.unique_recipes,
            "total_servings": summary.total_servings,
            "completion_percentage": summary.completion_percentage,
        },
    })


@app.route("/api/plan/requirements", methods=["POST"])
def plan_requirements():
    """Required, available and missing ingredients for the plan."""
    data = _request_json()
    plan = _plan_from(data, _load_catalog())
    validation = check_plan_against_pantry(plan, _pantry_from(data))

    return jsonify({
        "required": [_serialize_requirement(r) for r in validation.required],
        "available": [_serialize_requirement(r) for r in validation.available],
        "missing": [_serialize_requirement(r) for r in validation.missing],
    })


@app.route("/api/plan/shopping-list", methods=["POST"])
def plan_shopping_list():
    data = _request_json()
    plan = _plan_from(data, _load_catalog())
    shopping_list = build_shopping_list(plan, _pantry_from(data))

    def _item(entry):
        return {
            "item": entry.name,
            "quantity": round(entry.quantity, 2),
            "unit": entry.unit,
            "category": entry.category,
            "display": format_quantity(entry.quantity, entry.unit),
        }

    return jsonify({
        "items": [_item(e) for e in shopping_list.items],
        "items_by_category": {
            category: [_item(e) for e in entries]
            for category, entries in shopping_list.items_by_category.items()
        },
    })


@app.route("/api/recipes/availability", methods=["GET"])
def recipes_availability():
    """Catalog ranked by pantry availability, with the can-cook-now bucket."""
    try:
        threshold = int(request.args.get("threshold", config.CAN_COOK_THRESHOLD))
    except ValueError:
        return jsonify({"error": "threshold must be an integer"}), 400

    catalog = _load_catalog()
    pantry = load_pantry(config.PANTRY_FILE)

    return jsonify({
        "recipes": [_serialize_availability(a) for a in rank_recipes(catalog, pantry)],
        "can_cook_now": [_serialize_availability(a) for a in can_cook_now(catalog, pantry, threshold)],
        "pantry_item_count": len(pantry),
    })


@app.route("/api/plan/generate", methods=["POST"])
@limiter.limit("5 per minute")
def generate_plan():
    """Fill the plan with an AI-generated week.

    The whole request fails (502) without touching the plan when the
    producer fails; individual unusable meals are only counted as skipped.
    """
    data = _request_json()
    catalog = _load_catalog()
    plan = _plan_from(data, catalog)
    excluded_dates = _string_list(data, "excluded_dates") or []
    allowed_meal_types = _string_list(data, "allowed_meal_types")

    # Built inside the producer: a missing API key is a generation error
    result = generate_and_apply(
        plan,
        lambda: PlanGenerator().generate(
            catalog,
            plan.anchor,
            plan.range_days,
            meal_types=allowed_meal_types,
            servings=data.get("servings"),
        ),
        catalog,
        excluded_dates=excluded_dates,
        allowed_meal_types=allowed_meal_types,
    )

    body = {
        "plan": _serialize_plan(result.plan),
        "applied": result.applied,
        "skipped": result.skipped,
        "error": result.error,
    }
    if not result.ok:
        return jsonify(body), 502
    return jsonify(body)


@app.route("/health")
def health():
    return jsonify({"status": "ok"})


if __name__ == "__main__":
    app.run(debug=False, port=5000)
