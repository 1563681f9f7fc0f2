"""Tests for the AI week-plan producer."""

import json
from unittest.mock import Mock, patch

import pytest

from mealplan.plan_generator import PlanGenerationError, PlanGenerator
from tests.conftest import create_test_recipe


def _response(content):
    message = Mock()
    message.content = content
    choice = Mock()
    choice.message = message
    response = Mock()
    response.choices = [choice]
    return response


@pytest.fixture
def catalog():
    return [
        create_test_recipe("milanesas", "Milanesas", tags=["dinner"]),
        create_test_recipe("avena", "Avena con frutas", servings=1, tags=["breakfast"]),
    ]


@pytest.fixture
def mock_client():
    with patch("mealplan.plan_generator.OpenAI") as mock_openai:
        client = Mock()
        mock_openai.return_value = client
        yield client


class TestPlanGenerator:
    def test_returns_meal_entries(self, mock_client, catalog):
        meals = [{"date": "2024-12-30", "mealType": "dinner", "recipeRef": "milanesas", "servings": None}]
        mock_client.chat.completions.create.return_value = _response(json.dumps({"meals": meals}))

        result = PlanGenerator(api_key="test").generate(catalog, "2024-12-30")

        assert result == meals

    def test_request_lists_dates_and_catalog(self, mock_client, catalog):
        mock_client.chat.completions.create.return_value = _response('{"meals": []}')

        PlanGenerator(api_key="test", model="test-model").generate(
            catalog, "2024-12-30", 7, meal_types=["lunch", "dinner"], servings=2
        )

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["response_format"] == {"type": "json_object"}
        payload = json.loads(kwargs["messages"][1]["content"])
        assert payload["dates"][0] == "2024-12-30"
        assert payload["dates"][-1] == "2025-01-05"
        assert payload["meal_types"] == ["lunch", "dinner"]
        assert payload["servings"] == 2
        assert [r["id"] for r in payload["catalog"]] == ["milanesas", "avena"]

    def test_defaults_to_all_meal_types(self, mock_client, catalog):
        mock_client.chat.completions.create.return_value = _response('{"meals": []}')

        PlanGenerator(api_key="test").generate(catalog, "2024-12-30")

        payload = json.loads(mock_client.chat.completions.create.call_args.kwargs["messages"][1]["content"])
        assert payload["meal_types"] == ["breakfast", "lunch", "snack", "dinner"]

    def test_empty_catalog(self, mock_client):
        with pytest.raises(PlanGenerationError, match="catalog is empty"):
            PlanGenerator(api_key="test").generate([], "2024-12-30")
        mock_client.chat.completions.create.assert_not_called()

    def test_invalid_json(self, mock_client, catalog):
        mock_client.chat.completions.create.return_value = _response("not json")

        with pytest.raises(PlanGenerationError, match="parse AI response"):
            PlanGenerator(api_key="test").generate(catalog, "2024-12-30")

    def test_missing_meals_list(self, mock_client, catalog):
        mock_client.chat.completions.create.return_value = _response('{"plan": {}}')

        with pytest.raises(PlanGenerationError, match="'meals' list"):
            PlanGenerator(api_key="test").generate(catalog, "2024-12-30")

    def test_api_error_is_wrapped(self, mock_client, catalog):
        mock_client.chat.completions.create.side_effect = RuntimeError("connection reset")

        with pytest.raises(PlanGenerationError, match="connection reset"):
            PlanGenerator(api_key="test").generate(catalog, "2024-12-30")

    def test_client_is_created_without_retries(self):
        with patch("mealplan.plan_generator.OpenAI") as mock_openai:
            PlanGenerator(api_key="secret")
        mock_openai.assert_called_once_with(api_key="secret", timeout=60.0, max_retries=0)
