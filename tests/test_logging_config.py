import logging

from mealplan.logging_config import configure_logging


def test_configure_logging_sets_level_and_single_handler():
    root = logging.getLogger()
    saved_level, saved_handlers = root.level, list(root.handlers)
    try:
        configure_logging("debug")
        configure_logging("debug")

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger("openai").level == logging.WARNING
    finally:
        root.setLevel(saved_level)
        root.handlers = saved_handlers
