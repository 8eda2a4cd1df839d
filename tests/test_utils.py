"""
Tests for core utilities
"""

import logging

import pytest

from install_planner.libs.core.utils import PACKAGE_LOGGER, canonical_json, hash_object, setup_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER)
    yield logger
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


class TestSetupLogging:
    """Test console logging configuration"""

    def test_levels(self, package_logger):
        assert setup_logging(debug=True) is package_logger
        assert package_logger.level == logging.DEBUG

        setup_logging()
        assert package_logger.level == logging.INFO

    def test_repeated_calls_keep_one_handler(self, package_logger):
        setup_logging()
        setup_logging(debug=True)

        assert len(package_logger.handlers) == 1

    def test_root_logger_untouched(self, package_logger):
        """Test that library loggers keep their own configuration"""
        # Arrange
        root = logging.getLogger()
        handlers = list(root.handlers)
        level = root.level

        # Act
        setup_logging(debug=True)

        # Assert
        assert root.handlers == handlers
        assert root.level == level
        assert package_logger.propagate is True


class TestHashing:
    """Test canonical serialization and hashing"""

    def test_canonical_json_sorts_keys(self):
        assert canonical_json({"b": 1, "a": ["é"]}) == '{"a":["é"],"b":1}'

    def test_hash_ignores_key_order(self):
        assert hash_object({"a": 1, "b": 2}) == hash_object({"b": 2, "a": 1})
        assert hash_object({"a": 1}) != hash_object({"a": 2})
