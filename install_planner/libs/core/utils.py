"""
Core Utilities

Common utility functions used across the Install Planner.
"""

import hashlib
import json
import logging
import sys
from typing import Any

# Alphabet without vowels or confusable characters, safe for resource names
SAFE_NAME_ALPHABET = "bcdfghjklmnpqrstvwxz2456789"

# Logger every module of the package logs under
PACKAGE_LOGGER = "install_planner"


def setup_logging(debug: bool = False) -> logging.Logger:
    """
    Configure console logging for the package.

    Only the package logger is configured, so the kubernetes client and other
    libraries keep their own levels. Records go to stderr; stdout carries the
    rendered install plan.

    Args:
        debug: Enable debug logging level

    Returns:
        The configured package logger
    """
    level = logging.DEBUG if debug else logging.INFO

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)

    # Calling twice must not duplicate output
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    package_logger.addHandler(console_handler)

    if debug:
        package_logger.debug("Debug mode enabled")
    return package_logger


def canonical_json(data: Any) -> str:
    """
    Serialize data to compact JSON with sorted keys.

    Identical inputs always produce byte-identical output.

    Raises:
        TypeError, ValueError: If data holds values JSON cannot represent
    """
    return json.dumps(data, sort_keys=True, separators=(',', ':'), ensure_ascii=False)


def safe_encode_string(text: str) -> str:
    """Map each character of text onto SAFE_NAME_ALPHABET."""
    return ''.join(SAFE_NAME_ALPHABET[ord(c) % len(SAFE_NAME_ALPHABET)] for c in text)


def hash_object(data: Any) -> str:
    """
    Compute a short, name-safe hash of a JSON-serializable object.

    Args:
        data: Object to hash

    Returns:
        str: Hash suitable as a Kubernetes resource name suffix
    """
    digest = hashlib.sha256(canonical_json(data).encode('utf-8')).hexdigest()
    return safe_encode_string(str(int(digest[:8], 16)))
