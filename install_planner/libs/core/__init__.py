"""
Core Libraries

Shared functionality and utilities for the Install Planner.
"""

from .config import ConfigManager, load_environment_defaults
from .exceptions import (
    InstallPlannerError,
    DecodeError,
    MetadataError,
    AnnotationConstructionError,
    PermissionProjectionError,
    OptionalManifestParseError,
    ConfigurationError,
    BundleFormatError
)
from .utils import setup_logging, canonical_json, hash_object

__all__ = [
    'ConfigManager',
    'load_environment_defaults',
    'InstallPlannerError',
    'DecodeError',
    'MetadataError',
    'AnnotationConstructionError',
    'PermissionProjectionError',
    'OptionalManifestParseError',
    'ConfigurationError',
    'BundleFormatError',
    'setup_logging',
    'canonical_json',
    'hash_object'
]
