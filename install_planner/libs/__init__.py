"""
Install Planner Library

Turns operator bundles into ordered install plan steps.
"""

__version__ = "1.0.0"
__author__ = "OLMv1 Project"

# Core libraries
from .core import ConfigManager
from .core.exceptions import InstallPlannerError, DecodeError, ConfigurationError

# Manifest libraries
from .manifest import ManifestDecoder, TypeRegistry

# Bundle libraries
from .bundle import Bundle, StepAssembler, RBACProjector, create_step_assembler

# Main application
from .main_app import InstallPlanner, main

__all__ = [
    # Core
    'ConfigManager',
    'InstallPlannerError',
    'DecodeError',
    'ConfigurationError',
    # Manifest
    'ManifestDecoder',
    'TypeRegistry',
    # Bundle
    'Bundle',
    'StepAssembler',
    'RBACProjector',
    'create_step_assembler',
    # Main
    'InstallPlanner',
    'main'
]
