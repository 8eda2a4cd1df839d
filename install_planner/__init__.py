"""
Install Planner

Projects OLM operator bundles into install plan steps: the bundle's manifests,
the RBAC its ClusterServiceVersion requires, and which of them are optional.
"""

__version__ = "1.0.0"
__author__ = "OLMv1 Project"

from .libs import Bundle, StepAssembler, ManifestDecoder, TypeRegistry, InstallPlanner, main

__all__ = [
    'Bundle',
    'StepAssembler',
    'ManifestDecoder',
    'TypeRegistry',
    'InstallPlanner',
    'main'
]
