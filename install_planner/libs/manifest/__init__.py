"""
Manifest Libraries

Decoding of raw Kubernetes manifests against a read-only type registry.
"""

from .registry import GroupVersionKind, TypeRegistry
from .decoder import ManifestDecoder, ManifestLoader, Resource

__all__ = [
    'GroupVersionKind',
    'TypeRegistry',
    'ManifestDecoder',
    'ManifestLoader',
    'Resource'
]
