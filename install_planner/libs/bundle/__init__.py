"""
Bundle Libraries

Projection of operator bundles into install plan steps, including the RBAC
derived from the ClusterServiceVersion and optional-manifest classification.
"""

from .models import (
    Bundle,
    Property,
    Step,
    StepResource,
    StepStatus,
    ManifestKey,
    PermissionSet,
    CatalogKey,
    OperatorSourceInfo
)
from .optional import (
    OptionalManifestPredicate,
    NeverOptional,
    OptionalManifestLookup,
    optional_manifest_predicate
)
from .properties import PROPERTIES_ANNOTATION_KEY, properties_annotation_from_property_list
from .rbac import RBACProjector, OperatorPermissions
from .resources import KindClassification, classify_kind, new_step_resource_from_object
from .steps import StepAssembler, create_step_assembler

__all__ = [
    # Models
    'Bundle',
    'Property',
    'Step',
    'StepResource',
    'StepStatus',
    'ManifestKey',
    'PermissionSet',
    'CatalogKey',
    'OperatorSourceInfo',
    # Optional manifests
    'OptionalManifestPredicate',
    'NeverOptional',
    'OptionalManifestLookup',
    'optional_manifest_predicate',
    # Properties annotation
    'PROPERTIES_ANNOTATION_KEY',
    'properties_annotation_from_property_list',
    # RBAC
    'RBACProjector',
    'OperatorPermissions',
    # Steps
    'KindClassification',
    'classify_kind',
    'new_step_resource_from_object',
    'StepAssembler',
    'create_step_assembler'
]
