"""
Step Resources

Turns decoded objects into StepResources and classifies resource kinds for the
step assembler.
"""

from enum import Enum

from ..core.constants import OLMConstants
from ..manifest import Resource
from .models import StepResource


class KindClassification(Enum):
    """How the step assembler treats a resource kind"""
    PRIMARY_MANIFEST = "primary_manifest"  # The bundle's ClusterServiceVersion
    BUNDLE_SECRET = "bundle_secret"  # A Secret shipped inside the bundle
    GENERIC = "generic"


def classify_kind(kind: str) -> KindClassification:
    """Classify a resource kind"""
    if kind == OLMConstants.ManifestKind.CLUSTER_SERVICE_VERSION:
        return KindClassification.PRIMARY_MANIFEST
    if kind == OLMConstants.ManifestKind.SECRET:
        return KindClassification.BUNDLE_SECRET
    return KindClassification.GENERIC


def step_kind(kind: str) -> str:
    """
    Kind recorded on a step for a resource of the given kind

    Bundled secrets get the synthetic BundleSecret kind so the applier can tell
    them apart from pull secrets added to the install plan separately.
    """
    if classify_kind(kind) is KindClassification.BUNDLE_SECRET:
        return OLMConstants.ManifestKind.BUNDLE_SECRET.value
    return kind


def new_step_resource_from_object(resource: Resource, catalog_source_name: str,
                                  catalog_source_namespace: str) -> StepResource:
    """
    Create a StepResource for a decoded object

    Args:
        resource: Decoded object
        catalog_source_name: Catalog the object is installed from
        catalog_source_namespace: Namespace of that catalog

    Returns:
        StepResource carrying the canonical manifest of resource

    Raises:
        DecodeError: If the object cannot be serialized
    """
    return StepResource(
        name=resource.name,
        kind=step_kind(resource.kind),
        group=resource.group,
        version=resource.version,
        manifest=resource.to_manifest(),
        catalog_source=catalog_source_name,
        catalog_source_namespace=catalog_source_namespace
    )
