"""
Step Assembler

Projects an operator bundle into the ordered install plan steps that create
its resources, together with the namespace each step's resource lives in.
"""

import logging
from typing import List, Optional, Tuple

from ..core.constants import OLMConstants
from ..core.exceptions import AnnotationConstructionError
from ..manifest import ManifestDecoder, Resource, TypeRegistry
from .models import Bundle, ManifestKey, OperatorSourceInfo, Step, StepResource, StepStatus
from .optional import optional_manifest_predicate
from .properties import PROPERTIES_ANNOTATION_KEY, properties_annotation_from_property_list
from .rbac import RBACProjector
from .resources import KindClassification, classify_kind, new_step_resource_from_object

logger = logging.getLogger(__name__)

CSV_KIND = OLMConstants.ManifestKind.CLUSTER_SERVICE_VERSION.value


class StepAssembler:
    """Builds install plan steps from bundles"""

    def __init__(self, decoder: Optional[ManifestDecoder] = None, rbac_projector: Optional[RBACProjector] = None):
        """
        Initialize step assembler

        Args:
            decoder: Manifest decoder (defaults to one over TypeRegistry.default())
            rbac_projector: RBAC projector (defaults to one sharing the decoder)
        """
        self.decoder = decoder or ManifestDecoder()
        self.rbac_projector = rbac_projector or RBACProjector(decoder=self.decoder)

    def csv_from_bundle(self, bundle: Bundle) -> Resource:
        """
        Decode the ClusterServiceVersion of a bundle

        Raises:
            DecodeError: If the CSV JSON is malformed or is not a ClusterServiceVersion
        """
        return self.decoder.decode(bundle.csv_json, expected_kind=CSV_KIND)

    def project(self, bundle: Bundle, namespace: str, replaces: str, catalog_source_name: str,
                catalog_source_namespace: str) -> Tuple[List[StepResource], List[str]]:
        """
        Project a bundle into step resources and their namespaces

        Step resources do not carry the namespace of their resource, which is
        needed to identify it uniquely; the returned namespaces list shares its
        indexes with the step resources instead.

        Args:
            bundle: Bundle to install
            namespace: Namespace the operator is installed into
            replaces: Name of the CSV this one replaces, empty if none
            catalog_source_name: Catalog the bundle comes from
            catalog_source_namespace: Namespace of that catalog

        Returns:
            Tuple of (step resources, namespaces) of equal length

        Raises:
            DecodeError: If any manifest cannot be decoded
            AnnotationConstructionError: If the bundle properties cannot be serialized
            PermissionProjectionError: If the CSV declares malformed permissions
        """
        csv = self.csv_from_bundle(bundle)

        csv.namespace = namespace
        spec = csv.spec
        if replaces:
            spec[OLMConstants.CSVSection.REPLACES.value] = replaces
        else:
            spec.pop(OLMConstants.CSVSection.REPLACES.value, None)

        try:
            annotation = properties_annotation_from_property_list(bundle.properties)
        except AnnotationConstructionError as e:
            raise AnnotationConstructionError(
                f"failed to construct properties annotation for {csv.name!r}: {e}"
            ) from e

        annotations = csv.annotations
        annotations[PROPERTIES_ANNOTATION_KEY] = annotation
        csv.set_annotations(annotations)

        csv_step = new_step_resource_from_object(csv, catalog_source_name, catalog_source_namespace)

        steps: List[StepResource] = []
        namespaces: List[str] = []

        for manifest in bundle.objects:
            resource = self.decoder.decode(manifest)
            namespaces.append(resource.namespace)
            if classify_kind(resource.kind) is KindClassification.PRIMARY_MANIFEST:
                # The CSV step was built above from the enriched copy; added here to keep indexes aligned
                steps.append(csv_step)
                continue

            steps.append(new_step_resource_from_object(resource, catalog_source_name, catalog_source_namespace))

        rbac_steps = self.rbac_projector.project_rbac(csv, catalog_source_name, catalog_source_namespace)
        steps.extend(rbac_steps)
        # RBAC steps are always recorded under the catalog namespace
        namespaces.extend([catalog_source_namespace] * len(rbac_steps))

        logger.debug(f"Projected {len(steps)} step(s) for bundle {bundle.csv_name!r} "
                     f"({len(rbac_steps)} from RBAC)")
        return steps, namespaces

    def project_steps(self, bundle: Bundle, namespace: str, replaces: str, catalog_source_name: str,
                      catalog_source_namespace: str) -> List[Step]:
        """
        Project a bundle into install plan steps, in bundle order

        Arguments and errors are those of project().
        """
        step_resources, _ = self.project(bundle, namespace, replaces, catalog_source_name, catalog_source_namespace)
        return [
            Step(resolving=bundle.csv_name, resource=resource, status=StepStatus.UNKNOWN)
            for resource in step_resources
        ]

    def project_qualified(self, bundle: Bundle, namespace: str, replaces: str, catalog_source_name: str,
                          catalog_source_namespace: str) -> List[Step]:
        """
        Project a bundle into install plan steps flagged optional or required

        Optional manifests are identified by group, kind, namespace (empty when
        cluster-scoped) and name. The CSV step is always placed first; all other
        steps keep their relative order.

        Arguments and errors are those of project().
        """
        step_resources, namespaces = self.project(
            bundle, namespace, replaces, catalog_source_name, catalog_source_namespace
        )
        is_optional = optional_manifest_predicate(bundle.properties)

        csv_steps: List[Step] = []
        other_steps: List[Step] = []
        for index, resource in enumerate(step_resources):
            key = ManifestKey.for_step(resource, namespaces[index] if index < len(namespaces) else '')
            optional = is_optional(key)
            logger.debug(f"key {key} is optional: {optional}")

            step = Step(
                resolving=bundle.csv_name,
                resource=resource,
                optional=optional,
                status=StepStatus.UNKNOWN
            )
            if classify_kind(resource.kind) is KindClassification.PRIMARY_MANIFEST:
                csv_steps.append(step)
            else:
                other_steps.append(step)

        return csv_steps + other_steps

    def new_step_resource_from_object(self, resource: Resource, catalog_source_name: str,
                                      catalog_source_namespace: str) -> StepResource:
        """Create a StepResource for a decoded object"""
        return new_step_resource_from_object(resource, catalog_source_name, catalog_source_namespace)

    def new_subscription_step_resource(self, namespace: str, info: OperatorSourceInfo) -> StepResource:
        """
        Create the StepResource of a Subscription to an operator

        Args:
            namespace: Namespace of the Subscription
            info: Package, channel and catalog of the operator

        Returns:
            StepResource for a Subscription with automatic approval

        Raises:
            DecodeError: If the Subscription cannot be serialized
        """
        spec = {
            'source': info.catalog.name,
            'sourceNamespace': info.catalog.namespace,
            'name': info.package,
            'installPlanApproval': OLMConstants.APPROVAL_AUTOMATIC,
        }
        # Omitted when empty
        if info.channel:
            spec['channel'] = info.channel
        if info.starting_csv:
            spec['startingCSV'] = info.starting_csv

        subscription = {
            'apiVersion': f"{OLMConstants.OPERATORS_API_GROUP}/{OLMConstants.OPERATORS_API_VERSION}",
            'kind': OLMConstants.ManifestKind.SUBSCRIPTION.value,
            'metadata': {
                'namespace': namespace,
                'name': '-'.join([info.package, info.channel, info.catalog.name, info.catalog.namespace]),
            },
            'spec': spec,
        }
        resource = self.decoder.from_object(subscription)
        return new_step_resource_from_object(resource, info.catalog.name, info.catalog.namespace)


def create_step_assembler(registry: Optional[TypeRegistry] = None) -> StepAssembler:
    """
    Factory function to create a StepAssembler with default dependencies

    Args:
        registry: Type registry for the decoder (defaults to TypeRegistry.default())

    Returns:
        StepAssembler: Configured StepAssembler instance
    """
    return StepAssembler(decoder=ManifestDecoder(registry))
