"""
Data Models Module.

Typed data structures for bundles and the install steps projected from them.
Bundles are read-only inputs; steps are built fresh for every projection.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from ..core.exceptions import BundleFormatError


class StepStatus(str, Enum):
    """
    Status of an install plan step.

    Steps are always created as UNKNOWN; every other state is set by the
    applier that materializes the step on a cluster.
    """
    UNKNOWN = "Unknown"
    NOT_PRESENT = "NotPresent"
    PRESENT = "Present"
    CREATED = "Created"
    WAITING_FOR_API = "WaitingForAPI"
    UNSUPPORTED = "Unsupported"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Property:
    """Declared bundle property; value is JSON text"""
    type: str
    value: str


@dataclass(frozen=True)
class Bundle:
    """
    Operator bundle as served by a catalog.

    Attributes:
        csv_json: The ClusterServiceVersion (primary manifest) as JSON text
        objects: Raw manifests of the bundle, the CSV included, in bundle order
        properties: Declared properties in declaration order
        csv_name: Name of the operator being installed
    """
    csv_json: str
    objects: Tuple[str, ...] = ()
    properties: Tuple[Property, ...] = ()
    csv_name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Bundle':
        """
        Create a Bundle from the registry wire format.

        Expects the keys ``csvJson``, ``object``, ``properties`` and ``csvName``.
        The CSV, manifests and property values may also be given inline as
        mappings; they are re-encoded as JSON text.

        Raises:
            BundleFormatError: If required fields are missing or mistyped
        """
        if not isinstance(data, dict):
            raise BundleFormatError("Bundle must be a mapping")

        csv_json = data.get('csvJson')
        if isinstance(csv_json, dict):
            csv_json = json.dumps(csv_json, default=str, ensure_ascii=False)
        if not isinstance(csv_json, str) or not csv_json:
            raise BundleFormatError("Bundle field 'csvJson' must be a non-empty string or mapping")

        objects = data.get('object') or []
        if not isinstance(objects, list):
            raise BundleFormatError("Bundle field 'object' must be a list of manifests")
        objects = [json.dumps(o, default=str, ensure_ascii=False) if isinstance(o, dict) else o for o in objects]
        if not all(isinstance(o, str) for o in objects):
            raise BundleFormatError("Bundle field 'object' must be a list of manifest strings or mappings")

        properties = []
        for index, prop in enumerate(data.get('properties') or []):
            if not isinstance(prop, dict) or not isinstance(prop.get('type'), str):
                raise BundleFormatError(f"Bundle property {index} must be a mapping with a 'type'")
            value = prop.get('value', '')
            if not isinstance(value, str):
                value = json.dumps(value, default=str, ensure_ascii=False)
            properties.append(Property(type=prop['type'], value=value))

        return cls(
            csv_json=csv_json,
            objects=tuple(objects),
            properties=tuple(properties),
            csv_name=str(data.get('csvName') or '')
        )


@dataclass(frozen=True)
class StepResource:
    """Serialized resource carried by a Step"""
    name: str
    kind: str
    group: str
    version: str
    manifest: str
    catalog_source: str
    catalog_source_namespace: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the install plan wire format."""
        return {
            'name': self.name,
            'kind': self.kind,
            'group': self.group,
            'version': self.version,
            'manifest': self.manifest,
            'sourceName': self.catalog_source,
            'sourceNamespace': self.catalog_source_namespace
        }


@dataclass
class Step:
    """One unit of an install plan"""
    resolving: str
    resource: StepResource
    optional: bool = False
    status: StepStatus = StepStatus.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the install plan wire format."""
        return {
            'resolving': self.resolving,
            'resource': self.resource.to_dict(),
            'optional': self.optional,
            'status': self.status.value
        }


class ManifestKey(NamedTuple):
    """
    Identity of a manifest for optional-manifest matching.

    namespace is the empty string for cluster-scoped resources. Equality is
    exact over all four fields.
    """
    group: str
    kind: str
    namespace: str
    name: str

    @classmethod
    def for_step(cls, resource: StepResource, namespace: Optional[str]) -> 'ManifestKey':
        """Build the key of a step resource living in namespace"""
        return cls(group=resource.group, kind=resource.kind, namespace=namespace or '', name=resource.name)

    def __str__(self) -> str:
        return f"{{{self.group} {self.kind} {self.namespace} {self.name}}}"


@dataclass
class PermissionSet:
    """
    Permission requirements of one operator service account.

    Each rule group corresponds to one permissions / clusterPermissions entry
    of the CSV install strategy and becomes one Role or ClusterRole.
    """
    service_account_name: str
    namespace_rule_groups: List[List[Dict[str, Any]]] = field(default_factory=list)
    cluster_rule_groups: List[List[Dict[str, Any]]] = field(default_factory=list)


@dataclass(frozen=True)
class CatalogKey:
    """Name and namespace of a catalog source"""
    name: str
    namespace: str


@dataclass(frozen=True)
class OperatorSourceInfo:
    """Where an operator comes from: package, channel and catalog"""
    package: str
    channel: str
    catalog: CatalogKey
    starting_csv: str = ""
