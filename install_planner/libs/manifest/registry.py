"""
Type Registry

Immutable mapping from resource kind to its group and version. The registry is
built once and handed to the decoder; nothing mutates it afterwards, so one
instance can be shared by any number of threads.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, NamedTuple, Optional

from ..core.constants import KubernetesConstants, OLMConstants, ErrorMessages
from ..core.exceptions import MetadataError


class GroupVersionKind(NamedTuple):
    """Group, version and kind identifying a resource type"""
    group: str
    version: str
    kind: str

    @property
    def api_version(self) -> str:
        """Return the apiVersion string ('v1' for the core group)"""
        return f"{self.group}/{self.version}" if self.group else self.version

    @classmethod
    def from_api_version(cls, api_version: str, kind: str) -> 'GroupVersionKind':
        """
        Split an apiVersion string into group and version

        Raises:
            MetadataError: If api_version has more than one '/'
        """
        if not api_version:
            return cls('', '', kind)
        if api_version.count('/') > 1 or api_version.startswith('/') or api_version.endswith('/'):
            raise MetadataError(ErrorMessages.DecodeError.INVALID_API_VERSION.format(api_version=api_version))
        if '/' not in api_version:
            return cls('', api_version, kind)
        group, version = api_version.split('/')
        return cls(group, version, kind)


_DEFAULT_TYPES = (
    # Core
    (KubernetesConstants.CORE_API_GROUP, KubernetesConstants.V1, (
        'ConfigMap', 'Secret', 'Service', 'ServiceAccount', 'Pod', 'Namespace',
        'PersistentVolumeClaim', 'Endpoints', 'LimitRange', 'ResourceQuota'
    )),
    (KubernetesConstants.APPS_API_GROUP, KubernetesConstants.V1, (
        'Deployment', 'StatefulSet', 'DaemonSet', 'ReplicaSet'
    )),
    (KubernetesConstants.RBAC_API_GROUP, KubernetesConstants.V1, tuple(
        str(kind) for kind in KubernetesConstants.RBACKind if kind != KubernetesConstants.RBACKind.SERVICE_ACCOUNT
    )),
    (KubernetesConstants.APIEXTENSIONS_API_GROUP, KubernetesConstants.V1, ('CustomResourceDefinition',)),
    (KubernetesConstants.ADMISSION_API_GROUP, KubernetesConstants.V1, (
        'MutatingWebhookConfiguration', 'ValidatingWebhookConfiguration'
    )),
    (KubernetesConstants.SCHEDULING_API_GROUP, KubernetesConstants.V1, ('PriorityClass',)),
    (KubernetesConstants.POLICY_API_GROUP, KubernetesConstants.V1, ('PodDisruptionBudget',)),
    (KubernetesConstants.NETWORKING_API_GROUP, KubernetesConstants.V1, ('NetworkPolicy',)),
    (KubernetesConstants.MONITORING_API_GROUP, KubernetesConstants.V1, ('ServiceMonitor', 'PrometheusRule')),
    (OLMConstants.OPERATORS_API_GROUP, OLMConstants.OPERATORS_API_VERSION, (
        str(OLMConstants.ManifestKind.CLUSTER_SERVICE_VERSION),
        str(OLMConstants.ManifestKind.SUBSCRIPTION),
        'InstallPlan',
        'CatalogSource'
    )),
)


@dataclass(frozen=True)
class TypeRegistry:
    """Read-only registry of known resource types keyed by kind"""

    kinds: Mapping[str, GroupVersionKind] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_types(cls, types: Iterable[GroupVersionKind]) -> 'TypeRegistry':
        """Build a registry from GroupVersionKind entries; later entries win"""
        return cls(kinds=MappingProxyType({gvk.kind: gvk for gvk in types}))

    @classmethod
    def default(cls) -> 'TypeRegistry':
        """Build the registry of kinds commonly shipped in operator bundles"""
        return cls.from_types(
            GroupVersionKind(group, version, kind)
            for group, version, kinds in _DEFAULT_TYPES
            for kind in kinds
        )

    def with_kinds(self, types: Iterable[GroupVersionKind]) -> 'TypeRegistry':
        """Return a new registry extended with types; this one is unchanged"""
        return TypeRegistry.from_types(list(self.kinds.values()) + list(types))

    def lookup(self, kind: str) -> Optional[GroupVersionKind]:
        """Return the registered GroupVersionKind for kind, if any"""
        return self.kinds.get(kind)

    def __contains__(self, kind: str) -> bool:
        return kind in self.kinds

    def __len__(self) -> int:
        return len(self.kinds)
