"""
RBAC Projector

Derives the ServiceAccounts, Roles, RoleBindings, ClusterRoles and
ClusterRoleBindings an operator needs from the permissions declared in the
install strategy of its ClusterServiceVersion.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from kubernetes import client

from ..core.constants import KubernetesConstants, OLMConstants, ErrorMessages
from ..core.exceptions import PermissionProjectionError
from ..core.utils import hash_object
from ..manifest import ManifestDecoder, Resource
from .models import PermissionSet, StepResource
from .resources import new_step_resource_from_object

logger = logging.getLogger(__name__)

RBAC_API_VERSION = f"{KubernetesConstants.RBAC_API_GROUP}/{KubernetesConstants.V1}"
CSV_API_VERSION = f"{OLMConstants.OPERATORS_API_GROUP}/{OLMConstants.OPERATORS_API_VERSION}"

_RULE_LIST_FIELDS = ('apiGroups', 'resources', 'verbs', 'resourceNames', 'nonResourceURLs')


@dataclass
class OperatorPermissions:
    """Concrete RBAC objects derived for one service account"""
    service_account: client.V1ServiceAccount
    roles: List[client.V1Role] = field(default_factory=list)
    role_bindings: List[client.V1RoleBinding] = field(default_factory=list)
    cluster_roles: List[client.V1ClusterRole] = field(default_factory=list)
    cluster_role_bindings: List[client.V1ClusterRoleBinding] = field(default_factory=list)

    @property
    def uses_default_service_account(self) -> bool:
        return self.service_account.metadata.name == KubernetesConstants.DEFAULT_SERVICE_ACCOUNT

    def objects(self) -> List[Any]:
        """
        All objects to create, in apply order

        The ServiceAccount comes first unless it is the namespace's default
        account, which always exists already.
        """
        objects = [] if self.uses_default_service_account else [self.service_account]
        return objects + self.roles + self.role_bindings + self.cluster_roles + self.cluster_role_bindings


def generate_name(base: str, obj: Any) -> str:
    """
    Generate a deterministic resource name from base and a hash of obj

    base is truncated so the result never exceeds the Kubernetes name limit.
    """
    suffix = hash_object(obj)
    max_base = KubernetesConstants.MAX_NAME_LENGTH - len(suffix) - 1
    if len(base) > max_base:
        base = base[:max_base]
    return f"{base}-{suffix}"


class RBACProjector:
    """Projects CSV permission requirements into RBAC step resources"""

    def __init__(self, decoder: Optional[ManifestDecoder] = None, api_client: Optional[client.ApiClient] = None):
        """
        Initialize projector

        Args:
            decoder: Decoder used to wrap generated objects (defaults to ManifestDecoder())
            api_client: Kubernetes client used only to serialize model objects
        """
        self.decoder = decoder or ManifestDecoder()
        self.api_client = api_client or client.ApiClient()

    def permission_sets(self, csv: Resource) -> List[PermissionSet]:
        """
        Read the permission requirements declared by a CSV

        Entries are grouped by service account in order of first declaration,
        scanning ``permissions`` before ``clusterPermissions``.

        Args:
            csv: Decoded ClusterServiceVersion

        Returns:
            List of PermissionSets

        Raises:
            PermissionProjectionError: If the install strategy or an entry is malformed
        """
        strategy_spec = self._deployment_strategy_spec(csv)

        permission_sets: Dict[str, PermissionSet] = {}
        for section, cluster_scoped in ((OLMConstants.CSVSection.PERMISSIONS, False),
                                        (OLMConstants.CSVSection.CLUSTER_PERMISSIONS, True)):
            entries = strategy_spec.get(section.value) or []
            if not isinstance(entries, list):
                raise PermissionProjectionError(
                    ErrorMessages.RBACError.INVALID_PERMISSIONS.format(section=section.value, csv_name=csv.name)
                )

            for index, entry in enumerate(entries):
                service_account_name, rules = self._parse_entry(entry, section.value, index, csv.name)
                permission_set = permission_sets.setdefault(
                    service_account_name, PermissionSet(service_account_name=service_account_name)
                )
                if cluster_scoped:
                    permission_set.cluster_rule_groups.append(rules)
                else:
                    permission_set.namespace_rule_groups.append(rules)

        return list(permission_sets.values())

    def rbac_for_cluster_service_version(self, csv: Resource) -> List[OperatorPermissions]:
        """
        Build the RBAC objects required by a CSV

        Args:
            csv: Decoded ClusterServiceVersion; its namespace is where namespaced objects go

        Returns:
            One OperatorPermissions per service account, in declaration order

        Raises:
            PermissionProjectionError: If the declared permissions are malformed
        """
        namespace = csv.namespace or None
        labels = {
            OLMConstants.OWNER_LABEL: csv.name,
            OLMConstants.OWNER_NAMESPACE_LABEL: csv.namespace,
            OLMConstants.OWNER_KIND_LABEL: OLMConstants.ManifestKind.CLUSTER_SERVICE_VERSION.value,
        }

        operator_permissions = []
        for permission_set in self.permission_sets(csv):
            sa_name = permission_set.service_account_name
            permissions = OperatorPermissions(service_account=client.V1ServiceAccount(
                api_version=KubernetesConstants.V1,
                kind=KubernetesConstants.RBACKind.SERVICE_ACCOUNT.value,
                metadata=client.V1ObjectMeta(
                    name=sa_name,
                    namespace=namespace,
                    owner_references=[self._non_blocking_owner(csv)]
                )
            ))
            subjects = [client.RbacV1Subject(
                kind=KubernetesConstants.RBACKind.SERVICE_ACCOUNT.value,
                name=sa_name,
                namespace=namespace
            )]

            for rules in permission_set.namespace_rule_groups:
                name = generate_name(csv.name, {'serviceAccountName': sa_name, 'rules': rules})
                permissions.roles.append(client.V1Role(
                    api_version=RBAC_API_VERSION,
                    kind=KubernetesConstants.RBACKind.ROLE.value,
                    metadata=client.V1ObjectMeta(
                        name=name,
                        namespace=namespace,
                        labels=dict(labels),
                        owner_references=[self._non_blocking_owner(csv)]
                    ),
                    rules=[self._policy_rule(rule) for rule in rules]
                ))
                permissions.role_bindings.append(client.V1RoleBinding(
                    api_version=RBAC_API_VERSION,
                    kind=KubernetesConstants.RBACKind.ROLE_BINDING.value,
                    metadata=client.V1ObjectMeta(
                        name=name,
                        namespace=namespace,
                        labels=dict(labels),
                        owner_references=[self._non_blocking_owner(csv)]
                    ),
                    role_ref=client.V1RoleRef(
                        api_group=KubernetesConstants.RBAC_API_GROUP,
                        kind=KubernetesConstants.RBACKind.ROLE.value,
                        name=name
                    ),
                    subjects=list(subjects)
                ))

            for rules in permission_set.cluster_rule_groups:
                name = generate_name(csv.name, {'serviceAccountName': sa_name, 'rules': rules})
                permissions.cluster_roles.append(client.V1ClusterRole(
                    api_version=RBAC_API_VERSION,
                    kind=KubernetesConstants.RBACKind.CLUSTER_ROLE.value,
                    metadata=client.V1ObjectMeta(name=name, labels=dict(labels)),
                    rules=[self._policy_rule(rule) for rule in rules]
                ))
                permissions.cluster_role_bindings.append(client.V1ClusterRoleBinding(
                    api_version=RBAC_API_VERSION,
                    kind=KubernetesConstants.RBACKind.CLUSTER_ROLE_BINDING.value,
                    metadata=client.V1ObjectMeta(name=name, labels=dict(labels)),
                    role_ref=client.V1RoleRef(
                        api_group=KubernetesConstants.RBAC_API_GROUP,
                        kind=KubernetesConstants.RBACKind.CLUSTER_ROLE.value,
                        name=name
                    ),
                    subjects=list(subjects)
                ))

            operator_permissions.append(permissions)

        return operator_permissions

    def project_rbac(self, csv: Resource, catalog_source_name: str,
                     catalog_source_namespace: str) -> List[StepResource]:
        """
        Build the step resources satisfying the RBAC requirements of a CSV

        Args:
            csv: Decoded ClusterServiceVersion
            catalog_source_name: Catalog the operator is installed from
            catalog_source_namespace: Namespace of that catalog

        Returns:
            StepResources ordered per service account: ServiceAccount, Roles,
            RoleBindings, ClusterRoles, ClusterRoleBindings

        Raises:
            PermissionProjectionError: If the declared permissions are malformed
        """
        steps = []
        for permissions in self.rbac_for_cluster_service_version(csv):
            for obj in permissions.objects():
                resource = self.decoder.from_object(self.api_client.sanitize_for_serialization(obj))
                steps.append(new_step_resource_from_object(
                    resource, catalog_source_name, catalog_source_namespace
                ))

        logger.debug(f"Projected {len(steps)} RBAC resource(s) for CSV {csv.name}")
        return steps

    def _deployment_strategy_spec(self, csv: Resource) -> Dict[str, Any]:
        """Return the deployment install strategy spec of a CSV"""
        install = csv.spec.get(OLMConstants.CSVSection.INSTALL.value)
        strategy = install.get(OLMConstants.CSVSection.STRATEGY.value) if isinstance(install, dict) else None
        if strategy != OLMConstants.DEPLOYMENT_INSTALL_STRATEGY:
            raise PermissionProjectionError(
                ErrorMessages.RBACError.UNSUPPORTED_STRATEGY.format(csv_name=csv.name)
            )

        strategy_spec = install.get(OLMConstants.CSVSection.STRATEGY_SPEC.value)
        if strategy_spec is None:
            return {}
        if not isinstance(strategy_spec, dict):
            raise PermissionProjectionError(
                ErrorMessages.RBACError.INVALID_STRATEGY_SPEC.format(csv_name=csv.name)
            )
        return strategy_spec

    def _parse_entry(self, entry: Any, section: str, index: int, csv_name: str):
        """Validate one permissions entry and return (service account name, rules)"""
        def invalid(reason: str) -> PermissionProjectionError:
            return PermissionProjectionError(ErrorMessages.RBACError.INVALID_ENTRY.format(
                section=section, index=index, csv_name=csv_name, reason=reason
            ))

        if not isinstance(entry, dict):
            raise invalid("entry must be a mapping")

        service_account_name = entry.get('serviceAccountName')
        if not isinstance(service_account_name, str) or not service_account_name:
            raise invalid("serviceAccountName must be a non-empty string")

        rules = entry.get('rules') or []
        if not isinstance(rules, list):
            raise invalid("rules must be a list")

        for rule_index, rule in enumerate(rules):
            if not isinstance(rule, dict):
                raise invalid(f"rules[{rule_index}] must be a mapping")
            for field_name in _RULE_LIST_FIELDS:
                values = rule.get(field_name)
                if values is not None and (not isinstance(values, list)
                                           or not all(isinstance(v, str) for v in values)):
                    raise invalid(f"rules[{rule_index}].{field_name} must be a list of strings")

        return service_account_name, rules

    @staticmethod
    def _policy_rule(rule: Dict[str, Any]) -> client.V1PolicyRule:
        return client.V1PolicyRule(
            api_groups=rule.get('apiGroups'),
            resources=rule.get('resources'),
            verbs=rule.get('verbs') or [],
            resource_names=rule.get('resourceNames'),
            non_resource_ur_ls=rule.get('nonResourceURLs')
        )

    @staticmethod
    def _non_blocking_owner(csv: Resource) -> client.V1OwnerReference:
        """Owner reference to the CSV that neither blocks deletion nor claims control"""
        return client.V1OwnerReference(
            api_version=CSV_API_VERSION,
            kind=OLMConstants.ManifestKind.CLUSTER_SERVICE_VERSION.value,
            name=csv.name,
            uid=csv.metadata.get('uid') or '',
            block_owner_deletion=False,
            controller=False
        )
