"""
Constants Module

Centralized constants for the Install Planner to eliminate magic strings
and improve maintainability.
"""


class KubernetesConstants:
    """Kubernetes-related constants with enum-based structure"""

    from enum import Enum

    # Namespace and service account defaults
    DEFAULT_NAMESPACE = "default"
    DEFAULT_SERVICE_ACCOUNT = "default"

    # API Group constants
    CORE_API_GROUP = ""  # Core API group (empty string)
    APPS_API_GROUP = "apps"
    RBAC_API_GROUP = "rbac.authorization.k8s.io"
    APIEXTENSIONS_API_GROUP = "apiextensions.k8s.io"
    ADMISSION_API_GROUP = "admissionregistration.k8s.io"
    SCHEDULING_API_GROUP = "scheduling.k8s.io"
    POLICY_API_GROUP = "policy"
    NETWORKING_API_GROUP = "networking.k8s.io"
    MONITORING_API_GROUP = "monitoring.coreos.com"

    # Versions
    V1 = "v1"

    # Resource names longer than this are rejected by the API server
    MAX_NAME_LENGTH = 63

    class RBACKind(str, Enum):
        """Kinds of the access-control resources derived from an install strategy"""
        SERVICE_ACCOUNT = "ServiceAccount"
        ROLE = "Role"
        ROLE_BINDING = "RoleBinding"
        CLUSTER_ROLE = "ClusterRole"
        CLUSTER_ROLE_BINDING = "ClusterRoleBinding"

        def __str__(self) -> str:
            """Return the kind for use in manifests"""
            return self.value


class OLMConstants:
    """OLM-related constants with enum-based structure"""

    from enum import Enum

    OPERATORS_API_GROUP = "operators.coreos.com"
    OPERATORS_API_VERSION = "v1alpha1"

    # Annotation carrying the serialized bundle properties on the CSV
    PROPERTIES_ANNOTATION_KEY = "operatorframework.io/properties"

    # Owner labels stamped on RBAC derived from a CSV
    OWNER_LABEL = "olm.owner"
    OWNER_NAMESPACE_LABEL = "olm.owner.namespace"
    OWNER_KIND_LABEL = "olm.owner.kind"

    # Install strategy
    DEPLOYMENT_INSTALL_STRATEGY = "deployment"

    # Subscription approval
    APPROVAL_AUTOMATIC = "Automatic"

    class PropertyType(str, Enum):
        """OLM property types used in bundle metadata"""
        GVK = "olm.gvk"
        PACKAGE = "olm.package"
        OPTIONAL_MANIFESTS = "olm.manifests.optional"

        def __str__(self) -> str:
            """Return the property type value for use in bundle processing"""
            return self.value

    class ManifestKind(str, Enum):
        """Manifest kinds the step assembler treats specially"""
        CLUSTER_SERVICE_VERSION = "ClusterServiceVersion"
        SUBSCRIPTION = "Subscription"
        SECRET = "Secret"
        # Synthetic kind separating bundled secrets from install plan pull secrets
        BUNDLE_SECRET = "BundleSecret"

        def __str__(self) -> str:
            """Return the manifest kind for use in step resources"""
            return self.value

    class CSVSection(str, Enum):
        """ClusterServiceVersion (CSV) sections used in manifest parsing"""
        SPEC = "spec"
        METADATA = "metadata"
        INSTALL = "install"
        STRATEGY = "strategy"
        STRATEGY_SPEC = "spec"
        PERMISSIONS = "permissions"
        CLUSTER_PERMISSIONS = "clusterPermissions"
        REPLACES = "replaces"

        def __str__(self) -> str:
            """Return the CSV section name for use in manifest parsing"""
            return self.value


class ErrorMessages:
    """Centralized error message templates"""

    from enum import Enum

    class DecodeError(str, Enum):
        """Manifest decoding error message templates"""
        MALFORMED = "Failed to decode manifest: {error}"
        EMPTY = "Manifest is empty"
        NOT_AN_OBJECT = "Manifest must decode to an object, got {type_name}"
        MISSING_KIND = "Object 'kind' is missing in manifest"
        INVALID_API_VERSION = "Unexpected apiVersion {api_version!r}"
        UNKNOWN_VERSION = "Cannot infer apiVersion for unregistered kind {kind!r}"
        UNEXPECTED_KIND = "Expected kind {expected!r} but manifest declares {kind!r}"
        INVALID_METADATA = "Object metadata must be a mapping, got {type_name}"
        NOT_SERIALIZABLE = "Failed to serialize {kind} {name!r}: {error}"

        def __str__(self) -> str:
            """Return the error message template"""
            return self.value

    class RBACError(str, Enum):
        """Permission projection error message templates"""
        UNSUPPORTED_STRATEGY = "Could not assert strategy implementation as deployment for CSV {csv_name}"
        INVALID_STRATEGY_SPEC = "Install strategy spec of CSV {csv_name} must be a mapping"
        INVALID_PERMISSIONS = "{section} of CSV {csv_name} must be a list"
        INVALID_ENTRY = "{section}[{index}] of CSV {csv_name} is malformed: {reason}"

        def __str__(self) -> str:
            """Return the error message template"""
            return self.value

    class ConfigError(str, Enum):
        """Configuration-related error message templates"""
        CONFIG_FILE_NOT_FOUND = "Configuration file not found: {config_path}"
        BUNDLE_FILE_NOT_FOUND = "Bundle file not found: {bundle_path}"
        MISSING_ARGUMENT = "Missing required value: {name}"

        def __str__(self) -> str:
            """Return the error message template"""
            return self.value


class FileConstants:
    """File and output related constants"""

    from enum import Enum

    class OutputFormat(str, Enum):
        """Output serialization formats supported by the CLI"""
        YAML = "yaml"
        JSON = "json"

        def __str__(self) -> str:
            """Return the format name"""
            return self.value

        @classmethod
        def choices(cls) -> list:
            """Get all format names"""
            return [fmt.value for fmt in cls]
