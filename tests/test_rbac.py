"""
Tests for RBAC projection from ClusterServiceVersion permissions
"""

import json

import pytest

from install_planner.libs.bundle.rbac import RBACProjector, generate_name
from install_planner.libs.core.exceptions import PermissionProjectionError
from install_planner.libs.manifest import ManifestDecoder

from test_constants import CommonTestConstants, csv_manifest, permission


def decode_csv(**kwargs):
    """Decode a CSV placed in the target namespace"""
    kwargs.setdefault('namespace', CommonTestConstants.TARGET_NAMESPACE)
    return ManifestDecoder().from_object(csv_manifest(**kwargs))


def project(**kwargs):
    return RBACProjector().project_rbac(
        decode_csv(**kwargs), CommonTestConstants.CATALOG_NAME, CommonTestConstants.CATALOG_NAMESPACE
    )


class TestPermissionSets:
    """Test grouping of declared permissions by service account"""

    def test_grouped_in_declaration_order(self):
        # Arrange
        csv = decode_csv(
            permissions=[permission("sa-b"), permission("sa-a"), permission("sa-b", CommonTestConstants.NODE_RULES)],
            cluster_permissions=[permission("sa-c"), permission("sa-a")]
        )

        # Act
        permission_sets = RBACProjector().permission_sets(csv)

        # Assert
        assert [p.service_account_name for p in permission_sets] == ["sa-b", "sa-a", "sa-c"]
        assert len(permission_sets[0].namespace_rule_groups) == 2
        assert permission_sets[0].cluster_rule_groups == []
        assert len(permission_sets[1].cluster_rule_groups) == 1

    def test_no_permissions(self):
        assert RBACProjector().permission_sets(decode_csv()) == []

    def test_missing_strategy_spec(self):
        csv_obj = csv_manifest(namespace=CommonTestConstants.TARGET_NAMESPACE)
        del csv_obj["spec"]["install"]["spec"]

        assert RBACProjector().permission_sets(ManifestDecoder().from_object(csv_obj)) == []


class TestProjectRBAC:
    """Test the RBAC step resources derived for a CSV"""

    def test_namespaced_permission(self):
        """Test one permission with a dedicated service account"""
        # Act
        steps = project(permissions=[permission()])

        # Assert
        assert [s.kind for s in steps] == ["ServiceAccount", "Role", "RoleBinding"]
        service_account, role, binding = steps
        assert service_account.name == CommonTestConstants.SERVICE_ACCOUNT
        assert (service_account.group, service_account.version) == ("", "v1")
        assert (role.group, role.version) == ("rbac.authorization.k8s.io", "v1")
        assert role.name.startswith(CommonTestConstants.CSV_NAME + "-")
        assert binding.name == role.name
        for step in steps:
            assert step.catalog_source == CommonTestConstants.CATALOG_NAME
            assert step.catalog_source_namespace == CommonTestConstants.CATALOG_NAMESPACE

    def test_role_manifest(self):
        steps = project(permissions=[permission()])

        role = json.loads(steps[1].manifest)

        assert role["metadata"]["namespace"] == CommonTestConstants.TARGET_NAMESPACE
        assert role["metadata"]["labels"] == {
            "olm.owner": CommonTestConstants.CSV_NAME,
            "olm.owner.namespace": CommonTestConstants.TARGET_NAMESPACE,
            "olm.owner.kind": "ClusterServiceVersion",
        }
        assert role["rules"] == CommonTestConstants.POD_RULES
        owner = role["metadata"]["ownerReferences"][0]
        assert owner["kind"] == "ClusterServiceVersion"
        assert owner["name"] == CommonTestConstants.CSV_NAME
        assert owner["blockOwnerDeletion"] is False
        assert owner["controller"] is False

    def test_role_binding_manifest(self):
        steps = project(permissions=[permission()])

        binding = json.loads(steps[2].manifest)

        assert binding["roleRef"] == {
            "apiGroup": "rbac.authorization.k8s.io",
            "kind": "Role",
            "name": steps[1].name,
        }
        assert binding["subjects"] == [{
            "kind": "ServiceAccount",
            "name": CommonTestConstants.SERVICE_ACCOUNT,
            "namespace": CommonTestConstants.TARGET_NAMESPACE,
        }]

    def test_default_service_account_is_not_created(self):
        steps = project(permissions=[permission("default")])

        assert [s.kind for s in steps] == ["Role", "RoleBinding"]

    def test_cluster_permission(self):
        """Test that cluster-scoped objects carry no namespace or owner reference"""
        # Act
        steps = project(cluster_permissions=[permission(rules=CommonTestConstants.METRICS_RULES)])

        # Assert
        assert [s.kind for s in steps] == ["ServiceAccount", "ClusterRole", "ClusterRoleBinding"]
        cluster_role = json.loads(steps[1].manifest)
        cluster_role_binding = json.loads(steps[2].manifest)
        assert "namespace" not in cluster_role["metadata"]
        assert "ownerReferences" not in cluster_role["metadata"]
        assert cluster_role["metadata"]["labels"]["olm.owner"] == CommonTestConstants.CSV_NAME
        assert cluster_role["rules"] == CommonTestConstants.METRICS_RULES
        assert "namespace" not in cluster_role_binding["metadata"]
        assert cluster_role_binding["roleRef"]["kind"] == "ClusterRole"
        assert cluster_role_binding["subjects"][0]["namespace"] == CommonTestConstants.TARGET_NAMESPACE

    def test_order_per_service_account(self):
        steps = project(
            permissions=[permission("sa-a"), permission("sa-b")],
            cluster_permissions=[permission("sa-a", CommonTestConstants.NODE_RULES)]
        )

        assert [(s.kind, s.name if s.kind == "ServiceAccount" else None) for s in steps] == [
            ("ServiceAccount", "sa-a"),
            ("Role", None),
            ("RoleBinding", None),
            ("ClusterRole", None),
            ("ClusterRoleBinding", None),
            ("ServiceAccount", "sa-b"),
            ("Role", None),
            ("RoleBinding", None),
        ]

    def test_distinct_entries_get_distinct_names(self):
        steps = project(permissions=[permission(), permission(rules=CommonTestConstants.NODE_RULES)])

        role_names = [s.name for s in steps if s.kind == "Role"]
        assert len(set(role_names)) == 2

    def test_projection_is_deterministic(self):
        first = project(permissions=[permission()], cluster_permissions=[permission()])
        second = project(permissions=[permission()], cluster_permissions=[permission()])

        assert first == second

    def test_long_csv_name_is_truncated(self):
        name = "a-very-long-operator-name-that-keeps-going." + "v1.2.3-" * 6

        steps = project(name=name, permissions=[permission()])

        assert len(steps[1].name) <= 63
        assert steps[1].name.startswith(name[:40])


class TestProjectRBACErrors:
    """Test rejection of malformed install strategies"""

    def test_unsupported_strategy(self):
        with pytest.raises(PermissionProjectionError, match="deployment"):
            project(strategy="helm", permissions=[permission()])

    def test_missing_install_section(self):
        csv_obj = csv_manifest()
        del csv_obj["spec"]["install"]

        with pytest.raises(PermissionProjectionError):
            RBACProjector().permission_sets(ManifestDecoder().from_object(csv_obj))

    @pytest.mark.parametrize("entry", [
        "etcd-operator",
        {"rules": []},
        {"serviceAccountName": "", "rules": []},
        {"serviceAccountName": "etcd-operator", "rules": "all"},
        {"serviceAccountName": "etcd-operator", "rules": ["pods"]},
        {"serviceAccountName": "etcd-operator", "rules": [{"verbs": "get"}]},
        {"serviceAccountName": "etcd-operator", "rules": [{"verbs": ["get"], "resources": [1]}]},
    ])
    def test_malformed_entry(self, entry):
        with pytest.raises(PermissionProjectionError, match=r"permissions\[0\]"):
            project(permissions=[entry])

    def test_permissions_must_be_a_list(self):
        csv_obj = csv_manifest()
        csv_obj["spec"]["install"]["spec"]["clusterPermissions"] = {"serviceAccountName": "etcd-operator"}

        with pytest.raises(PermissionProjectionError, match="clusterPermissions"):
            RBACProjector().permission_sets(ManifestDecoder().from_object(csv_obj))


class TestGenerateName:
    """Test deterministic name generation"""

    def test_same_input_same_name(self):
        assert generate_name("csv", {"a": 1}) == generate_name("csv", {"a": 1})

    def test_name_is_dns_safe(self):
        name = generate_name("csv", {"serviceAccountName": "x", "rules": []})

        assert name.startswith("csv-")
        assert all(c in "bcdfghjklmnpqrstvwxz2456789" for c in name[len("csv-"):])
