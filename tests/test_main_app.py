"""
Tests for the command-line application
"""

import json
from unittest.mock import Mock, patch

import pytest
import yaml

from install_planner.libs.bundle import Bundle
from install_planner.libs.core.exceptions import BundleFormatError
from install_planner.libs.main_app import InstallPlanner, create_argument_parser, main

from test_constants import CommonTestConstants, PropertyTestConstants, config_map, csv_manifest, permission


CATALOG_ARGS = [
    "--namespace", CommonTestConstants.TARGET_NAMESPACE,
    "--catalog-name", CommonTestConstants.CATALOG_NAME,
    "--catalog-namespace", CommonTestConstants.CATALOG_NAMESPACE,
]


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep the root logger untouched while main() runs"""
    with patch("install_planner.libs.main_app.setup_logging") as mock_setup:
        yield mock_setup


@pytest.fixture
def bundle_file(tmp_path):
    csv = csv_manifest(permissions=[permission()])
    data = {
        "csvName": CommonTestConstants.CSV_NAME,
        "csvJson": json.dumps(csv),
        "object": [json.dumps(csv), json.dumps(config_map())],
        "properties": [{
            "type": "olm.manifests.optional",
            "value": PropertyTestConstants.OPTIONAL_CONFIGMAP_VALUE,
        }],
    }
    path = tmp_path / "bundle.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestInstallPlanner:
    """Test the application orchestrator"""

    def test_with_mocked_assembler(self):
        # Arrange
        mock_assembler = Mock()
        mock_assembler.project.return_value = ([], [])
        bundle = Bundle(csv_json="{}")

        # Act
        planner = InstallPlanner(assembler=mock_assembler, config_provider=Mock())
        result = planner.project_bundle(bundle, "operators", "", "community", "olm")

        # Assert
        assert result == {"resources": [], "namespaces": []}
        mock_assembler.project.assert_called_once_with(bundle, "operators", "", "community", "olm")

    def test_load_missing_bundle(self, tmp_path):
        with pytest.raises(BundleFormatError, match="not found"):
            InstallPlanner().load_bundle(str(tmp_path / "missing.yaml"))

    def test_load_invalid_yaml(self, tmp_path):
        path = tmp_path / "bundle.yaml"
        path.write_text("csvJson: [unclosed")

        with pytest.raises(BundleFormatError):
            InstallPlanner().load_bundle(str(path))

    def test_load_keeps_inline_timestamps(self, tmp_path):
        """Test that unquoted timestamps in inline manifests keep their written form"""
        # Arrange
        path = tmp_path / "bundle.yaml"
        path.write_text(
            "csvName: etcdoperator.v0.9.4\n"
            "csvJson:\n"
            "  apiVersion: operators.coreos.com/v1alpha1\n"
            "  kind: ClusterServiceVersion\n"
            "  metadata:\n"
            "    name: etcdoperator.v0.9.4\n"
            "    annotations:\n"
            "      createdAt: 2019-02-28T01:03:00Z\n"
            "  spec:\n"
            "    install:\n"
            "      strategy: deployment\n"
        )

        # Act
        bundle = InstallPlanner().load_bundle(str(path))
        csv = InstallPlanner().assembler.csv_from_bundle(bundle)

        # Assert
        assert json.loads(bundle.csv_json)["metadata"]["annotations"]["createdAt"] == "2019-02-28T01:03:00Z"
        assert csv.annotations["createdAt"] == "2019-02-28T01:03:00Z"

    def test_load_tab_indented_json(self, tmp_path):
        path = tmp_path / "bundle.json"
        path.write_text(json.dumps({"csvName": "x", "csvJson": json.dumps(csv_manifest())}, indent="\t"))

        bundle = InstallPlanner().load_bundle(str(path))

        assert bundle.csv_name == "x"

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "bundle.json"
        path.write_text('{"csvJson": ')

        with pytest.raises(BundleFormatError, match="Invalid JSON"):
            InstallPlanner().load_bundle(str(path))

    def test_load_non_utf8_file(self, tmp_path):
        path = tmp_path / "bundle.yaml"
        path.write_bytes(b"csvJson: \xff\xfe\n")

        with pytest.raises(BundleFormatError, match="Failed to read"):
            InstallPlanner().load_bundle(str(path))

    def test_render_json(self):
        assert json.loads(InstallPlanner.render({"a": [1]}, "json")) == {"a": [1]}

    def test_render_yaml(self):
        assert yaml.safe_load(InstallPlanner.render({"a": [1]}, "yaml")) == {"a": [1]}


class TestArgumentParser:
    """Test command-line parsing"""

    def test_project_arguments(self):
        args = create_argument_parser().parse_args(
            ["project", "--bundle", "b.yaml", "--qualified", "--format", "json", "--debug"] + CATALOG_ARGS
        )

        assert args.command == "project"
        assert args.qualified is True
        assert args.format == "json"
        assert args.debug is True
        assert args.catalog_name == CommonTestConstants.CATALOG_NAME

    def test_invalid_format(self):
        with pytest.raises(SystemExit):
            create_argument_parser().parse_args(["project", "--bundle", "b.yaml", "--format", "xml"])


class TestMain:
    """Test end-to-end command execution"""

    def test_no_command(self, capsys):
        assert main([]) == 1

    def test_project_qualified_json(self, bundle_file, capsys, no_logging_setup):
        # Act
        exit_code = main(["project", "--bundle", str(bundle_file), "--qualified", "--format", "json"] + CATALOG_ARGS)

        # Assert
        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert [(s["resource"]["kind"], s["optional"]) for s in output["steps"]] == [
            ("ClusterServiceVersion", False),
            ("ConfigMap", True),
            ("ServiceAccount", False),
            ("Role", False),
            ("RoleBinding", False),
        ]
        assert all(s["status"] == "Unknown" for s in output["steps"])
        assert output["steps"][0]["resource"]["sourceName"] == CommonTestConstants.CATALOG_NAME
        no_logging_setup.assert_called_once_with(False)

    def test_project_to_file(self, bundle_file, tmp_path, capsys):
        output_path = tmp_path / "out" / "plan.yaml"

        exit_code = main(["project", "--bundle", str(bundle_file), "--format", "yaml",
                          "--output", str(output_path)] + CATALOG_ARGS)

        assert exit_code == 0
        assert capsys.readouterr().out == ""
        data = yaml.safe_load(output_path.read_text())
        assert len(data["resources"]) == len(data["namespaces"]) == 5
        assert data["namespaces"][:2] == ["", "ns1"]

    def test_config_file_supplies_missing_arguments(self, bundle_file, tmp_path, capsys):
        """Test that command-line values win over the configuration file"""
        # Arrange
        config_file = tmp_path / "install-planner.yaml"
        config_file.write_text(
            "catalog:\n  name: from-config\n  namespace: olm\n"
            "install:\n  namespace: from-config\n"
            "output:\n  format: json\n"
        )

        # Act
        exit_code = main(["project", "--bundle", str(bundle_file), "--config", str(config_file),
                          "--namespace", "from-cli"])

        # Assert
        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        csv = json.loads(output["resources"][0]["manifest"])
        assert csv["metadata"]["namespace"] == "from-cli"
        assert output["resources"][0]["sourceName"] == "from-config"

    def test_subscription(self, capsys):
        exit_code = main(["subscription", "--package", "etcd", "--channel", "alpha", "--format", "json"]
                         + CATALOG_ARGS)

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["kind"] == "Subscription"
        assert output["name"] == "etcd-alpha-community-operators-olm"

    def test_missing_catalog_name(self, capsys):
        exit_code = main(["subscription", "--package", "etcd"])

        assert exit_code == 1
        assert "Missing required value: --catalog-name" in capsys.readouterr().err

    def test_missing_bundle_file(self, tmp_path, capsys):
        exit_code = main(["project", "--bundle", str(tmp_path / "missing.yaml")] + CATALOG_ARGS)

        assert exit_code == 1
        assert "Bundle file not found" in capsys.readouterr().err

    def test_invalid_manifest(self, tmp_path, capsys):
        path = tmp_path / "bundle.yaml"
        path.write_text(yaml.safe_dump({"csvJson": json.dumps(csv_manifest()), "object": ["kind: [unclosed"]}))

        exit_code = main(["project", "--bundle", str(path)] + CATALOG_ARGS)

        assert exit_code == 1
        assert capsys.readouterr().err.startswith("Error: ")
