"""
Main Application

Command-line entry point: loads a bundle file, projects it into install plan
steps and prints them as YAML or JSON.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .core import ConfigManager, setup_logging
from .core.constants import ErrorMessages, FileConstants
from .core.exceptions import BundleFormatError, ConfigurationError, InstallPlannerError
from .bundle import Bundle, CatalogKey, OperatorSourceInfo, StepAssembler, create_step_assembler
from .manifest import ManifestLoader

logger = logging.getLogger(__name__)


class InstallPlanner:
    """Main application orchestrator for the Install Planner"""

    def __init__(self, assembler: Optional[StepAssembler] = None,
                 config_provider: Optional[ConfigManager] = None):
        """
        Initialize Install Planner with dependency injection

        Args:
            assembler: Step assembler (defaults to create_step_assembler())
            config_provider: Configuration provider (defaults to ConfigManager)
        """
        self.assembler = assembler or create_step_assembler()
        self.config_manager = config_provider or ConfigManager()

    def load_config(self, config_path: str) -> Dict[str, Any]:
        """Load configuration from file"""
        return self.config_manager.load_config(config_path)

    def load_bundle(self, bundle_path: str) -> Bundle:
        """
        Load a bundle from a YAML or JSON file

        Args:
            bundle_path: Path to a file in the registry bundle format

        Returns:
            Bundle

        Raises:
            BundleFormatError: If the file is missing or does not describe a bundle
        """
        path = Path(bundle_path)
        if not path.is_file():
            raise BundleFormatError(ErrorMessages.ConfigError.BUNDLE_FILE_NOT_FOUND.format(bundle_path=bundle_path))

        try:
            text = path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise BundleFormatError(f"Failed to read bundle file {bundle_path}: {e}") from e

        try:
            if text.lstrip().startswith('{'):
                data = json.loads(text)
            else:
                # Inline manifests keep their timestamps as written
                data = yaml.load(text, Loader=ManifestLoader)
        except json.JSONDecodeError as e:
            raise BundleFormatError(f"Invalid JSON in bundle file {bundle_path}: {e}") from e
        except yaml.YAMLError as e:
            raise BundleFormatError(f"Invalid YAML in bundle file {bundle_path}: {e}") from e

        bundle = Bundle.from_dict(data)
        logger.info(f"Loaded bundle {bundle.csv_name!r} with {len(bundle.objects)} manifest(s)")
        return bundle

    def project_bundle(self, bundle: Bundle, namespace: str, replaces: str, catalog_name: str,
                       catalog_namespace: str, qualified: bool = False) -> Dict[str, Any]:
        """
        Project a bundle into printable install plan data

        Returns:
            ``{'steps': [...]}`` for qualified projections, otherwise
            ``{'resources': [...], 'namespaces': [...]}`` with aligned indexes
        """
        if qualified:
            steps = self.assembler.project_qualified(bundle, namespace, replaces, catalog_name, catalog_namespace)
            return {'steps': [step.to_dict() for step in steps]}

        resources, namespaces = self.assembler.project(bundle, namespace, replaces, catalog_name, catalog_namespace)
        return {
            'resources': [resource.to_dict() for resource in resources],
            'namespaces': namespaces
        }

    def subscription_step(self, namespace: str, info: OperatorSourceInfo) -> Dict[str, Any]:
        """Build printable data for a Subscription step resource"""
        return self.assembler.new_subscription_step_resource(namespace, info).to_dict()

    @staticmethod
    def render(data: Dict[str, Any], output_format: str) -> str:
        """Serialize output data in the requested format"""
        if output_format == FileConstants.OutputFormat.JSON:
            return json.dumps(data, indent=2, ensure_ascii=False)
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    @staticmethod
    def write_output(content: str, output_path: Optional[str] = None) -> None:
        """Write content to output_path, or to stdout when no path is given"""
        if output_path:
            path = Path(output_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding='utf-8')
            logger.info(f"Output written to {output_path}")
        else:
            sys.stdout.write(content)
            if not content.endswith('\n'):
                sys.stdout.write('\n')


def create_install_planner(registry=None) -> InstallPlanner:
    """
    Factory function to create InstallPlanner with default dependencies

    Args:
        registry: Optional TypeRegistry for manifest decoding

    Returns:
        InstallPlanner: Configured InstallPlanner instance
    """
    return InstallPlanner(assembler=create_step_assembler(registry))


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser with subcommands using parent parsers"""

    # Common parser: arguments shared by ALL commands
    common_parser = argparse.ArgumentParser(add_help=False)
    common_parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    common_parser.add_argument('--config', help='Configuration file path')

    # Catalog parser: arguments identifying the catalog source
    catalog_parser = argparse.ArgumentParser(add_help=False)
    catalog_parser.add_argument('--catalog-name', help='Catalog source name')
    catalog_parser.add_argument('--catalog-namespace', help='Catalog source namespace')
    catalog_parser.add_argument('--namespace', help='Target namespace')

    # Output parser: arguments shared by commands that generate output
    output_parser = argparse.ArgumentParser(add_help=False)
    output_parser.add_argument('--output', help='Output file (stdout by default)')
    output_parser.add_argument('--format', choices=FileConstants.OutputFormat.choices(), help='Output format')

    parser = argparse.ArgumentParser(
        prog='install-planner',
        description='Install Planner - Project operator bundles into install plan steps',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  install-planner project --bundle bundle.yaml --catalog-name community --namespace operators --qualified
  install-planner subscription --package etcd --channel alpha --catalog-name community

Use --help with specific commands for detailed help.
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    project_parser = subparsers.add_parser(
        'project',
        parents=[common_parser, catalog_parser, output_parser],
        help='Project a bundle into install plan steps',
        description='Project a bundle file into install plan steps'
    )
    project_parser.add_argument('--bundle', required=True, help='Bundle file (YAML or JSON)')
    project_parser.add_argument('--replaces', help='Name of the CSV being replaced')
    project_parser.add_argument('--qualified', action='store_true',
                                help='Flag optional steps and place the CSV first')

    subscription_parser = subparsers.add_parser(
        'subscription',
        parents=[common_parser, catalog_parser, output_parser],
        help='Build a Subscription step resource',
        description='Build the step resource of a Subscription to an operator package'
    )
    subscription_parser.add_argument('--package', required=True, help='Package name')
    subscription_parser.add_argument('--channel', default='', help='Channel name')
    subscription_parser.add_argument('--starting-csv', default='', help='CSV to start the subscription from')

    return parser


def merge_config_with_args(args: argparse.Namespace, config_manager: ConfigManager) -> None:
    """
    Fill arguments not given on the command line from configuration

    Command-line values win over the configuration file, which wins over
    environment defaults.
    """
    mapping = {
        'catalog_name': 'catalog.name',
        'catalog_namespace': 'catalog.namespace',
        'namespace': 'install.namespace',
        'replaces': 'install.replaces',
        'format': 'output.format',
        'output': 'output.path',
    }
    for attr, key in mapping.items():
        if hasattr(args, attr) and not getattr(args, attr):
            setattr(args, attr, config_manager.get_value(key))

    if hasattr(args, 'qualified') and not args.qualified:
        args.qualified = bool(config_manager.get_value('install.qualified', False))
    if not args.debug:
        args.debug = bool(config_manager.get_value('global.debug', False))


def require(args: argparse.Namespace, *names: str) -> None:
    """Raise ConfigurationError for the first missing argument in names"""
    for name in names:
        if not getattr(args, name, None):
            raise ConfigurationError(
                ErrorMessages.ConfigError.MISSING_ARGUMENT.format(name='--' + name.replace('_', '-'))
            )


def handle_project_command(args: argparse.Namespace, planner: InstallPlanner) -> int:
    """Handle project command execution."""
    require(args, 'catalog_name', 'catalog_namespace', 'namespace')

    bundle = planner.load_bundle(args.bundle)
    data = planner.project_bundle(
        bundle,
        namespace=args.namespace,
        replaces=args.replaces or '',
        catalog_name=args.catalog_name,
        catalog_namespace=args.catalog_namespace,
        qualified=args.qualified
    )
    planner.write_output(planner.render(data, args.format), args.output)
    return 0


def handle_subscription_command(args: argparse.Namespace, planner: InstallPlanner) -> int:
    """Handle subscription command execution."""
    require(args, 'catalog_name', 'catalog_namespace', 'namespace')

    info = OperatorSourceInfo(
        package=args.package,
        channel=args.channel,
        starting_csv=args.starting_csv,
        catalog=CatalogKey(name=args.catalog_name, namespace=args.catalog_namespace)
    )
    data = planner.subscription_step(args.namespace, info)
    planner.write_output(planner.render(data, args.format), args.output)
    return 0


# Command dispatcher mapping
COMMAND_HANDLERS = {
    'project': handle_project_command,
    'subscription': handle_subscription_command,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Application entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    planner = create_install_planner()

    try:
        if args.config:
            planner.load_config(args.config)
        merge_config_with_args(args, planner.config_manager)

        setup_logging(args.debug)

        handler = COMMAND_HANDLERS[args.command]
        return handler(args, planner)

    except InstallPlannerError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        return 1


def cli() -> None:
    """Console script entry point"""
    sys.exit(main())


if __name__ == "__main__":
    cli()
