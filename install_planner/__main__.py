"""Allow running the Install Planner with ``python -m install_planner``."""

from .libs.main_app import cli

if __name__ == "__main__":
    cli()
