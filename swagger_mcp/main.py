"""
Name: Command-line interface.
Description: Implements the command-line interface for Swagger MCP with commands for serving an API's operations as MCP tools, listing the tools a configuration produces and writing a default configuration file.
"""

import argparse
import logging
import os
import sys

from .config import load_config, write_default_config
from .constants import DEFAULT_CONFIG_FILE
from .manager import build_toolkit, start_mcp_server
from .openapi.exceptions import SchemaResolutionError, SpecLoadError
from .utils import configure_logging, setup_environment

logger = logging.getLogger(__name__)


def _load_config(args):
    config = load_config(args.config)
    level = "debug" if getattr(args, "debug", False) else config.log.level
    configure_logging(level)
    return config


def serve_command(args):
    """Load the spec, register its tools and serve them."""
    config = _load_config(args)
    try:
        start_mcp_server(config, host=args.host, port=args.port, debug=args.debug)
    except (SpecLoadError, SchemaResolutionError) as e:
        logger.error(f"Failed to initialize MCP server: {e}")
        sys.exit(1)


def list_tools_command(args):
    """Print every tool the configured spec produces."""
    import anyio

    config = _load_config(args)
    try:
        toolkit = build_toolkit(config)
    except (SpecLoadError, SchemaResolutionError) as e:
        logger.error(f"Failed to load tools: {e}")
        sys.exit(1)

    try:
        for tool in toolkit.get_tools():
            print(f"{tool.name}: {tool.description.splitlines()[0]}")
    finally:
        anyio.run(toolkit.aclose)


def init_config_command(args):
    """Write the default configuration file."""
    if os.path.exists(args.output) and not args.force:
        logger.error(f"{args.output} already exists; use --force to overwrite it")
        sys.exit(1)

    write_default_config(args.output)
    logger.info(f"Default configuration written to {args.output}")


def main():
    """Main entry point for the CLI."""
    setup_environment()

    parser = argparse.ArgumentParser(
        description="Swagger MCP - Serve the operations of an OpenAPI spec as MCP tools"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    def add_config_arg(parser):
        """Add config file argument to parser."""
        parser.add_argument(
            "--config",
            type=str,
            required=False,
            help=f"Path to the configuration file (defaults to ./{DEFAULT_CONFIG_FILE}, created if missing)",
        )

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the MCP server")
    add_config_arg(serve_parser)
    serve_parser.add_argument(
        "--host", type=str, default=None, help="Host to bind the server to"
    )
    serve_parser.add_argument(
        "--port", type=int, default=None, help="Port to bind the server to"
    )
    serve_parser.add_argument("--debug", action="store_true", help="Enable debug mode")

    # List tools command
    list_parser = subparsers.add_parser(
        "list-tools", help="List the tools generated from the configured spec"
    )
    add_config_arg(list_parser)

    # Init config command
    init_parser = subparsers.add_parser(
        "init-config", help="Write a default configuration file"
    )
    init_parser.add_argument(
        "--output",
        type=str,
        default=DEFAULT_CONFIG_FILE,
        help="Path to write the configuration file",
    )
    init_parser.add_argument(
        "--force", action="store_true", help="Overwrite an existing file"
    )

    args = parser.parse_args()

    # Execute command
    if args.command == "serve":
        serve_command(args)
    elif args.command == "list-tools":
        list_tools_command(args)
    elif args.command == "init-config":
        init_config_command(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
