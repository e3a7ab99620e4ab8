"""Command-line interface and main entry point.

This module provides the CLI for serving the image tools over HTTP and for
listing the registered tools.
"""
# ruff: noqa: T201

import socketserver
import sys
from wsgiref.simple_server import WSGIServer, make_server

import structlog

import image_workshop_tools
from image_workshop_app.app import create_app, create_services
from image_workshop_app.cli_config import create_list_config, create_serve_config
from image_workshop_core.observability import configure_logging

VERSION = "0.1.0"

# Get logger for this module
logger = structlog.get_logger(__name__)


class ThreadingWSGIServer(socketserver.ThreadingMixIn, WSGIServer):
    """WSGI server handling each request on its own thread.

    Tool invocations block for as long as a provider job runs, so one slow
    request must not hold up the others.
    """

    daemon_threads = True


def serve_command(args: list[str] | None = None) -> None:
    """Start the tool server.

    Args:
        args: Command line arguments for the serve command.
    """
    try:
        config = create_serve_config(args)

        configure_logging(log_level=config.log_level, dev_mode=config.dev_mode)

        services = create_services(config)
        app = create_app(services)

        logger.info(
            "TOOL_SERVER_STARTING",
            host=config.host,
            port=config.port,
            config_source=config.config_source,
        )

        with make_server(
            config.host, config.port, app, server_class=ThreadingWSGIServer
        ) as httpd:
            logger.info(
                "TOOL_SERVER_STARTED",
                host=config.host,
                port=config.port,
                tools=image_workshop_tools.list_tools(),
            )
            httpd.serve_forever()

    except KeyboardInterrupt:
        logger.info("TOOL_SERVER_STOPPED_BY_USER")
    except Exception as e:
        print(f"Error: {e!s}")
        logger.exception("TOOL_SERVER_START_ERROR", error=str(e))
        sys.exit(1)


def list_command(args: list[str] | None = None) -> None:
    """List all registered tools.

    Args:
        args: Command line arguments for the list command.
    """
    try:
        config = create_list_config(args)

        configure_logging(log_level=config.log_level, dev_mode=config.dev_mode)

        tools = image_workshop_tools.list_tools()
        if not tools:
            print("No tools are available.")
            return

        print("Available tools:")
        for name in sorted(tools):
            tool = image_workshop_tools.get_tool(name)
            print(f"  {name:<14} {tool.description}")
        print(f"Total: {len(tools)} tool(s)")

    except ValueError as e:
        print(f"Error: {e!s}")
        sys.exit(1)


def show_help() -> None:
    """Show help information for the CLI."""
    help_text = """
Image Workshop

Usage:
    image-workshop <command> [options]

Commands:
    serve              Start the tool server
    list               List all registered tools
    --help, -h         Show this help message
    --version, -v      Show version information

Options for serve command:
    --host <host>                   Host to bind to (default 127.0.0.1)
    --port <port>                   Port to bind to (default 8080)
    --config-source <type>          Where secrets come from (aws, env)
    --aws-region <region>           AWS region for Secrets Manager / SSM
    --aws-endpoint-url <url>        AWS endpoint URL (e.g., LocalStack)
    --env-prefix <prefix>           Environment variable prefix (env source)
    --job-timeout <seconds>         Overall timeout for async jobs
    --log-level <level>             Log level (DEBUG, INFO, WARNING, ERROR)
    --dev-mode                      Enable development mode

Every option can also be set as IMAGE_WORKSHOP_<OPTION> in the environment.

Examples:
    image-workshop serve --config-source env --port 9000
    image-workshop list
"""
    print(help_text)


def main() -> None:
    """Main entry point for the CLI."""
    min_args = 2
    if len(sys.argv) < min_args:
        show_help()
        sys.exit(1)

    command = sys.argv[1]
    args = sys.argv[2:]

    if command == "serve":
        serve_command(args)
    elif command == "list":
        list_command(args)
    elif command in ["--help", "-h", "help"]:
        show_help()
        sys.exit(0)
    elif command in ["--version", "-v", "version"]:
        print(f"image-workshop, version {VERSION}")
        sys.exit(0)
    else:
        show_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
