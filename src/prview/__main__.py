import argparse
import json
import sys

from prview.app import DashboardApplication
from prview.diff.render import ViewType, format_file_text
from prview.diff.tree import DirectoryNode
from prview.exceptions import ConfigurationError, PrviewException, SecurityError
from prview.logger import get_logger, setup_logging
from prview.security import SecurityValidator


def format_tree(node: DirectoryNode, depth: int = 0) -> list[str]:
    lines: list[str] = []
    indent = "  " * depth
    for child in node.sorted_children():
        lines.append(f"{indent}{child.name}/")
        lines.extend(format_tree(child, depth + 1))
    for entry in node.sorted_files():
        lines.append(f"{indent}{entry.name} [{entry.index}]")
    return lines


def _repository_argument(value: str) -> tuple[str, str]:
    try:
        return SecurityValidator.validate_repository(value)
    except PrviewException as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _pr_number_argument(value: str) -> int:
    try:
        return SecurityValidator.validate_pr_number(value)
    except PrviewException as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prview",
        description="prview - Pull request dashboard and diff viewer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Path to configuration file",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: from configuration, else INFO)",
    )

    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["json", "text"],
        help="Logging format (default: from configuration, else json)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", type=str, help="Bind address")
    serve_parser.add_argument("--port", type=int, help="Listen port")

    subparsers.add_parser("prs", help="List open pull requests as JSON")

    files_parser = subparsers.add_parser(
        "files", help="Show the changed files of a pull request"
    )
    files_parser.add_argument(
        "repository",
        type=_repository_argument,
        help="Repository as owner/repo",
    )
    files_parser.add_argument(
        "pr_number",
        type=_pr_number_argument,
        help="Pull request number (positive integer)",
    )
    files_parser.add_argument(
        "--view",
        type=ViewType,
        default=ViewType.UNIFIED,
        choices=list(ViewType),
        help="Diff layout",
    )
    files_parser.add_argument(
        "--all",
        action="store_true",
        help="Expand every file, not only the small ones",
    )

    subparsers.add_parser("test", help="Test configuration")

    return parser


def serve(app: DashboardApplication, host: str | None, port: int | None) -> None:
    import uvicorn

    from prview.api import create_app

    uvicorn.run(
        create_app(app),
        host=host or app.config.host,
        port=port or app.config.port,
        log_config=None,
    )


def show_files(
    app: DashboardApplication,
    owner: str,
    repo: str,
    pr_number: int,
    view_type: ViewType,
    expand_all: bool,
) -> None:
    controller = app.open_diff(owner, repo, pr_number)
    try:
        if expand_all:
            controller.expand_all()
        controller.wait_for_tokens()

        print(f"{owner}/{repo}#{pr_number}: {len(controller.files)} files")
        for line in format_tree(controller.tree):
            print(f"  {line}")
        for rendered in controller.render_all():
            print()
            print(format_file_text(rendered, view_type))
    finally:
        controller.close()


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level or "INFO", args.log_format or "json")
    logger = get_logger("cli")

    try:
        if args.config:
            config_path = SecurityValidator.validate_config_path(args.config)
            logger.info(f"Loading configuration from file: {config_path.name}")
            app = DashboardApplication.from_file(str(config_path))
        else:
            logger.info("Loading configuration from environment variables")
            app = DashboardApplication.from_env()

        setup_logging(
            args.log_level or app.config.log_level,
            args.log_format or app.config.log_format,
        )

        if args.command == "serve":
            serve(app, args.host, args.port)

        elif args.command == "prs":
            listing = app.list_pull_requests()
            print(json.dumps(listing.to_dict(), indent=2, default=str))

        elif args.command == "files":
            owner, repo = args.repository
            show_files(app, owner, repo, args.pr_number, args.view, args.all)

        elif args.command == "test":
            logger.info("Testing configuration...")
            logger.info(f"Repositories: {', '.join(app.config.repositories) or 'none'}")
            logger.info(f"Team members: {len(app.config.team_members)}")
            logger.info(f"Base URL: {app.config.base_url or 'default'}")
            logger.info(
                f"Work items: {'enabled' if app.config.work_items_enabled else 'disabled'}"
            )

            client = app.client
            logger.info(f"Client created successfully: {client.__class__.__name__}")
            print("Configuration is valid!")

        else:
            parser.print_help()
            sys.exit(1)

    except ConfigurationError as e:
        sanitized_error = SecurityValidator.sanitize_error_message(e)
        logger.error(f"Configuration error: {sanitized_error}")
        sys.exit(1)
    except SecurityError as e:
        logger.error(f"Security error: {e}")
        sys.exit(1)
    except PrviewException as e:
        sanitized_error = SecurityValidator.sanitize_error_message(e)
        logger.error(f"Application error: {sanitized_error}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        sanitized_error = SecurityValidator.sanitize_error_message(e)
        logger.error(f"Unexpected error: {sanitized_error}")
        sys.exit(1)


if __name__ == "__main__":
    main()
