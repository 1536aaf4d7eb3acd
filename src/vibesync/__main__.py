"""CLI entry point for vibesync."""

import argparse
from datetime import date
from pathlib import Path

from . import __version__
from .config import Settings
from .logging import setup_logging
from .models import ItemType, TaskStatus


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="vibesync",
        description="Task board and moodboard for shared creative projects",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=None,
        help="Directory containing vibesync.yml (default: current directory)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v INFO, -vv DEBUG, -vvv also HTTP requests)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to write logs to file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    board = commands.add_parser("board", help="Show a project's task board and moodboard")
    board.add_argument("project_id")

    add_task = commands.add_parser("add-task", help="Create a task in the todo column")
    add_task.add_argument("project_id")
    add_task.add_argument("title")
    add_task.add_argument("--description", default="")
    add_task.add_argument("--due", type=date.fromisoformat, default=None, metavar="YYYY-MM-DD")
    add_task.add_argument("--assignee", default="")

    move = commands.add_parser("move", help="Move a task to a column")
    move.add_argument("project_id")
    move.add_argument("task_id")
    move.add_argument("status", choices=[status.value for status in TaskStatus])
    move.add_argument(
        "--index",
        type=int,
        default=None,
        help="Position in the destination column (default: bottom)",
    )

    add_item = commands.add_parser("add-item", help="Pin an image or link to the moodboard")
    add_item.add_argument("project_id")
    add_item.add_argument("type", choices=[item_type.value for item_type in ItemType])
    add_item.add_argument("url")
    add_item.add_argument("--created-by", default="")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    settings_kwargs: dict = {}
    if args.project_root:
        settings_kwargs["project_root"] = args.project_root
    if args.verbose:
        settings_kwargs["verbose"] = args.verbose
    if args.log_file:
        settings_kwargs["log_file"] = args.log_file

    settings = Settings(**settings_kwargs)

    setup_logging(settings.verbose, settings.log_file, settings.firestore_project)

    # Import here so --help and --version stay fast
    from .cli import board

    if args.command == "board":
        exit_code = board.run_board(settings, args.project_id)
    elif args.command == "add-task":
        exit_code = board.run_add_task(
            settings,
            args.project_id,
            args.title,
            description=args.description,
            due=args.due,
            assignee=args.assignee,
        )
    elif args.command == "move":
        exit_code = board.run_move(
            settings, args.project_id, args.task_id, TaskStatus(args.status), index=args.index
        )
    else:
        exit_code = board.run_add_item(
            settings, args.project_id, ItemType(args.type), args.url, created_by=args.created_by
        )
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
