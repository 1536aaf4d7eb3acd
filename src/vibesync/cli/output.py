"""Colorful CLI output helpers."""

import sys

from ..models import STATUS_ORDER, MoodboardItem, Task, TaskStatus

# ANSI color codes
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RED = "\033[31m"
DIM = "\033[2m"
RESET = "\033[0m"
CHECK = "\u2713"  # ✓
BULLET = "\u2022"  # •
CROSS = "\u2717"  # ✗


def _supports_color() -> bool:
    """Check if terminal supports color output."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _colorize(text: str, color: str) -> str:
    """Apply color to text if terminal supports it."""
    if _supports_color():
        return f"{color}{text}{RESET}"
    return text


def success(message: str) -> None:
    """Print success message with green checkmark."""
    print(f"{_colorize(CHECK, GREEN)} {message}")


def info(message: str) -> None:
    """Print info message with yellow bullet."""
    print(f"{_colorize(BULLET, YELLOW)} {message}")


def header(message: str) -> None:
    """Print header message in blue."""
    print(_colorize(message, BLUE))


def error(message: str) -> None:
    """Print error message with red cross."""
    print(f"{_colorize(CROSS, RED)} {message}", file=sys.stderr)


def format_task(task: Task) -> str:
    """One-line summary of a task."""
    line = f"{task.title} {_colorize(f'[{task.id}]', DIM)}"
    if task.due_date:
        line += f" due {task.due_date.isoformat()}"
    return line


def format_item(item: MoodboardItem) -> str:
    """One-line summary of a moodboard item."""
    return (
        f"{item.type.value:<5} {item.content} "
        f"@ ({item.position.x:.0f}, {item.position.y:.0f}) {_colorize(f'[{item.id}]', DIM)}"
    )


def print_board(columns: dict[TaskStatus, list[Task]]) -> None:
    """Print the task board column by column."""
    for status in STATUS_ORDER:
        tasks = columns.get(status, [])
        header(f"{status.heading} ({len(tasks)})")
        for task in tasks:
            print(f"  {BULLET} {format_task(task)}")


def print_moodboard(items: list[MoodboardItem]) -> None:
    """Print the moodboard as a list."""
    header(f"Moodboard ({len(items)})")
    for item in items:
        print(f"  {BULLET} {format_item(item)}")
