"""
Shared output helpers for the CLI.
"""

import sys
from typing import Any, Dict, Optional


def format_success_message(
    title: str,
    details: Dict[str, Any],
    next_steps: Optional[list] = None,
    width: int = 70,
) -> str:
    """
    Format a standardized success message.

    Args:
        title: Success message title
        details: Key-value pairs to display
        next_steps: Optional list of next step instructions
        width: Width of message box

    Returns:
        Formatted message string
    """
    lines = ["=" * width, title, "=" * width, ""]

    for key, value in details.items():
        lines.append(f"{key}: {value}")

    if next_steps:
        lines.append("")
        lines.append("Next steps:")
        for step in next_steps:
            lines.append(f"  {step}")

    lines.append("")
    return "\n".join(lines)


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"ERROR: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)
