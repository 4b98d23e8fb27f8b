"""
Colour-coded terminal output for the inlein command line.
"""

import sys
from typing import Optional, TextIO


TEXT_COLOR_MAPPING = {
    "blue": "36;1",
    "yellow": "33;1",
    "green": "32;1",
    "red": "31;1",
    "gray": "90",
}


def get_colored_text(text: str, color: str) -> str:
    """
    Get colored text.

    Raises:
        ValueError: If the specified color is not supported
    """
    if color not in TEXT_COLOR_MAPPING:
        raise ValueError(
            f"Unsupported color: {color}. Available colors: {', '.join(TEXT_COLOR_MAPPING.keys())}"
        )

    color_str = TEXT_COLOR_MAPPING[color]
    return f"\u001b[{color_str}m{text}\u001b[0m"


class UIManager:
    """Prints status messages; errors and warnings go to stderr."""

    def success(self, message: str) -> None:
        self.print_colored(message, "green")

    def info(self, message: str) -> None:
        self.print_colored(message, "blue")

    def warning(self, message: str) -> None:
        self.print_colored(message, "yellow", file=sys.stderr)

    def error(self, message: str) -> None:
        self.print_colored(message, "red", file=sys.stderr)

    def print_colored(
        self,
        text: str,
        color: str,
        end: str = "\n",
        file: Optional[TextIO] = None
    ) -> None:
        """
        Print text with color highlighting.

        Args:
            text: The text to print
            color: Color to use, plain text if unknown
            end: String to append at the end
            file: Optional file object to write to (stdout by default)
        """
        try:
            colored_text = get_colored_text(text, color)
        except ValueError:
            colored_text = text

        print(colored_text, end=end, file=file)
        if file:
            file.flush()
