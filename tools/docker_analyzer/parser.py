"""Dockerfile text parsing."""

from typing import List

from shared.logger import get_logger

from .models import Instruction

logger = get_logger(__name__)

COMMENT_MARKER = "#"


def filter_lines(content: str) -> List[str]:
    """
    Drop blank and comment lines.

    Args:
        content: Raw Dockerfile text

    Returns:
        Trimmed remaining lines, in order
    """
    lines = []
    for line in content.split("\n"):
        trimmed = line.strip()
        if trimmed and not trimmed.startswith(COMMENT_MARKER):
            lines.append(trimmed)
    return lines


def parse_line(line: str, line_number: int) -> Instruction:
    """Split one trimmed line into keyword and arguments."""
    parts = line.split()
    keyword = parts[0].upper() if parts else ""
    args = " ".join(parts[1:])

    return Instruction(
        keyword=keyword,
        args=args,
        line_number=line_number,
        original_line=line,
    )


def parse_dockerfile(content: str) -> List[Instruction]:
    """
    Parse Dockerfile text into instructions.

    Line numbers count filtered lines only, so the first instruction is
    always 1 regardless of leading comments. Continuation lines are not
    joined. Parsing never fails; a keyword with nothing after it gets
    empty args.

    Args:
        content: Raw Dockerfile text

    Returns:
        List of Instruction objects
    """
    instructions = [
        parse_line(line, index) for index, line in enumerate(filter_lines(content or ""), 1)
    ]
    logger.debug(f"Parsed {len(instructions)} instructions")
    return instructions
