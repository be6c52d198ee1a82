"""Line helpers that count ``\\n`` terminators only, as compilers do."""

from __future__ import annotations


def split_lines(text: str) -> list[str]:
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def count_lines(text: str) -> int:
    return len(split_lines(text))


def line_offset(text: str, line: int) -> int:
    """Character offset of the first character of 1-based ``line``."""
    offset = 0
    for _ in range(line - 1):
        nl = text.find("\n", offset)
        if nl < 0:
            return len(text)
        offset = nl + 1
    return offset
