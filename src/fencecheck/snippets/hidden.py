"""Hidden-region markers.

Two independent transforms read the same marker grammar: ``check_balance``
validates nesting for the checker and never changes the text, while
``strip_hidden`` produces the display rendering. Neither calls the other.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .models import CodeBlock, RemappedDiagnostic
from .text import split_lines


@dataclass(frozen=True)
class MarkerGrammar:
    start: re.Pattern[str]
    end: re.Pattern[str]

    @classmethod
    def build(cls, hide_start: str, hide_end: str, comment_token: str = "//") -> "MarkerGrammar":
        prefix = rf"(?:{re.escape(comment_token)}\s*)?" if comment_token else ""
        return cls(
            start=re.compile(rf"^\s*{prefix}{re.escape(hide_start)}\s*$"),
            end=re.compile(rf"^\s*{prefix}{re.escape(hide_end)}\s*$"),
        )


def check_balance(block: CodeBlock, grammar: MarkerGrammar) -> RemappedDiagnostic | None:
    """Return a diagnostic at the offending marker, or None when markers nest to zero."""
    open_lines: list[int] = []
    for local, line in enumerate(split_lines(block.raw_text), start=1):
        content = line.rstrip("\r\n")
        if grammar.start.match(content):
            open_lines.append(local)
        elif grammar.end.match(content):
            if not open_lines:
                return _marker_diagnostic(block, local, "hidden-region end marker without a matching start marker")
            open_lines.pop()
    if open_lines:
        return _marker_diagnostic(block, open_lines[-1], "hidden-region start marker is never closed")
    return None


def _marker_diagnostic(block: CodeBlock, local_line: int, message: str) -> RemappedDiagnostic:
    return RemappedDiagnostic(
        source_file=block.source_file,
        original_line=block.start_line + local_line - 1,
        col=1,
        message=message,
    )


def strip_hidden(text: str, grammar: MarkerGrammar) -> str:
    """Display rendering, matching the site renderer: regions do not nest.

    The first end marker closes the region, so the outer end marker of a nested
    pair is shown, as is any stray end marker outside a region.
    """
    out: list[str] = []
    hiding = False
    for line in split_lines(text):
        content = line.rstrip("\r\n")
        if hiding:
            if grammar.end.match(content):
                hiding = False
            continue
        if grammar.start.match(content):
            hiding = True
            continue
        out.append(line)
    return "".join(out)
