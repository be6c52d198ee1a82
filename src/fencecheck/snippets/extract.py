"""Fenced code block extraction.

Line numbers are 1-based and count ``\\n`` terminators only, which is what the
compiler counts. Line endings are kept, so ``raw_text`` is a verbatim slice of
the source text starting at the first character of line ``start_line``.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Collection, Iterable

from ..core.errors import FatalScanError
from .models import CodeBlock
from .text import split_lines

OPEN_FENCE_RE = re.compile(r"^(`{3,})([^`]*)$")
CLOSE_FENCE_RE = re.compile(r"^(`{3,})\s*$")


def classify_info(info: str, language_tag: str, skip_modifiers: Collection[str]) -> bool | None:
    """Return True for a checked candidate, False for a skipped one, None otherwise."""
    tokens = info.split()
    if tokens == [language_tag]:
        return True
    if len(tokens) == 2 and tokens[0] == language_tag and tokens[1] in skip_modifiers:
        return False
    return None


def extract_blocks(
    source_file: Path,
    text: str,
    *,
    language_tag: str,
    skip_modifiers: Collection[str],
    on_unterminated: Callable[[int], None] | None = None,
) -> list[CodeBlock]:
    blocks: list[CodeBlock] = []
    lines = split_lines(text)
    open_fence: str | None = None
    open_line = 0
    candidate: bool | None = None
    body: list[str] = []
    for lineno, line in enumerate(lines, start=1):
        content = line.rstrip("\r\n")
        if open_fence is None:
            m = OPEN_FENCE_RE.match(content)
            if m:
                open_fence = m.group(1)
                open_line = lineno
                candidate = classify_info(m.group(2).strip(), language_tag, skip_modifiers)
                body = []
            continue
        close = CLOSE_FENCE_RE.match(content)
        if close and len(close.group(1)) >= len(open_fence):
            if candidate is not None:
                blocks.append(_block(source_file, open_line, language_tag, body, candidate))
            open_fence = None
            continue
        body.append(line)
    if open_fence is not None:
        if on_unterminated is not None:
            on_unterminated(open_line)
        if candidate is not None:
            blocks.append(_block(source_file, open_line, language_tag, body, candidate))
    return blocks


def _block(source_file: Path, fence_line: int, language_tag: str, body: list[str], checked: bool) -> CodeBlock:
    return CodeBlock(
        source_file=source_file,
        start_line=fence_line + 1,
        language_tag=language_tag,
        raw_text="".join(body),
        checked=checked,
    )


def read_document(path: Path) -> str:
    try:
        return path.read_bytes().decode("utf-8")
    except OSError as exc:
        raise FatalScanError(f"unable to read documentation file {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise FatalScanError(f"documentation file is not valid UTF-8: {path}: {exc}") from exc


def extract_all(
    paths: Iterable[Path],
    *,
    language_tag: str,
    skip_modifiers: Collection[str],
    on_unterminated: Callable[[Path, int], None] | None = None,
) -> list[CodeBlock]:
    blocks: list[CodeBlock] = []
    for path in paths:
        hook = None if on_unterminated is None else (lambda line, p=path: on_unterminated(p, line))
        blocks.extend(
            extract_blocks(
                path,
                read_document(path),
                language_tag=language_tag,
                skip_modifiers=skip_modifiers,
                on_unterminated=hook,
            )
        )
    return blocks
