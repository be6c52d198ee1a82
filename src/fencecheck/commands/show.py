from __future__ import annotations

from pathlib import Path
from typing import Collection

from ..core.errors import ScriptError
from ..core.exit_codes import ERR_USAGE
from ..snippets.extract import extract_blocks, read_document
from ..snippets.hidden import MarkerGrammar, strip_hidden
from ..snippets.models import CodeBlock


def parse_location(raw: str) -> tuple[Path, int]:
    path, sep, line = raw.rpartition(":")
    if not sep or not path or not line.isdigit() or int(line) < 1:
        raise ScriptError(f"expected FILE:LINE, got {raw!r}", ERR_USAGE, kind="usage")
    return Path(path), int(line)


def block_at(path: Path, line: int, *, language_tag: str, skip_modifiers: Collection[str]) -> CodeBlock:
    """The candidate block whose fences or body cover ``line``."""
    for block in extract_blocks(path, read_document(path), language_tag=language_tag, skip_modifiers=skip_modifiers):
        if block.start_line - 1 <= line <= block.start_line + block.line_count:
            return block
    raise ScriptError(f"no {language_tag} block at {path}:{line}", ERR_USAGE, kind="usage")


def render_block(block: CodeBlock, grammar: MarkerGrammar) -> str:
    return strip_hidden(block.raw_text, grammar)
