"""Compiler output parsing and line remapping.

A synthetic unit is ``K`` boilerplate lines, one separator line, then the block.
Raw line ``K + 1 + j`` is block-local line ``j`` and file line
``block.start_line + j - 1``; anything at or before the separator belongs to
the harness.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from .models import CodeBlock, Diagnostic, InfrastructureError, RemappedDiagnostic


@lru_cache(maxsize=None)
def diagnostic_pattern(unit_suffix: str = ".fe") -> re.Pattern[str]:
    """Diagnostic lines whose path is a unit written with ``unit_suffix``."""
    return re.compile(
        rf"^(?P<path>.+?{re.escape(unit_suffix)}):(?P<line>\d+):(?P<col>\d+):\s+(?P<message>\S.*)$"
    )


@dataclass(frozen=True)
class ParsedOutput:
    diagnostics: tuple[Diagnostic, ...]
    preamble: str


def parse_output(text: str, unit_suffix: str = ".fe") -> ParsedOutput:
    pattern = diagnostic_pattern(unit_suffix)
    preamble: list[str] = []
    rows: list[tuple[int, int, list[str]]] = []
    for line in text.split("\n"):
        m = pattern.match(line)
        if m:
            rows.append((int(m.group("line")), int(m.group("col")), [m.group("message").rstrip()]))
        elif rows:
            rows[-1][2].append(line.rstrip())
        elif line.strip():
            preamble.append(line.rstrip())
    diagnostics = tuple(Diagnostic(raw_line=ln, raw_col=col, message="\n".join(parts).rstrip()) for ln, col, parts in rows)
    return ParsedOutput(diagnostics=diagnostics, preamble="\n".join(preamble))


def block_local_line(raw_line: int, boilerplate_line_count: int) -> int:
    return raw_line - boilerplate_line_count - 1


def remap(
    diagnostics: tuple[Diagnostic, ...] | list[Diagnostic],
    block: CodeBlock,
    boilerplate_line_count: int,
) -> tuple[list[RemappedDiagnostic], list[InfrastructureError]]:
    remapped: list[RemappedDiagnostic] = []
    infrastructure: list[InfrastructureError] = []
    for diag in diagnostics:
        local = block_local_line(diag.raw_line, boilerplate_line_count)
        if local < 1:
            infrastructure.append(InfrastructureError(block=block, diagnostic=diag))
            continue
        remapped.append(
            RemappedDiagnostic(
                source_file=block.source_file,
                original_line=block.start_line + local - 1,
                col=diag.raw_col,
                message=diag.message,
            )
        )
    return remapped, infrastructure


def unlocated(block: CodeBlock, message: str) -> RemappedDiagnostic:
    """Compiler text with no position, pinned to the block's first line."""
    return RemappedDiagnostic(source_file=block.source_file, original_line=block.start_line, col=0, message=message)
