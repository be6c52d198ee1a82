"""Bulk-mark bare-tag fences as illustrative so the checker skips them.

Files under excluded directory names (``examples`` by default) are left alone:
those pages hold complete programs that should stay checked.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from ..snippets.extract import CLOSE_FENCE_RE, OPEN_FENCE_RE, read_document
from ..snippets.text import split_lines


@dataclass(frozen=True)
class AnnotateResult:
    path: Path
    fences: int


def annotate_text(text: str, language_tag: str, modifier: str) -> tuple[str, int]:
    out: list[str] = []
    open_fence: str | None = None
    changed = 0
    for line in split_lines(text):
        body = line.rstrip("\r\n")
        ending = line[len(body):]
        if open_fence is None:
            m = OPEN_FENCE_RE.match(body)
            if m:
                open_fence = m.group(1)
                if m.group(2).strip() == language_tag:
                    trailing = body[len(body.rstrip()):]
                    line = f"{open_fence}{language_tag} {modifier}{trailing}{ending}"
                    changed += 1
        else:
            close = CLOSE_FENCE_RE.match(body)
            if close and len(close.group(1)) >= len(open_fence):
                open_fence = None
        out.append(line)
    return "".join(out), changed


def annotate_files(
    paths: Iterable[Path],
    root: Path,
    *,
    language_tag: str,
    modifier: str,
    exclude_dirs: Iterable[str] = (),
    dry_run: bool = False,
) -> list[AnnotateResult]:
    excluded = set(exclude_dirs)
    results: list[AnnotateResult] = []
    for path in paths:
        try:
            parts = path.relative_to(root).parts[:-1]
        except ValueError:
            parts = path.parts[:-1]
        if excluded.intersection(parts):
            continue
        text = read_document(path)
        updated, count = annotate_text(text, language_tag, modifier)
        if not count:
            continue
        if not dry_run:
            path.write_bytes(updated.encode("utf-8"))
        results.append(AnnotateResult(path=path, fences=count))
    return results
