from __future__ import annotations

from pathlib import Path
from typing import Iterable


def iter_files(root: Path, suffixes: Iterable[str], excluded_parts: Iterable[str] = ()) -> list[Path]:
    wanted = set(suffixes)
    excluded = set(excluded_parts)
    out: list[Path] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        if any(part in excluded for part in path.relative_to(root).parts):
            continue
        if path.suffix in wanted:
            out.append(path)
    return out
