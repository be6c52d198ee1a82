from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

from ..core.errors import FatalScanError
from ..core.scan import iter_files


def discover_documents(
    content_root: Path,
    extensions: Iterable[str],
    exclude_dirs: Iterable[str] = (),
    explicit: Sequence[Path] = (),
) -> list[Path]:
    """Documentation files in scan order; explicit files keep the order given."""
    if explicit:
        missing = [path for path in explicit if not path.is_file()]
        if missing:
            raise FatalScanError(f"documentation file not found: {missing[0]}")
        return list(explicit)
    if not content_root.is_dir():
        raise FatalScanError(f"content root is not a readable directory: {content_root}")
    try:
        return iter_files(content_root, extensions, exclude_dirs)
    except OSError as exc:
        raise FatalScanError(f"unable to scan content root {content_root}: {exc}") from exc
