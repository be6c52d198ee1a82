from __future__ import annotations

from pathlib import Path

from ..core.errors import FatalScanError
from .models import BoilerplateUnit, CodeBlock, SyntheticUnit
from .text import count_lines

EMPTY_BOILERPLATE = BoilerplateUnit(text="", line_count=0)


def load_boilerplate(path: Path | None) -> BoilerplateUnit:
    """Read the shared prelude once; its text always ends with a newline."""
    if path is None:
        return EMPTY_BOILERPLATE
    try:
        text = path.read_bytes().decode("utf-8")
    except OSError as exc:
        raise FatalScanError(f"unable to read boilerplate {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise FatalScanError(f"boilerplate is not valid UTF-8: {path}: {exc}") from exc
    if text and not text.endswith("\n"):
        text += "\n"
    return BoilerplateUnit(text=text, line_count=count_lines(text), path=path)


def build_unit(boilerplate: BoilerplateUnit, block: CodeBlock, separator: str = "") -> SyntheticUnit:
    return SyntheticUnit(block=block, combined_text=f"{boilerplate.text}{separator}\n{block.raw_text}")
