"""Extraction, directive validation, unit building and remapping for documentation snippets."""
from .boilerplate import build_unit, load_boilerplate
from .extract import classify_info, extract_all, extract_blocks
from .hidden import MarkerGrammar, check_balance, strip_hidden
from .models import (
    BlockResult,
    BlockStatus,
    BoilerplateUnit,
    CodeBlock,
    Diagnostic,
    InfrastructureError,
    RemappedDiagnostic,
    RunSummary,
    SyntheticUnit,
)
from .remap import parse_output, remap

__all__ = [
    "BlockResult",
    "BlockStatus",
    "BoilerplateUnit",
    "CodeBlock",
    "Diagnostic",
    "InfrastructureError",
    "MarkerGrammar",
    "RemappedDiagnostic",
    "RunSummary",
    "SyntheticUnit",
    "build_unit",
    "check_balance",
    "classify_info",
    "extract_all",
    "extract_blocks",
    "load_boilerplate",
    "parse_output",
    "remap",
    "strip_hidden",
]
