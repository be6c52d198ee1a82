"""Fencecheck core package."""
from .context import RunContext
from .errors import FatalScanError, RunCancelled, ScriptError
from .logging import log_event, utc_now_iso
from .serialize import dumps_json

__all__ = [
    "FatalScanError",
    "RunCancelled",
    "RunContext",
    "ScriptError",
    "dumps_json",
    "log_event",
    "utc_now_iso",
]
