from __future__ import annotations

from dataclasses import dataclass

from .exit_codes import ERR_CANCELLED, ERR_INTERNAL, ERR_SCAN


@dataclass
class ScriptError(Exception):
    message: str
    code: int = ERR_INTERNAL
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message


class FatalScanError(ScriptError):
    """Content root, a documentation file, or the boilerplate could not be read."""

    def __init__(self, message: str) -> None:
        super().__init__(message, ERR_SCAN, kind="fatal_scan")


class RunCancelled(ScriptError):
    def __init__(self, message: str = "run cancelled") -> None:
        super().__init__(message, ERR_CANCELLED, kind="cancelled")
