from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .text import count_lines


class BlockStatus(str, Enum):
    SKIPPED = "skipped"
    PASSED = "passed"
    DIRECTIVE_ERROR = "directive_error"
    COMPILE_FAILURE = "compile_failure"
    UNKNOWN_FAILURE = "unknown_failure"
    TIMEOUT_FAILURE = "timeout_failure"

    @property
    def is_failure(self) -> bool:
        return self not in (BlockStatus.SKIPPED, BlockStatus.PASSED)


@dataclass(frozen=True)
class CodeBlock:
    source_file: Path
    start_line: int
    language_tag: str
    raw_text: str
    checked: bool

    @property
    def line_count(self) -> int:
        return count_lines(self.raw_text)

    @property
    def is_empty(self) -> bool:
        return not self.raw_text.strip()


@dataclass(frozen=True)
class BoilerplateUnit:
    text: str
    line_count: int
    path: Path | None = None


@dataclass(frozen=True)
class SyntheticUnit:
    block: CodeBlock
    combined_text: str


@dataclass(frozen=True)
class Diagnostic:
    raw_line: int
    raw_col: int
    message: str


@dataclass(frozen=True)
class RemappedDiagnostic:
    source_file: Path
    original_line: int
    col: int
    message: str


@dataclass(frozen=True)
class InfrastructureError:
    """A compiler diagnostic that resolves inside the shared prelude."""

    block: CodeBlock
    diagnostic: Diagnostic


@dataclass(frozen=True)
class BlockResult:
    block: CodeBlock
    status: BlockStatus
    diagnostics: tuple[RemappedDiagnostic, ...] = ()
    infrastructure_errors: tuple[InfrastructureError, ...] = ()
    duration_ms: int = 0


@dataclass
class RunSummary:
    total_blocks_found: int = 0
    skipped: int = 0
    checked: int = 0
    passed: int = 0
    failed: int = 0
    results: list[BlockResult] = field(default_factory=list)
    diagnostics: list[RemappedDiagnostic] = field(default_factory=list)
    infrastructure_errors: list[InfrastructureError] = field(default_factory=list)
    exit_code: int | None = None

    @property
    def finalized(self) -> bool:
        return self.exit_code is not None

    @property
    def failures(self) -> list[BlockResult]:
        return [row for row in self.results if row.status.is_failure]
