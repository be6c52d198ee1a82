from __future__ import annotations

import json
from pathlib import Path

import pytest

from fencecheck.contracts.validate import validate
from fencecheck.core.context import RunContext
from fencecheck.core.errors import ScriptError
from fencecheck.reporting.aggregate import add_result, exit_code_for, summarize
from fencecheck.reporting.render import render_text, report_payload
from fencecheck.snippets.models import (
    BlockResult,
    BlockStatus,
    CodeBlock,
    Diagnostic,
    InfrastructureError,
    RemappedDiagnostic,
    RunSummary,
)


def _block(tmp_path: Path, start_line: int, checked: bool = True) -> CodeBlock:
    return CodeBlock(
        source_file=tmp_path / "docs" / "guide.md",
        start_line=start_line,
        language_tag="fe",
        raw_text="fn main() {}\n",
        checked=checked,
    )


def _failure(tmp_path: Path, start_line: int, message: str) -> BlockResult:
    block = _block(tmp_path, start_line)
    diag = RemappedDiagnostic(source_file=block.source_file, original_line=start_line, col=3, message=message)
    return BlockResult(block=block, status=BlockStatus.COMPILE_FAILURE, diagnostics=(diag,))


def test_counts_follow_statuses(tmp_path: Path) -> None:
    summary = summarize(
        [
            BlockResult(block=_block(tmp_path, 2, checked=False), status=BlockStatus.SKIPPED),
            BlockResult(block=_block(tmp_path, 6), status=BlockStatus.PASSED),
            _failure(tmp_path, 10, "type mismatch"),
            BlockResult(block=_block(tmp_path, 14), status=BlockStatus.TIMEOUT_FAILURE),
        ]
    )
    assert (summary.total_blocks_found, summary.skipped, summary.checked, summary.passed, summary.failed) == (4, 1, 3, 1, 2)
    assert summary.exit_code == 1
    assert [d.message for d in summary.diagnostics] == ["type mismatch"]


@pytest.mark.parametrize(
    ("failed", "infra", "expected"),
    [(0, 0, 0), (2, 0, 1), (0, 1, 3), (3, 1, 3)],
)
def test_exit_code_law(tmp_path: Path, failed: int, infra: int, expected: int) -> None:
    summary = RunSummary(failed=failed)
    block = _block(tmp_path, 2)
    summary.infrastructure_errors = [InfrastructureError(block=block, diagnostic=Diagnostic(1, 1, "x"))] * infra
    assert exit_code_for(summary) == expected


def test_finalized_summary_rejects_more_results(tmp_path: Path) -> None:
    summary = summarize([])
    assert summary.exit_code == 0
    with pytest.raises(RuntimeError):
        add_result(summary, BlockResult(block=_block(tmp_path, 2), status=BlockStatus.PASSED))


def test_text_report_lists_failures_and_harness_errors_separately(tmp_path: Path) -> None:
    ctx = RunContext.from_args("r1", cwd=tmp_path)
    block = _block(tmp_path, 20)
    infra = InfrastructureError(block=block, diagnostic=Diagnostic(3, 7, "unknown type `Ctx`"))
    summary = summarize(
        [
            _failure(tmp_path, 10, "type mismatch\n  = note: expected u256"),
            BlockResult(block=block, status=BlockStatus.COMPILE_FAILURE, infrastructure_errors=(infra,)),
        ]
    )
    text = render_text(ctx, summary, "prelude.fe")
    assert "Total blocks found: 2" in text
    assert "Failed: 2" in text
    assert "  docs/guide.md:10 [compile_failure]" in text
    assert "    docs/guide.md:10:3: type mismatch" in text
    assert "      = note: expected u256" in text
    assert "HARNESS ERRORS" in text
    assert "  prelude.fe:3:7: unknown type `Ctx`" in text
    assert "(while checking docs/guide.md:20)" in text
    assert text.splitlines()[-1].startswith("HARNESS BROKEN")
    assert text.index("FAILURES") < text.index("HARNESS ERRORS")


def test_clean_report_ends_with_ok(tmp_path: Path) -> None:
    ctx = RunContext.from_args("r1", cwd=tmp_path)
    summary = summarize([BlockResult(block=_block(tmp_path, 6), status=BlockStatus.PASSED)])
    text = render_text(ctx, summary)
    assert "FAILURES" not in text
    assert text.splitlines()[-1] == "OK: all 1 checked documentation example(s) passed"


def test_json_payload_matches_schema(tmp_path: Path) -> None:
    ctx = RunContext.from_args("r1", cwd=tmp_path)
    summary = summarize([_failure(tmp_path, 10, "type mismatch")])
    payload = report_payload(ctx, summary, "prelude.fe")
    assert payload["status"] == "fail"
    assert payload["exit_code"] == 1
    assert payload["diagnostics"] == [
        {"file": "docs/guide.md", "line": 10, "col": 3, "message": "type mismatch", "block_start_line": 10}
    ]
    validate("fencecheck.report.v1", json.loads(json.dumps(payload)))


def test_schema_violation_is_a_script_error() -> None:
    with pytest.raises(ScriptError) as exc:
        validate("fencecheck.report.v1", {"schema_name": "fencecheck.report.v1"})
    assert exc.value.code == 6
