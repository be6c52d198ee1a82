"""Console and JSON renderings of a finalized run summary."""

from __future__ import annotations

from ..contracts.validate import validate_self
from ..core.context import RunContext
from ..core.exit_codes import OK
from ..snippets.models import InfrastructureError, RemappedDiagnostic, RunSummary

REPORT_SCHEMA = "fencecheck.report.v1"
RULE = "=" * 38


def _diag_line(ctx: RunContext, diag: RemappedDiagnostic) -> list[str]:
    head, *rest = diag.message.split("\n")
    location = f"{ctx.display_path(diag.source_file)}:{diag.original_line}"
    if diag.col:
        location = f"{location}:{diag.col}"
    return [f"    {location}: {head}", *(f"      {line}" for line in rest)]


def _infra_line(ctx: RunContext, err: InfrastructureError, boilerplate_label: str) -> list[str]:
    diag = err.diagnostic
    block = err.block
    head, *rest = diag.message.split("\n")
    return [
        f"  {boilerplate_label}:{diag.raw_line}:{diag.raw_col}: {head}",
        *(f"      {line}" for line in rest),
        f"    (while checking {ctx.display_path(block.source_file)}:{block.start_line})",
    ]


def render_text(ctx: RunContext, summary: RunSummary, boilerplate_label: str = "<boilerplate>") -> str:
    lines = [
        RULE,
        "Documentation Example Check Results",
        RULE,
        f"Total blocks found: {summary.total_blocks_found}",
        f"Skipped: {summary.skipped}",
        f"Checked: {summary.checked}",
        f"Passed: {summary.passed}",
        f"Failed: {summary.failed}",
    ]
    failures = summary.failures
    if failures:
        lines += ["", "FAILURES"]
        for row in failures:
            lines.append(f"  {ctx.display_path(row.block.source_file)}:{row.block.start_line} [{row.status.value}]")
            for diag in row.diagnostics:
                lines.extend(_diag_line(ctx, diag))
            if row.infrastructure_errors and not row.diagnostics:
                lines.append("    (every diagnostic resolves inside the boilerplate; see HARNESS ERRORS)")
    if summary.infrastructure_errors:
        lines += ["", "HARNESS ERRORS (the shared boilerplate is broken; fix the harness, not the snippet)"]
        for err in summary.infrastructure_errors:
            lines.extend(_infra_line(ctx, err, boilerplate_label))
    lines.append("")
    if summary.infrastructure_errors:
        lines.append(f"HARNESS BROKEN: {len(summary.infrastructure_errors)} diagnostic(s) inside the boilerplate")
    elif summary.failed:
        lines.append(f"FAIL: {summary.failed} documentation example(s) failed")
    else:
        lines.append(f"OK: all {summary.checked} checked documentation example(s) passed")
    return "\n".join(lines)


def report_payload(ctx: RunContext, summary: RunSummary, boilerplate_label: str = "<boilerplate>") -> dict[str, object]:
    exit_code = summary.exit_code if summary.exit_code is not None else OK
    payload: dict[str, object] = {
        "schema_name": REPORT_SCHEMA,
        "schema_version": 1,
        "tool": "fencecheck",
        "run_id": ctx.run_id,
        "status": "ok" if exit_code == OK else ("error" if summary.infrastructure_errors else "fail"),
        "exit_code": exit_code,
        "boilerplate": boilerplate_label,
        "summary": {
            "total": summary.total_blocks_found,
            "skipped": summary.skipped,
            "checked": summary.checked,
            "passed": summary.passed,
            "failed": summary.failed,
        },
        "blocks": [
            {
                "file": ctx.display_path(row.block.source_file),
                "start_line": row.block.start_line,
                "status": row.status.value,
                "diagnostics": len(row.diagnostics),
                "duration_ms": row.duration_ms,
            }
            for row in summary.results
        ],
        "diagnostics": [
            {
                "file": ctx.display_path(diag.source_file),
                "line": diag.original_line,
                "col": diag.col,
                "message": diag.message,
                "block_start_line": row.block.start_line,
            }
            for row in summary.failures
            for diag in row.diagnostics
        ],
        "infrastructure_errors": [
            {
                "file": ctx.display_path(err.block.source_file),
                "start_line": err.block.start_line,
                "raw_line": err.diagnostic.raw_line,
                "col": err.diagnostic.raw_col,
                "message": err.diagnostic.message,
            }
            for err in summary.infrastructure_errors
        ],
    }
    return validate_self(REPORT_SCHEMA, payload)
