from __future__ import annotations

from typing import Iterable

from ..core.exit_codes import ERR_EXAMPLES, ERR_INFRA, OK
from ..snippets.models import BlockResult, BlockStatus, RunSummary


def add_result(summary: RunSummary, result: BlockResult) -> None:
    if summary.finalized:
        raise RuntimeError("run summary is already finalized")
    summary.results.append(result)
    summary.total_blocks_found += 1
    if result.status is BlockStatus.SKIPPED:
        summary.skipped += 1
        return
    summary.checked += 1
    if result.status is BlockStatus.PASSED:
        summary.passed += 1
    else:
        summary.failed += 1
    summary.diagnostics.extend(result.diagnostics)
    summary.infrastructure_errors.extend(result.infrastructure_errors)


def exit_code_for(summary: RunSummary) -> int:
    if summary.infrastructure_errors:
        return ERR_INFRA
    if summary.failed:
        return ERR_EXAMPLES
    return OK


def finalize(summary: RunSummary) -> RunSummary:
    summary.exit_code = exit_code_for(summary)
    return summary


def summarize(results: Iterable[BlockResult]) -> RunSummary:
    summary = RunSummary()
    for result in results:
        add_result(summary, result)
    return finalize(summary)
