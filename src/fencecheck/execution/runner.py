from __future__ import annotations

import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from ..config import Config
from ..core.context import RunContext
from ..core.errors import RunCancelled
from ..core.logging import log_event
from ..reporting.aggregate import add_result, finalize
from ..snippets.boilerplate import build_unit, load_boilerplate
from ..snippets.extract import extract_all
from ..snippets.hidden import MarkerGrammar, check_balance
from ..snippets.models import BlockResult, BlockStatus, BoilerplateUnit, CodeBlock, RunSummary
from ..snippets.remap import parse_output, remap, unlocated
from ..snippets.scanner import discover_documents
from .compiler import Compiler, CompilerTimeout, ProcessRegistry, SubprocessCompiler, resolve_executable


@dataclass(frozen=True)
class CheckContext:
    """Read-only state shared by every worker; built once before the pool starts."""

    run: RunContext
    boilerplate: BoilerplateUnit
    grammar: MarkerGrammar
    compiler: Compiler
    separator: str = ""
    unit_suffix: str = ".fe"


def check_block(ctx: CheckContext, block: CodeBlock) -> BlockResult:
    if not block.checked or block.is_empty:
        return BlockResult(block=block, status=BlockStatus.SKIPPED)
    problem = check_balance(block, ctx.grammar)
    if problem is not None:
        return BlockResult(block=block, status=BlockStatus.DIRECTIVE_ERROR, diagnostics=(problem,))
    unit = build_unit(ctx.boilerplate, block, ctx.separator)
    started = time.monotonic()
    try:
        result = ctx.compiler.invoke(unit.combined_text)
    except CompilerTimeout as exc:
        log_event(ctx.run, "warn", "compiler", "timeout", file=block.source_file, line=block.start_line)
        message = str(exc) if not exc.output.strip() else f"{exc}\n{exc.output.rstrip()}"
        return BlockResult(
            block=block,
            status=BlockStatus.TIMEOUT_FAILURE,
            diagnostics=(unlocated(block, message),),
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    except OSError as exc:
        return BlockResult(
            block=block,
            status=BlockStatus.UNKNOWN_FAILURE,
            diagnostics=(unlocated(block, f"unable to run compiler: {exc}"),),
        )
    log_event(
        ctx.run,
        "debug",
        "compiler",
        "invoke",
        file=block.source_file,
        line=block.start_line,
        code=result.exit_code,
        duration_ms=result.duration_ms,
    )
    if result.exit_code == 0:
        return BlockResult(block=block, status=BlockStatus.PASSED, duration_ms=result.duration_ms)
    parsed = parse_output(result.combined_output, ctx.unit_suffix)
    if not parsed.diagnostics:
        raw = result.combined_output or f"compiler exited with status {result.exit_code} and no output"
        return BlockResult(
            block=block,
            status=BlockStatus.UNKNOWN_FAILURE,
            diagnostics=(unlocated(block, raw),),
            duration_ms=result.duration_ms,
        )
    remapped, infrastructure = remap(parsed.diagnostics, block, ctx.boilerplate.line_count)
    if parsed.preamble:
        remapped.insert(0, unlocated(block, parsed.preamble))
    for err in infrastructure:
        log_event(
            ctx.run,
            "error",
            "remap",
            "boilerplate-diagnostic",
            file=block.source_file,
            line=block.start_line,
            raw_line=err.diagnostic.raw_line,
        )
    return BlockResult(
        block=block,
        status=BlockStatus.COMPILE_FAILURE,
        diagnostics=tuple(remapped),
        infrastructure_errors=tuple(infrastructure),
        duration_ms=result.duration_ms,
    )


def run_blocks(
    ctx: CheckContext,
    blocks: Sequence[CodeBlock],
    jobs: int = 1,
    registry: ProcessRegistry | None = None,
    on_result: Callable[[BlockResult], None] | None = None,
) -> RunSummary:
    """Check every block on a bounded pool; results are collected in scan order."""
    summary = RunSummary()
    executor = ThreadPoolExecutor(max_workers=max(1, jobs), thread_name_prefix="fencecheck")
    futures: list[Future[BlockResult]] = []
    try:
        futures = [executor.submit(check_block, ctx, block) for block in blocks]
        for future in futures:
            result = future.result()
            add_result(summary, result)
            if on_result is not None:
                on_result(result)
    except (KeyboardInterrupt, RunCancelled):
        killed = registry.terminate_all() if registry is not None else 0
        for future in futures:
            future.cancel()
        log_event(
            ctx.run,
            "warn",
            "runner",
            "cancelled",
            completed=len(summary.results),
            total=len(blocks),
            killed=killed,
        )
        raise RunCancelled(f"run cancelled after {len(summary.results)} of {len(blocks)} blocks; report incomplete")
    finally:
        executor.shutdown(wait=True, cancel_futures=True)
    return finalize(summary)


def collect_blocks(run: RunContext, cfg: Config, files: Sequence[Path] = ()) -> list[CodeBlock]:
    paths = discover_documents(cfg.content_root, cfg.extensions, cfg.exclude_dirs, files)

    def _unterminated(path: Path, line: int) -> None:
        log_event(run, "warn", "extract", "unterminated-fence", file=run.display_path(path), line=line)

    blocks = extract_all(
        paths,
        language_tag=cfg.language_tag,
        skip_modifiers=cfg.skip_modifiers,
        on_unterminated=_unterminated,
    )
    log_event(run, "info", "scan", "complete", files=len(paths), blocks=len(blocks))
    return blocks


def run_checks(
    run: RunContext,
    cfg: Config,
    files: Sequence[Path] = (),
    compiler: Compiler | None = None,
    on_result: Callable[[BlockResult], None] | None = None,
) -> RunSummary:
    blocks = collect_blocks(run, cfg, files)
    boilerplate = load_boilerplate(cfg.boilerplate)
    registry: ProcessRegistry | None = None
    if compiler is None:
        registry = ProcessRegistry()
        needs_compiler = any(block.checked and not block.is_empty for block in blocks)
        command = cfg.compiler
        if needs_compiler:
            command = (resolve_executable(cfg.compiler), *cfg.compiler[1:])
        compiler = SubprocessCompiler(
            command,
            cfg.check_args,
            unit_suffix=cfg.unit_suffix,
            timeout_seconds=cfg.timeout_seconds,
            registry=registry,
        )
    ctx = CheckContext(
        run=run,
        boilerplate=boilerplate,
        grammar=MarkerGrammar.build(cfg.hide_start, cfg.hide_end, cfg.comment_token),
        compiler=compiler,
        separator=cfg.separator,
        unit_suffix=cfg.unit_suffix,
    )
    log_event(run, "info", "runner", "start", blocks=len(blocks), jobs=cfg.jobs, boilerplate_lines=boilerplate.line_count)
    summary = run_blocks(ctx, blocks, jobs=cfg.jobs, registry=registry, on_result=on_result)
    log_event(
        run,
        "info",
        "runner",
        "complete",
        passed=summary.passed,
        failed=summary.failed,
        skipped=summary.skipped,
        infrastructure_errors=len(summary.infrastructure_errors),
    )
    return summary
