from __future__ import annotations

import argparse
import os
import signal
import sys
from pathlib import Path
from typing import Callable

from .. import __version__
from ..commands.annotate import annotate_files
from ..commands.show import block_at, parse_location, render_block
from ..config import Config, load_config
from ..core.context import RunContext
from ..core.errors import ScriptError
from ..core.exit_codes import ERR_CANCELLED, ERR_INTERNAL, OK
from ..core.logging import log_event
from ..core.serialize import dumps_json
from ..execution.runner import collect_blocks, run_checks
from ..reporting.render import render_text, report_payload
from ..snippets.hidden import MarkerGrammar
from ..snippets.models import BlockResult, BlockStatus
from ..snippets.scanner import discover_documents
from .output import emit, render_error


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="fencecheck", description="Type-check code examples embedded in documentation.")
    p.add_argument("--version", action="version", version=f"fencecheck {__version__}")
    p.add_argument("--config", help="explicit fencecheck.toml or pyproject.toml path")
    p.add_argument("--cwd", help="run from an explicit project directory")
    p.add_argument("--run-id", help="run identifier attached to log events and reports")
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--log-json", action="store_true", help="emit log events as JSON lines on stderr")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("-v", "--verbose", action="store_true", help="per-block progress and debug events")
    vg.add_argument("-q", "--quiet", action="store_true", help="only emit warnings and errors on stderr")
    sub = p.add_subparsers(dest="cmd", required=True)

    check_p = sub.add_parser("check", help="extract, compile and report every documentation example")
    check_p.add_argument("files", nargs="*", help="specific documentation files (default: whole content root)")
    check_p.add_argument("--content-root", help="documentation root directory")
    check_p.add_argument("--boilerplate", help="prelude source prepended to every example")
    check_p.add_argument("--compiler", help="compiler command (split shell-style)")
    check_p.add_argument("--jobs", type=int, help="concurrent compiler invocations")
    check_p.add_argument("--timeout", type=float, help="per-invocation time budget in seconds")
    check_p.add_argument("--out-file", help="also write the JSON report to this path")

    list_p = sub.add_parser("list", help="list candidate blocks without compiling them")
    list_p.add_argument("files", nargs="*", help="specific documentation files (default: whole content root)")
    list_p.add_argument("--content-root", help="documentation root directory")

    annotate_p = sub.add_parser("annotate", help="mark bare-tag fences with the skip modifier")
    annotate_p.add_argument("--content-root", help="documentation root directory")
    annotate_p.add_argument("--exclude-dir", action="append", help="directory name to leave untouched (repeatable)")
    annotate_p.add_argument("--modifier", help="skip modifier to add (default: first configured)")
    annotate_p.add_argument("--dry-run", action="store_true", help="report files without rewriting them")

    show_p = sub.add_parser("show", help="print a block as rendered, with hidden regions removed")
    show_p.add_argument("location", help="FILE:LINE inside the block")
    return p


def _progress(ctx: RunContext) -> Callable[[BlockResult], None]:
    def _emit(result: BlockResult) -> None:
        block = result.block
        if result.status is BlockStatus.SKIPPED:
            verdict = "SKIPPED"
        else:
            verdict = "FAILED" if result.status.is_failure else "OK"
        print(f"checking {ctx.display_path(block.source_file)}:{block.start_line} ... {verdict}", flush=True)

    return _emit


def _boilerplate_label(ctx: RunContext, cfg: Config) -> str:
    return ctx.display_path(cfg.boilerplate) if cfg.boilerplate is not None else "<boilerplate>"


def _run_check(ctx: RunContext, cfg: Config, ns: argparse.Namespace, as_json: bool) -> int:
    cfg = cfg.with_overrides(
        content_root=ns.content_root,
        boilerplate=ns.boilerplate,
        compiler=ns.compiler,
        jobs=ns.jobs,
        timeout_seconds=ns.timeout,
    )
    progress = _progress(ctx) if ctx.verbose and not as_json else None
    summary = run_checks(ctx, cfg, [Path(f) for f in ns.files], on_result=progress)
    label = _boilerplate_label(ctx, cfg)
    if as_json or ns.out_file:
        payload = report_payload(ctx, summary, label)
        if ns.out_file:
            out = Path(ns.out_file)
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(dumps_json(payload, pretty=True) + "\n", encoding="utf-8")
        if as_json:
            emit(payload, True)
    if not as_json:
        print(render_text(ctx, summary, label))
    return summary.exit_code if summary.exit_code is not None else ERR_INTERNAL


def _run_list(ctx: RunContext, cfg: Config, ns: argparse.Namespace, as_json: bool) -> int:
    cfg = cfg.with_overrides(content_root=ns.content_root)
    blocks = collect_blocks(ctx, cfg, [Path(f) for f in ns.files])
    rows = [
        {
            "file": ctx.display_path(block.source_file),
            "start_line": block.start_line,
            "mode": ("checked" if block.checked else "skipped") if not block.is_empty else "empty",
            "lines": block.line_count,
        }
        for block in blocks
    ]
    checked = sum(1 for row in rows if row["mode"] == "checked")
    if as_json:
        emit({"schema_version": 1, "tool": "fencecheck", "run_id": ctx.run_id, "blocks": rows, "checked": checked}, True)
        return OK
    for row in rows:
        print(f"{row['file']}:{row['start_line']} {row['mode']}")
    print(f"found {len(rows)} {cfg.language_tag} block(s), {checked} checked")
    return OK


def _run_annotate(ctx: RunContext, cfg: Config, ns: argparse.Namespace, as_json: bool) -> int:
    cfg = cfg.with_overrides(content_root=ns.content_root)
    modifier = ns.modifier or ("ignore" if "ignore" in cfg.skip_modifiers else sorted(cfg.skip_modifiers)[0])
    paths = discover_documents(cfg.content_root, cfg.extensions, cfg.exclude_dirs)
    results = annotate_files(
        paths,
        cfg.content_root,
        language_tag=cfg.language_tag,
        modifier=modifier,
        exclude_dirs=ns.exclude_dir or cfg.annotate_exclude,
        dry_run=ns.dry_run,
    )
    log_event(ctx, "info", "annotate", "complete", files=len(results), dry_run=ns.dry_run)
    if as_json:
        emit(
            {
                "schema_version": 1,
                "tool": "fencecheck",
                "run_id": ctx.run_id,
                "dry_run": ns.dry_run,
                "modifier": modifier,
                "files": [{"file": ctx.display_path(r.path), "fences": r.fences} for r in results],
            },
            True,
        )
        return OK
    for r in results:
        print(f"{'would annotate' if ns.dry_run else 'annotated'}: {ctx.display_path(r.path)} ({r.fences} fence(s))")
    print(f"{sum(r.fences for r in results)} fence(s) in {len(results)} file(s)")
    return OK


def _run_show(ctx: RunContext, cfg: Config, ns: argparse.Namespace, as_json: bool) -> int:
    path, line = parse_location(ns.location)
    block = block_at(path, line, language_tag=cfg.language_tag, skip_modifiers=cfg.skip_modifiers)
    rendered = render_block(block, MarkerGrammar.build(cfg.hide_start, cfg.hide_end, cfg.comment_token))
    if as_json:
        emit({"file": ctx.display_path(path), "start_line": block.start_line, "rendered": rendered}, True)
    else:
        sys.stdout.write(rendered)
    return OK


COMMANDS = {
    "check": _run_check,
    "list": _run_list,
    "annotate": _run_annotate,
    "show": _run_show,
}


def _raise_interrupt(_signum: int, _frame: object) -> None:
    raise KeyboardInterrupt


def main(argv: list[str] | None = None) -> int:
    ns = build_parser().parse_args(argv)
    if ns.cwd:
        os.chdir(ns.cwd)
    ctx = RunContext.from_args(
        ns.run_id,
        "json" if ns.json else "text",
        verbose=ns.verbose,
        quiet=ns.quiet,
        log_json=ns.log_json,
    )
    as_json = ctx.output_format == "json"
    previous = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        cfg = load_config(Path(ns.config) if ns.config else None, ctx.cwd)
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, config=cfg.source or "<defaults>")
        return COMMANDS[ns.cmd](ctx, cfg, ns, as_json)
    except ScriptError as exc:
        log_event(ctx, "error", "cli", exc.kind, code=exc.code)
        print(render_error(as_json=as_json, message=str(exc), code=exc.code, kind=exc.kind), file=sys.stderr)
        return exc.code
    except KeyboardInterrupt:
        print(render_error(as_json=as_json, message="interrupted; report incomplete", code=ERR_CANCELLED), file=sys.stderr)
        return ERR_CANCELLED
    except Exception as exc:  # pragma: no cover
        print(render_error(as_json=as_json, message=f"internal error: {exc}", code=ERR_INTERNAL), file=sys.stderr)
        return ERR_INTERNAL
    finally:
        signal.signal(signal.SIGTERM, previous)


if __name__ == "__main__":
    raise SystemExit(main())
