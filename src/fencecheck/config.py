"""Configuration loading.

Precedence, lowest first: built-in defaults, the ``[tool.fencecheck]`` table of
``pyproject.toml`` or a standalone ``fencecheck.toml``, ``FENCECHECK_*``
environment variables, then command-line overrides.
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

try:
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]

from .contracts.validate import validate
from .core.env import getenv
from .core.errors import ScriptError
from .core.exit_codes import ERR_CONFIG

CONFIG_SCHEMA = "fencecheck.config.v1"
STANDALONE_CONFIG = "fencecheck.toml"
MAX_JOBS = 64


def _default_jobs() -> int:
    return max(1, min(8, os.cpu_count() or 1))


@dataclass(frozen=True)
class Config:
    content_root: Path = Path("src/content/docs")
    boilerplate: Path | None = None
    compiler: tuple[str, ...] = ("fe",)
    check_args: tuple[str, ...] = ("check",)
    unit_suffix: str = ".fe"
    language_tag: str = "fe"
    skip_modifiers: frozenset[str] = frozenset({"ignore"})
    extensions: tuple[str, ...] = (".md", ".mdx")
    exclude_dirs: tuple[str, ...] = ("node_modules", ".git")
    hide_start: str = "<hide>"
    hide_end: str = "</hide>"
    comment_token: str = "//"
    separator: str = ""
    jobs: int = field(default_factory=_default_jobs)
    timeout_seconds: float = 60.0
    annotate_exclude: tuple[str, ...] = ("examples",)
    source: Path | None = None

    def with_overrides(self, **overrides: Any) -> "Config":
        values = {key: value for key, value in overrides.items() if value is not None}
        if "compiler" in values:
            values["compiler"] = _split_command(values["compiler"])
        for key in ("content_root", "boilerplate"):
            if key in values:
                values[key] = Path(values[key])
        updated = replace(self, **values)
        _check_bounds(updated)
        return updated


def _split_command(raw: str | list[str] | tuple[str, ...]) -> tuple[str, ...]:
    parts = tuple(shlex.split(raw)) if isinstance(raw, str) else tuple(raw)
    if not parts:
        raise ScriptError("compiler command must not be empty", ERR_CONFIG, kind="config")
    return parts


def _check_bounds(cfg: Config) -> None:
    if not 1 <= cfg.jobs <= MAX_JOBS:
        raise ScriptError(f"jobs must be between 1 and {MAX_JOBS}, got {cfg.jobs}", ERR_CONFIG, kind="config")
    if cfg.timeout_seconds <= 0:
        raise ScriptError(f"timeout must be positive, got {cfg.timeout_seconds}", ERR_CONFIG, kind="config")
    if "\n" in cfg.separator or "\r" in cfg.separator:
        raise ScriptError("separator must be a single line", ERR_CONFIG, kind="config")


def find_config_file(start: Path) -> Path | None:
    cur = start.resolve()
    while True:
        standalone = cur / STANDALONE_CONFIG
        if standalone.is_file():
            return standalone
        pyproject = cur / "pyproject.toml"
        if pyproject.is_file() and "fencecheck" in _read_toml(pyproject).get("tool", {}):
            return pyproject
        if cur.parent == cur:
            return None
        cur = cur.parent


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ScriptError(f"unable to read config {path}: {exc}", ERR_CONFIG, kind="config") from exc


def _table_from(path: Path) -> dict[str, Any]:
    raw = _read_toml(path)
    if path.name == "pyproject.toml":
        return dict(raw.get("tool", {}).get("fencecheck", {}))
    return raw


def _from_table(table: dict[str, Any], base_dir: Path, source: Path | None) -> Config:
    validate(CONFIG_SCHEMA, table, code=ERR_CONFIG)
    cfg = Config(source=source)
    values: dict[str, Any] = {}
    for key in ("content_root", "boilerplate"):
        if key in table:
            values[key] = (base_dir / table[key]).resolve()
    if "compiler" in table:
        values["compiler"] = _split_command(table["compiler"])
    for key in ("check_args", "extensions", "exclude_dirs", "annotate_exclude"):
        if key in table:
            values[key] = tuple(table[key])
    if "skip_modifiers" in table:
        values["skip_modifiers"] = frozenset(table["skip_modifiers"])
    for key in ("unit_suffix", "language_tag", "hide_start", "hide_end", "comment_token", "separator", "jobs"):
        if key in table:
            values[key] = table[key]
    if "timeout_seconds" in table:
        values["timeout_seconds"] = float(table["timeout_seconds"])
    if "content_root" not in values:
        values["content_root"] = (base_dir / cfg.content_root).resolve()
    return replace(cfg, **values)


def _env_overrides() -> dict[str, Any]:
    out: dict[str, Any] = {}
    compiler = getenv("FENCECHECK_COMPILER")
    if compiler:
        out["compiler"] = compiler
    for name, key, cast in (("FENCECHECK_JOBS", "jobs", int), ("FENCECHECK_TIMEOUT", "timeout_seconds", float)):
        raw = getenv(name)
        if not raw:
            continue
        try:
            out[key] = cast(raw)
        except ValueError as exc:
            raise ScriptError(f"invalid {name}={raw!r}", ERR_CONFIG, kind="config") from exc
    return out


def load_config(explicit: Path | None = None, cwd: Path | None = None) -> Config:
    base = (cwd or Path.cwd()).resolve()
    if explicit is not None:
        if not explicit.is_file():
            raise ScriptError(f"config file not found: {explicit}", ERR_CONFIG, kind="config")
        path: Path | None = explicit.resolve()
    else:
        path = find_config_file(base)
    if path is None:
        cfg = _from_table({}, base, None)
    else:
        cfg = _from_table(_table_from(path), path.parent, path)
    return cfg.with_overrides(**_env_overrides())
