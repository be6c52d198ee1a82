"""External compiler boundary.

The rest of the pipeline only sees ``Compiler.invoke(unit_text)``; temp files,
subprocess handles, timeouts and cancellation stay in this module.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import signal
import subprocess
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Protocol, Sequence

from ..core.errors import RunCancelled, ScriptError
from ..core.exit_codes import ERR_CONFIG

DRAIN_SECONDS = 5.0


@dataclass(frozen=True)
class InvocationResult:
    exit_code: int
    combined_output: str
    duration_ms: int = 0


class CompilerTimeout(Exception):
    def __init__(self, timeout_seconds: float, output: str = "") -> None:
        super().__init__(f"compiler timed out after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds
        self.output = output


class Compiler(Protocol):
    def invoke(self, unit_text: str) -> InvocationResult: ...


class ProcessRegistry:
    """In-flight compiler children, so a cancelled run can kill all of them."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._procs: set[subprocess.Popen[str]] = set()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __len__(self) -> int:
        with self._lock:
            return len(self._procs)

    @contextlib.contextmanager
    def tracking(self, proc: subprocess.Popen[str]) -> Iterator[None]:
        with self._lock:
            if self._cancelled:
                kill_group(proc)
                proc.wait()
                raise RunCancelled()
            self._procs.add(proc)
        try:
            yield
        finally:
            with self._lock:
                self._procs.discard(proc)

    def terminate_all(self) -> int:
        with self._lock:
            self._cancelled = True
            procs = list(self._procs)
        for proc in procs:
            kill_group(proc)
        return len(procs)


def kill_group(proc: subprocess.Popen[str]) -> None:
    """Kill the compiler and anything it spawned; wrappers leave grandchildren holding the pipe."""
    with contextlib.suppress(ProcessLookupError, PermissionError):
        if os.name != "nt":
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()


def drain(proc: subprocess.Popen[str], timeout: float = DRAIN_SECONDS) -> str:
    try:
        output, _ = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        # a child outside the process group still holds stdout
        if proc.stdout is not None:
            proc.stdout.close()
        proc.wait()
        return ""
    return output or ""


@contextlib.contextmanager
def unit_file(text: str, suffix: str, directory: Path | None = None) -> Iterator[Path]:
    fd, name = tempfile.mkstemp(prefix="fencecheck-", suffix=suffix, dir=directory)
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
        yield path
    finally:
        with contextlib.suppress(FileNotFoundError):
            path.unlink()


def resolve_executable(command: Sequence[str]) -> str:
    found = shutil.which(command[0])
    if found is None:
        raise ScriptError(f"compiler executable not found: {command[0]}", ERR_CONFIG, kind="compiler_missing")
    return found


class SubprocessCompiler:
    def __init__(
        self,
        command: Sequence[str],
        check_args: Sequence[str] = ("check",),
        *,
        unit_suffix: str = ".fe",
        timeout_seconds: float = 60.0,
        registry: ProcessRegistry | None = None,
        temp_dir: Path | None = None,
    ) -> None:
        self.command = tuple(command)
        self.check_args = tuple(check_args)
        self.unit_suffix = unit_suffix
        self.timeout_seconds = timeout_seconds
        self.registry = registry or ProcessRegistry()
        self.temp_dir = temp_dir

    def argv(self, unit_path: Path) -> list[str]:
        return [*self.command, *self.check_args, str(unit_path)]

    def invoke(self, unit_text: str) -> InvocationResult:
        if self.registry.cancelled:
            raise RunCancelled()
        with unit_file(unit_text, self.unit_suffix, self.temp_dir) as path:
            started = time.monotonic()
            proc = subprocess.Popen(
                self.argv(path),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                start_new_session=os.name != "nt",
            )
            with self.registry.tracking(proc):
                try:
                    output, _ = proc.communicate(timeout=self.timeout_seconds)
                except subprocess.TimeoutExpired:
                    kill_group(proc)
                    raise CompilerTimeout(self.timeout_seconds, drain(proc)) from None
            if self.registry.cancelled:
                raise RunCancelled()
            return InvocationResult(
                exit_code=proc.returncode,
                combined_output=output or "",
                duration_ms=int((time.monotonic() - started) * 1000),
            )
