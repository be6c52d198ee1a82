from __future__ import annotations

import os
import shlex
import subprocess
import sys
import textwrap
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

FAKE_COMPILER = textwrap.dedent(
    '''
    """Stand-in for the documented language's compiler.

    Directives inside the checked unit drive its behaviour:
      @error MSG [| CONT ...]  diagnostic at this line, optional continuation lines
      @garbage                 unparseable failure output
      @silent-fail             nonzero exit without output
      @sleep                   hang until killed
    """
    import os
    import sys
    import time


    def main() -> int:
        if len(sys.argv) != 3 or sys.argv[1] != "check":
            print("usage: fake-compiler check FILE")
            return 64
        path = sys.argv[2]
        log = os.environ.get("FAKE_COMPILER_LOG")
        if log:
            with open(log, "a", encoding="utf-8") as handle:
                handle.write(path + "\\n")
        with open(path, encoding="utf-8") as handle:
            lines = handle.read().split("\\n")
        failed = False
        for lineno, line in enumerate(lines, start=1):
            if "@sleep" in line:
                time.sleep(60)
            if "@garbage" in line:
                print("thread 'main' panicked at compiler internals")
                return 101
            if "@silent-fail" in line:
                return 3
            col = line.find("@error")
            if col >= 0:
                message, *cont = line[col + len("@error"):].strip().split("|")
                print(f"{path}:{lineno}:{col + 1}: {message.strip()}")
                for extra in cont:
                    print(f"   = {extra.strip()}")
                failed = True
        return 1 if failed else 0


    raise SystemExit(main())
    '''
)


def write_fake_compiler(directory: Path) -> Path:
    script = directory / "fake_compiler.py"
    script.write_text(FAKE_COMPILER, encoding="utf-8")
    return script


def fake_compiler_command(script: Path) -> str:
    return shlex.join([sys.executable, str(script)])


def run_fencecheck(*args: str, cwd: Path, env: dict[str, str] | None = None) -> subprocess.CompletedProcess[str]:
    merged = os.environ.copy()
    merged["PYTHONPATH"] = str(ROOT / "src")
    merged.setdefault("RUN_ID", "pytest-run")
    if env:
        merged.update(env)
    return subprocess.run(
        [sys.executable, "-m", "fencecheck", *args],
        cwd=cwd,
        env=merged,
        text=True,
        capture_output=True,
        check=False,
        timeout=120,
    )
