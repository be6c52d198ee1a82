from .compiler import Compiler, CompilerTimeout, InvocationResult, ProcessRegistry, SubprocessCompiler
from .runner import CheckContext, check_block, collect_blocks, run_blocks, run_checks

__all__ = [
    "CheckContext",
    "Compiler",
    "CompilerTimeout",
    "InvocationResult",
    "ProcessRegistry",
    "SubprocessCompiler",
    "check_block",
    "collect_blocks",
    "run_blocks",
    "run_checks",
]
