"""Pratt compiler and stack VM for a small numeric expression language."""

from .api import (  # noqa: F401
    tokenize_source,
    compile_source,
    dump_bytecode,
    bytecode_stats,
    run,
    interpret,
    execute_traced,
    run_with_stats,
)
from .errors import (  # noqa: F401
    ExprVMError,
    LexicalError,
    CompileError,
    VMRuntimeError,
)
