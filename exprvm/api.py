"""Composable API functions for the tokenize → compile → execute pipeline.

Each function runs the pipeline up to some stage and is callable
programmatically; none of them configures logging.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from .bytecode_stats import count_opcodes
from .compiler import Compiler
from .errors import CompileError, LexicalError, VMRuntimeError
from .objects import FunctionObject
from .run_types import PipelineStats, VMConfig
from .token_types import Token
from .tokenizer import Tokenizer
from .trace_types import ExecutionTrace
from .values import Value
from .vm import VM
from .vm_types import InterpretResult

logger = logging.getLogger(__name__)


def tokenize_source(source: str) -> list[Token]:
    """Scan *source* into tokens.

    Raises:
        LexicalError: on an unrecognized character or malformed number.
    """
    logger.info("Tokenizing %d characters", len(source))
    return Tokenizer(source).tokenize()


def compile_source(source: str) -> FunctionObject:
    """Compile *source* into a script function whose chunk is sealed.

    Raises:
        LexicalError: if tokenization fails.
        CompileError: if the token stream is not a valid program.
    """
    return Compiler(source).compile()


def dump_bytecode(source: str) -> str:
    """Compile *source* and return a disassembly listing of its chunk."""
    function = compile_source(source)
    return function.chunk.disassemble(function.name)


def bytecode_stats(source: str) -> dict[str, int]:
    """Compile *source* and return opcode-name counts for its chunk."""
    return count_opcodes(compile_source(source).chunk)


def run(source: str, config: VMConfig = VMConfig()) -> Optional[Value]:
    """Compile and execute *source*.

    Returns:
        The value left by the last expression statement, or None when the
        program leaves no value.

    Raises:
        LexicalError, CompileError, VMRuntimeError: the first failure aborts
        the run.
    """
    function = compile_source(source)
    logger.info("Executing %s", function.name)
    return VM(config).interpret(function)


def interpret(source: str, config: VMConfig = VMConfig()) -> InterpretResult:
    """Like run() but reports failures as an InterpretResult instead of raising."""
    try:
        function = compile_source(source)
    except (LexicalError, CompileError) as exc:
        logger.info("Compilation failed: %s", exc)
        return InterpretResult.compile_error(exc)

    try:
        value = VM(config).interpret(function)
    except VMRuntimeError as exc:
        logger.info("Execution failed: %s", exc)
        return InterpretResult.runtime_error(exc)
    return InterpretResult.success(value)


def execute_traced(source: str, config: VMConfig = VMConfig()) -> ExecutionTrace:
    """Compile and execute *source*, recording every executed instruction."""
    function = compile_source(source)
    vm = VM(config)
    vm.push(vm.load(function))
    vm.call(function, 0)
    return vm.run_traced()


def run_with_stats(
    source: str, config: VMConfig = VMConfig()
) -> tuple[Optional[Value], PipelineStats]:
    """Run *source* stage by stage and time each stage."""
    stats = PipelineStats(
        source_bytes=len(source.encode("utf-8")),
        source_lines=source.count("\n") + 1,
    )
    t_start = time.perf_counter()

    compiler = Compiler(source)
    t0 = time.perf_counter()
    tokens = compiler.scan()
    stats.tokenize_time = time.perf_counter() - t0
    stats.token_count = len(tokens)

    t0 = time.perf_counter()
    function = compiler.compile()
    stats.compile_time = time.perf_counter() - t0
    stats.bytecode_units = len(function.chunk)
    stats.constant_count = len(function.chunk.constants)

    t0 = time.perf_counter()
    vm = VM(config)
    value = vm.interpret(function)
    stats.execution_time = time.perf_counter() - t0
    stats.execution_steps = vm.stats.steps
    stats.max_stack_depth = vm.stats.max_stack_depth

    stats.total_time = time.perf_counter() - t_start
    return value, stats
